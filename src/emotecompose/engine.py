"""ffmpeg engine — the only module that spawns transcoder processes.

The compositor talks to an Engine (probe_duration, copy, trim, fade_out,
concat). FfmpegEngine implements it with the ffmpeg binary bundled by
imageio-ffmpeg; durations are probed with moviepy, since imageio-ffmpeg
does NOT bundle ffprobe. Tests substitute a recording fake.

Every engine call runs ffmpeg through subprocess.run, which kills the
child on any exception (timeout, KeyboardInterrupt), so an interrupted
composition never leaves ffmpeg writing into a deleted workspace.
"""

import logging
import subprocess
import time
from pathlib import Path
from typing import Protocol

import imageio_ffmpeg
from moviepy import AudioFileClip, VideoFileClip

from .errors import AssetNotFound, EngineError, ProbeError, RenderTimeout

logger = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


class Engine(Protocol):
    """Capability interface the planner, renderer and concatenator drive."""

    def probe_duration(self, path: str | Path) -> float: ...

    def copy(self, src: str | Path, dst: str | Path, timeout: float | None = None) -> None: ...

    def trim(
        self, src: str | Path, dst: str | Path, length: float,
        timeout: float | None = None,
    ) -> None: ...

    def hard_trim(
        self, src: str | Path, dst: str | Path, length: float, fps: int,
        timeout: float | None = None,
    ) -> None: ...

    def fade_out(
        self, src: str | Path, dst: str | Path, start: float, window: float,
        timeout: float | None = None,
    ) -> None: ...

    def concat(
        self, manifest: str | Path, dst: str | Path, timeout: float | None = None,
    ) -> None: ...


def _codec_params(codec):
    """Return (codec, ffmpeg_params) for the given codec name."""
    if codec == "h264_nvenc":
        return codec, ["-cq", "20", "-pix_fmt", "yuv420p"]
    return codec, ["-crf", "20", "-pix_fmt", "yuv420p"]


def frame_count(length: float, fps: int) -> int:
    """Frames closest to `length` seconds at `fps` (at least one)."""
    return max(1, round(length * fps))


def _probe_with(clip_cls, path: str | Path) -> float:
    """Open a media file with a moviepy clip class and return its duration."""
    p = Path(path)
    if not p.exists():
        raise AssetNotFound(p)
    try:
        if clip_cls is VideoFileClip:
            clip = clip_cls(str(p), audio=False)
        else:
            clip = clip_cls(str(p))
        with clip:
            duration = clip.duration
    except (OSError, KeyError, ValueError, IndexError) as e:
        raise ProbeError(p, e) from e

    if duration is None or duration <= 0:
        raise ProbeError(p, f"non-positive duration {duration!r}")
    return float(duration)


def probe_narration(path: str | Path) -> float:
    """Duration in seconds of a narration audio file."""
    return _probe_with(AudioFileClip, path)


class FfmpegEngine:
    """Engine backed by the bundled ffmpeg binary.

    Args:
        codec: Video codec for re-encoded segments — "libx264" for CPU,
            "h264_nvenc" for GPU.
        ffmpeg: Path to the ffmpeg executable (defaults to the one
            bundled with imageio-ffmpeg).
    """

    def __init__(self, codec: str = "libx264", ffmpeg: str | None = None):
        self.codec = codec
        self.ffmpeg = ffmpeg or _FFMPEG

    # ── Probing ────────────────────────────────────────────────────

    def probe_duration(self, path: str | Path) -> float:
        return _probe_with(VideoFileClip, path)

    # ── Transform operations ───────────────────────────────────────

    def copy(self, src, dst, timeout=None):
        self.run(
            ["-i", str(src), "-c", "copy", str(dst)],
            stage="copy", timeout=timeout,
        )

    def trim(self, src, dst, length, timeout=None):
        self.run(
            ["-i", str(src), "-t", f"{length:.3f}", "-c", "copy", str(dst)],
            stage="trim", timeout=timeout,
        )

    def hard_trim(self, src, dst, length, fps, timeout=None):
        """Frame-accurate cut to `length` seconds at `fps`.

        Stream copies stop on packet boundaries and overshoot by a frame
        or two, so the video is re-encoded and capped at
        round(length * fps) frames. Audio (if any) is stream-copied.
        """
        codec_name, codec_ffparams = _codec_params(self.codec)
        self.run(
            [
                "-i", str(src),
                "-t", f"{length:.3f}",
                "-r", str(fps),
                "-frames:v", str(frame_count(length, fps)),
                "-c:v", codec_name, *codec_ffparams,
                "-c:a", "copy",
                str(dst),
            ],
            stage="hard_trim", timeout=timeout,
        )

    def fade_out(self, src, dst, start, window, timeout=None):
        codec_name, codec_ffparams = _codec_params(self.codec)
        self.run(
            [
                "-i", str(src),
                "-vf", f"fade=t=out:st={start:.3f}:d={window:.3f}",
                "-c:v", codec_name, *codec_ffparams,
                "-c:a", "copy",
                str(dst),
            ],
            stage="fade_out", timeout=timeout,
        )

    def concat(self, manifest, dst, timeout=None):
        self.run(
            ["-f", "concat", "-safe", "0", "-i", str(manifest), "-c", "copy", str(dst)],
            stage="concat", timeout=timeout,
        )

    def mux(self, video, audio, dst, timeout=None):
        """Merge a silent video track with narration audio."""
        self.run(
            [
                "-i", str(video),
                "-i", str(audio),
                "-map", "0:v:0",
                "-map", "1:a:0",
                "-c:v", "copy",
                "-c:a", "aac",
                "-shortest",
                str(dst),
            ],
            stage="mux", timeout=timeout,
        )

    # ── Process handling ───────────────────────────────────────────

    def run(self, args: list[str], stage: str, timeout: float | None = None) -> None:
        """Run ffmpeg with the given arguments, overwriting the output.

        Raises:
            RenderTimeout: ffmpeg ran past `timeout` seconds (it is killed).
            EngineError: ffmpeg exited non-zero or could not be started.
        """
        cmd = [self.ffmpeg, "-y", "-hide_banner", "-loglevel", "error", *args]
        logger.debug("ffmpeg %s: %s", stage, " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise RenderTimeout(stage, timeout) from e
        except OSError as e:
            raise EngineError(stage, None, str(e)) from e

        if result.returncode != 0:
            raise EngineError(
                stage, result.returncode,
                result.stderr.decode(errors="replace"),
            )


class Deadline:
    """Time budget shared by every engine call of one composition.

    Combines the overall composition timeout with the per-call cap and
    hands out the timeout for the next call.
    """

    def __init__(self, total: float | None = None, per_call: float | None = None):
        self.total = total
        self.per_call = per_call
        self._expires = time.monotonic() + total if total is not None else None

    def next_timeout(self, stage: str) -> float | None:
        """Seconds the next engine call may take.

        Raises:
            RenderTimeout: The composition budget is already spent.
        """
        if self._expires is None:
            return self.per_call
        remaining = self._expires - time.monotonic()
        if remaining <= 0:
            raise RenderTimeout(stage, self.total)
        if self.per_call is None:
            return remaining
        return min(remaining, self.per_call)
