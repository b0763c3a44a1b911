"""Shared test fixtures for emotecompose tests."""

import subprocess
import threading
from pathlib import Path

import pytest
import imageio_ffmpeg

from emotecompose.errors import EngineError, RenderTimeout

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def make_clip(path, duration, color="blue", fps=10):
    """Render a silent solid-color clip (160x120) with the bundled ffmpeg."""
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", f"color=c={color}:s=160x120:d={duration}:r={fps}",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-g", str(fps),
            str(path),
        ],
        check=True,
        capture_output=True,
    )
    return path


@pytest.fixture
def clip_library(tmp_path):
    """Real 2s positive + 3s neutral clips, for ffmpeg integration tests."""
    lib = tmp_path / "animations"
    lib.mkdir()
    positive = make_clip(lib / "happy.mp4", 2, color="yellow")
    neutral = make_clip(lib / "neutral.mp4", 3, color="gray")
    return [str(positive), str(neutral)]


@pytest.fixture
def narration(tmp_path):
    """A 4-second mono sine-tone narration."""
    out = tmp_path / "speech.m4a"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "sine=frequency=440:duration=4",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


class FakeEngine:
    """Deterministic Engine stand-in that records every call.

    Durations come from a {filename: seconds} mapping. Transform calls
    write small text files so the concatenator has something to deliver.
    Set `fail_on` to an operation name to make its n-th call (`fail_at`,
    counting from 0) raise EngineError, or `timeout_on` for RenderTimeout.
    """

    def __init__(self, durations=None, fail_on=None, fail_at=0, timeout_on=None):
        self.durations = durations or {}
        self.fail_on = fail_on
        self.fail_at = fail_at
        self.timeout_on = timeout_on
        self.calls = []
        self.probed = []
        self._counts = {}
        self._lock = threading.Lock()

    def probe_duration(self, path):
        with self._lock:
            self.probed.append(str(path))
        return self.durations[Path(path).name]

    def _record(self, op, *args, timeout=None):
        with self._lock:
            self.calls.append((op, *args))
            n = self._counts.get(op, 0)
            self._counts[op] = n + 1
        if op == self.timeout_on:
            raise RenderTimeout(op, timeout or 1.0)
        if op == self.fail_on and n == self.fail_at:
            raise EngineError(op, 1, "simulated failure")

    def copy(self, src, dst, timeout=None):
        self._record("copy", Path(src).name, timeout=timeout)
        Path(dst).write_text(f"copy {Path(src).name}\n")

    def trim(self, src, dst, length, timeout=None):
        self._record("trim", Path(src).name, round(length, 6), timeout=timeout)
        Path(dst).write_text(f"trim {Path(src).name} {length:.3f}\n")

    def hard_trim(self, src, dst, length, fps, timeout=None):
        self._record("hard_trim", Path(src).name, round(length, 6), fps, timeout=timeout)
        Path(dst).write_text(f"hard_trim {Path(src).name} {length:.3f} {fps}\n")

    def fade_out(self, src, dst, start, window, timeout=None):
        self._record("fade_out", Path(src).name, round(start, 6), round(window, 6), timeout=timeout)
        Path(dst).write_text(f"fade {Path(src).name}\n")

    def concat(self, manifest, dst, timeout=None):
        self._record("concat", Path(manifest).name, timeout=timeout)
        Path(dst).write_text(Path(manifest).read_text())

    def operations(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_engine():
    return FakeEngine({"happy.mp4": 2.0, "neutral.mp4": 3.0})


@pytest.fixture
def fake_library(tmp_path):
    """Placeholder clip files (content irrelevant for the fake engine)."""
    lib = tmp_path / "animations"
    lib.mkdir()
    for name in ("happy.mp4", "neutral.mp4"):
        (lib / name).write_text("fake")
    return ["animations/happy.mp4", "animations/neutral.mp4"]
