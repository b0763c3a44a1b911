"""CLI for composition — build a silent track from an emotion-tagged library.

The request comes from a YAML manifest, from flags, or both (flags win).
The target duration is --duration, or the length of --narration.

Usage:
    # From a manifest
    emotecompose compose --manifest composition.yaml

    # From flags, then mux the narration under the result
    emotecompose compose \
        --clip animations/happy.mp4 --clip animations/neutral.mp4 \
        --narration speech.mp3 --emotions joy,anger,optimism \
        --output output/track.mp4 --mux output/final.mp4

    # Inspect the plan only
    emotecompose plan --manifest composition.yaml
"""

import argparse
import logging
from pathlib import Path

from .compositor import build_plan, compose
from .engine import FfmpegEngine, probe_narration
from .manifest import build_request, load_manifest, resolve_narration
from .mux import mux_narration
from .planner import planned_length
from .request import CompositionRequest


def _build_parser(description):
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--manifest", default=None,
        help="Path to YAML composition manifest",
    )
    parser.add_argument(
        "--clip", action="append", default=None, dest="clips",
        help="Clip library entry (repeat; first = positive, second = neutral)",
    )
    parser.add_argument(
        "--emotions", default=None,
        help="Comma-separated emotion labels, one per sentence",
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Target duration in seconds",
    )
    parser.add_argument(
        "--narration", default=None,
        help="Narration audio; its length is the target duration",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output mp4 path",
    )
    parser.add_argument(
        "--root-dir", default=None,
        help="Base directory for relative clip paths",
    )
    parser.add_argument(
        "--no-loop", dest="loop", action="store_false", default=None,
        help="Do not repeat clips; trim to the target duration instead",
    )
    parser.add_argument(
        "--fade", type=float, default=None,
        help="Fade-to-black length between segments in seconds (0 = cut)",
    )
    parser.add_argument(
        "--fps", type=int, default=None,
        help="Output frame rate (default 30)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Render segments in parallel",
    )
    parser.add_argument(
        "--segment-timeout", type=float, default=None,
        help="Seconds allowed per ffmpeg call",
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds allowed for the whole composition",
    )
    parser.add_argument(
        "--gpu", action="store_true",
        help="Use GPU encoding (h264_nvenc) for faded segments. Default is CPU (libx264).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log each ffmpeg invocation",
    )
    return parser


def _emotion_list(text):
    if text is None:
        return None
    return [e.strip() for e in text.split(",") if e.strip()]


def _request_from_args(parser, parsed):
    """Merge manifest (if any) and flags into a CompositionRequest."""
    emotions = _emotion_list(parsed.emotions)
    codec = "h264_nvenc" if parsed.gpu else None
    overrides = {
        "clips": parsed.clips,
        "emotions": emotions,
        "target_duration": parsed.duration,
        "output_path": parsed.output,
        "root_dir": parsed.root_dir,
        "loop": parsed.loop,
        "fade_transition": parsed.fade,
        "fps": parsed.fps,
        "workers": parsed.workers,
        "segment_timeout": parsed.segment_timeout,
        "timeout": parsed.timeout,
        "codec": codec,
    }

    if parsed.manifest:
        config = load_manifest(parsed.manifest)
        if parsed.narration:
            # Flags are relative to the working directory, not the manifest.
            config["narration"] = str(Path(parsed.narration).absolute())
            if parsed.duration is None:
                config["target_duration"] = None
        return build_request(config, **overrides), resolve_narration(config)

    if not parsed.clips:
        parser.error("Specify --manifest or at least one --clip")
    if parsed.output is None:
        parser.error("--output is required without --manifest")
    if parsed.duration is None and parsed.narration is None:
        parser.error("Specify --duration or --narration")

    narration = Path(parsed.narration) if parsed.narration else None
    if parsed.duration is None:
        overrides["target_duration"] = probe_narration(narration)
    fields = {k: v for k, v in overrides.items() if v is not None}
    return CompositionRequest(**fields), narration


def _configure_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )


def main(args=None):
    parser = _build_parser("Compose an exact-length silent track from emotion-tagged clips.")
    parser.add_argument(
        "--mux", default=None, metavar="FINAL",
        help="Also merge the narration under the track into FINAL",
    )
    parsed = parser.parse_args(args)
    _configure_logging(parsed.verbose)

    request, narration = _request_from_args(parser, parsed)
    if parsed.mux and narration is None:
        parser.error("--mux requires a narration (--narration or manifest 'narration')")

    print(f"Composing {request.target_duration:.2f}s track from {len(request.clips)} clip(s)")
    engine = FfmpegEngine(codec=request.codec)
    output = compose(request, engine=engine)
    print(f"Done: {output}")

    if parsed.mux:
        final = mux_narration(output, narration, parsed.mux, engine=engine)
        print(f"Muxed narration: {final}")


def plan_main(args=None):
    parser = _build_parser("Print the segment plan for a composition without rendering.")
    parsed = parser.parse_args(args)
    _configure_logging(parsed.verbose)

    request, _ = _request_from_args(parser, parsed)
    segments = build_plan(request, FfmpegEngine(codec=request.codec))

    print(f"Target duration: {request.target_duration:.3f}s")
    for s in segments:
        extra = f"  fade {s.fade_window:.2f}s" if s.fade_window else ""
        print(f"  {s.position:3d}: {s.operation:<8} {s.length:7.3f}s  {s.clip.path}{extra}")
    print(
        f"{len(segments)} segments, {planned_length(segments):.3f}s planned "
        f"(hard-trimmed to {request.target_duration:.3f}s)"
    )
