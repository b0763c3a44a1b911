"""CLI for narration muxing — merge a composed track with its narration.

Usage:
    emotecompose mux output/track.mp4 speech.mp3 --output output/final.mp4
"""

import argparse

from .mux import mux_narration


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Merge a silent video track with narration audio.",
    )
    parser.add_argument("video", help="Composed silent video track")
    parser.add_argument("audio", help="Narration audio file")
    parser.add_argument(
        "--output", required=True,
        help="Output mp4 path",
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds allowed for ffmpeg",
    )
    parsed = parser.parse_args(args)

    print(f"Muxing {parsed.audio} under {parsed.video}")
    output = mux_narration(parsed.video, parsed.audio, parsed.output, timeout=parsed.timeout)
    print(f"Done: {output}")


if __name__ == "__main__":
    main()
