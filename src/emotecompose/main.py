"""Subcommand dispatcher for emotecompose.

Usage:
    emotecompose compose --manifest composition.yaml
    emotecompose compose --clip happy.mp4 --clip neutral.mp4 \
        --duration 12.5 --emotions joy,anger --output track.mp4
    emotecompose plan    --manifest composition.yaml
    emotecompose mux     track.mp4 speech.mp3 --output final.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="emotecompose",
        description="Emotion-driven timeline composition of pre-rendered clips.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Compose an exact-length track from clips")
    subparsers.add_parser("plan", help="Print the segment plan without rendering")
    subparsers.add_parser("mux", help="Merge a composed track with narration audio")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .compose_cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "plan":
        from .compose_cli import plan_main
        plan_main(remaining)
    elif parsed.command == "mux":
        from .mux_cli import main as mux_main
        mux_main(remaining)


if __name__ == "__main__":
    main()
