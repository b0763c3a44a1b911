#!/usr/bin/env python3
"""Build a two-clip emotion library for examples/composition.yaml.

The positive clip runs 2.5s and the neutral one 3.5s, so a 14s target
loops the library and ends on a hard trim. Every frame shows the clip's
label and a progress bar filling left to right; a restarted bar marks a
loop and a bar that stops short marks a trim.

Requires the demo extra: pip install emotecompose[demo]

Usage:
    python examples/generate_emotion_clips.py [--fps 30] [--force]
    emotecompose plan --manifest examples/composition.yaml
"""

import argparse
from pathlib import Path

import numpy as np
from moviepy import VideoClip
from PIL import Image, ImageDraw, ImageFont

DEFAULT_DIR = Path(__file__).resolve().parent / "emotion-clips"
WIDTH, HEIGHT = 320, 240
BAR_HEIGHT = 16

# (file stem, background, bar color, seconds). Order is the library
# order: positive first, neutral second.
LIBRARY = [
    ("positive", (230, 170, 40), (255, 245, 210), 2.5),
    ("neutral", (90, 110, 140), (200, 210, 225), 3.5),
]


def _label_background(label, color):
    img = Image.new("RGB", (WIDTH, HEIGHT), color)
    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 36)
    except OSError:
        font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), label.upper(), font=font)
    draw.text(
        ((WIDTH - (right - left)) / 2, (HEIGHT - BAR_HEIGHT - (bottom - top)) / 2),
        label.upper(), fill=(255, 255, 255), font=font,
    )
    return np.array(img)


def progress_clip(label, color, bar_color, duration):
    """A clip of `duration` seconds whose bottom bar tracks elapsed time."""
    background = _label_background(label, color)
    bar = np.array(bar_color, dtype=np.uint8)

    def frame(t):
        out = background.copy()
        filled = int(WIDTH * min(t / duration, 1.0))
        out[HEIGHT - BAR_HEIGHT:, :filled] = bar
        return out

    return VideoClip(frame_function=frame, duration=duration)


def main(args=None):
    parser = argparse.ArgumentParser(description="Generate the example emotion clip library.")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_DIR)
    parser.add_argument("--fps", type=int, default=30)
    parser.add_argument("--force", action="store_true", help="Overwrite existing clips")
    parsed = parser.parse_args(args)

    parsed.output_dir.mkdir(parents=True, exist_ok=True)
    for label, color, bar_color, duration in LIBRARY:
        out = parsed.output_dir / f"{label}.mp4"
        if out.exists() and not parsed.force:
            print(f"  skip {out.name} (exists, use --force)")
            continue
        clip = progress_clip(label, color, bar_color, duration)
        clip.write_videofile(str(out), fps=parsed.fps, codec="libx264", audio=False, logger=None)
        print(f"  wrote {out.name} ({duration}s @ {parsed.fps}fps)")

    total = sum(entry[3] for entry in LIBRARY)
    print(f"\nLibrary pass is {total}s. Try a target above it to see looping:")
    print("  emotecompose compose --manifest examples/composition.yaml")


if __name__ == "__main__":
    main()
