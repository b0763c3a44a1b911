"""Timeline planner — clip durations to an ordered segment plan.

Given the selected clip sequence (with probed durations), a target
duration D, the loop flag and the fade length F, the planner decides for
every clip occurrence whether it is copied as-is, faded out at its tail,
or trimmed short.

Looping: when loop is set and one pass of the sequence (T seconds) is
shorter than D, the sequence is walked ceil(D / T) times. Per-segment
trimming only happens with loop off; a looping request always emits
every occurrence of the walk in full and leaves the surplus to the
hard trim.

Fades never change a segment's length: fade_out darkens the last
min(F, d/3) seconds of a clip in place. Fade windows are applied to every
occurrence except the last one in the full walk.

The per-segment trim here is approximate (probed durations drift from
what stream copies actually produce). The concatenator's hard trim to D
is what guarantees the final length.
"""

import math
from dataclasses import dataclass

from .errors import ValidationError

COPY = "copy"
TRIM = "trim"
FADE_OUT = "fade_out"

OPERATIONS = (COPY, TRIM, FADE_OUT)


@dataclass(frozen=True)
class Segment:
    """One planned occurrence of a clip in the output timeline.

    Attributes:
        clip: The ClipAsset this segment renders from.
        length: Seconds this segment contributes to the timeline.
        operation: COPY, TRIM or FADE_OUT.
        position: Index of the segment in the plan.
        fade_window: Fade-to-black length for FADE_OUT (0 otherwise).
    """

    clip: object
    length: float
    operation: str
    position: int
    fade_window: float = 0.0

    @property
    def fade_start(self) -> float:
        """Where the fade begins, measured from the clip start."""
        return self.clip.duration - self.fade_window


def plan_timeline(clips, target_duration, loop=True, fade_transition=0.5) -> list[Segment]:
    """Walk the clip sequence and plan one segment per emitted occurrence.

    Args:
        clips: Ordered ClipAssets (one per sentence, or the library once).
        target_duration: Required timeline length in seconds.
        loop: Repeat the sequence when it is shorter than target_duration.
        fade_transition: Requested fade length between segments.

    Returns:
        Ordered segments. Deterministic: the same inputs always produce
        the same plan.

    Raises:
        ValidationError: No clips, or non-positive target duration.
    """
    if not clips:
        raise ValidationError("No clips to plan")
    if target_duration <= 0:
        raise ValidationError(f"target_duration must be > 0, got {target_duration}")

    one_pass = sum(c.duration for c in clips)
    iterations = 1
    if loop and one_pass < target_duration:
        iterations = math.ceil(target_duration / one_pass)

    walk = list(clips) * iterations
    segments = []
    # Total emitted across the whole walk, never reset per iteration.
    cumulative = 0.0

    for i, clip in enumerate(walk):
        d = clip.duration
        position = len(segments)

        if not loop and cumulative + d > target_duration:
            length = max(0.0, target_duration - cumulative)
            if length <= 0:
                break
            segment = Segment(clip, length, TRIM, position)
        elif i < len(walk) - 1 and fade_transition > 0:
            window = min(fade_transition, d / 3)
            segment = Segment(clip, d, FADE_OUT, position, fade_window=window)
        else:
            segment = Segment(clip, d, COPY, position)

        segments.append(segment)
        cumulative += segment.length

        if not loop and cumulative >= target_duration:
            break

    return segments


def planned_length(segments) -> float:
    """Sum of emitted lengths, before the concatenator's hard trim."""
    return sum(s.length for s in segments)
