"""Clip library resolver — emotion labels to probed clip assets.

The library is a short ordered list of clip paths. By convention index 0
is the positive clip and index 1 the neutral one:

  clips:
    - animations/happy.mp4     # 0: joy, optimism
    - animations/neutral.mp4   # 1: everything else

Each narration sentence's emotion label selects one clip. With no
emotions the whole library is used once, in order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .errors import AssetNotFound, ProbeError

logger = logging.getLogger(__name__)


POSITIVE_INDEX = 0
NEUTRAL_INDEX = 1

# Labels not listed here select NEUTRAL_INDEX.
EMOTION_CLIP_INDEX = {
    "joy": POSITIVE_INDEX,
    "optimism": POSITIVE_INDEX,
}

_MAX_PROBE_WORKERS = 8


@dataclass(frozen=True)
class ClipAsset:
    """One clip occurrence with its probed duration."""

    label: str
    path: str
    duration: float


def clip_index_for(label: str, library_size: int) -> int:
    """Library index selected by an emotion label.

    Out-of-range indices clamp to 0 so a one-clip library serves every
    label.
    """
    index = EMOTION_CLIP_INDEX.get(label.strip().lower(), NEUTRAL_INDEX)
    if index >= library_size:
        return 0
    return index


def select_clips(clips, emotions=None) -> list[tuple[str, str]]:
    """Pick one (label, path) per sentence, or the whole library once.

    Args:
        clips: Ordered clip library paths.
        emotions: Per-sentence emotion labels (may be empty or None).

    Returns:
        Ordered (label, path) pairs. Without emotions the label is the
        clip's role in the library ("positive", "neutral", "clip-N").
    """
    clips = list(clips)
    if emotions:
        return [(label, clips[clip_index_for(label, len(clips))]) for label in emotions]
    return [(_role(i), path) for i, path in enumerate(clips)]


def _role(index: int) -> str:
    if index == POSITIVE_INDEX:
        return "positive"
    if index == NEUTRAL_INDEX:
        return "neutral"
    return f"clip-{index}"


def resolve_clips(request, engine) -> list[ClipAsset]:
    """Select clips for the request and probe each distinct file once.

    Every selected file is checked for existence before the engine is
    touched. Probes of distinct files run concurrently; results are
    shared by every occurrence of the same path.

    Raises:
        AssetNotFound: A selected clip file does not exist.
        ProbeError: Probing failed or returned a non-positive duration.
    """
    selection = [
        (label, request.resolve_path(path))
        for label, path in select_clips(request.clips, request.emotions)
    ]

    distinct = list(dict.fromkeys(path for _, path in selection))
    missing = [p for p in distinct if not p.exists()]
    if missing:
        raise AssetNotFound(missing[0])

    workers = min(_MAX_PROBE_WORKERS, len(distinct))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        durations = dict(zip(distinct, pool.map(engine.probe_duration, distinct)))

    for path, duration in durations.items():
        if duration is None or duration <= 0:
            raise ProbeError(path, f"non-positive duration {duration!r}")
        logger.info("Probed %.2fs  %s", duration, path)

    return [ClipAsset(label, str(path), durations[path]) for label, path in selection]
