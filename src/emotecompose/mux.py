"""Narration muxing — put the narration audio under the composed track.

The video stream is copied untouched, audio is encoded to AAC, and the
result ends with the shorter input. Since the composed track is
hard-trimmed to the narration length, the two line up.
"""

import logging
from pathlib import Path

from .engine import FfmpegEngine
from .errors import AssetNotFound

logger = logging.getLogger(__name__)


def mux_narration(video, audio, output, engine=None, timeout=None) -> Path:
    """Merge a silent video with narration audio into output.

    Raises:
        AssetNotFound: video or audio file is missing.
        EngineError: ffmpeg failed (RenderTimeout past `timeout`).
    """
    for p in (video, audio):
        if not Path(p).exists():
            raise AssetNotFound(p)

    engine = engine or FfmpegEngine()
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    engine.mux(video, audio, output, timeout=timeout)
    logger.info("Muxed %s + %s -> %s", video, audio, output)
    return output
