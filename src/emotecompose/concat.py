"""Concatenator — join rendered segments and hard-trim to the target.

  1. Write an ffmpeg concat-demuxer manifest listing the segments in
     plan order.
  2. Stream-copy concat into one joined file (no re-encode).
  3. Hard trim to round(target * fps) frames (re-encoded, frame
     accurate). This is the only step that guarantees the output length.
  4. Copy the trimmed file to the output path.

Workspace removal happens when the ScratchWorkspace context exits.
"""

import logging
import shutil
from pathlib import Path

from .errors import ValidationError

logger = logging.getLogger(__name__)


def _quote(path: str | Path) -> str:
    """Single-quote a path for the concat demuxer (' becomes '\\'')."""
    return "'" + str(path).replace("'", "'\\''") + "'"


def write_concat_manifest(paths, manifest_path: str | Path) -> Path:
    """Write `file '<path>'` lines for each segment, in order."""
    manifest_path = Path(manifest_path)
    lines = [f"file {_quote(Path(p).resolve())}" for p in paths]
    manifest_path.write_text("\n".join(lines) + "\n")
    return manifest_path


def concatenate(
    paths, target_duration, output_path, engine, workspace, fps=30, deadline=None,
) -> Path:
    """Join segment files, hard-trim to target_duration, deliver to output_path.

    Args:
        paths: Intermediate segment files in plan order.
        target_duration: Exact length of the delivered file, in seconds.
        output_path: Destination (parent directories are created).
        engine: Engine implementation.
        workspace: ScratchWorkspace holding the intermediates.
        fps: Output frame rate; the delivered file is within one frame
            (1 / fps seconds) of target_duration.
        deadline: Optional Deadline bounding the engine calls.

    Returns:
        The output path.

    Raises:
        ValidationError: No segments to join.
        EngineError: Concat or trim failed (RenderTimeout when out of time).
    """
    if not paths:
        raise ValidationError("No segments to concatenate")

    manifest = write_concat_manifest(paths, workspace.file("filelist.txt"))

    joined = workspace.file("joined.mp4")
    timeout = deadline.next_timeout("concat") if deadline else None
    logger.info("Concatenating %d segments", len(paths))
    engine.concat(manifest, joined, timeout=timeout)

    trimmed = workspace.file("trimmed.mp4")
    timeout = deadline.next_timeout("hard_trim") if deadline else None
    logger.info("Trimming to %.3fs", target_duration)
    engine.hard_trim(joined, trimmed, target_duration, fps, timeout=timeout)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(trimmed, output_path)
    logger.info("Wrote %s", output_path)
    return output_path
