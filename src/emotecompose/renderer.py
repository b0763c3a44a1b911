"""Segment renderer — one intermediate file per planned segment.

No decisions are made here: each segment's operation fully determines
the engine call.

  copy      stream copy of the whole clip
  trim      stream copy of the first `length` seconds
  fade_out  video re-encoded with fade-to-black over the last
            `fade_window` seconds; audio (if any) stream-copied

Source clips are only ever read. Failures are not retried.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from .errors import EngineError, RenderFailure, RenderTimeout
from .planner import COPY, FADE_OUT, TRIM

logger = logging.getLogger(__name__)


def segment_filename(segment) -> str:
    return f"segment_{segment.position:04d}.mp4"


def render_segment(segment, engine, workspace, deadline=None):
    """Render a single segment into the workspace and return its path.

    Raises:
        RenderTimeout: The engine call (or the composition) ran out of time.
        RenderFailure: The engine call failed; carries the segment position.
    """
    out = workspace.file(segment_filename(segment))
    src = segment.clip.path
    timeout = None

    try:
        if deadline is not None:
            timeout = deadline.next_timeout(segment.operation)
        if segment.operation == COPY:
            engine.copy(src, out, timeout=timeout)
        elif segment.operation == TRIM:
            engine.trim(src, out, segment.length, timeout=timeout)
        elif segment.operation == FADE_OUT:
            engine.fade_out(
                src, out, segment.fade_start, segment.fade_window,
                timeout=timeout,
            )
        else:
            raise ValueError(f"Unknown segment operation: '{segment.operation}'")
    except RenderTimeout as e:
        raise RenderTimeout(e.stage, e.timeout, position=segment.position) from e
    except EngineError as e:
        raise RenderFailure(segment.position, e.stage, e.exit_code, e.stderr) from e

    logger.info(
        "  [%d] %-8s %.2fs  %s", segment.position, segment.operation,
        segment.length, src,
    )
    return out


def render_segments(segments, engine, workspace, workers=1, deadline=None):
    """Render every segment and return the intermediate paths in plan order.

    Args:
        segments: The plan from plan_timeline().
        engine: Engine implementation.
        workspace: ScratchWorkspace receiving the intermediate files.
        workers: Segments rendered concurrently. Order of the returned
            paths is the plan order regardless.
        deadline: Optional Deadline bounding every engine call.
    """
    logger.info("Rendering %d segments...", len(segments))
    if workers <= 1 or len(segments) <= 1:
        return [render_segment(s, engine, workspace, deadline) for s in segments]

    # Create the workspace before the pool so workers never race on it.
    workspace.file(segment_filename(segments[0]))

    pool = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = [
            pool.submit(render_segment, s, engine, workspace, deadline)
            for s in segments
        ]
        return [f.result() for f in futures]
    finally:
        # On failure, drop segments that have not started yet.
        pool.shutdown(wait=True, cancel_futures=True)
