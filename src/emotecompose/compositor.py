"""Timeline compositor — compose(request) end to end.

Pipeline, once per request:

  resolve   emotion labels -> clip assets with probed durations
  plan      durations + target + loop/fade policy -> ordered segments
  render    one intermediate file per segment (scratch workspace)
  concat    join, hard-trim to the target duration, deliver

Validation and asset checks fail before ffmpeg runs. Any engine failure
aborts the composition without delivering anything; the scratch
workspace is removed on every exit path, cancellation included.
"""

import logging
from pathlib import Path

from .concat import concatenate
from .engine import Deadline, FfmpegEngine
from .planner import plan_timeline
from .renderer import render_segments
from .resolver import resolve_clips
from .workspace import ScratchWorkspace

logger = logging.getLogger(__name__)


def build_plan(request, engine):
    """Resolve clips and plan the timeline without rendering anything."""
    request.validate()
    clips = resolve_clips(request, engine)
    return plan_timeline(
        clips,
        request.target_duration,
        loop=request.loop,
        fade_transition=request.fade_transition,
    )


def compose(request, engine=None) -> Path:
    """Compose the silent video track described by request.

    Args:
        request: CompositionRequest.
        engine: Engine implementation. Defaults to FfmpegEngine using the
            request's codec.

    Returns:
        Resolved output path; its duration equals request.target_duration
        within one frame interval.

    Raises:
        ValidationError, AssetNotFound, ProbeError, RenderFailure,
        RenderTimeout, EngineError.
    """
    if engine is None:
        engine = FfmpegEngine(codec=request.codec)

    logger.info("Target duration: %.3fs", request.target_duration)
    segments = build_plan(request, engine)
    logger.info(
        "Planned %d segments (loop=%s, fade=%.2fs)",
        len(segments), request.loop, request.fade_transition,
    )

    deadline = Deadline(request.timeout, request.segment_timeout)
    with ScratchWorkspace(request.scratch_root) as workspace:
        paths = render_segments(
            segments, engine, workspace,
            workers=request.workers, deadline=deadline,
        )
        return concatenate(
            paths, request.target_duration, request.resolved_output,
            engine, workspace, fps=request.fps, deadline=deadline,
        )
