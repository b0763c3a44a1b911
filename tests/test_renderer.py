"""Tests for the segment renderer (fake engine, call-sequence assertions)."""

import pytest

from emotecompose.engine import Deadline
from emotecompose.errors import RenderFailure, RenderTimeout
from emotecompose.planner import plan_timeline
from emotecompose.renderer import render_segments
from emotecompose.resolver import ClipAsset
from emotecompose.workspace import ScratchWorkspace

from conftest import FakeEngine

HAPPY = ClipAsset("joy", "/clips/happy.mp4", 2.0)
NEUTRAL = ClipAsset("anger", "/clips/neutral.mp4", 3.0)


class TestRenderSegments:
    def test_operation_determines_engine_call(self, tmp_path):
        engine = FakeEngine()
        segments = plan_timeline([HAPPY, NEUTRAL], 4.0, loop=False, fade_transition=0.5)
        with ScratchWorkspace(tmp_path) as ws:
            paths = render_segments(segments, engine, ws)
            assert all(p.exists() for p in paths)
        assert engine.calls == [
            ("fade_out", "happy.mp4", 1.5, 0.5),
            ("trim", "neutral.mp4", 2.0),
        ]

    def test_copy_segments(self, tmp_path):
        engine = FakeEngine()
        segments = plan_timeline([HAPPY, NEUTRAL], 5.0, loop=True, fade_transition=0)
        with ScratchWorkspace(tmp_path) as ws:
            render_segments(segments, engine, ws)
        assert engine.calls == [("copy", "happy.mp4"), ("copy", "neutral.mp4")]

    def test_one_file_per_segment_in_plan_order(self, tmp_path):
        engine = FakeEngine()
        segments = plan_timeline([HAPPY, NEUTRAL], 12.0, loop=True)
        with ScratchWorkspace(tmp_path) as ws:
            paths = render_segments(segments, engine, ws)
            assert len(paths) == len(segments) == 6
            assert len(set(paths)) == 6
            assert [p.name for p in paths] == sorted(p.name for p in paths)

    def test_failure_carries_segment_position(self, tmp_path):
        engine = FakeEngine(fail_on="fade_out", fail_at=2)
        segments = plan_timeline([HAPPY, NEUTRAL], 12.0, loop=True)
        with ScratchWorkspace(tmp_path) as ws:
            with pytest.raises(RenderFailure) as exc_info:
                render_segments(segments, engine, ws)
        assert exc_info.value.position == 2
        assert exc_info.value.stage == "fade_out"
        assert exc_info.value.exit_code == 1
        # No retry, nothing rendered after the failure.
        assert len(engine.calls) == 3

    def test_timeout_carries_segment_position(self, tmp_path):
        engine = FakeEngine(timeout_on="trim")
        segments = plan_timeline([HAPPY, NEUTRAL], 4.0, loop=False)
        with ScratchWorkspace(tmp_path) as ws:
            with pytest.raises(RenderTimeout) as exc_info:
                render_segments(segments, engine, ws)
        assert exc_info.value.position == 1

    def test_deadline_passes_per_call_timeout(self, tmp_path):
        seen = []

        class TimeoutRecorder(FakeEngine):
            def copy(self, src, dst, timeout=None):
                seen.append(timeout)
                super().copy(src, dst, timeout=timeout)

        segments = plan_timeline([HAPPY, NEUTRAL], 5.0, loop=False, fade_transition=0)
        with ScratchWorkspace(tmp_path) as ws:
            render_segments(segments, TimeoutRecorder(), ws, deadline=Deadline(per_call=30))
        assert seen == [30, 30]

    def test_spent_deadline_raises_before_engine_call(self, tmp_path):
        engine = FakeEngine()
        segments = plan_timeline([HAPPY], 2.0)
        with ScratchWorkspace(tmp_path) as ws:
            with pytest.raises(RenderTimeout):
                render_segments(segments, engine, ws, deadline=Deadline(total=-1))
        assert engine.calls == []


class TestParallelRender:
    def test_paths_keep_plan_order(self, tmp_path):
        engine = FakeEngine()
        segments = plan_timeline([HAPPY, NEUTRAL], 20.0, loop=True)
        with ScratchWorkspace(tmp_path) as ws:
            sequential = [p.name for p in render_segments(segments, FakeEngine(), ws)]
            parallel = [p.name for p in render_segments(segments, engine, ws, workers=4)]
        assert parallel == sequential
        assert len(engine.calls) == len(segments)

    def test_failure_propagates(self, tmp_path):
        engine = FakeEngine(fail_on="copy")
        segments = plan_timeline([HAPPY, NEUTRAL], 20.0, loop=True)
        with ScratchWorkspace(tmp_path) as ws:
            with pytest.raises(RenderFailure) as exc_info:
                render_segments(segments, engine, ws, workers=3)
        assert exc_info.value.position == len(segments) - 1
