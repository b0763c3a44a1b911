"""Tests for the scratch workspace lifecycle."""

import logging
import shutil

import pytest

from emotecompose.errors import CleanupWarning
from emotecompose.workspace import ScratchWorkspace


class TestScratchWorkspace:
    def test_created_lazily(self, tmp_path):
        ws = ScratchWorkspace(tmp_path / "scratch")
        assert not ws.created
        assert not (tmp_path / "scratch").exists()
        path = ws.file("segment_0000.mp4")
        assert ws.created
        assert path.parent.is_dir()
        assert path.parent.parent == tmp_path / "scratch"

    def test_removed_on_success(self, tmp_path):
        with ScratchWorkspace(tmp_path) as ws:
            ws.file("a.mp4").write_text("x")
            workdir = ws.path
        assert not workdir.exists()

    def test_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with ScratchWorkspace(tmp_path) as ws:
                ws.file("a.mp4").write_text("x")
                workdir = ws.path
                raise RuntimeError("boom")
        assert not workdir.exists()

    def test_removed_on_keyboard_interrupt(self, tmp_path):
        with pytest.raises(KeyboardInterrupt):
            with ScratchWorkspace(tmp_path) as ws:
                ws.file("a.mp4").write_text("x")
                workdir = ws.path
                raise KeyboardInterrupt
        assert not workdir.exists()

    def test_names_are_exclusive(self, tmp_path):
        a, b = ScratchWorkspace(tmp_path), ScratchWorkspace(tmp_path)
        assert a.file("x").parent != b.file("x").parent
        a.cleanup()
        b.cleanup()

    def test_cleanup_without_writes_is_noop(self, tmp_path):
        assert ScratchWorkspace(tmp_path).cleanup() is None
        assert list(tmp_path.iterdir()) == []

    def test_cleanup_failure_is_logged_not_raised(self, tmp_path, monkeypatch, caplog):
        def fail(path):
            raise PermissionError("denied")

        monkeypatch.setattr(shutil, "rmtree", fail)
        ws = ScratchWorkspace(tmp_path)
        ws.file("a.mp4")
        with caplog.at_level(logging.WARNING, logger="emotecompose.workspace"):
            warning = ws.cleanup()
        assert isinstance(warning, CleanupWarning)
        assert "denied" in caplog.text

    def test_cleanup_failure_does_not_mask_error(self, tmp_path, monkeypatch):
        def fail(path):
            raise PermissionError("denied")

        monkeypatch.setattr(shutil, "rmtree", fail)
        with pytest.raises(ValueError, match="primary"):
            with ScratchWorkspace(tmp_path) as ws:
                ws.file("a.mp4")
                raise ValueError("primary")
