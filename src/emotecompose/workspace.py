"""Scratch workspace — per-request home for intermediate segment files.

The directory is created lazily by the first write and is removed when
the context manager exits, whatever the outcome (success, engine failure,
timeout or KeyboardInterrupt). Removal is best-effort: a failure is
logged as a CleanupWarning and never masks the error that ended the
composition.
"""

import logging
import shutil
import tempfile
from pathlib import Path

from .errors import CleanupWarning

logger = logging.getLogger(__name__)


class ScratchWorkspace:
    """Exclusively-named temporary directory owned by one composition.

    Args:
        root: Parent directory for the workspace (created if needed).
            None uses the system temp dir.
        prefix: Directory name prefix.
    """

    def __init__(self, root: str | Path | None = None, prefix: str = "emotecompose-"):
        self.root = Path(root) if root is not None else None
        self.prefix = prefix
        self.path: Path | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False

    @property
    def created(self) -> bool:
        return self.path is not None

    def file(self, name: str) -> Path:
        """Path for an intermediate file, creating the workspace on first use."""
        if self.path is None:
            if self.root is not None:
                self.root.mkdir(parents=True, exist_ok=True)
            self.path = Path(tempfile.mkdtemp(
                prefix=self.prefix,
                dir=str(self.root) if self.root is not None else None,
            ))
            logger.debug("Created scratch workspace %s", self.path)
        return self.path / name

    def cleanup(self) -> CleanupWarning | None:
        """Remove the workspace recursively.

        Returns:
            The CleanupWarning that was logged if removal failed, else None.
        """
        if self.path is None:
            return None
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            warning = CleanupWarning(f"Could not remove scratch workspace {self.path}: {e}")
            logger.warning("%s", warning)
            return warning
        logger.debug("Removed scratch workspace %s", self.path)
        self.path = None
        return None
