"""Error taxonomy for timeline composition.

Validation and asset checks fail before ffmpeg is ever invoked. Engine
errors carry the stage that failed and ffmpeg's exit code; the renderer
adds the position of the failing segment. CleanupWarning is only ever
logged; it never replaces the error that ended a composition.
"""


class CompositionError(Exception):
    """Base class for every failure surfaced by compose()."""


class ValidationError(CompositionError, ValueError):
    """Request or manifest is malformed (empty library, bad duration, ...)."""


class AssetNotFound(CompositionError, FileNotFoundError):
    """A referenced clip or narration file does not exist."""

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"Clip file not found: {self.path}")


class ProbeError(CompositionError):
    """Duration probing failed or returned a non-positive value."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Could not probe duration of {self.path}: {reason}")


class EngineError(CompositionError):
    """An ffmpeg invocation exited non-zero.

    Attributes:
        stage: What the engine was doing ("copy", "fade_out", "concat", ...).
        exit_code: ffmpeg's return code (None when it never finished).
        stderr: Tail of ffmpeg's stderr, for diagnostics.
    """

    def __init__(self, stage, exit_code, stderr=""):
        self.stage = stage
        self.exit_code = exit_code
        self.stderr = stderr
        msg = f"ffmpeg {stage} failed (exit code {exit_code})"
        if stderr:
            msg += f": {stderr.strip()[-500:]}"
        super().__init__(msg)


class RenderFailure(EngineError):
    """Rendering one planned segment failed."""

    def __init__(self, position, stage, exit_code, stderr=""):
        self.position = position
        super().__init__(stage, exit_code, stderr)
        self.args = (f"Segment {position}: {self.args[0]}",)


class RenderTimeout(EngineError):
    """An engine call or the whole composition ran past its time budget."""

    def __init__(self, stage, timeout, position=None):
        self.timeout = timeout
        self.position = position
        super().__init__(stage, None)
        where = f" (segment {position})" if position is not None else ""
        self.args = (f"ffmpeg {stage} timed out after {timeout}s{where}",)


class CleanupWarning(UserWarning):
    """Scratch workspace could not be removed. Logged, never raised."""
