"""CompositionRequest — the value passed through the whole call chain.

One request describes one composition: which clips make up the library,
which emotions (one per narration sentence) drive clip selection, how
long the result must be, and the loop/fade policy. Nothing about a
composition lives in module-level state.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ValidationError


@dataclass(frozen=True)
class CompositionRequest:
    """Everything compose() needs for one output file.

    Args:
        clips: Ordered clip library. Index 0 is the positive clip,
            index 1 the neutral clip.
        target_duration: Length of the composed track in seconds (> 0).
        output_path: Where the composed file is delivered.
        loop: Repeat the selected sequence when it is shorter than the
            target duration.
        fade_transition: Fade-to-black length between segments (>= 0).
        emotions: One label per narration sentence. Empty means "use the
            whole library once".
        root_dir: Base for resolving relative clip and output paths.
        fps: Output frame rate. The hard trim cuts to round(target *
            fps) frames, so the track lands within one frame interval.
        codec: Video codec for re-encoded (faded) segments.
        workers: Segments rendered concurrently.
        segment_timeout: Seconds allowed per ffmpeg call (None = no cap).
        timeout: Seconds allowed for the whole composition (None = no cap).
        scratch_root: Parent directory for the scratch workspace (None =
            system temp dir).
    """

    clips: tuple[str, ...]
    target_duration: float
    output_path: str
    loop: bool = True
    fade_transition: float = 0.5
    emotions: tuple[str, ...] = field(default_factory=tuple)
    root_dir: str = "."
    fps: int = 30
    codec: str = "libx264"
    workers: int = 1
    segment_timeout: float | None = None
    timeout: float | None = None
    scratch_root: str | None = None

    def __post_init__(self):
        # Accept lists from callers; store tuples so requests stay hashable.
        object.__setattr__(self, "clips", tuple(str(c) for c in self.clips or ()))
        object.__setattr__(self, "emotions", tuple(str(e) for e in self.emotions or ()))

    def validate(self) -> None:
        """Reject malformed requests before any file or engine is touched.

        Raises:
            ValidationError: Empty library, missing output path, bad
                duration, negative fade or bad render settings.
        """
        if not self.clips:
            raise ValidationError("clips must be a non-empty list of file paths")
        if not self.output_path:
            raise ValidationError("output_path is required")

        d = self.target_duration
        if (
            not isinstance(d, (int, float))
            or isinstance(d, bool)
            or not math.isfinite(d)
            or d <= 0
        ):
            raise ValidationError(
                f"target_duration must be a positive number, got {d!r}"
            )

        f = self.fade_transition
        if not isinstance(f, (int, float)) or not math.isfinite(f) or f < 0:
            raise ValidationError(f"fade_transition must be >= 0, got {f!r}")

        if not isinstance(self.fps, int) or self.fps <= 0:
            raise ValidationError(f"fps must be a positive integer, got {self.fps!r}")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ValidationError(f"workers must be >= 1, got {self.workers!r}")
        for name in ("segment_timeout", "timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValidationError(f"{name} must be > 0, got {value!r}")

    @property
    def frame_interval(self) -> float:
        """Duration tolerance of the composed track, in seconds."""
        return 1.0 / self.fps

    def resolve_path(self, path: str | Path) -> Path:
        """Resolve a path relative to root_dir (absolute paths pass through)."""
        p = Path(path)
        if p.is_absolute():
            return p
        return Path(self.root_dir).absolute() / p

    @property
    def resolved_output(self) -> Path:
        return self.resolve_path(self.output_path)
