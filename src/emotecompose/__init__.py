"""emotecompose — emotion-driven timeline composition.

Assemble a silent video track of exact length from a small library of
emotion-tagged clips (looping, trimming and fading them as needed), then
mux it with a narration. Clip selection, planning and rendering are
driven by a CompositionRequest, either built in code or loaded from a
YAML manifest.
"""

from .compositor import compose
from .errors import (
    AssetNotFound,
    CleanupWarning,
    CompositionError,
    EngineError,
    ProbeError,
    RenderFailure,
    RenderTimeout,
    ValidationError,
)
from .request import CompositionRequest

__all__ = [
    "AssetNotFound",
    "CleanupWarning",
    "CompositionError",
    "CompositionRequest",
    "EngineError",
    "ProbeError",
    "RenderFailure",
    "RenderTimeout",
    "ValidationError",
    "compose",
]
