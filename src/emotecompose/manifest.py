"""Composition manifest loader — YAML to CompositionRequest.

Composition manifest schema:
  video:
    fps: 30                   # frame rate; one frame = duration tolerance
    loop: true                # repeat clips to cover the target duration
    fade_transition: 0.5      # fade-to-black between segments (0 = cut)
  render:                     # optional
    codec: libx264            # or h264_nvenc
    workers: 1
    segment_timeout: 120      # seconds per ffmpeg call
    timeout: 600              # seconds for the whole composition
    scratch_root: /tmp/scratch
  paths:
    animations: "public/animations"
  clips:                      # 0 = positive clip, 1 = neutral clip
    - "${animations}/happy.mp4"
    - "${animations}/neutral.mp4"
  emotions: [joy, anger, optimism]   # optional, one per sentence
  target_duration: 12.5       # or:
  narration: "speech.mp3"     #   duration probed from the narration
  output: "output/track.mp4"
  root_dir: "."               # default: the manifest's directory
"""

import math
import re
from pathlib import Path

import yaml

from .errors import ValidationError
from .request import CompositionRequest

VALID_CODECS = {"libx264", "h264_nvenc"}

_VIDEO_DEFAULTS = {"fps": 30, "loop": True, "fade_transition": 0.5}
_RENDER_DEFAULTS = {
    "codec": "libx264",
    "workers": 1,
    "segment_timeout": None,
    "timeout": None,
    "scratch_root": None,
}


def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Expand ${name} references using the manifest's paths mapping."""
    def _lookup(match):
        name = match.group(1)
        if name not in paths:
            raise ValidationError(f"Unknown path variable: ${{{name}}}")
        return str(paths[name])
    return re.sub(r"\$\{(\w+)\}", _lookup, text)


def _number(value, field, minimum=None, allow_zero=True):
    """Validate a numeric manifest field and return it as float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Composition manifest: {field} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValidationError(f"Composition manifest: {field} must be finite, got {value!r}")
    if minimum is not None:
        if value < minimum or (not allow_zero and value == minimum):
            op = ">=" if allow_zero else ">"
            raise ValidationError(
                f"Composition manifest: {field} must be {op} {minimum}, got {value!r}"
            )
    return float(value)


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a composition manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Apply video/render defaults and validate them.
      3. Resolve ${path} variables in clips, narration, output, root_dir.
      4. Validate clips, emotions and the duration source.

    Args:
        manifest_path: Path to the YAML composition manifest.

    Returns:
        Normalized config dict.

    Raises:
        ValidationError: Missing/invalid fields.
    """
    manifest_path = Path(manifest_path)
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValidationError("Composition manifest: expected a mapping at top level")

    paths = raw.get("paths") or {}

    # Video settings.
    video = {**_VIDEO_DEFAULTS, **(raw.get("video") or {})}
    fps = video["fps"]
    if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
        raise ValidationError(f"Composition manifest: video.fps must be a positive integer, got {fps!r}")
    if not isinstance(video["loop"], bool):
        raise ValidationError(f"Composition manifest: video.loop must be true/false, got {video['loop']!r}")
    video["fade_transition"] = _number(
        video["fade_transition"], "video.fade_transition", minimum=0,
    )

    # Render settings.
    render = {**_RENDER_DEFAULTS, **(raw.get("render") or {})}
    if render["codec"] not in VALID_CODECS:
        raise ValidationError(
            f"Composition manifest: invalid render.codec '{render['codec']}'. "
            f"Valid: {sorted(VALID_CODECS)}"
        )
    workers = render["workers"]
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ValidationError(f"Composition manifest: render.workers must be >= 1, got {workers!r}")
    for key in ("segment_timeout", "timeout"):
        if render[key] is not None:
            render[key] = _number(render[key], f"render.{key}", minimum=0, allow_zero=False)
    if render["scratch_root"] is not None:
        render["scratch_root"] = resolve_path_vars(str(render["scratch_root"]), paths)

    # Clip library.
    clips = raw.get("clips")
    if not clips or not isinstance(clips, list):
        raise ValidationError("Composition manifest: 'clips' must be a non-empty list")
    clips = [resolve_path_vars(str(c), paths) for c in clips]

    emotions = raw.get("emotions") or []
    if not isinstance(emotions, list):
        raise ValidationError("Composition manifest: 'emotions' must be a list of labels")
    emotions = [str(e) for e in emotions]

    # Duration source: explicit target or narration file.
    target = raw.get("target_duration")
    narration = raw.get("narration")
    if target is not None:
        target = _number(target, "target_duration", minimum=0, allow_zero=False)
    if narration is not None:
        narration = resolve_path_vars(str(narration), paths)

    if "output" not in raw:
        raise ValidationError("Composition manifest: missing required 'output' field")
    output = resolve_path_vars(str(raw["output"]), paths)

    root_dir = raw.get("root_dir")
    if root_dir is None:
        root_dir = str(manifest_path.resolve().parent)
    else:
        root_dir = resolve_path_vars(str(root_dir), paths)
        if not Path(root_dir).is_absolute():
            root_dir = str((manifest_path.resolve().parent / root_dir).resolve())

    return {
        "video": video,
        "render": render,
        "clips": clips,
        "emotions": emotions,
        "target_duration": target,
        "narration": narration,
        "output": output,
        "root_dir": root_dir,
    }


def resolve_narration(config: dict) -> Path | None:
    """Absolute narration path for a loaded manifest (None if absent)."""
    if config.get("narration") is None:
        return None
    p = Path(config["narration"])
    if not p.is_absolute():
        p = Path(config["root_dir"]) / p
    return p


def build_request(config: dict, probe=None, **overrides) -> CompositionRequest:
    """Turn a loaded manifest into a CompositionRequest.

    The target duration is the manifest's target_duration or, failing
    that, the probed length of its narration. Keyword overrides (e.g. CLI
    flags) replace the corresponding request fields; None values are
    ignored.

    Args:
        config: Output of load_manifest().
        probe: Callable returning a narration file's duration. Defaults
            to engine.probe_narration.
        **overrides: CompositionRequest field overrides.

    Raises:
        ValidationError: Neither target_duration nor narration is given.
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}

    target = overrides.pop("target_duration", config["target_duration"])
    if target is None:
        narration = resolve_narration(config)
        if narration is None:
            raise ValidationError(
                "Composition manifest: either 'target_duration' or 'narration' is required"
            )
        if probe is None:
            from .engine import probe_narration as probe
        target = probe(narration)

    video = config["video"]
    render = config["render"]
    fields = {
        "clips": config["clips"],
        "target_duration": target,
        "output_path": config["output"],
        "loop": video["loop"],
        "fade_transition": video["fade_transition"],
        "emotions": config["emotions"],
        "root_dir": config["root_dir"],
        "fps": video["fps"],
        "codec": render["codec"],
        "workers": render["workers"],
        "segment_timeout": render["segment_timeout"],
        "timeout": render["timeout"],
        "scratch_root": render["scratch_root"],
    }
    fields.update(overrides)
    return CompositionRequest(**fields)
