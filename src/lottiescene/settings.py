"""Settings loader for the renderer and the preview sink.

Parses a YAML settings file, fills in defaults, converts hex colors to RGB
tuples and validates every key. Example:

    render:
      max_instance_depth: 32
    preview:
      background: "#1A1A1A"
      curve_segments: 16
      supersample: 2

Both sections and all keys are optional. Unknown sections or keys are
rejected so typos don't silently fall back to defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .common import parse_hex_color


VALID_SECTIONS = {"render", "preview"}

RENDER_KEYS = {"max_instance_depth"}

PREVIEW_KEYS = {"background", "curve_segments", "supersample"}


@dataclass(frozen=True)
class RenderSettings:
    # Nested asset instances deeper than this draw nothing.
    max_instance_depth: int = 32


@dataclass(frozen=True)
class PreviewSettings:
    background: tuple[int, int, int] = (0, 0, 0)
    # Line segments per flattened Bézier segment.
    curve_segments: int = 16
    # Render at N x resolution, then downsample.
    supersample: int = 1


@dataclass(frozen=True)
class Settings:
    render: RenderSettings = field(default_factory=RenderSettings)
    preview: PreviewSettings = field(default_factory=PreviewSettings)


def default_settings() -> Settings:
    return Settings()


# ── Loading ──────────────────────────────────────────────────────


def load_settings(settings_path: str | Path) -> Settings:
    """Load and validate a YAML settings file.

    Args:
        settings_path: Path to the YAML file.

    Returns:
        Settings with defaults filled in for anything not given.

    Raises:
        ValueError: Unknown section or key, wrong type, out-of-range value.
        FileNotFoundError: Missing settings file.
    """
    with open(settings_path) as f:
        raw = yaml.safe_load(f)

    # An empty file means all defaults.
    if raw is None:
        return default_settings()
    if not isinstance(raw, dict):
        raise ValueError("Settings file must contain a mapping")

    unknown = set(raw) - VALID_SECTIONS
    if unknown:
        raise ValueError(
            f"Unknown settings section(s): {sorted(unknown)}. "
            f"Valid: {sorted(VALID_SECTIONS)}"
        )

    render = _section(raw, "render", RENDER_KEYS)
    preview = _section(raw, "preview", PREVIEW_KEYS)

    render_settings = RenderSettings(
        max_instance_depth=_positive_int(
            render, "max_instance_depth", RenderSettings.max_instance_depth, "render",
        ),
    )
    preview_settings = PreviewSettings(
        background=_color(preview, "background", PreviewSettings.background, "preview"),
        curve_segments=_positive_int(
            preview, "curve_segments", PreviewSettings.curve_segments, "preview",
        ),
        supersample=_positive_int(
            preview, "supersample", PreviewSettings.supersample, "preview",
        ),
    )
    return Settings(render=render_settings, preview=preview_settings)


def _section(raw: dict, name: str, valid_keys: set) -> dict:
    """Return one settings section as a dict, rejecting unknown keys."""
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(section) - valid_keys
    if unknown:
        raise ValueError(
            f"{name}: unknown key(s) {sorted(unknown)}. Valid: {sorted(valid_keys)}"
        )
    return section


def _positive_int(section: dict, key: str, default: int, prefix: str) -> int:
    value = section.get(key, default)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{prefix}: '{key}' must be a positive integer, got {value!r}")
    return value


def _color(section: dict, key: str, default, prefix: str) -> tuple[int, int, int]:
    value = section.get(key, default)
    if isinstance(value, str):
        try:
            return parse_hex_color(value)
        except ValueError as e:
            raise ValueError(f"{prefix}: '{key}' {e}") from e
    if isinstance(value, (list, tuple)) and len(value) == 3 and all(
        isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in value
    ):
        return tuple(value)
    raise ValueError(
        f"{prefix}: '{key}' must be '#RRGGBB' or [r, g, b] (0-255), got {value!r}"
    )
