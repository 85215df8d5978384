"""Composite configuration and its JSON persistence (platformdirs + JSON).

CompositeConfig is the single immutable value passed to the aggregator, the
coordinate mapper and the renderer. Nothing in soundcircles keeps process-wide
lookup tables; every constant lives here.

Persisted items (schema v1):
- config: CompositeConfig dict representation

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches -> defaults are used
- Unknown keys in loaded JSON are ignored with warnings
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import ImageColor
from platformdirs import user_config_dir

from soundcircles.errors import ConfigurationError
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

DEFAULT_FREQUENCIES: tuple[float, ...] = (
    31.0, 62.5, 125.0, 250.0, 500.0, 1000.0, 2000.0, 4000.0, 8000.0, 12000.0, 16000.0,
)

LINE_STYLES = ("solid", "dashed")
COLOR_FIELDS = (
    "in_phase_color", "out_phase_color", "background_color", "grid_color",
    "axis_color", "reference_color", "individual_color", "text_color",
)


@dataclass(frozen=True)
class CompositeConfig:
    """Immutable configuration for aggregation and rendering.

    Geometry:
        canvas_size: Output image width and height in pixels.
        unit_range: Half-width of the unit grid (grid spans [-unit_range, unit_range]).
        reference_radius: Radius in units of the fixed dashed reference circle.
        frequencies: Valid frequencies in Hz, in render order.

    Phase styling:
        in_phase_color / out_phase_color: Averaged circle stroke colors.
        in_phase_line_style / out_phase_line_style: "solid" or "dashed".
    """
    canvas_size: int = 600
    unit_range: float = 10.0
    reference_radius: float = 3.0
    frequencies: tuple[float, ...] = DEFAULT_FREQUENCIES

    in_phase_color: str = "red"
    out_phase_color: str = "blue"
    in_phase_line_style: str = "solid"
    out_phase_line_style: str = "dashed"

    background_color: str = "white"
    grid_color: str = "#e0e0e0"
    grid_width: int = 1
    axis_color: str = "#404040"
    axis_width: int = 2
    reference_color: str = "#909090"
    reference_width: int = 1
    individual_color: str = "#505050"
    individual_alpha: float = 0.25      # 0..1, applied to individual outlines only
    individual_width: int = 1
    average_width: int = 3              # shared by both averaged circles
    dash_length: int = 10               # pixels on / off for dashed strokes
    dash_gap: int = 6
    text_color: str = "black"
    title_offset: int = 12              # pixels from the top to the title baseline box
    stats_offset: int = 34
    font_size: int = 16

    def validate(self) -> "CompositeConfig":
        """Raise ConfigurationError if any field is out of range; return self."""
        if not isinstance(self.canvas_size, int) or isinstance(self.canvas_size, bool) or self.canvas_size <= 0:
            raise ConfigurationError(
                f"canvas_size must be a positive integer, got {self.canvas_size!r}", field="canvas_size"
            )
        for name in ("unit_range", "reference_radius"):
            value = getattr(self, name)
            if not _is_positive_finite(value):
                raise ConfigurationError(f"{name} must be a positive finite number, got {value!r}", field=name)
        if not self.frequencies:
            raise ConfigurationError("frequencies must not be empty", field="frequencies")
        for f in self.frequencies:
            if not _is_positive_finite(f):
                raise ConfigurationError(f"invalid frequency {f!r}", field="frequencies")
        if len(set(self.frequencies)) != len(self.frequencies):
            raise ConfigurationError("frequencies must be unique", field="frequencies")
        for name in ("in_phase_line_style", "out_phase_line_style"):
            if getattr(self, name) not in LINE_STYLES:
                raise ConfigurationError(
                    f"{name} must be one of {LINE_STYLES}, got {getattr(self, name)!r}", field=name
                )
        for name in ("grid_width", "axis_width", "reference_width", "individual_width",
                     "average_width", "dash_length", "dash_gap", "font_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}", field=name)
        if self.average_width <= self.individual_width:
            raise ConfigurationError(
                f"average_width ({self.average_width}) must exceed individual_width ({self.individual_width})",
                field="average_width",
            )
        alpha = self.individual_alpha
        if isinstance(alpha, bool) or not isinstance(alpha, (int, float)) or not 0.0 <= alpha <= 1.0:
            raise ConfigurationError(
                f"individual_alpha must be within [0, 1], got {self.individual_alpha!r}", field="individual_alpha"
            )
        for name in COLOR_FIELDS:
            value = getattr(self, name)
            try:
                ImageColor.getrgb(value)
            except (ValueError, TypeError, AttributeError):
                raise ConfigurationError(f"{name} is not a recognised color: {value!r}", field=name) from None
        return self

    def with_overrides(self, **changes: Any) -> "CompositeConfig":
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes).validate()

    def phase_color(self, in_phase: bool) -> str:
        return self.in_phase_color if in_phase else self.out_phase_color

    def phase_line_style(self, in_phase: bool) -> str:
        return self.in_phase_line_style if in_phase else self.out_phase_line_style

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d = asdict(self)
        d["frequencies"] = list(self.frequencies)
        return d

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "CompositeConfig":
        """
        Tolerant loader:
        - ignores unknown keys (with a warning)
        - missing keys keep their defaults
        - the result is validated
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in d.items():
            if key not in known:
                logger.warning(f"Unknown key '{key}' in composite config, ignoring")
                continue
            kwargs[key] = value
        if "frequencies" in kwargs:
            kwargs["frequencies"] = tuple(float(f) for f in kwargs["frequencies"])
        return cls(**kwargs).validate()


def _is_positive_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


class CompositeConfigStore:
    """
    Manager for loading/saving a CompositeConfig to disk.
    """

    def __init__(self, *, path: Path, config: Optional[CompositeConfig] = None):
        self.path = path
        self.config = config if config is not None else CompositeConfig()

    @staticmethod
    def default_config_path(
        app_name: str = "soundcircles",
        filename: str = "composite_config.json",
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/soundcircles/composite_config.json
        Linux:   ~/.config/soundcircles/composite_config.json
        Windows: %APPDATA%\\soundcircles\\composite_config.json
        """
        d = Path(user_config_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = "soundcircles",
        filename: str = "composite_config.json",
        schema_version: int = SCHEMA_VERSION,
        create_if_missing: bool = False,
    ) -> "CompositeConfigStore":
        """
        Load config from disk.

        If file doesn't exist, is unreadable, or fails validation -> defaults.
        If schema mismatch -> defaults.
        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename)

        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(parsed, dict):
                logger.warning(f"Composite config file at {path} does not contain a dict, using defaults")
                return cls(path=path)

            loaded_version = int(parsed.get("schema_version", -1))
            if loaded_version != int(schema_version):
                logger.warning(
                    f"Composite config schema version mismatch: loaded={loaded_version}, "
                    f"expected={schema_version}, resetting to defaults"
                )
                return cls(path=path)

            raw_config = parsed.get("config", {})
            if not isinstance(raw_config, dict):
                logger.warning(f"'config' in {path} is not a dict, using defaults")
                return cls(path=path)
            return cls(path=path, config=CompositeConfig.from_json_dict(raw_config))
        except FileNotFoundError:
            logger.debug(f"Composite config file not found at {path}, using defaults")
            store = cls(path=path)
            if create_if_missing:
                store.save()
            return store
        except json.JSONDecodeError as e:
            logger.warning(f"Composite config file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path)
        except (ConfigurationError, TypeError, ValueError) as e:
            logger.warning(f"Invalid composite config in {path}: {e}, using defaults")
            return cls(path=path)

    def save(self) -> None:
        """Write config to disk."""
        payload = {"schema_version": SCHEMA_VERSION, "config": self.config.to_json_dict()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            logger.info(f"Saved composite config to {self.path}")
        except OSError as e:
            logger.error(f"Error saving composite config to {self.path}: {e}")
            raise
