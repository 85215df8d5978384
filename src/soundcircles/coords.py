"""Unit-space <-> pixel-space mapping.

Every element of a composite (grid, axes, reference circle, individual and
averaged shapes) goes through the same CoordinateMapper so they stay
co-registered. Unit Y increases upward; pixel Y increases downward.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

from soundcircles.config import CompositeConfig, _is_positive_finite
from soundcircles.errors import ConfigurationError


class CoordinateMapper:
    """Affine map between the unit grid and a square canvas.

    scale = canvas_size / (2 * unit_range), center = canvas_size / 2.

    Attributes:
        canvas_size: Canvas width/height in pixels.
        unit_range: Half-width of the unit grid.
    """

    def __init__(self, canvas_size: int = 600, unit_range: float = 10.0) -> None:
        """
        Raises:
            ConfigurationError: If canvas_size or unit_range is not a positive finite number.
        """
        if not _is_positive_finite(canvas_size):
            raise ConfigurationError(f"canvas_size must be positive, got {canvas_size!r}", field="canvas_size")
        if not _is_positive_finite(unit_range):
            raise ConfigurationError(f"unit_range must be positive, got {unit_range!r}", field="unit_range")
        self.canvas_size = canvas_size
        self.unit_range = float(unit_range)

    @classmethod
    def from_config(cls, config: CompositeConfig) -> "CoordinateMapper":
        return cls(canvas_size=config.canvas_size, unit_range=config.unit_range)

    @property
    def scale(self) -> float:
        """Pixels per unit."""
        return self.canvas_size / (2.0 * self.unit_range)

    @property
    def center(self) -> float:
        """Pixel coordinate of the unit origin (same on both axes)."""
        return self.canvas_size / 2.0

    def to_pixel(self, unit_x: float, unit_y: float) -> tuple[float, float]:
        return (self.center + unit_x * self.scale, self.center - unit_y * self.scale)

    def to_unit(self, px: float, py: float) -> tuple[float, float]:
        """Inverse of to_pixel."""
        return ((px - self.center) / self.scale, (self.center - py) / self.scale)

    def to_pixel_radius(self, unit_r: float) -> float:
        return unit_r * self.scale

    def to_unit_radius(self, pixel_r: float) -> float:
        return pixel_r / self.scale

    def grid_values(self) -> Iterator[int]:
        """Integer unit coordinates within [-unit_range, unit_range]."""
        limit = math.floor(self.unit_range)
        return iter(range(-limit, limit + 1))

    def __repr__(self) -> str:
        return f"CoordinateMapper(canvas_size={self.canvas_size}, unit_range={self.unit_range})"
