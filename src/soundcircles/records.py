"""Record types for drawing-trial data.

This module defines the Phase enum, the immutable ShapeRecord produced by the
normalizer, and the RejectedRow value returned for rows that fail validation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class Phase(Enum):
    """Experimental condition of a trial, encoded by the record color."""
    IN_PHASE = "in_phase"
    OUT_OF_PHASE = "out_of_phase"


class RejectReason(Enum):
    """Why a raw row did not become a ShapeRecord."""
    MISSING_FIELD = "missing_field"
    NON_NUMERIC = "non_numeric"
    NON_POSITIVE_AREA = "non_positive_area"


def radius_from_area(area: float) -> float:
    """Radius of the circle with the given area: sqrt(area / pi).

    Negative areas yield NaN instead of raising.
    """
    if area < 0:
        return math.nan
    return math.sqrt(area / math.pi)


@dataclass(frozen=True)
class Centroid:
    """Center point of a drawn shape in unit coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class ShapeRecord:
    """One validated drawing trial.

    The radius is derived from the area and is not stored separately, so
    ``radius == sqrt(area / pi)`` always holds.
    """
    participant: str
    trial: int
    frequency: float
    phase: Phase
    area: float
    centroid: Centroid

    @property
    def radius(self) -> float:
        return radius_from_area(self.area)

    @property
    def is_in_phase(self) -> bool:
        return self.phase is Phase.IN_PHASE

    def to_dict(self) -> dict[str, Any]:
        """Flat dict representation (one spreadsheet-like row)."""
        return {
            "participant": self.participant,
            "trial": self.trial,
            "frequency": self.frequency,
            "phase": self.phase.value,
            "area": self.area,
            "centroid_x": self.centroid.x,
            "centroid_y": self.centroid.y,
            "radius": self.radius,
        }


@dataclass(frozen=True)
class RejectedRow:
    """A raw row that failed validation.

    Attributes:
        index: Position of the row in the input sequence.
        reason: RejectReason code.
        field: Logical field that failed (e.g. "area").
        value: The offending raw cell value.
    """
    index: int
    reason: RejectReason
    field: str
    value: Any = None

    def describe(self) -> str:
        return f"row {self.index}: {self.field}={self.value!r} ({self.reason.value})"


ParseResult = Union[ShapeRecord, RejectedRow]


def is_record(result: Optional[ParseResult]) -> bool:
    """True if a parse result is a valid ShapeRecord."""
    return isinstance(result, ShapeRecord)
