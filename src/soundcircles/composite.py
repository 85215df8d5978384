"""Composite descriptions: everything the renderer needs for one frequency."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from soundcircles.aggregator import GroupStats, PhaseGroups, combined_mean_radius, compute_stats, group_by_frequency
from soundcircles.config import CompositeConfig
from soundcircles.records import ShapeRecord


def format_frequency(frequency: float) -> str:
    """Frequency numeral without a trailing ".0" (31.0 -> "31", 62.5 -> "62.5")."""
    f = float(frequency)
    return str(int(f)) if f.is_integer() else repr(f)


def frequency_label(frequency: float) -> str:
    """Title text for a composite, e.g. "31 Hz"."""
    return f"{format_frequency(frequency)} Hz"


def composite_filename(frequency: float, *, prefix: str = "composite", suffix: str = ".png") -> str:
    """Deterministic output filename, e.g. "composite_62.5Hz.png"."""
    return f"{prefix}_{format_frequency(frequency)}Hz{suffix}"


@dataclass(frozen=True)
class CompositeSpec:
    """Fully resolved description of one composite image.

    Attributes:
        frequency: Frequency in Hz.
        in_phase / out_phase: Records feeding each phase, in input order.
        in_stats / out_stats: GroupStats of each phase (count may be 0).
    """
    frequency: float
    in_phase: tuple[ShapeRecord, ...]
    out_phase: tuple[ShapeRecord, ...]
    in_stats: GroupStats
    out_stats: GroupStats

    @classmethod
    def from_groups(cls, frequency: float, groups: PhaseGroups) -> "CompositeSpec":
        return cls(
            frequency=float(frequency),
            in_phase=tuple(groups.in_phase),
            out_phase=tuple(groups.out_phase),
            in_stats=compute_stats(groups.in_phase),
            out_stats=compute_stats(groups.out_phase),
        )

    @property
    def label(self) -> str:
        return frequency_label(self.frequency)

    @property
    def filename(self) -> str:
        return composite_filename(self.frequency)

    @property
    def records(self) -> tuple[ShapeRecord, ...]:
        """All individual records (in-phase first, then out-of-phase)."""
        return self.in_phase + self.out_phase

    @property
    def total_count(self) -> int:
        return self.in_stats.count + self.out_stats.count

    @property
    def mean_radius(self) -> float:
        """Mean radius over both phases combined; NaN when empty."""
        return combined_mean_radius(self.in_stats, self.out_stats)


def build_composites(records: Iterable[ShapeRecord], config: CompositeConfig) -> list[CompositeSpec]:
    """One CompositeSpec per configured frequency, in configured order."""
    config.validate()
    groups = group_by_frequency(records, config.frequencies)
    return [CompositeSpec.from_groups(freq, g) for freq, g in groups.items()]
