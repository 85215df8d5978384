"""
Aggregation of ShapeRecords by frequency and phase.

Pure numpy/pandas. Two steps:

  1. ``group_by_frequency`` partitions records into per-frequency
     (in-phase, out-of-phase) lists in a single pass, preserving input order.
  2. ``compute_stats`` reduces one list to a GroupStats: arithmetic means and
     population standard deviations (ddof=0). The data are described, not
     used for inference, so the biased estimator is intended.

An empty list is a valid group: its GroupStats has count == 0 and NaN for
every other field. Callers must check ``count`` (or ``is_empty``) before
using the means.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from soundcircles.records import Centroid, Phase, ShapeRecord
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)

# Columns for the summary table.
STATS_COLUMNS = [
    "frequency", "phase", "count", "mean_x", "mean_y",
    "mean_area", "sd_area", "mean_radius", "sd_radius",
]


@dataclass
class PhaseGroups:
    """Records at one frequency, split by phase (insertion order preserved)."""
    in_phase: list[ShapeRecord] = field(default_factory=list)
    out_phase: list[ShapeRecord] = field(default_factory=list)

    def add(self, record: ShapeRecord) -> None:
        if record.is_in_phase:
            self.in_phase.append(record)
        else:
            self.out_phase.append(record)

    def for_phase(self, phase: Phase) -> list[ShapeRecord]:
        return self.in_phase if phase is Phase.IN_PHASE else self.out_phase

    @property
    def all_records(self) -> list[ShapeRecord]:
        return self.in_phase + self.out_phase

    def __len__(self) -> int:
        return len(self.in_phase) + len(self.out_phase)


@dataclass(frozen=True)
class GroupStats:
    """Summary statistics of one (frequency, phase) group."""
    count: int
    mean_centroid: Centroid
    mean_radius: float
    sd_area: float
    sd_radius: float
    mean_area: float

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @classmethod
    def empty(cls) -> "GroupStats":
        """Sentinel for a group with no records."""
        nan = math.nan
        return cls(
            count=0,
            mean_centroid=Centroid(nan, nan),
            mean_radius=nan,
            sd_area=nan,
            sd_radius=nan,
            mean_area=nan,
        )


def group_by_frequency(
    records: Iterable[ShapeRecord],
    frequencies: Sequence[float],
) -> dict[float, PhaseGroups]:
    """Partition records into per-frequency phase groups.

    Every frequency in ``frequencies`` gets an entry (possibly empty), in the
    given order. Records whose frequency is not listed are skipped.
    """
    groups: dict[float, PhaseGroups] = {float(f): PhaseGroups() for f in frequencies}
    n_skipped = 0
    for record in records:
        group = groups.get(record.frequency)
        if group is None:
            n_skipped += 1
            continue
        group.add(record)
    if n_skipped:
        logger.debug(f"skipped {n_skipped} records with a frequency outside {list(groups)}")
    return groups


def compute_stats(records: Sequence[ShapeRecord]) -> GroupStats:
    """Mean and population standard deviation of one group.

    Args:
        records: Records of a single (frequency, phase) group; may be empty.

    Returns:
        GroupStats; ``GroupStats.empty()`` when there are no records.
    """
    if len(records) == 0:
        return GroupStats.empty()

    xs = np.array([r.centroid.x for r in records], dtype=float)
    ys = np.array([r.centroid.y for r in records], dtype=float)
    areas = np.array([r.area for r in records], dtype=float)
    radii = np.sqrt(areas / np.pi)

    return GroupStats(
        count=len(records),
        mean_centroid=Centroid(float(np.mean(xs)), float(np.mean(ys))),
        mean_radius=float(np.mean(radii)),
        sd_area=float(np.std(areas, ddof=0)),
        sd_radius=float(np.std(radii, ddof=0)),
        mean_area=float(np.mean(areas)),
    )


def combined_mean_radius(*stats: GroupStats) -> float:
    """Count-weighted mean radius across several groups; NaN when all are empty."""
    total = sum(s.count for s in stats)
    if total == 0:
        return math.nan
    return sum(s.mean_radius * s.count for s in stats if s.count) / total


def stats_table(groups: dict[float, PhaseGroups]) -> pd.DataFrame:
    """One row per (frequency, phase) with the GroupStats fields.

    Empty groups appear with count 0 and NaN statistics.
    """
    rows = []
    for frequency, group in groups.items():
        for phase in (Phase.IN_PHASE, Phase.OUT_OF_PHASE):
            s = compute_stats(group.for_phase(phase))
            rows.append({
                "frequency": frequency,
                "phase": phase.value,
                "count": s.count,
                "mean_x": s.mean_centroid.x,
                "mean_y": s.mean_centroid.y,
                "mean_area": s.mean_area,
                "sd_area": s.sd_area,
                "mean_radius": s.mean_radius,
                "sd_radius": s.sd_radius,
            })
    return pd.DataFrame(rows, columns=STATS_COLUMNS)
