"""Synchronous Normalizer -> Aggregator -> Renderer pipeline.

The caller supplies already-deserialized rows (sequences, mappings or a
pandas DataFrame) and receives one RenderedComposite per configured
frequency. Writing PNGs / the stats CSV is a separate step so the core stays
free of file I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

from soundcircles.aggregator import group_by_frequency, stats_table
from soundcircles.composite import CompositeSpec
from soundcircles.config import CompositeConfig
from soundcircles.normalizer import DEFAULT_SCHEMA, RowSchema, partition_rows
from soundcircles.records import RejectedRow, ShapeRecord
from soundcircles.renderer import CompositeRenderer, RenderedComposite
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Everything one pipeline run produced.

    Attributes:
        composites: One per configured frequency, in configured order.
        records: Valid records (including ones at unlisted frequencies).
        rejects: Rows dropped by the normalizer.
        stats: Summary table from aggregator.stats_table().
    """
    composites: list[RenderedComposite] = field(default_factory=list)
    records: list[ShapeRecord] = field(default_factory=list)
    rejects: list[RejectedRow] = field(default_factory=list)
    stats: pd.DataFrame = field(default_factory=pd.DataFrame)

    def composite_for(self, frequency: float) -> Optional[RenderedComposite]:
        for c in self.composites:
            if c.frequency == float(frequency):
                return c
        return None


def run_pipeline(
    rows: Union[Iterable[Any], pd.DataFrame],
    config: Optional[CompositeConfig] = None,
    *,
    schema: RowSchema = DEFAULT_SCHEMA,
) -> PipelineResult:
    """Normalize rows, group by frequency/phase and render every composite.

    Raises:
        ConfigurationError: If the config is invalid (before any rendering).
    """
    renderer = CompositeRenderer(config)
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict("records")

    records, rejects = partition_rows(rows, schema=schema)
    groups = group_by_frequency(records, renderer.config.frequencies)
    specs = [CompositeSpec.from_groups(freq, g) for freq, g in groups.items()]
    composites = renderer.render_all(specs)
    logger.info(
        f"rendered {len(composites)} composites from {len(records)} records "
        f"({len(rejects)} rows rejected)"
    )
    return PipelineResult(
        composites=composites,
        records=records,
        rejects=rejects,
        stats=stats_table(groups),
    )


def write_composites(result: PipelineResult, out_dir: Path) -> list[Path]:
    """Save every composite as PNG under out_dir; return the written paths."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for composite in result.composites:
        path = out_dir / composite.filename
        try:
            composite.image.save(path, format="PNG")
        except OSError as e:
            logger.error(f"Error writing composite {path}: {e}")
            raise
        paths.append(path)
    logger.info(f"wrote {len(paths)} composites to {out_dir}")
    return paths


def write_stats_csv(result: PipelineResult, path: Path) -> Path:
    """Write the per-(frequency, phase) stats table as CSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    result.stats.to_csv(path, index=False)
    return path
