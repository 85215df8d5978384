"""
soundcircles: composite circle diagrams for sound-perception drawing trials.

This package provides:
- Row normalization into ShapeRecords (normalizer)
- Grouping by frequency/phase with mean and dispersion stats (aggregator)
- Unit <-> pixel coordinate mapping (coords)
- Composite rendering with Pillow, plus a Plotly rendition (renderer, figure_generator)

For logging configuration in standalone scripts:
    ```python
    from soundcircles.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

import logging

from soundcircles.utils.logging import configure_logging, get_logger

from soundcircles.aggregator import GroupStats, PhaseGroups, compute_stats, group_by_frequency
from soundcircles.composite import CompositeSpec, build_composites
from soundcircles.config import CompositeConfig
from soundcircles.coords import CoordinateMapper
from soundcircles.errors import ConfigurationError
from soundcircles.normalizer import normalize_rows, parse_row
from soundcircles.pipeline import run_pipeline, write_composites
from soundcircles.records import Centroid, Phase, RejectedRow, ShapeRecord
from soundcircles.renderer import CompositeRenderer, render_composite

# Ensure soundcircles logger has NullHandler so logs don't propagate to root
# when no application has configured logging.
_logger = logging.getLogger("soundcircles")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "Centroid",
    "CompositeConfig",
    "CompositeRenderer",
    "CompositeSpec",
    "ConfigurationError",
    "CoordinateMapper",
    "GroupStats",
    "Phase",
    "PhaseGroups",
    "RejectedRow",
    "ShapeRecord",
    "build_composites",
    "compute_stats",
    "configure_logging",
    "get_logger",
    "group_by_frequency",
    "normalize_rows",
    "parse_row",
    "render_composite",
    "run_pipeline",
    "write_composites",
]

__version__ = "0.1.0"
