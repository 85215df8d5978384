"""Exception types raised by soundcircles.

Row-level data problems are never raised; they are returned as RejectedRow
values by the normalizer. Only configuration faults surface as exceptions.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid rendering/aggregation configuration (e.g. non-positive canvas size).

    Attributes:
        field: Name of the offending configuration field, if known.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
