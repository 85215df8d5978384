"""Row normalization: raw spreadsheet rows -> validated ShapeRecords.

Two entry points are provided:

- Row based (``parse_row``, ``normalize_rows``, ``partition_rows``) for rows
  delivered as positional sequences or mappings.
- DataFrame based (``normalize_dataframe``, ``records_from_dataframe``) using
  the same ``pd.to_numeric(errors="coerce")`` approach as the rest of the
  tabular code.

Any row whose trial, frequency, area, centroid_x or centroid_y is missing or
not a finite number is dropped, as is any row with a non-positive area. The
color field is not validated: exactly "red" (case-insensitive, whitespace
trimmed) is in-phase and every other value is out-of-phase.
"""

from __future__ import annotations

import math
import numbers
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import pandas as pd

from soundcircles.records import (
    Centroid,
    ParseResult,
    Phase,
    RejectedRow,
    RejectReason,
    ShapeRecord,
    is_record,
    radius_from_area,
)
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)

# Logical fields in default positional order.
FIELDS: tuple[str, ...] = (
    "participant", "trial", "frequency", "color", "area", "centroid_x", "centroid_y",
)
NUMERIC_FIELDS: tuple[str, ...] = ("trial", "frequency", "area", "centroid_x", "centroid_y")

IN_PHASE_COLOR = "red"


@dataclass(frozen=True)
class RowSchema:
    """Where each logical field lives in a raw row.

    Attributes:
        columns: Key for each logical field when rows are mappings / DataFrames,
            in FIELDS order.
        positions: Index for each logical field when rows are sequences,
            in FIELDS order.
    """
    columns: tuple[str, ...] = FIELDS
    positions: tuple[int, ...] = tuple(range(len(FIELDS)))

    def column(self, field: str) -> str:
        return self.columns[FIELDS.index(field)]

    def position(self, field: str) -> int:
        return self.positions[FIELDS.index(field)]

    @classmethod
    def from_header(cls, header: Sequence[Any]) -> "RowSchema":
        """Build a schema from a spreadsheet header row.

        Header cells are matched case-insensitively after collapsing spaces,
        dots and dashes to underscores, so "Centroid X", "centroid.x" and
        "centroid_x" all map to centroid_x. "Colour" is accepted for color.

        Raises:
            ValueError: If a logical field has no matching header cell.
        """
        normalized = [_normalize_header(h) for h in header]
        positions = []
        for field in FIELDS:
            candidates = (field, "colour") if field == "color" else (field,)
            for cand in candidates:
                if cand in normalized:
                    positions.append(normalized.index(cand))
                    break
            else:
                raise ValueError(f"header is missing required column {field!r}: {list(header)!r}")
        columns = tuple(str(header[p]) for p in positions)
        return cls(columns=columns, positions=tuple(positions))


DEFAULT_SCHEMA = RowSchema()


def _normalize_header(value: Any) -> str:
    return re.sub(r"[\s.\-]+", "_", str(value).strip().lower())


def classify_phase(color: Any) -> Phase:
    """Map a color cell to a Phase: "red" -> IN_PHASE, anything else -> OUT_OF_PHASE."""
    if color is None:
        return Phase.OUT_OF_PHASE
    if str(color).strip().lower() == IN_PHASE_COLOR:
        return Phase.IN_PHASE
    return Phase.OUT_OF_PHASE


def parse_number(value: Any) -> Optional[float]:
    """Parse a cell as a finite float, or None.

    Accepts ints, floats (including numpy scalars) and numeric strings with
    surrounding whitespace. Booleans, empty strings, NaN and infinities are
    rejected.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Real):
        try:
            out = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            out = float(text)
        except (OverflowError, ValueError):
            return None
    else:
        return None
    return out if math.isfinite(out) else None


_MISSING = object()


def _is_blank(value: Any) -> bool:
    """True for missing text cells: absent, None, NaN or pd.NA."""
    if value is _MISSING or value is None or value is pd.NA:
        return True
    return isinstance(value, float) and math.isnan(value)


def _get_cell(row: Any, field: str, schema: RowSchema) -> Any:
    if isinstance(row, Mapping):
        return row.get(schema.column(field), _MISSING)
    pos = schema.position(field)
    if pos >= len(row):
        return _MISSING
    return row[pos]


def parse_row(row: Any, index: int = 0, schema: RowSchema = DEFAULT_SCHEMA) -> ParseResult:
    """Validate one raw row.

    Args:
        row: Sequence (positional) or mapping (keyed by schema.columns).
        index: Position of the row in its batch, reported in RejectedRow.
        schema: Field layout of the row.

    Returns:
        A ShapeRecord, or a RejectedRow describing the first failing field.
    """
    numbers_: dict[str, float] = {}
    for field in NUMERIC_FIELDS:
        cell = _get_cell(row, field, schema)
        if cell is _MISSING:
            return RejectedRow(index=index, reason=RejectReason.MISSING_FIELD, field=field)
        value = parse_number(cell)
        if value is None:
            return RejectedRow(index=index, reason=RejectReason.NON_NUMERIC, field=field, value=cell)
        numbers_[field] = value

    if numbers_["area"] <= 0:
        return RejectedRow(
            index=index, reason=RejectReason.NON_POSITIVE_AREA, field="area", value=numbers_["area"]
        )

    participant = _get_cell(row, "participant", schema)
    color = _get_cell(row, "color", schema)
    return ShapeRecord(
        participant="" if _is_blank(participant) else str(participant).strip(),
        trial=int(numbers_["trial"]),
        frequency=numbers_["frequency"],
        phase=classify_phase(None if _is_blank(color) else color),
        area=numbers_["area"],
        centroid=Centroid(numbers_["centroid_x"], numbers_["centroid_y"]),
    )


def iter_parsed(rows: Iterable[Any], schema: RowSchema = DEFAULT_SCHEMA) -> Iterator[ParseResult]:
    """Lazily parse every row, yielding ShapeRecord or RejectedRow in input order."""
    for index, row in enumerate(rows):
        result = parse_row(row, index=index, schema=schema)
        if not is_record(result):
            logger.debug(f"dropping {result.describe()}")
        yield result


def normalize_rows(rows: Iterable[Any], schema: RowSchema = DEFAULT_SCHEMA) -> Iterator[ShapeRecord]:
    """Lazily yield valid ShapeRecords, silently dropping rejected rows."""
    for result in iter_parsed(rows, schema=schema):
        if is_record(result):
            yield result


def partition_rows(
    rows: Iterable[Any], schema: RowSchema = DEFAULT_SCHEMA
) -> tuple[list[ShapeRecord], list[RejectedRow]]:
    """Eagerly split rows into (records, rejects)."""
    records: list[ShapeRecord] = []
    rejects: list[RejectedRow] = []
    for result in iter_parsed(rows, schema=schema):
        if is_record(result):
            records.append(result)
        else:
            rejects.append(result)
    logger.info(f"normalized {len(records)} rows, rejected {len(rejects)}")
    return records, rejects


# -----------------------------------------------------------------------------
# DataFrame entry points
# -----------------------------------------------------------------------------


def normalize_dataframe(df: pd.DataFrame, schema: RowSchema = DEFAULT_SCHEMA) -> pd.DataFrame:
    """Vectorized normalization of a trials DataFrame.

    Returns a new DataFrame with the logical FIELDS as columns (numeric ones
    coerced to float, trial to int), plus ``phase`` (Phase.value strings) and
    ``radius``. Rows with a missing/non-finite numeric field or a non-positive
    area are dropped; the original index is preserved.

    Raises:
        ValueError: If a numeric column named by the schema is missing.
    """
    missing = [schema.column(f) for f in NUMERIC_FIELDS if schema.column(f) not in df.columns]
    if missing:
        raise ValueError(f"df must contain required columns {missing!r}")

    out = pd.DataFrame(index=df.index)
    for field in NUMERIC_FIELDS:
        col = df[schema.column(field)]
        if col.dtype == bool:
            col = pd.Series(np.nan, index=df.index)
        elif col.dtype == object:
            col = col.map(lambda v: np.nan if isinstance(v, bool) else v)
            col = col.map(lambda v: v.strip() if isinstance(v, str) else v)
        out[field] = pd.to_numeric(col, errors="coerce")

    numeric = out[list(NUMERIC_FIELDS)].to_numpy(dtype=float)
    keep = np.isfinite(numeric).all(axis=1) & (out["area"].to_numpy(dtype=float) > 0)
    n_dropped = int((~keep).sum())
    if n_dropped:
        logger.debug(f"dropping {n_dropped} rows with invalid numeric fields")
    out = out[keep].copy()
    out["trial"] = out["trial"].astype(int)

    part_col = schema.column("participant")
    color_col = schema.column("color")
    participants = df.loc[out.index, part_col] if part_col in df.columns else pd.Series("", index=out.index)
    colors = df.loc[out.index, color_col] if color_col in df.columns else pd.Series(None, index=out.index)
    out["participant"] = participants.map(lambda v: "" if pd.isna(v) else str(v).strip())
    out["color"] = colors
    out["phase"] = colors.map(lambda v: classify_phase(None if pd.isna(v) else v).value)
    out["radius"] = np.sqrt(out["area"] / np.pi)
    return out[list(FIELDS) + ["phase", "radius"]]


def records_from_dataframe(df: pd.DataFrame, schema: RowSchema = DEFAULT_SCHEMA) -> list[ShapeRecord]:
    """Normalize a DataFrame and convert the surviving rows to ShapeRecords."""
    norm = normalize_dataframe(df, schema=schema)
    records = [
        ShapeRecord(
            participant=row.participant,
            trial=int(row.trial),
            frequency=float(row.frequency),
            phase=Phase(row.phase),
            area=float(row.area),
            centroid=Centroid(float(row.centroid_x), float(row.centroid_y)),
        )
        for row in norm.itertuples(index=False)
    ]
    logger.info(f"normalized {len(records)} of {len(df)} dataframe rows")
    return records


__all__ = [
    "DEFAULT_SCHEMA",
    "FIELDS",
    "RowSchema",
    "classify_phase",
    "iter_parsed",
    "normalize_dataframe",
    "normalize_rows",
    "parse_number",
    "parse_row",
    "partition_rows",
    "radius_from_area",
    "records_from_dataframe",
]
