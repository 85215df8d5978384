"""Unit tests for the DataFrame entry points of the normalizer."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from soundcircles.normalizer import FIELDS, normalize_dataframe, records_from_dataframe
from soundcircles.records import Phase


@pytest.fixture
def trials_df():
    """Trials DataFrame with a few corrupt cells (object dtype columns)."""
    return pd.DataFrame({
        "participant": ["P01", "P02", "P03", "P04", None],
        "trial": [1, 2, "three", 4, 5],
        "frequency": [31, 31, 31, 62.5, 62.5],
        "color": ["red", "Blue", "red", " RED ", np.nan],
        "area": [" 7.2254 ", 5.0, 4.0, -1.0, 2.0],
        "centroid_x": [-2.4609, 1.0, 0.0, 0.0, True],
        "centroid_y": [-0.5269, 1.0, 0.0, 0.0, 0.0],
    })


def test_normalize_dataframe_drops_invalid_rows(trials_df):
    """Rows with non-numeric trial, negative area or boolean centroid are dropped."""
    out = normalize_dataframe(trials_df)
    assert list(out.index) == [0, 1]
    assert list(out.columns) == list(FIELDS) + ["phase", "radius"]


def test_normalize_dataframe_adds_phase_and_radius(trials_df):
    out = normalize_dataframe(trials_df)
    assert list(out["phase"]) == [Phase.IN_PHASE.value, Phase.OUT_OF_PHASE.value]
    assert out.loc[0, "radius"] == pytest.approx(1.517, abs=0.001)
    assert out["trial"].dtype.kind == "i"


def test_normalize_dataframe_missing_column_raises(trials_df):
    with pytest.raises(ValueError) as exc_info:
        normalize_dataframe(trials_df.drop(columns=["area"]))
    assert "area" in str(exc_info.value)


def test_normalize_dataframe_nan_color_is_out_of_phase():
    df = pd.DataFrame({
        "participant": ["P01"], "trial": [1], "frequency": [31.0], "color": [np.nan],
        "area": [1.0], "centroid_x": [0.0], "centroid_y": [0.0],
    })
    out = normalize_dataframe(df)
    assert out.loc[0, "phase"] == Phase.OUT_OF_PHASE.value


def test_records_from_dataframe_matches_row_parser(trials_df):
    """records_from_dataframe yields the same records parse_row would."""
    records = records_from_dataframe(trials_df)
    assert [r.participant for r in records] == ["P01", "P02"]
    assert records[0].phase is Phase.IN_PHASE
    assert records[0].centroid.x == pytest.approx(-2.4609)
    assert records[1].trial == 2
