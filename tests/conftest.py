"""Shared fixtures and pytest configuration."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure soundcircles is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


# participant, trial, frequency, color, area, centroid_x, centroid_y
SAMPLE_ROWS = [
    ["P01", 1, 125, "red", 7.2254, -2.4609, -0.5269],
    ["P01", 2, 125, "red", 5.0, -1.0, 0.5],
    ["P02", 1, 125, "Red", 6.1, -1.5, 1.0],
    ["P02", 2, 125, "red ", 4.4, 0.0, 0.0],
    ["P03", 1, 125, "RED", 8.0, 0.5, -1.5],
    ["P03", 2, 125, "red", 3.3, -2.0, 2.0],
    ["P04", 1, 125, "red", 9.9, 1.0, 1.0],
    ["P04", 2, 125, "blue", 12.0, 3.0, -2.0],
    ["P05", 1, 125, "Blue", 10.5, 2.5, -1.5],
    ["P05", 2, 125, "green", 11.0, 4.0, -3.0],
]


@pytest.fixture
def sample_rows() -> list[list]:
    """Ten valid rows at 125 Hz: 7 in-phase, 3 out-of-phase."""
    return [list(r) for r in SAMPLE_ROWS]
