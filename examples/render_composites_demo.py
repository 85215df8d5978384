"""Render composites for a synthetic set of drawing trials.

Generates random trials for every default frequency, runs the pipeline, and
writes one PNG per frequency plus a stats CSV into ./composites_out/.
A few corrupt rows are mixed in to show that they are dropped.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from soundcircles import run_pipeline, write_composites
from soundcircles.config import CompositeConfig
from soundcircles.figure_generator import figure_for
from soundcircles.pipeline import write_stats_csv
from soundcircles.utils.logging import configure_logging


def make_rows(seed: int = 0, participants: int = 8) -> list[list]:
    rng = np.random.default_rng(seed)
    rows: list[list] = []
    for freq in CompositeConfig().frequencies:
        # higher frequencies drawn smaller and higher up
        size = 12.0 / (1 + np.log2(freq / 31.0))
        for p in range(participants):
            for trial, color in enumerate(("red", "blue"), start=1):
                rows.append([
                    f"P{p + 1:02d}",
                    trial,
                    freq,
                    color,
                    float(abs(rng.normal(size, size / 4)) + 0.1),
                    float(rng.normal(0.0, 1.5)),
                    float(rng.normal(np.log2(freq / 500.0), 1.0)),
                ])
    rows.append(["P99", 1, 125.0, "red", "n/a", 0.0, 0.0])
    rows.append(["P99", 2, "high", "blue", 3.0, 0.0, 0.0])
    return rows


def main() -> None:
    configure_logging(level="INFO")
    result = run_pipeline(make_rows())
    out_dir = Path("composites_out")
    paths = write_composites(result, out_dir)
    write_stats_csv(result, out_dir / "stats.csv")
    figure_for(result.composites[0], CompositeConfig()).write_html(out_dir / "composite_31Hz.html")
    print(f"wrote {len(paths)} images, rejected {len(result.rejects)} rows")
    print(result.stats.to_string(index=False))


if __name__ == "__main__":
    main()
