"""Unit tests: Plotly figure built from a draw plan matches the plan."""

from __future__ import annotations

import plotly.graph_objects as go
import pytest

from soundcircles.composite import build_composites
from soundcircles.config import CompositeConfig
from soundcircles.figure_generator import averaged_shapes, figure_for, make_figure
from soundcircles.normalizer import normalize_rows
from soundcircles.renderer import CompositeRenderer, DrawCommand, Layer


@pytest.fixture
def rendered(sample_rows):
    cfg = CompositeConfig()
    spec = next(s for s in build_composites(normalize_rows(sample_rows), cfg) if s.frequency == 125.0)
    return CompositeRenderer(cfg).render(spec)


def test_make_figure_has_one_shape_per_non_text_command(rendered):
    fig = make_figure(rendered.plan, CompositeConfig())
    assert isinstance(fig, go.Figure)
    n_non_text = len([c for c in rendered.plan if c.shape != "text"])
    assert len(fig.layout.shapes) == n_non_text
    circles = [s for s in fig.layout.shapes if s.type == "circle"]
    # reference + 10 individual + 2 averages
    assert len(circles) == 13
    assert [a.text for a in fig.layout.annotations] == ["125 Hz", rendered.plan[-1].text]


def test_make_figure_averaged_dash_styles(rendered):
    fig = make_figure(rendered.plan, CompositeConfig())
    out_avg, in_avg = averaged_shapes(fig, rendered.plan)
    assert out_avg.line.dash == "dash"
    assert out_avg.line.color == "blue"
    assert in_avg.line.dash == "solid"
    assert in_avg.line.color == "red"


def test_make_figure_uses_pixel_space_with_inverted_y(rendered):
    fig = make_figure(rendered.plan, CompositeConfig())
    assert fig.layout.width == 600
    assert fig.layout.height == 600
    assert tuple(fig.layout.yaxis.range) == (600, 0)


def test_figure_for_sets_name(rendered):
    fig = figure_for(rendered, CompositeConfig())
    assert fig.layout.meta["name"] == "125 Hz"


def test_make_figure_rejects_unknown_shape():
    with pytest.raises(ValueError):
        make_figure([DrawCommand(Layer.GRID, "polygon", (0, 0), "black")], CompositeConfig())
