"""Unit tests for composite planning and rasterization."""

from __future__ import annotations

import math

import pytest
from PIL import Image

from soundcircles.aggregator import PhaseGroups
from soundcircles.composite import CompositeSpec, build_composites, composite_filename, frequency_label
from soundcircles.config import CompositeConfig
from soundcircles.errors import ConfigurationError
from soundcircles.normalizer import normalize_rows
from soundcircles.records import Centroid, Phase, ShapeRecord
from soundcircles.renderer import CompositeRenderer, Layer, rasterize, render_composite, stats_line


@pytest.fixture
def renderer() -> CompositeRenderer:
    return CompositeRenderer(CompositeConfig())


@pytest.fixture
def spec_125(sample_rows) -> CompositeSpec:
    specs = build_composites(normalize_rows(sample_rows), CompositeConfig())
    return next(s for s in specs if s.frequency == 125.0)


def empty_spec(frequency: float = 31.0) -> CompositeSpec:
    return CompositeSpec.from_groups(frequency, PhaseGroups())


def test_plan_layers_are_in_composition_order(renderer, spec_125):
    """Layer tags never decrease along the plan."""
    plan = renderer.plan(spec_125)
    layers = [c.layer for c in plan]
    assert layers == sorted(layers)
    assert layers[0] == Layer.BACKGROUND
    assert layers[-1] == Layer.TITLE


def test_plan_grid_and_axes(renderer, spec_125):
    plan = renderer.plan(spec_125)
    grid = [c for c in plan if c.layer == Layer.GRID]
    axes = [c for c in plan if c.layer == Layer.AXES]
    assert len(grid) == 42  # 21 integer coordinates per axis
    assert len(axes) == 2
    assert all(a.width > g.width for a in axes for g in grid)
    # axes pass through the canvas center
    assert axes[0].coords == (0.0, 300.0, 600.0, 300.0)
    assert axes[1].coords == (300.0, 600.0, 300.0, 0.0)


def test_plan_reference_circle_is_fixed_and_dashed(renderer):
    ref = [c for c in renderer.plan(empty_spec()) if c.layer == Layer.REFERENCE]
    assert len(ref) == 1
    assert ref[0].coords == (300.0, 300.0, 90.0)
    assert ref[0].dashed


def test_ten_records_scenario(renderer, spec_125):
    """10 outlines, solid in-phase average from 7, dashed out-of-phase average from 3, "N=10"."""
    plan = renderer.plan(spec_125)
    individual = [c for c in plan if c.layer == Layer.INDIVIDUAL]
    out_avg = [c for c in plan if c.layer == Layer.OUT_PHASE_AVERAGE]
    in_avg = [c for c in plan if c.layer == Layer.IN_PHASE_AVERAGE]
    texts = [c.text for c in plan if c.layer == Layer.TITLE]

    assert len(individual) == 10
    assert len({c.color for c in individual}) == 1
    assert individual[0].color not in ("red", "blue")
    assert all(c.alpha < 1.0 for c in individual)

    assert len(in_avg) == 1 and not in_avg[0].dashed and in_avg[0].color == "red"
    assert len(out_avg) == 1 and out_avg[0].dashed and out_avg[0].color == "blue"
    assert in_avg[0].width == out_avg[0].width > individual[0].width

    m = renderer.mapper
    in_x, in_y = m.to_pixel(spec_125.in_stats.mean_centroid.x, spec_125.in_stats.mean_centroid.y)
    assert in_avg[0].coords == pytest.approx((in_x, in_y, m.to_pixel_radius(spec_125.in_stats.mean_radius)))
    assert spec_125.in_stats.count == 7
    assert spec_125.out_stats.count == 3

    assert texts[0] == "125 Hz"
    assert texts[1].startswith("N=10")


def test_individual_circle_uses_shared_mapper(renderer):
    rec = ShapeRecord("P01", 1, 31.0, Phase.IN_PHASE, 7.2254, Centroid(-2.4609, -0.5269))
    groups = PhaseGroups(in_phase=[rec])
    plan = renderer.plan(CompositeSpec.from_groups(31.0, groups))
    (circle,) = [c for c in plan if c.layer == Layer.INDIVIDUAL]
    cx, cy, r = circle.coords
    assert cx == pytest.approx(226.17, abs=0.01)
    assert cy == pytest.approx(315.81, abs=0.01)
    assert r == pytest.approx(1.517 * 30, abs=0.05)


def test_empty_groups_skip_averaged_circles(renderer):
    plan = renderer.plan(empty_spec())
    assert not [c for c in plan if c.layer in (Layer.OUT_PHASE_AVERAGE, Layer.IN_PHASE_AVERAGE)]
    assert not [c for c in plan if c.layer == Layer.INDIVIDUAL]
    assert [c.text for c in plan if c.layer == Layer.TITLE] == ["31 Hz", "N=0"]


def test_only_one_phase_present_draws_one_average(renderer):
    rec = ShapeRecord("P01", 1, 31.0, Phase.OUT_OF_PHASE, 2.0, Centroid(1.0, 1.0))
    plan = renderer.plan(CompositeSpec.from_groups(31.0, PhaseGroups(out_phase=[rec])))
    assert len([c for c in plan if c.layer == Layer.OUT_PHASE_AVERAGE]) == 1
    assert not [c for c in plan if c.layer == Layer.IN_PHASE_AVERAGE]


def test_stats_line_reports_combined_mean_radius(spec_125):
    radii = [r.radius for r in spec_125.records]
    assert stats_line(spec_125) == f"N=10, mean r={sum(radii) / len(radii):.2f}"


def test_line_styles_follow_config():
    cfg = CompositeConfig(in_phase_line_style="dashed", out_phase_line_style="solid")
    rec_in = ShapeRecord("P", 1, 31.0, Phase.IN_PHASE, 2.0, Centroid(0, 0))
    rec_out = ShapeRecord("P", 2, 31.0, Phase.OUT_OF_PHASE, 2.0, Centroid(0, 0))
    plan = CompositeRenderer(cfg).plan(
        CompositeSpec.from_groups(31.0, PhaseGroups(in_phase=[rec_in], out_phase=[rec_out]))
    )
    (in_avg,) = [c for c in plan if c.layer == Layer.IN_PHASE_AVERAGE]
    (out_avg,) = [c for c in plan if c.layer == Layer.OUT_PHASE_AVERAGE]
    assert in_avg.dashed and not out_avg.dashed


def test_invalid_config_rejected_before_rendering():
    with pytest.raises(ConfigurationError) as exc_info:
        CompositeRenderer(CompositeConfig(canvas_size=0))
    assert exc_info.value.field == "canvas_size"
    with pytest.raises(ConfigurationError):
        render_composite(empty_spec(), CompositeConfig(unit_range=-1))


def test_render_produces_canvas_sized_rgb_image(renderer, spec_125):
    rendered = renderer.render(spec_125)
    assert isinstance(rendered.image, Image.Image)
    assert rendered.image.size == (600, 600)
    assert rendered.image.mode == "RGB"
    assert rendered.filename == "composite_125Hz.png"
    assert len(rendered.commands(Layer.INDIVIDUAL)) == 10


def test_raster_background_and_averaged_circle_colors(renderer):
    """Off-grid pixels keep the background; the in-phase average is painted red on top."""
    rec = ShapeRecord("P", 1, 31.0, Phase.IN_PHASE, 4 * math.pi, Centroid(5.5, 5.5))
    image = renderer.render(CompositeSpec.from_groups(31.0, PhaseGroups(in_phase=[rec]))).image
    assert image.getpixel((15, 585)) == (255, 255, 255)
    # circle center (465, 135), radius 60 px -> right edge near x=525
    row = [image.getpixel((x, 135)) for x in range(515, 531)]
    assert (255, 0, 0) in row


def test_raster_empty_group_has_no_phase_colors(renderer):
    image = renderer.render(empty_spec()).image
    colors = {c for _, c in image.getcolors(maxcolors=600 * 600)}
    assert (255, 0, 0) not in colors
    assert (0, 0, 255) not in colors


def test_rasterize_rejects_unknown_shape(renderer):
    from soundcircles.renderer import DrawCommand
    with pytest.raises(ValueError):
        rasterize([DrawCommand(Layer.GRID, "polygon", (0, 0), "black")], renderer.config)


def test_labels_and_filenames():
    assert frequency_label(31.0) == "31 Hz"
    assert frequency_label(62.5) == "62.5 Hz"
    assert composite_filename(16000.0) == "composite_16000Hz.png"
    assert composite_filename(62.5) == "composite_62.5Hz.png"


def test_render_is_deterministic(renderer, spec_125):
    a = renderer.render(spec_125).image.tobytes()
    b = renderer.render(spec_125).image.tobytes()
    assert a == b
