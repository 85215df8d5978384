"""Composite rendering: draw plan + Pillow rasterizer.

Rendering happens in two steps so the composition can be inspected and reused:

  1. ``CompositeRenderer.plan`` turns a CompositeSpec into an ordered list of
     DrawCommands, all in pixel space via one CoordinateMapper.
  2. ``rasterize`` paints a plan onto a fresh Pillow image.

Layer order (earlier layers are painted first, later ones stay legible):

  BACKGROUND -> GRID -> AXES -> REFERENCE -> INDIVIDUAL
  -> OUT_PHASE_AVERAGE -> IN_PHASE_AVERAGE -> TITLE

Averaged circles are only planned for phases with at least one record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont

from soundcircles.composite import CompositeSpec
from soundcircles.config import CompositeConfig
from soundcircles.coords import CoordinateMapper
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)


class Layer(IntEnum):
    """Composition step a DrawCommand belongs to, in paint order."""
    BACKGROUND = 1
    GRID = 2
    AXES = 3
    REFERENCE = 4
    INDIVIDUAL = 5
    OUT_PHASE_AVERAGE = 6
    IN_PHASE_AVERAGE = 7
    TITLE = 8


@dataclass(frozen=True)
class DrawCommand:
    """One drawing primitive in pixel space.

    coords by shape:
        "rect":   (x0, y0, x1, y1), filled with ``color``
        "line":   (x0, y0, x1, y1)
        "circle": (cx, cy, r), outline only
        "text":   (cx, top), horizontally centered on cx
    """
    layer: Layer
    shape: str
    coords: tuple[float, ...]
    color: str
    width: int = 1
    alpha: float = 1.0
    dashed: bool = False
    text: str = ""


@dataclass
class RenderedComposite:
    """Output of rendering one CompositeSpec."""
    spec: CompositeSpec
    plan: list[DrawCommand]
    image: Image.Image

    @property
    def frequency(self) -> float:
        return self.spec.frequency

    @property
    def filename(self) -> str:
        return self.spec.filename

    def commands(self, layer: Layer) -> list[DrawCommand]:
        return [c for c in self.plan if c.layer == layer]


def stats_line(spec: CompositeSpec) -> str:
    """Statistics text under the title, e.g. "N=10, mean r=1.52"."""
    n = spec.total_count
    if n == 0:
        return "N=0"
    return f"N={n}, mean r={spec.mean_radius:.2f}"


class CompositeRenderer:
    """Plans and rasterizes composites for one CompositeConfig.

    The config is validated on construction, so configuration faults surface
    before any image is drawn.
    """

    def __init__(self, config: Optional[CompositeConfig] = None) -> None:
        self.config = (config or CompositeConfig()).validate()
        self.mapper = CoordinateMapper.from_config(self.config)

    # -----------------------------
    # Planning
    # -----------------------------
    def plan(self, spec: CompositeSpec) -> list[DrawCommand]:
        cfg = self.config
        m = self.mapper
        size = float(cfg.canvas_size)
        cmds: list[DrawCommand] = [
            DrawCommand(Layer.BACKGROUND, "rect", (0.0, 0.0, size, size), cfg.background_color),
        ]

        lo, hi = -m.unit_range, m.unit_range
        for v in m.grid_values():
            x0, y0 = m.to_pixel(v, lo)
            x1, y1 = m.to_pixel(v, hi)
            cmds.append(DrawCommand(Layer.GRID, "line", (x0, y0, x1, y1), cfg.grid_color, cfg.grid_width))
            x0, y0 = m.to_pixel(lo, v)
            x1, y1 = m.to_pixel(hi, v)
            cmds.append(DrawCommand(Layer.GRID, "line", (x0, y0, x1, y1), cfg.grid_color, cfg.grid_width))

        for (ax0, ay0), (ax1, ay1) in (((lo, 0.0), (hi, 0.0)), ((0.0, lo), (0.0, hi))):
            x0, y0 = m.to_pixel(ax0, ay0)
            x1, y1 = m.to_pixel(ax1, ay1)
            cmds.append(DrawCommand(Layer.AXES, "line", (x0, y0, x1, y1), cfg.axis_color, cfg.axis_width))

        cx, cy = m.to_pixel(0.0, 0.0)
        cmds.append(DrawCommand(
            Layer.REFERENCE, "circle", (cx, cy, m.to_pixel_radius(cfg.reference_radius)),
            cfg.reference_color, cfg.reference_width, dashed=True,
        ))

        for record in spec.records:
            px, py = m.to_pixel(record.centroid.x, record.centroid.y)
            cmds.append(DrawCommand(
                Layer.INDIVIDUAL, "circle", (px, py, m.to_pixel_radius(record.radius)),
                cfg.individual_color, cfg.individual_width, alpha=cfg.individual_alpha,
            ))

        for layer, stats, in_phase in (
            (Layer.OUT_PHASE_AVERAGE, spec.out_stats, False),
            (Layer.IN_PHASE_AVERAGE, spec.in_stats, True),
        ):
            if stats.is_empty:
                continue
            px, py = m.to_pixel(stats.mean_centroid.x, stats.mean_centroid.y)
            cmds.append(DrawCommand(
                layer, "circle", (px, py, m.to_pixel_radius(stats.mean_radius)),
                cfg.phase_color(in_phase), cfg.average_width,
                dashed=cfg.phase_line_style(in_phase) == "dashed",
            ))

        cmds.append(DrawCommand(Layer.TITLE, "text", (size / 2, float(cfg.title_offset)), cfg.text_color, text=spec.label))
        cmds.append(DrawCommand(Layer.TITLE, "text", (size / 2, float(cfg.stats_offset)), cfg.text_color, text=stats_line(spec)))
        return cmds

    # -----------------------------
    # Rendering
    # -----------------------------
    def render(self, spec: CompositeSpec) -> RenderedComposite:
        plan = self.plan(spec)
        image = rasterize(plan, self.config)
        logger.debug(
            f"rendered {spec.label}: {len(spec.records)} individual, "
            f"in={spec.in_stats.count} out={spec.out_stats.count}"
        )
        return RenderedComposite(spec=spec, plan=plan, image=image)

    def render_all(self, specs: list[CompositeSpec]) -> list[RenderedComposite]:
        return [self.render(spec) for spec in specs]


def render_composite(spec: CompositeSpec, config: Optional[CompositeConfig] = None) -> RenderedComposite:
    """Convenience wrapper: CompositeRenderer(config).render(spec)."""
    return CompositeRenderer(config).render(spec)


# -----------------------------------------------------------------------------
# Pillow rasterizer
# -----------------------------------------------------------------------------


def _rgba(color: str, alpha: float) -> tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, int(round(alpha * 255)))


def _draw_dashed_circle(
    draw: ImageDraw.ImageDraw,
    cx: float, cy: float, r: float,
    fill: tuple[int, int, int, int],
    width: int,
    dash: int,
    gap: int,
) -> None:
    bbox = [cx - r, cy - r, cx + r, cy + r]
    circumference = 2 * math.pi * r
    if circumference < dash + gap:
        draw.ellipse(bbox, outline=fill, width=width)
        return
    # Pillow arcs take degrees, clockwise from 3 o'clock.
    dash_deg = 360.0 * dash / circumference
    step_deg = 360.0 * (dash + gap) / circumference
    start = 0.0
    while start < 360.0:
        draw.arc(bbox, start, min(start + dash_deg, 360.0), fill=fill, width=width)
        start += step_deg


def rasterize(plan: list[DrawCommand], config: CompositeConfig) -> Image.Image:
    """Paint a draw plan onto a new RGB image of canvas_size x canvas_size.

    Commands are painted in list order; alpha < 1 is blended over what is
    already on the canvas.
    """
    size = config.canvas_size
    image = Image.new("RGB", (size, size), config.background_color)
    draw = ImageDraw.Draw(image, "RGBA")
    font = ImageFont.load_default(size=config.font_size)

    for cmd in plan:
        fill = _rgba(cmd.color, cmd.alpha)
        if cmd.shape == "rect":
            draw.rectangle(list(cmd.coords), fill=fill)
        elif cmd.shape == "line":
            draw.line(list(cmd.coords), fill=fill, width=cmd.width)
        elif cmd.shape == "circle":
            cx, cy, r = cmd.coords
            if cmd.dashed:
                _draw_dashed_circle(draw, cx, cy, r, fill, cmd.width, config.dash_length, config.dash_gap)
            else:
                draw.ellipse([cx - r, cy - r, cx + r, cy + r], outline=fill, width=cmd.width)
        elif cmd.shape == "text":
            x, top = cmd.coords
            left, _, right, _ = draw.textbbox((0, 0), cmd.text, font=font)
            draw.text((x - (right - left) / 2, top), cmd.text, fill=fill, font=font)
        else:
            raise ValueError(f"unknown draw command shape {cmd.shape!r}")
    return image
