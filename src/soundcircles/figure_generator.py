"""Plotly figure generation for composites.

Builds an interactive Plotly figure from the same draw plan the Pillow
rasterizer paints, so a browser-side collaborator can display a composite
without re-deriving any geometry. Shapes keep plan order, which Plotly
also uses as paint order.
"""

from __future__ import annotations

from typing import Optional

import plotly.graph_objects as go

from soundcircles.config import CompositeConfig
from soundcircles.renderer import DrawCommand, Layer, RenderedComposite
from soundcircles.utils.logging import get_logger

logger = get_logger(__name__)

# Plotly dash name for dashed strokes.
PLOTLY_DASH = "dash"


def _shape_dict(cmd: DrawCommand) -> dict:
    line = {"color": cmd.color, "width": cmd.width, "dash": PLOTLY_DASH if cmd.dashed else "solid"}
    if cmd.shape == "rect":
        x0, y0, x1, y1 = cmd.coords
        return dict(type="rect", x0=x0, y0=y0, x1=x1, y1=y1, fillcolor=cmd.color,
                    line={"width": 0}, layer="below", opacity=cmd.alpha)
    if cmd.shape == "line":
        x0, y0, x1, y1 = cmd.coords
        return dict(type="line", x0=x0, y0=y0, x1=x1, y1=y1, line=line, opacity=cmd.alpha)
    if cmd.shape == "circle":
        cx, cy, r = cmd.coords
        return dict(type="circle", x0=cx - r, y0=cy - r, x1=cx + r, y1=cy + r, line=line, opacity=cmd.alpha)
    raise ValueError(f"draw command shape {cmd.shape!r} is not a Plotly shape")


def make_figure(
    plan: list[DrawCommand],
    config: CompositeConfig,
    *,
    name: Optional[str] = None,
) -> go.Figure:
    """Generate a Plotly figure from a draw plan.

    Args:
        plan: Ordered DrawCommands (pixel space).
        config: Config used to produce the plan (canvas size, font size).
        name: Optional figure name stored in layout.meta.

    Returns:
        go.Figure sized canvas_size x canvas_size with a y axis pointing down,
        so pixel coordinates can be used unchanged.
    """
    size = config.canvas_size
    shapes = []
    annotations = []
    for cmd in plan:
        if cmd.shape == "text":
            x, top = cmd.coords
            annotations.append(dict(
                x=x, y=top, text=cmd.text, showarrow=False,
                xanchor="center", yanchor="top",
                font={"color": cmd.color, "size": config.font_size},
            ))
        else:
            shapes.append(_shape_dict(cmd))

    fig = go.Figure()
    fig.update_layout(
        width=size,
        height=size,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor=config.background_color,
        paper_bgcolor=config.background_color,
        shapes=shapes,
        annotations=annotations,
        showlegend=False,
        meta={"name": name} if name else None,
    )
    fig.update_xaxes(range=[0, size], visible=False, fixedrange=True)
    fig.update_yaxes(range=[size, 0], visible=False, fixedrange=True, scaleanchor="x", scaleratio=1)
    logger.debug(f"figure with {len(shapes)} shapes, {len(annotations)} annotations")
    return fig


def figure_for(rendered: RenderedComposite, config: CompositeConfig) -> go.Figure:
    """Plotly figure of an already rendered composite."""
    return make_figure(rendered.plan, config, name=rendered.spec.label)


def averaged_shapes(fig: go.Figure, plan: list[DrawCommand]) -> list:
    """Figure shapes that came from averaged-circle commands (same order as plan)."""
    non_text = [c for c in plan if c.shape != "text"]
    return [
        shape for shape, cmd in zip(fig.layout.shapes, non_text)
        if cmd.layer in (Layer.OUT_PHASE_AVERAGE, Layer.IN_PHASE_AVERAGE)
    ]
