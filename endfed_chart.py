from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import plotly.colors as pc
import plotly.graph_objects as go

from endfed_lengths import REGION_ALWAYS_BAD, ChartLayout, FilledRegion, PlotSpec, compute_chart_layout

logger = logging.getLogger(__name__)

# =============================================================================
# Settings (single place to tune defaults)
#
# `STYLE` stays a dict because it maps directly to Plotly layout fields.
# =============================================================================

# ---- Style (applies to on-page AND exports) ----
STYLE = {
    "font_family": "Open Sans, verdana, arial, sans-serif",
    "font_color": "#000000",
    "base_font_size_px": 14,
    "tick_font_size_px": 13,
    "title_font_size_px": 16,
    "axis_title_font_size_px": 15,
    "bold_axis_titles": True,
    # Space between tick labels and axis title (px). Set to None to use auto heuristic.
    "xaxis_title_standoff_px": None,
}

# ---- Layout ----
DEFAULT_PLOT_HEIGHT_PX = 160
WIDTH_PER_BAND_PX = 150
MIN_FIGURE_WIDTH_PX = 700
MAX_FIGURE_WIDTH_PX = 2200
TOP_MARGIN_PX = 60
BOTTOM_AXIS_PX = 60
LEFT_MARGIN_PX = 30
RIGHT_MARGIN_PX = 30

# Layout heuristics (auto margins based on font sizes)
BOTTOM_AXIS_TICK_MULT = 2.4
BOTTOM_AXIS_TITLE_MULT = 1.6
AXIS_TITLE_STANDOFF_TICK_MULT = 1.1
AXIS_TITLE_STANDOFF_MIN_PX = 10

# ---- Regions ----
REGION_FILL_OPACITY = 1.0
REGION_EDGE_WIDTH = 1
GRID_COLOR = "rgba(0,0,0,0.25)"
HOVER_MARKER_OPACITY = 0.0

# ---- Export ----
EXPORT_INCLUDE_PLOTLYJS = "cdn"


def figure_width_px(band_count: int) -> int:
    # Wider charts for more bands, clamped to a usable window.
    w = int(WIDTH_PER_BAND_PX) * max(1, int(band_count))
    return max(int(MIN_FIGURE_WIDTH_PX), min(int(MAX_FIGURE_WIDTH_PX), w))


def _rgba(color: str, alpha: float) -> str:
    r, g, b = pc.hex_to_rgb(color) if str(color).startswith("#") else pc.unlabel_rgb(color)[:3]
    return f"rgba({int(r)},{int(g)},{int(b)},{float(alpha):g})"


def build_region_shapes(regions: Tuple[FilledRegion, ...], color: str) -> Tuple[dict, ...]:
    shapes: List[dict] = []
    fill = _rgba(color, REGION_FILL_OPACITY)
    for r in regions:
        if not np.isfinite(r.x0) or not np.isfinite(r.x1) or r.x1 < r.x0:
            logger.debug(f"Skipping unplottable region {r}")
            continue
        shapes.append(
            dict(
                type="rect",
                xref="x",
                yref="y",
                x0=float(r.x0),
                x1=float(r.x1),
                y0=0,
                y1=1,
                fillcolor=fill,
                line=dict(color=color, width=REGION_EDGE_WIDTH),
                layer="below",
            )
        )
    return tuple(shapes)


def _region_hover_trace(layout: ChartLayout) -> go.Scatter:
    # Shapes carry no hover; an invisible marker at each region center does.
    unit = layout.dist_unit.value
    xs: List[float] = []
    texts: List[str] = []
    for r in layout.regions:
        xs.append(0.5 * (float(r.x0) + float(r.x1)))
        if r.kind == REGION_ALWAYS_BAD:
            label = "Shorter than 1/4 wave"
        else:
            label = f"{r.band} m, harmonic {r.harmonic}"
        texts.append(f"{label}<br>{r.x0:.2f} - {r.x1:.2f} {unit}")
    return go.Scatter(
        x=xs,
        y=[0.5] * len(xs),
        mode="markers",
        marker=dict(opacity=HOVER_MARKER_OPACITY, size=12),
        text=texts,
        hovertemplate="%{text}<extra></extra>",
        showlegend=False,
        name="High impedance",
    )


def apply_common_layout(
    fig: go.Figure,
    layout: ChartLayout,
    plot_height: int,
    use_auto_width: bool,
    width_px: int,
):
    font_base = dict(family=STYLE["font_family"], color=STYLE["font_color"])
    bottom_axis_px = int(
        max(
            int(BOTTOM_AXIS_PX),
            int(
                round(
                    float(STYLE["tick_font_size_px"]) * float(BOTTOM_AXIS_TICK_MULT)
                    + float(STYLE["axis_title_font_size_px"]) * float(BOTTOM_AXIS_TITLE_MULT)
                )
            ),
        )
    )
    total_height = int(plot_height) + int(TOP_MARGIN_PX) + int(bottom_axis_px)

    fig.update_layout(
        autosize=bool(use_auto_width),
        height=total_height,
        title=dict(
            text=str(layout.title),
            x=0.5,
            xanchor="center",
            font=dict(**font_base, size=int(STYLE["title_font_size_px"])),
        ),
        font=dict(**font_base, size=int(STYLE["base_font_size_px"])),
        margin=dict(l=LEFT_MARGIN_PX, r=RIGHT_MARGIN_PX, t=TOP_MARGIN_PX, b=bottom_axis_px),
        plot_bgcolor="#FFFFFF",
        showlegend=False,
        hovermode="closest",
    )
    if not use_auto_width:
        fig.update_layout(width=int(width_px), autosize=False)

    x_title = str(layout.x_title)
    if bool(STYLE.get("bold_axis_titles", True)):
        x_title = f"<b>{x_title}</b>"

    x_title_standoff = STYLE.get("xaxis_title_standoff_px")
    if x_title_standoff is None:
        x_title_standoff = int(
            max(
                int(AXIS_TITLE_STANDOFF_MIN_PX),
                round(float(STYLE["tick_font_size_px"]) * float(AXIS_TITLE_STANDOFF_TICK_MULT)),
            )
        )
    else:
        x_title_standoff = int(x_title_standoff)

    fig.update_xaxes(
        title_text=x_title,
        title_font=dict(**font_base, size=int(STYLE["axis_title_font_size_px"])),
        tickfont=dict(**font_base, size=int(STYLE["tick_font_size_px"])),
        range=[float(layout.x_range[0]), float(layout.x_range[1])],
        tickmode="array",
        tickvals=list(layout.ticks),
        ticktext=[f"{t:g}" for t in layout.ticks],
        showgrid=True,
        gridcolor=GRID_COLOR,
        zeroline=False,
        title_standoff=x_title_standoff,
        automargin=True,
    )
    # Vertical extent is only the fill height; no values.
    fig.update_yaxes(
        range=[0, 1],
        showticklabels=False,
        showgrid=True,
        gridcolor=GRID_COLOR,
        zeroline=False,
        fixedrange=True,
    )


def build_figure(
    layout: ChartLayout,
    plot_height: int = DEFAULT_PLOT_HEIGHT_PX,
    use_auto_width: bool = False,
    width_px: Optional[int] = None,
) -> go.Figure:
    fig = go.Figure(data=[_region_hover_trace(layout)])
    w = int(width_px) if width_px is not None else figure_width_px(layout.band_count)
    apply_common_layout(fig, layout, int(plot_height), bool(use_auto_width), w)
    fig.update_layout(shapes=build_region_shapes(layout.regions, layout.color))
    return fig


def figure_html(fig: go.Figure) -> str:
    return fig.to_html(include_plotlyjs=EXPORT_INCLUDE_PLOTLYJS, full_html=True)


def render(
    layout: Union[ChartLayout, PlotSpec],
    output: Optional[Union[str, Path]] = None,
    show: bool = True,
    plot_height: int = DEFAULT_PLOT_HEIGHT_PX,
) -> go.Figure:
    """
    Draw the chart. Writes standalone HTML when `output` is given, otherwise
    opens the figure with the default Plotly renderer (if `show`).

    A PlotSpec is laid out first, so axis errors surface before any drawing.
    """
    if isinstance(layout, PlotSpec):
        layout = compute_chart_layout(layout)
    fig = build_figure(layout, plot_height=plot_height)
    if output is not None:
        path = Path(output)
        path.write_text(figure_html(fig), encoding="utf-8")
        logger.info(f"Chart written to {path}")
    elif show:
        fig.show()
    return fig
