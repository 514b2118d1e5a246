"""
Interactive (plotly) conversion of a tree plot.

Rebuilds the static plot's primitives as plotly traces with hover text
taken from one designated field, and writes self-contained HTML.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import plotly.graph_objects as go
from plotly.colors import qualitative

from otutree.core.errors import EncodingFieldNotFound
from otutree.plotting.encodings import categories, category_label, is_numeric, scale_sizes
from otutree.plotting.primitives import PlotPrimitives, format_value
from otutree.plotting.static import StaticPlot

logger = logging.getLogger(__name__)

SYMBOLS = [
    "circle", "triangle-up", "square", "diamond", "triangle-down",
    "cross", "x", "star", "triangle-left", "triangle-right",
]

# plotly font sizes are in px; labels carry points
PX_PER_POINT = 96 / 72


def _hover_texts(primitives: PlotPrimitives, tooltip: str) -> List[str]:
    if tooltip == primitives.hover_field:
        return [p.hover for p in primitives.points]
    return [format_value(p.fields.get(tooltip)) for p in primitives.points]


def _line_trace(segments) -> go.Scatter:
    xs, ys = [], []
    for s in segments:
        xs += [s.x0, s.x1, None]
        ys += [s.y0, s.y1, None]
    return go.Scatter(
        x=xs,
        y=ys,
        mode="lines",
        line=dict(color="black", width=1),
        hoverinfo="skip",
        showlegend=False,
        name="tree",
    )


def _point_traces(primitives: PlotPrimitives, hover: List[str]) -> List[go.Scatter]:
    points = primitives.points
    if primitives.size_field is not None:
        sizes = scale_sizes([p.size for p in points], primitives.size_base)
    else:
        sizes = [primitives.size_base] * len(points)
    # plotly marker size is a diameter in px
    sizes = [2 * s for s in sizes]

    color_values = [p.color for p in points]
    numeric_color = primitives.color_field is not None and is_numeric(color_values)
    palette = qualitative.Plotly

    traces = []
    shape_levels = categories([p.shape for p in points])
    color_levels = categories(color_values) if not numeric_color else [None]
    for shape_i, shape in enumerate(shape_levels):
        for color_i, color in enumerate(color_levels):
            idx = [
                i for i, p in enumerate(points)
                if category_label(p.shape) == shape
                and (numeric_color or category_label(p.color) == color)
            ]
            if not idx:
                continue
            marker = dict(
                size=[sizes[i] for i in idx],
                symbol=SYMBOLS[shape_i % len(SYMBOLS)],
                line=dict(width=0),
            )
            name_parts = []
            if numeric_color:
                marker.update(
                    color=[points[i].color for i in idx],
                    colorscale="Viridis",
                    cmin=min(v for v in color_values if v is not None),
                    cmax=max(v for v in color_values if v is not None),
                    colorbar=dict(title=primitives.color_field),
                    showscale=shape_i == 0,
                )
            elif primitives.color_field is not None:
                marker["color"] = palette[color_i % len(palette)]
                name_parts.append(color)
            else:
                marker["color"] = "black"
            if primitives.shape_field is not None:
                name_parts.append(shape)
            traces.append(go.Scatter(
                x=[points[i].x for i in idx],
                y=[points[i].y for i in idx],
                mode="markers",
                marker=marker,
                hovertext=[hover[i] for i in idx],
                hoverinfo="text",
                name=" / ".join(name_parts) or "samples",
                showlegend=bool(name_parts),
            ))
    return traces


def _label_traces(primitives: PlotPrimitives) -> List[go.Scatter]:
    traces = []
    for kind in ["tip", "node", "abundance"]:
        labels = primitives.labels_of(kind)
        if not labels:
            continue
        traces.append(go.Scatter(
            x=[lab.x for lab in labels],
            y=[lab.y for lab in labels],
            text=[lab.text for lab in labels],
            mode="text",
            textposition="middle right",
            textfont=dict(
                size=labels[0].size * PX_PER_POINT,
                color="dimgray" if kind == "node" else "black",
            ),
            hoverinfo="skip",
            showlegend=False,
            name=f"{kind} labels",
        ))
    return traces


def to_interactive(
    plot: Union[StaticPlot, PlotPrimitives],
    tooltip: Optional[str] = None,
) -> go.Figure:
    """
    Convert a static tree plot into an interactive plotly figure.

    Args:
        plot: StaticPlot (or its primitives)
        tooltip: Field to show on hover. Default: the plot's hover field.

    Returns:
        plotly Figure

    Raises:
        EncodingFieldNotFound: `tooltip` is not a field of the plotted points
    """
    primitives = plot.primitives if isinstance(plot, StaticPlot) else plot
    tooltip = tooltip or primitives.hover_field
    if primitives.points and tooltip not in primitives.points[0].fields:
        raise EncodingFieldNotFound(tooltip, "tooltip", primitives.points[0].fields)
    hover = _hover_texts(primitives, tooltip)

    fig = go.Figure()
    if primitives.segments:
        fig.add_trace(_line_trace(primitives.segments))
    for trace in _point_traces(primitives, hover):
        fig.add_trace(trace)
    for trace in _label_traces(primitives):
        fig.add_trace(trace)

    fig.update_layout(
        title=primitives.title,
        plot_bgcolor="white",
        paper_bgcolor="white",
        hovermode="closest",
        xaxis=dict(range=list(primitives.x_range), visible=False),
        yaxis=dict(range=list(primitives.y_range), visible=False),
        legend=dict(title=primitives.color_field or primitives.shape_field),
    )
    logger.debug(f"Converted plot to {len(fig.data)} plotly traces (tooltip={tooltip})")
    return fig


def save_html(fig: go.Figure, path: Union[str, Path]) -> Path:
    """Write a self-contained HTML file (plotly.js embedded, no network needed)."""
    path = Path(path)
    fig.write_html(path, include_plotlyjs=True, full_html=True)
    logger.info(f"Interactive plot written to {path}")
    return path
