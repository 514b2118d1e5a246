"""Plot primitives and renderers (matplotlib static, plotly interactive)."""

from otutree.plotting.primitives import (
    Segment,
    PointMark,
    TextLabel,
    PlotPrimitives,
    build_tree_plot,
)
from otutree.plotting.static import StaticPlot, render_static
from otutree.plotting.interactive import to_interactive, save_html

__all__ = [
    "Segment",
    "PointMark",
    "TextLabel",
    "PlotPrimitives",
    "build_tree_plot",
    "StaticPlot",
    "render_static",
    "to_interactive",
    "save_html",
]
