"""Static tree plot rendering with matplotlib."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection

from otutree.plotting.encodings import categories, category_label, is_numeric, scale_sizes
from otutree.plotting.primitives import PlotPrimitives

logger = logging.getLogger(__name__)

MARKERS = ["o", "^", "s", "D", "v", "P", "X", "*", "<", ">"]


@dataclass
class StaticPlot:
    """A rendered matplotlib figure and the primitives it was drawn from."""
    figure: plt.Figure
    primitives: PlotPrimitives

    def save(self, path: Union[str, Path], dpi: int = 150) -> Path:
        """Save the figure (format from suffix: .png, .svg, .pdf)."""
        path = Path(path)
        self.figure.savefig(path, dpi=dpi, bbox_inches="tight")
        logger.info(f"Static plot written to {path}")
        return path


def _default_figsize(primitives: PlotPrimitives) -> Tuple[float, float]:
    n_tips = primitives.y_range[1] - 1
    return (10.0, min(max(4.0, 0.25 * n_tips), 40.0))


def render_static(
    primitives: PlotPrimitives,
    figsize: Optional[Tuple[float, float]] = None,
) -> StaticPlot:
    """
    Draw plot primitives onto a blank-themed matplotlib figure.

    Args:
        primitives: Output of build_tree_plot
        figsize: Figure size in inches (default grows with tip count)

    Returns:
        StaticPlot
    """
    fig, ax = plt.subplots(figsize=figsize or _default_figsize(primitives))

    if primitives.segments:
        lines = [[(s.x0, s.y0), (s.x1, s.y1)] for s in primitives.segments]
        ax.add_collection(LineCollection(lines, colors="black", linewidths=0.8, zorder=1))

    points = primitives.points
    if points:
        size_values = [p.size for p in points]
        if primitives.size_field is not None:
            sizes = scale_sizes(size_values, primitives.size_base)
        else:
            sizes = [primitives.size_base] * len(points)
        # scatter() takes marker area in points^2
        areas = [s ** 2 for s in sizes]

        color_values = [p.color for p in points]
        numeric_color = primitives.color_field is not None and is_numeric(color_values)
        shape_levels = categories([p.shape for p in points])
        color_levels = categories(color_values)
        cmap = plt.colormaps["tab10"]

        for shape_i, shape in enumerate(shape_levels):
            marker = MARKERS[shape_i % len(MARKERS)]
            for color_i, color in enumerate(color_levels if not numeric_color else [None]):
                idx = [
                    i for i, p in enumerate(points)
                    if category_label(p.shape) == shape
                    and (numeric_color or category_label(p.color) == color)
                ]
                if not idx:
                    continue
                label_parts = []
                if primitives.color_field is not None and not numeric_color:
                    label_parts.append(color)
                if primitives.shape_field is not None:
                    label_parts.append(shape)
                kwargs = {}
                if numeric_color:
                    kwargs.update(
                        c=[points[i].color if points[i].color is not None else float("nan") for i in idx],
                        cmap="viridis",
                        vmin=min(v for v in color_values if v is not None),
                        vmax=max(v for v in color_values if v is not None),
                    )
                elif primitives.color_field is not None:
                    kwargs["color"] = cmap(color_i % cmap.N)
                else:
                    kwargs["color"] = "black"
                artist = ax.scatter(
                    [points[i].x for i in idx],
                    [points[i].y for i in idx],
                    s=[areas[i] for i in idx],
                    marker=marker,
                    label=" / ".join(label_parts) or None,
                    zorder=2,
                    **kwargs,
                )
        if numeric_color:
            fig.colorbar(artist, ax=ax, label=primitives.color_field)
        if primitives.shape_field is not None or (primitives.color_field is not None and not numeric_color):
            ax.legend(loc="upper left", bbox_to_anchor=(1.01, 1.0), frameon=False, fontsize=8)

    for label in primitives.labels:
        ax.text(
            label.x, label.y, label.text,
            fontsize=label.size,
            ha="left", va="center",
            color="dimgray" if label.kind == "node" else "black",
        )

    ax.set_xlim(*primitives.x_range)
    ax.set_ylim(*primitives.y_range)
    ax.set_axis_off()
    if primitives.title:
        ax.set_title(primitives.title)

    logger.debug(f"Rendered static plot with {len(primitives.segments)} segments")
    return StaticPlot(figure=fig, primitives=primitives)
