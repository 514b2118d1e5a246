"""
Renderer-neutral plot primitives.

`build_tree_plot` runs validation, layout and dodging and flattens the
result into segments, points and text labels. Renderers only ever see
these primitives, never the tree or the tables.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from otutree.core.config import PlotMode, TreePlotConfig, validate_encoding_fields
from otutree.core.data import MicrobiomeDataset
from otutree.core.dodge import compute_dodge_points
from otutree.core.layout import TreeLayout, compute_layout

logger = logging.getLogger(__name__)


@dataclass
class Segment:
    """Straight line between two points."""
    x0: float
    y0: float
    x1: float
    y1: float
    kind: str = "edge"
    """Either "edge" (horizontal branch) or "vertical" (internal node connector)."""
    node: Optional[int] = None


@dataclass
class PointMark:
    """
    One dodged abundance point.

    Attributes:
        x, y: Render position
        taxon, sample: Observation identifiers
        index: Position among points sharing the tip (1..k)
        abundance: Observed abundance
        color, shape, size: Values of the mapped encoding fields (None if unmapped)
        hover: Hover text value
        fields: All joined fields for this observation
    """
    x: float
    y: float
    taxon: str
    sample: str
    index: int
    abundance: float
    color: Any = None
    shape: Any = None
    size: Any = None
    hover: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TextLabel:
    """Text anchored at its left edge, vertically centred."""
    x: float
    y: float
    text: str
    kind: str = "tip"
    """One of "tip", "node" or "abundance"."""
    size: float = 8.0


@dataclass
class PlotPrimitives:
    """
    Everything a renderer needs to draw the tree plot.

    Attributes:
        segments: Branch and connector lines
        points: Dodged abundance points
        labels: Tip, node and abundance labels
        hover_field: Field whose value fills PointMark.hover
        color_field, shape_field, size_field: Mapped encoding field names
        size_base: Marker size when no size field is mapped
        x_range: (min, max) x-axis limits
        y_range: (min, max) y-axis limits
        title: Optional plot title
    """
    segments: List[Segment]
    points: List[PointMark]
    labels: List[TextLabel]
    hover_field: str
    color_field: Optional[str] = None
    shape_field: Optional[str] = None
    size_field: Optional[str] = None
    size_base: float = 5.0
    x_range: Tuple[float, float] = (-0.01, 1.0)
    y_range: Tuple[float, float] = (0.0, 1.0)
    title: Optional[str] = None
    layout: Optional[TreeLayout] = None
    point_table: Optional[pd.DataFrame] = None

    def segments_of(self, kind: str) -> List[Segment]:
        return [s for s in self.segments if s.kind == kind]

    def labels_of(self, kind: str) -> List[TextLabel]:
        return [lab for lab in self.labels if lab.kind == kind]


def _clean(value):
    if isinstance(value, (float, np.floating)) and np.isnan(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def format_value(value) -> str:
    """Display text for a field value (missing values read "NA")."""
    value = _clean(value)
    if value is None:
        return "NA"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _point_marks(points: pd.DataFrame, dataset: MicrobiomeDataset, config: TreePlotConfig, hover_field: str) -> List[PointMark]:
    roles = dataset.roles
    field_names = dataset.columns()
    marks = []
    for row in points.to_dict(orient="records"):
        marks.append(PointMark(
            x=float(row["x"]),
            y=float(row["y"]),
            taxon=str(row[roles.taxon]),
            sample=str(row[roles.sample]),
            index=int(row["index"]),
            abundance=float(row[roles.abundance]),
            color=_clean(row[config.color]) if config.color else None,
            shape=_clean(row[config.shape]) if config.shape else None,
            size=_clean(row[config.size]) if config.size else None,
            hover=format_value(row[hover_field]),
            fields={name: _clean(row[name]) for name in field_names},
        ))
    return marks


def _tip_label_text(dataset: MicrobiomeDataset, field_name: str) -> Dict[str, str]:
    """Tip name -> label text for a taxon-level field."""
    roles = dataset.roles
    if field_name == roles.taxon:
        return {t: t for t in dataset.taxa_names}
    if dataset.taxonomy is not None and field_name in dataset.taxonomy.columns:
        return {t: format_value(v) for t, v in dataset.taxonomy[field_name].items()}
    # Sample-level fields have no single value per tip; use the first nonzero sample's
    long = dataset.melt()
    long = long[long[roles.abundance] > 0]
    first = long.drop_duplicates(subset=roles.taxon)
    return {t: format_value(v) for t, v in zip(first[roles.taxon], first[field_name])}


def build_tree_plot(dataset: MicrobiomeDataset, config: Optional[TreePlotConfig] = None) -> PlotPrimitives:
    """
    Validate configuration, lay out the tree and emit plot primitives.

    Raises:
        EncodingFieldNotFound: A configured field is missing (before any layout work)
        MissingTree: The dataset has no tree
    """
    config = config or TreePlotConfig()
    validate_encoding_fields(config, dataset)
    tree = dataset.require_tree()

    roles = dataset.roles
    hover_field = config.tooltip or roles.taxon

    layout = compute_layout(tree, config.ladderize, config.min_branch_length)
    text_size = config.resolve_text_size(layout.n_tips)

    segments = [
        Segment(float(r.xleft), float(r.y), float(r.xright), float(r.y), kind="edge", node=int(r.node))
        for r in layout.edges.itertuples(index=False)
    ]
    segments += [
        Segment(float(r.x), float(r.vmin), float(r.x), float(r.vmax), kind="vertical", node=int(r.node))
        for r in layout.verticals.itertuples(index=False)
    ]

    with_abundance = config.mode is PlotMode.LAYOUT_WITH_ABUNDANCE
    if with_abundance:
        points = compute_dodge_points(layout, dataset, config)
    else:
        points = None
    marks = _point_marks(points, dataset, config, hover_field) if points is not None else []

    x_max = layout.x_max
    if marks:
        x_max = max(x_max, max(m.x for m in marks))
    pad = config.base_spacing * layout.x_max

    labels: List[TextLabel] = []
    if config.label_tips is not None and layout.n_tips:
        texts = _tip_label_text(dataset, config.label_tips)
        tips = layout.tip_edges()
        if with_abundance:
            far_x = points.groupby(roles.taxon)["x"].max().to_dict()
        else:
            far_x = {}
        for name in layout.tip_order:
            if name not in texts:
                continue
            x = far_x.get(name, tips.at[name, "xright"]) + pad
            labels.append(TextLabel(x, layout.tip_y[name], texts[name], kind="tip", size=text_size))

    if config.node_labels:
        for node in tree.nodes:
            if not node.is_tip and node.name:
                labels.append(TextLabel(
                    float(layout.node_x[node.id]), float(layout.node_y[node.id]),
                    node.name, kind="node", size=text_size,
                ))

    for mark, label in zip(marks, points["abundance_label"] if with_abundance else []):
        if label is not None:
            labels.append(TextLabel(mark.x + pad / 2, mark.y, label, kind="abundance", size=text_size))

    x_range = (-0.01, x_max * (1 + config.plot_margin) if x_max > 0 else 1.0)
    y_range = (0.0, layout.n_tips + 1.0)

    primitives = PlotPrimitives(
        segments=segments,
        points=marks,
        labels=labels,
        hover_field=hover_field,
        color_field=config.color,
        shape_field=config.shape,
        size_field=config.size,
        size_base=config.size_base,
        x_range=x_range,
        y_range=y_range,
        title=config.title,
        layout=layout,
        point_table=points,
    )
    logger.info(
        f"Built tree plot: {len(segments)} segments, {len(marks)} points, {len(labels)} labels"
    )
    return primitives
