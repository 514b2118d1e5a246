"""
Dodged abundance points beside tree tips.

Each (taxon, sample) observation with nonzero abundance becomes one point
on its tip's y-coordinate. Points sharing a tip are numbered 1..k and
offset horizontally so none overlap:

    x = base + index * base_spacing * x_max

where base is the tip's own branch end (jagged) or the deepest tip's
x (justified), and x_max is the tree's x-extent.
"""

import logging
from typing import List

import pandas as pd

from otutree.core.config import Justify, TreePlotConfig
from otutree.core.data import MicrobiomeDataset
from otutree.core.layout import TreeLayout

logger = logging.getLogger(__name__)


def dodge_sort_key(config: TreePlotConfig, dataset: MicrobiomeDataset) -> List[str]:
    """Columns ordering points within a tip: encodings first, sample last."""
    key = []
    for name in [config.color, config.shape, config.size, dataset.roles.sample]:
        if name is not None and name not in key:
            key.append(name)
    return key


def compute_dodge_points(
    layout: TreeLayout,
    dataset: MicrobiomeDataset,
    config: TreePlotConfig,
) -> pd.DataFrame:
    """
    Join nonzero observations to tip coordinates and assign dodge offsets.

    Args:
        layout: Computed tree layout
        dataset: Composite dataset (its tree produced `layout`)
        config: Plot options (justify, base_spacing, min_abundance, encodings)

    Returns:
        DataFrame with one row per (taxon, nonzero sample): every melted
        column plus xleft, xright, y, index (1..k within the tip), x
        (dodged position) and abundance_label. assemble_dataset keeps these
        names (DERIVED_COLUMNS) out of the joined tables.
    """
    roles = dataset.roles
    long = dataset.melt()
    long = long[long[roles.abundance] > 0]

    tips = layout.tip_edges()[["xleft", "xright", "y"]]
    points = long.merge(tips, left_on=roles.taxon, right_index=True, how="inner")

    key = dodge_sort_key(config, dataset)
    points = points.sort_values(["y"] + key, kind="mergesort", na_position="last")
    points["index"] = points.groupby(roles.taxon, sort=False).cumcount() + 1

    x_max = layout.x_max
    step = config.base_spacing * x_max
    if config.justify is Justify.JAGGED:
        points["x"] = points["xright"] + points["index"] * step
    else:
        points["x"] = x_max + points["index"] * step
        # Repeated after offsetting; a no-op once zeros are gone above
        points = points[points[roles.abundance] > 0]

    points["abundance_label"] = [
        f"{value:g}" if value >= config.min_abundance else None
        for value in points[roles.abundance]
    ]

    points = points.reset_index(drop=True)
    logger.debug(
        f"Dodged {len(points)} points over {points[roles.taxon].nunique()} tips "
        f"(justify={config.justify.value})"
    )
    return points
