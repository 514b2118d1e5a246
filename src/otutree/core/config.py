"""Per-call plotting configuration."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from otutree.core.data import MicrobiomeDataset
from otutree.core.errors import EncodingFieldNotFound

# Label sizes are computed in millimetres; renderers work in points.
POINTS_PER_MM = 72.27 / 25.4


class PlotMode(Enum):
    """What the tree plot shows."""

    LAYOUT_ONLY = "layout-only"
    """Tree skeleton only, no abundance points."""

    LAYOUT_WITH_ABUNDANCE = "layout-with-abundance"
    """Tree plus one dodged point per nonzero (taxon, sample) observation."""


class Ladderize(Enum):
    """Sibling reordering by descendant tip count."""

    OFF = "off"
    """Keep file order."""

    LEFT = "left"
    """Smaller clades first (drawn at the bottom)."""

    RIGHT = "right"
    """Larger clades first (smaller clades drawn at the top)."""


class Justify(Enum):
    """Horizontal alignment of dodged point clusters."""

    JAGGED = "jagged"
    """Points start right after each tip's own branch end."""

    JUSTIFIED = "justified"
    """Points start at a common column right of the deepest tip."""


@dataclass
class TreePlotConfig:
    """Options for laying out and rendering a tree plot."""

    mode: PlotMode = PlotMode.LAYOUT_WITH_ABUNDANCE
    """Whether abundance points are drawn."""

    ladderize: Ladderize = Ladderize.OFF
    """Sibling reordering rule."""

    color: Optional[str] = None
    """Field mapped to point color."""

    shape: Optional[str] = None
    """Field mapped to point marker shape."""

    size: Optional[str] = None
    """Field mapped to point size (typically the abundance role)."""

    tooltip: Optional[str] = None
    """Field used for hover text. Default: the taxon role column."""

    label_tips: Optional[str] = None
    """Field used to label tips. None disables tip labels."""

    node_labels: bool = False
    """Draw internal node names (e.g. bootstrap support)."""

    min_abundance: float = math.inf
    """Points with abundance >= this get a numeric text label."""

    justify: Justify = Justify.JAGGED
    """Dodge alignment mode."""

    base_spacing: float = 0.02
    """Dodge separation as a fraction of the tree's x-extent (must be positive)."""

    min_branch_length: Optional[float] = None
    """Length used for zero/missing branches. Default: 1% of the longest branch."""

    text_size: Optional[float] = None
    """Label size in points. Default: shrinks with the number of taxa."""

    plot_margin: float = 0.2
    """Extra right-hand x-range, as a fraction of the data extent."""

    size_base: float = 5.0
    """Marker size when no size field is mapped (also the size scale)."""

    title: Optional[str] = None

    def __post_init__(self):
        self.mode = PlotMode(self.mode)
        self.ladderize = Ladderize(self.ladderize)
        self.justify = Justify(self.justify)
        if self.base_spacing <= 0:
            raise ValueError(f"base_spacing must be > 0, got {self.base_spacing}")
        if self.plot_margin < 0:
            raise ValueError(f"plot_margin must be >= 0, got {self.plot_margin}")
        if self.min_branch_length is not None and self.min_branch_length <= 0:
            raise ValueError(
                f"min_branch_length must be > 0, got {self.min_branch_length}"
            )

    def encoding_fields(self) -> List[Tuple[str, str]]:
        """(option, field) pairs for every configured field name."""
        options = [
            ("color", self.color),
            ("shape", self.shape),
            ("size", self.size),
            ("tooltip", self.tooltip),
            ("label_tips", self.label_tips),
        ]
        return [(option, name) for option, name in options if name is not None]

    def resolve_text_size(self, n_taxa: int) -> float:
        """Label size in points for a tree with `n_taxa` tips."""
        if self.text_size is not None:
            return self.text_size
        return many_text_size(n_taxa) * POINTS_PER_MM


def many_text_size(n: int, mins: float = 0.5, maxs: float = 4.0, b: float = 6.0, d: float = 100.0) -> float:
    """Exponentially shrinking text size (mm) for plots with many labels."""
    return min(max(b * math.exp(-n / d), mins), maxs)


def validate_encoding_fields(config: TreePlotConfig, dataset: MicrobiomeDataset) -> None:
    """
    Check every configured field exists in the dataset's joined columns.

    Raises:
        EncodingFieldNotFound: For the first missing field
    """
    available = dataset.columns()
    for option, name in config.encoding_fields():
        if name not in available:
            raise EncodingFieldNotFound(name, option, available)
