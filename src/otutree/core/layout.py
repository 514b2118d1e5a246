"""
Rectangular tree layout.

Turns a TreeStructure into horizontal edge segments (one per drawn branch)
and vertical segments (one per internal node), plus a tip -> y index.

Coordinates:
- Tips get y = 1..n_tips in traversal order (after optional ladderizing)
- Internal nodes sit at the midpoint of their children's y-range
- x is the cumulative branch length from the root (unit steps when the
  tree carries no branch lengths at all)
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from otutree.core.config import Ladderize
from otutree.core.errors import DegenerateTree, ZeroLengthBranch
from otutree.core.trees import TreeStructure

logger = logging.getLogger(__name__)

EDGE_COLUMNS = ["node", "parent", "name", "is_tip", "xleft", "xright", "y"]
VERTICAL_COLUMNS = ["node", "x", "vmin", "vmax"]


@dataclass
class TreeLayout:
    """
    Computed tree geometry.

    Attributes:
        edges: One row per horizontal branch segment (EDGE_COLUMNS)
        verticals: One row per internal node connector (VERTICAL_COLUMNS)
        tip_y: Tip name -> y coordinate
        tip_order: Tip names in increasing y
        node_x: x coordinate per node index
        node_y: y coordinate per node index
    """
    edges: pd.DataFrame
    verticals: pd.DataFrame
    tip_y: Dict[str, float]
    tip_order: List[str]
    node_x: np.ndarray
    node_y: np.ndarray

    @property
    def n_tips(self) -> int:
        return len(self.tip_order)

    @property
    def x_max(self) -> float:
        """Rightmost branch end (0 for an empty layout)."""
        if self.edges.empty:
            return 0.0
        return float(self.edges["xright"].max())

    def tip_edges(self) -> pd.DataFrame:
        """Edge rows for tips, indexed by tip name."""
        return self.edges[self.edges["is_tip"]].set_index("name")

    def __repr__(self) -> str:
        return (
            f"TreeLayout({self.n_tips} tips, {len(self.edges)} edges, "
            f"{len(self.verticals)} verticals)"
        )


def ladderize_order(
    tree: TreeStructure,
    ladderize: Union[Ladderize, str] = Ladderize.OFF,
) -> Dict[int, List[int]]:
    """
    Child ordering per node.

    Ladderizing sorts siblings by descendant tip count (stable, so ties keep
    file order). It changes drawing order only, never topology.
    """
    ladderize = Ladderize(ladderize)
    if ladderize is Ladderize.OFF:
        return {n.id: list(n.children_ids) for n in tree.nodes}

    counts = tree.descendant_tip_counts()
    descending = ladderize is Ladderize.RIGHT
    return {
        n.id: sorted(n.children_ids, key=lambda c: -counts[c] if descending else counts[c])
        for n in tree.nodes
    }


def _preorder(root: int, children: Dict[int, List[int]]) -> List[int]:
    order = []
    stack = [root]
    while stack:
        node_id = stack.pop()
        order.append(node_id)
        stack.extend(reversed(children[node_id]))
    return order


def resolve_branch_lengths(
    tree: TreeStructure,
    min_branch_length: Optional[float] = None,
) -> np.ndarray:
    """
    Drawn length of the branch above each node.

    Trees without any branch lengths are drawn as cladograms (unit length).
    Otherwise zero, negative or missing lengths are replaced by
    `min_branch_length` (default: 1% of the longest branch) so distinct
    taxa never collapse onto one point.
    """
    if not tree.has_branch_lengths:
        return np.ones(tree.n_nodes)

    lengths = tree.branch_lengths.copy()
    positive = lengths[np.isfinite(lengths) & (lengths > 0)]
    if min_branch_length is None:
        min_branch_length = 0.01 * float(positive.max()) if positive.size else 1.0

    bad = ~(np.isfinite(lengths) & (lengths > 0))
    bad[tree.root_index] = False
    if bad.any():
        names = [tree.nodes[i].name or f"node_{i}" for i in np.flatnonzero(bad)]
        warnings.warn(
            f"{len(names)} zero or missing branch lengths set to {min_branch_length:g} "
            f"(first: {', '.join(names[:5])})",
            ZeroLengthBranch,
        )
        lengths[bad] = min_branch_length
    return lengths


def _root_length(tree: TreeStructure, min_branch_length: Optional[float]) -> float:
    root = tree.root_index
    raw = tree.branch_lengths[root]
    if np.isfinite(raw) and raw > 0:
        return float(raw)
    if tree.n_nodes == 1:
        # A lone tip still gets a visible branch
        if min_branch_length is not None:
            return float(min_branch_length)
        return 1.0
    return 0.0


def empty_layout() -> TreeLayout:
    edges = pd.DataFrame(columns=EDGE_COLUMNS)
    edges["is_tip"] = edges["is_tip"].astype(bool)
    return TreeLayout(
        edges=edges,
        verticals=pd.DataFrame(columns=VERTICAL_COLUMNS),
        tip_y={},
        tip_order=[],
        node_x=np.zeros(0),
        node_y=np.zeros(0),
    )


def compute_layout(
    tree: TreeStructure,
    ladderize: Union[Ladderize, str] = Ladderize.OFF,
    min_branch_length: Optional[float] = None,
) -> TreeLayout:
    """
    Compute rectangular layout coordinates for every node of `tree`.

    Args:
        tree: Parsed tree
        ladderize: Sibling reordering rule
        min_branch_length: Length drawn for zero/missing branches

    Returns:
        TreeLayout. Deterministic for identical inputs.
    """
    if tree.n_nodes == 0 or tree.n_tips == 0:
        warnings.warn("Tree has no edges; producing an empty layout", DegenerateTree)
        return empty_layout()

    children = ladderize_order(tree, ladderize)
    preorder = _preorder(tree.root_index, children)

    # y: tips ranked in traversal order, internal nodes at children midpoint
    node_y = np.zeros(tree.n_nodes)
    tip_order = []
    for node_id in preorder:
        if tree.nodes[node_id].is_tip:
            tip_order.append(tree.tip_name(node_id))
            node_y[node_id] = len(tip_order)
    for node_id in reversed(preorder):
        kids = children[node_id]
        if kids:
            ys = node_y[kids]
            node_y[node_id] = (ys.min() + ys.max()) / 2.0

    # x: cumulative branch length from the root
    lengths = resolve_branch_lengths(tree, min_branch_length)
    root_length = _root_length(tree, min_branch_length)
    node_x = np.zeros(tree.n_nodes)
    node_x[tree.root_index] = root_length
    for node_id in preorder:
        for child in children[node_id]:
            node_x[child] = node_x[node_id] + lengths[child]

    edge_rows = []
    vertical_rows = []
    for node_id in preorder:
        node = tree.nodes[node_id]
        name = tree.tip_name(node_id) if node.is_tip else node.name
        if node.parent_id is None:
            if root_length > 0:
                edge_rows.append((node_id, -1, name, node.is_tip, 0.0, root_length, node_y[node_id]))
        else:
            edge_rows.append((
                node_id, node.parent_id, name, node.is_tip,
                node_x[node.parent_id], node_x[node_id], node_y[node_id],
            ))
        kids = children[node_id]
        if kids:
            ys = node_y[kids]
            vertical_rows.append((node_id, node_x[node_id], ys.min(), ys.max()))

    edges = pd.DataFrame(edge_rows, columns=EDGE_COLUMNS)
    edges["is_tip"] = edges["is_tip"].astype(bool)
    verticals = pd.DataFrame(vertical_rows, columns=VERTICAL_COLUMNS)

    layout = TreeLayout(
        edges=edges,
        verticals=verticals,
        tip_y={name: float(i + 1) for i, name in enumerate(tip_order)},
        tip_order=tip_order,
        node_x=node_x,
        node_y=node_y,
    )
    logger.debug(f"Computed {layout!r}")
    return layout
