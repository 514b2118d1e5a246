"""Tests for the rectangular tree layout."""

import numpy as np
import pandas as pd
import pytest

from otutree.core.config import Ladderize
from otutree.core.errors import DegenerateTree, ZeroLengthBranch
from otutree.core.layout import compute_layout, ladderize_order
from otutree.core.trees import TreeStructure

TREES = [
    "((A:0.1,B:0.2):0.3,(C:0.15,D:0.25):0.35);",
    "(A:1,(B:1,(C:1,(D:1,E:1):1):1):1);",
    "((A,B,C),(D,(E,F)));",
    "(A:1,B:2,(C:1,D:1,(E:0.5,F:0.5):0.2):0.1);",
]


class TestLayoutProperties:

    @pytest.mark.parametrize("newick", TREES)
    @pytest.mark.parametrize("ladderize", list(Ladderize))
    def test_segment_counts(self, newick, ladderize):
        tree = TreeStructure.from_newick(newick)
        layout = compute_layout(tree, ladderize)

        assert len(layout.edges) == tree.n_nodes - 1
        assert len(layout.verticals) == len(tree.internal_indices)

    @pytest.mark.parametrize("newick", TREES)
    @pytest.mark.parametrize("ladderize", list(Ladderize))
    def test_tip_y_distinct_and_ranked(self, newick, ladderize):
        tree = TreeStructure.from_newick(newick)
        layout = compute_layout(tree, ladderize)

        ys = [layout.tip_y[name] for name in layout.tip_order]
        assert ys == [float(i) for i in range(1, tree.n_tips + 1)]
        assert sorted(layout.tip_order) == sorted(tree.tip_names)

    @pytest.mark.parametrize("newick", TREES)
    def test_idempotent(self, newick):
        tree = TreeStructure.from_newick(newick)

        first = compute_layout(tree, Ladderize.LEFT)
        second = compute_layout(tree, Ladderize.LEFT)

        pd.testing.assert_frame_equal(first.edges, second.edges)
        pd.testing.assert_frame_equal(first.verticals, second.verticals)
        assert first.tip_order == second.tip_order

    @pytest.mark.parametrize("newick", TREES)
    def test_verticals_span_children(self, newick):
        tree = TreeStructure.from_newick(newick)
        layout = compute_layout(tree)

        for row in layout.verticals.itertuples(index=False):
            child_ys = [layout.node_y[c] for c in tree.nodes[row.node].children_ids]
            assert row.vmin == min(child_ys)
            assert row.vmax == max(child_ys)
            assert row.x == layout.node_x[row.node]

    @pytest.mark.parametrize("newick", TREES)
    def test_edges_join_parent_to_child(self, newick):
        tree = TreeStructure.from_newick(newick)
        layout = compute_layout(tree)

        for row in layout.edges.itertuples(index=False):
            assert row.xleft == layout.node_x[row.parent]
            assert row.xright == layout.node_x[row.node]
            assert row.xright > row.xleft


class TestCoordinates:

    def test_four_taxon_coordinates(self):
        tree = TreeStructure.from_newick("((A:0.1,B:0.2):0.3,(C:0.15,D:0.25):0.35);")
        layout = compute_layout(tree)

        assert layout.tip_order == ["A", "B", "C", "D"]
        tips = layout.tip_edges()
        np.testing.assert_allclose(tips.loc[["A", "B", "C", "D"], "xright"], [0.4, 0.5, 0.5, 0.6])
        np.testing.assert_allclose(sorted(layout.verticals["vmin"]), [1.0, 1.5, 3.0])
        assert layout.node_y[tree.root_index] == 2.5
        assert layout.x_max == pytest.approx(0.6)

    def test_rooted_with_root_length(self):
        tree = TreeStructure.from_newick("(A:1,B:2):1;")
        layout = compute_layout(tree)

        assert len(layout.edges) == 3
        root_edge = layout.edges[layout.edges["parent"] == -1].iloc[0]
        assert (root_edge.xleft, root_edge.xright) == (0.0, 1.0)
        tips = layout.tip_edges()
        assert tips.loc["A", "xright"] == 2.0
        assert tips.loc["B", "xright"] == 3.0

        assert len(layout.verticals) == 1
        vertical = layout.verticals.iloc[0]
        assert (vertical.x, vertical.vmin, vertical.vmax) == (1.0, 1.0, 2.0)

    def test_cladogram_uses_unit_steps(self):
        tree = TreeStructure.from_newick("((A,B),C);")
        layout = compute_layout(tree)

        tips = layout.tip_edges()
        assert tips.loc["A", "xright"] == 2.0
        assert tips.loc["C", "xright"] == 1.0

    def test_zero_and_missing_lengths_replaced(self):
        tree = TreeStructure.from_newick("((A:0,B:2):1,C);")

        with pytest.warns(ZeroLengthBranch):
            layout = compute_layout(tree)

        tips = layout.tip_edges()
        # 1% of the longest branch (2.0)
        assert tips.loc["A", "xright"] == pytest.approx(1.02)
        assert tips.loc["C", "xright"] == pytest.approx(0.02)

    def test_explicit_min_branch_length(self):
        tree = TreeStructure.from_newick("((A:0,B:2):1,C:1);")

        with pytest.warns(ZeroLengthBranch):
            layout = compute_layout(tree, min_branch_length=0.5)

        assert layout.tip_edges().loc["A", "xright"] == pytest.approx(1.5)

    def test_single_leaf(self):
        tree = TreeStructure.from_newick("A:5;")
        layout = compute_layout(tree)

        assert len(layout.edges) == 1
        assert len(layout.verticals) == 0
        edge = layout.edges.iloc[0]
        assert (edge.xleft, edge.xright, edge.y) == (0.0, 5.0, 1.0)
        assert layout.tip_y == {"A": 1.0}

    def test_single_leaf_without_length(self):
        layout = compute_layout(TreeStructure.from_newick("A;"))

        assert len(layout.edges) == 1
        assert layout.x_max == 1.0

    def test_empty_tree_is_degenerate(self):
        tree = TreeStructure.from_newick(";")

        with pytest.warns(DegenerateTree):
            layout = compute_layout(tree)

        assert layout.edges.empty
        assert layout.verticals.empty
        assert layout.n_tips == 0
        assert layout.x_max == 0.0
        assert layout.tip_edges().empty


class TestLadderize:

    def test_left_puts_small_clades_first(self):
        tree = TreeStructure.from_newick("((B:1,C:1):1,A:1);")

        assert compute_layout(tree, Ladderize.OFF).tip_order == ["B", "C", "A"]
        assert compute_layout(tree, Ladderize.LEFT).tip_order == ["A", "B", "C"]
        assert compute_layout(tree, "left").tip_order == ["A", "B", "C"]

    def test_right_puts_large_clades_first(self):
        tree = TreeStructure.from_newick("(A:1,(B:1,C:1):1);")

        assert compute_layout(tree, Ladderize.RIGHT).tip_order == ["B", "C", "A"]
        assert compute_layout(tree, "right").tip_order == ["B", "C", "A"]

    def test_nested_staircase(self):
        tree = TreeStructure.from_newick("(((A,B),C),(D,(E,(F,G))));")

        assert compute_layout(tree, Ladderize.LEFT).tip_order == ["C", "A", "B", "D", "E", "F", "G"]
        assert compute_layout(tree, Ladderize.RIGHT).tip_order == ["F", "G", "E", "D", "A", "B", "C"]

    def test_ties_keep_file_order(self):
        tree = TreeStructure.from_newick("((A,B),(C,D));")
        order = ladderize_order(tree, Ladderize.RIGHT)

        assert order[tree.root_index] == tree.nodes[tree.root_index].children_ids

    def test_topology_unchanged(self):
        tree = TreeStructure.from_newick("(A:1,(B:1,(C:1,D:1):1):1);")
        plain = compute_layout(tree)
        laddered = compute_layout(tree, Ladderize.LEFT)

        pd.testing.assert_series_equal(
            plain.edges.sort_values("node")["xright"].reset_index(drop=True),
            laddered.edges.sort_values("node")["xright"].reset_index(drop=True),
        )
