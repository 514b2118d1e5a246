import numpy as np
import pytest

from otutree.core.trees import TreeStructure, load_tree


def test_parse_four_taxon_tree():
    tree = TreeStructure.from_newick("((A:0.1,B:0.2):0.3,(C:0.15,D:0.25):0.35);")

    assert tree.n_tips == 4
    assert tree.n_nodes == 7
    assert tree.tip_names == ["A", "B", "C", "D"]
    assert len(tree.internal_indices) == 3
    assert tree.postorder[-1] == tree.root_index

    bl = {tree.nodes[i].name: float(tree.branch_lengths[i]) for i in tree.tip_indices}
    assert bl == pytest.approx({"A": 0.1, "B": 0.2, "C": 0.15, "D": 0.25})


def test_missing_branch_lengths_stay_missing():
    tree = TreeStructure.from_newick("((A,B),C:0.5);")

    by_name = {tree.nodes[i].name: tree.nodes[i] for i in tree.tip_indices}
    assert by_name["A"].branch_length is None
    assert by_name["C"].branch_length == 0.5
    assert np.isnan(tree.branch_lengths[tree.root_index])
    assert tree.has_branch_lengths


def test_cladogram_has_no_branch_lengths():
    tree = TreeStructure.from_newick("((A,B),C);")
    assert not tree.has_branch_lengths


def test_quoted_labels_and_escapes():
    tree = TreeStructure.from_newick("('A_strain':0.1,'B\\'s (x, y)':0.2);")
    assert set(tree.tip_names) == {"A_strain", "B's (x, y)"}


def test_internal_labels_and_comments():
    tree = TreeStructure.from_newick("((A:1,B:1)95:0.5[&&NHX:S=x],C:2)root;")

    internal_names = {tree.nodes[i].name for i in tree.internal_indices}
    assert internal_names == {"95", "root"}
    assert tree.tip_names == ["A", "B", "C"]


def test_descendant_tip_counts():
    tree = TreeStructure.from_newick("(A,(B,(C,D)));")
    counts = tree.descendant_tip_counts()
    assert counts[tree.root_index] == 4
    for i in tree.tip_indices:
        assert counts[i] == 1


def test_single_leaf_tree():
    tree = TreeStructure.from_newick("A:5;")
    assert tree.n_nodes == 1
    assert tree.n_tips == 1
    assert tree.tip_names == ["A"]
    assert tree.nodes[0].branch_length == 5.0


def test_empty_tree():
    tree = TreeStructure.from_newick(";")
    assert tree.n_nodes == 0
    assert tree.root_index == -1


@pytest.mark.parametrize(
    "newick",
    ["((A,B);", "(A,B))C;", "(A:x,B);", "(A,B C"],
)
def test_malformed_newick_raises(newick):
    with pytest.raises(ValueError):
        TreeStructure.from_newick(newick)


def test_duplicate_tip_names_rejected():
    with pytest.raises(ValueError, match="Duplicate tip names"):
        TreeStructure.from_newick("(A,(B,A));")


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unknown backend"):
        TreeStructure.from_newick("(A,B);", backend="ete3")


def test_load_tree_from_file(tmp_path):
    path = tmp_path / "tree.nwk"
    path.write_text("(A:1,B:2):1;\n", encoding="utf-8")

    tree = load_tree(path)

    assert tree.n_tips == 2
    assert tree.branch_lengths[tree.root_index] == 1.0


def test_load_tree_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_tree(tmp_path / "absent.nwk")
