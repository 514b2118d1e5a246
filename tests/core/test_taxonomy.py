import pandas as pd
import pytest

from otutree.core.taxonomy import (
    add_lowest_rank_column,
    lowest_known_rank,
    normalize_rank_value,
    split_taxonomy,
)


def test_lowest_rank_strips_trailing_na():
    assert lowest_known_rank("Bacteria;Proteobacteria;NA;NA;NA;NA") == "Proteobacteria"


def test_lowest_rank_from_values():
    assert lowest_known_rank(["Bacteria", "Firmicutes", "Bacilli", None]) == "Bacilli"
    assert lowest_known_rank(["Bacteria", None, "Bacilli"]) == "Bacilli"


def test_lowest_rank_all_unknown():
    assert lowest_known_rank("NA;NA") is None
    assert lowest_known_rank([]) is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("k__Bacteria", "Bacteria"),
        (" p__Firmicutes ", "Firmicutes"),
        ("g__", None),
        ("NA", None),
        ("unclassified", None),
        ("", None),
        (float("nan"), None),
        (None, None),
        ("Escherichia", "Escherichia"),
    ],
)
def test_normalize_rank_value(raw, expected):
    assert normalize_rank_value(raw) == expected


def test_split_taxonomy_pads_and_truncates():
    ranks = ["Kingdom", "Phylum", "Class"]
    assert split_taxonomy("d__Bacteria;p__Firmicutes", ranks) == {
        "Kingdom": "Bacteria",
        "Phylum": "Firmicutes",
        "Class": None,
    }
    assert split_taxonomy("A;B;C;D;E", ranks) == {"Kingdom": "A", "Phylum": "B", "Class": "C"}
    assert split_taxonomy(None, ranks) == {"Kingdom": None, "Phylum": None, "Class": None}


def test_add_lowest_rank_column():
    taxonomy = pd.DataFrame(
        {"Kingdom": ["Bacteria", "Bacteria"], "Phylum": ["Firmicutes", None]},
        index=["otu1", "otu2"],
    )

    result = add_lowest_rank_column(taxonomy)

    assert list(result["Lowest"]) == ["Firmicutes", "Bacteria"]
    assert "Lowest" not in taxonomy.columns


def test_add_lowest_rank_column_refuses_overwrite():
    taxonomy = pd.DataFrame({"Lowest": ["x"]}, index=["otu1"])
    with pytest.raises(ValueError):
        add_lowest_rank_column(taxonomy)
