import textwrap

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from otutree.core.data import assemble_dataset
from otutree.core.trees import TreeStructure

FOUR_TAXA = "((A:0.1,B:0.2):0.3,(C:0.15,D:0.25):0.35);"


def write_tmp(path, content: str):
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def four_taxa_dataset():
    """Four tips, three samples with depth/site metadata and a two-rank taxonomy."""
    abundance = pd.DataFrame(
        {
            "s1": [3.0, 0.0, 1.0, 0.0],
            "s2": [1.0, 0.0, 0.0, 2.0],
            "s3": [5.0, 4.0, 0.0, 0.0],
        },
        index=["A", "B", "C", "D"],
    )
    taxonomy = pd.DataFrame(
        {
            "Kingdom": ["Bacteria"] * 4,
            "Phylum": ["Proteobacteria", "Firmicutes", "Firmicutes", None],
        },
        index=["A", "B", "C", "D"],
    )
    metadata = pd.DataFrame(
        {"depth": [30, 10, 20], "site": ["north", "south", "north"]},
        index=["s1", "s2", "s3"],
    )
    tree = TreeStructure.from_newick(FOUR_TAXA)
    return assemble_dataset(abundance, taxonomy, metadata, tree)


@pytest.fixture
def input_files(tmp_path):
    """The four input files of a small study, as written by a sequencing pipeline."""
    abundance = write_tmp(
        tmp_path / "otu_table.csv",
        """
        OTU,s1,s2,s3
        A,3,1,5
        B,0,0,4
        C,1,0,0
        D,0,2,0
        """,
    )
    taxonomy = write_tmp(
        tmp_path / "taxonomy.tsv",
        """
        OTU\tTaxon
        A\tBacteria;Proteobacteria;Gammaproteobacteria;NA
        B\tBacteria;Firmicutes;NA;NA
        C\tBacteria;Firmicutes;Bacilli;Lactobacillales
        D\tBacteria;NA;NA;NA
        """,
    )
    metadata = write_tmp(
        tmp_path / "metadata.csv",
        """
        Sample,depth,site
        s1,30,north
        s2,10,south
        s3,20,north
        """,
    )
    tree = write_tmp(tmp_path / "tree.nwk", FOUR_TAXA)
    return {"abundance": abundance, "taxonomy": taxonomy, "metadata": metadata, "tree": tree}
