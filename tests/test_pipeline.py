import pytest

from otutree.core.config import Justify, Ladderize, TreePlotConfig
from otutree.core.errors import EncodingFieldNotFound, SchemaMismatch
from otutree.pipeline import load_dataset, plot_tree_html

from conftest import write_tmp


def test_load_dataset(input_files):
    dataset = load_dataset(**input_files, taxonomy_column="Taxon")

    assert dataset.n_taxa == 4
    assert dataset.sample_names == ["s1", "s2", "s3"]
    assert list(dataset.taxonomy.columns[:2]) == ["Kingdom", "Phylum"]
    assert dataset.taxonomy.at["A", "Lowest"] == "Gammaproteobacteria"
    assert dataset.taxonomy.at["D", "Lowest"] == "Bacteria"
    assert dataset.taxonomy.at["D", "Phylum"] is None
    assert list(dataset.metadata.columns) == ["depth", "site"]
    assert dataset.tree.n_tips == 4


def test_load_dataset_schema_mismatch(input_files, tmp_path):
    tree = write_tmp(tmp_path / "small.nwk", "(A:1,B:1);")

    with pytest.raises(SchemaMismatch) as excinfo:
        load_dataset(input_files["abundance"], tree=tree)

    assert excinfo.value.identifiers == ["C", "D"]


def test_plot_tree_html(input_files, tmp_path):
    dataset = load_dataset(**input_files, taxonomy_column="Taxon")
    config = TreePlotConfig(
        ladderize=Ladderize.LEFT,
        justify=Justify.JUSTIFIED,
        color="site",
        shape="Phylum",
        tooltip="Lowest",
        label_tips="Lowest",
    )

    result = plot_tree_html(dataset, tmp_path / "out.html", config, static_output=tmp_path / "out.png")

    assert result.html_path.exists()
    assert result.static_path.exists()
    assert len(result.static.primitives.points) == 6
    assert "Gammaproteobacteria" in result.html_path.read_text(encoding="utf-8")


def test_plot_tree_html_rejects_unknown_field_without_writing(input_files, tmp_path):
    dataset = load_dataset(**input_files, taxonomy_column="Taxon")
    output = tmp_path / "out.html"

    with pytest.raises(EncodingFieldNotFound):
        plot_tree_html(dataset, output, TreePlotConfig(tooltip="Genus_name"))

    assert not output.exists()
