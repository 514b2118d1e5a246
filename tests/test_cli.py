from typer.testing import CliRunner

from otutree import __version__
from otutree.cli import app

runner = CliRunner()


def _plot_args(files, output):
    return [
        "plot",
        str(files["abundance"]),
        "--tree", str(files["tree"]),
        "--taxonomy", str(files["taxonomy"]),
        "--taxonomy-column", "Taxon",
        "--metadata", str(files["metadata"]),
        "--output", str(output),
    ]


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_plot(input_files, tmp_path):
    output = tmp_path / "tree.html"
    args = _plot_args(input_files, output) + [
        "--color", "site",
        "--tooltip", "Phylum",
        "--ladderize", "right",
        "--label-tips", "OTU",
        "--min-abundance", "3",
    ]

    result = runner.invoke(app, args)

    assert result.exit_code == 0, result.output
    assert "Wrote" in result.output
    assert output.exists()


def test_plot_tree_only_with_static(input_files, tmp_path):
    output = tmp_path / "tree.html"
    static = tmp_path / "tree.png"

    result = runner.invoke(app, _plot_args(input_files, output) + ["--tree-only", "--static", str(static)])

    assert result.exit_code == 0, result.output
    assert output.exists()
    assert static.exists()


def test_plot_unknown_field(input_files, tmp_path):
    output = tmp_path / "tree.html"

    result = runner.invoke(app, _plot_args(input_files, output) + ["--color", "nonexistent"])

    assert result.exit_code == 1
    assert "not found" in result.output
    assert not output.exists()


def test_plot_requires_tree(input_files, tmp_path):
    result = runner.invoke(app, ["plot", str(input_files["abundance"])])

    assert result.exit_code != 0


def test_summary(input_files):
    result = runner.invoke(app, ["summary", str(input_files["abundance"]), "--tree", str(input_files["tree"])])

    assert result.exit_code == 0, result.output
    assert "Taxa" in result.output
    assert "4 tips" in result.output
