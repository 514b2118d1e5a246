"""Command-line interface."""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from otutree.core.config import Justify, Ladderize, PlotMode, TreePlotConfig
from otutree.core.errors import OtuTreeError

app = typer.Typer(help="otutree: phylogenetic tree plots annotated with sample abundances")
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def version():
    """Show otutree version."""
    from otutree import __version__
    console.print(f"otutree version {__version__}")


@app.command()
def plot(
    abundance: Path = typer.Argument(..., exists=True, dir_okay=False, help="Abundance table (taxa x samples)"),
    tree: Path = typer.Option(..., "--tree", "-t", exists=True, dir_okay=False, help="Newick tree file"),
    output: Path = typer.Option(Path("tree.html"), "--output", "-o", help="HTML output path"),
    taxonomy: Optional[Path] = typer.Option(None, "--taxonomy", exists=True, dir_okay=False, help="Taxonomy table"),
    metadata: Optional[Path] = typer.Option(None, "--metadata", exists=True, dir_okay=False, help="Sample metadata table"),
    taxonomy_column: Optional[str] = typer.Option(None, help="Lineage column to split into ranks"),
    ranks: Optional[List[str]] = typer.Option(None, "--rank", help="Rank names for a split lineage (repeatable)"),
    ladderize: Ladderize = typer.Option(Ladderize.OFF, help="Reorder siblings by clade size"),
    justify: Justify = typer.Option(Justify.JAGGED, help="Dodge alignment"),
    color: Optional[str] = typer.Option(None, help="Field mapped to point color"),
    shape: Optional[str] = typer.Option(None, help="Field mapped to point shape"),
    size: Optional[str] = typer.Option(None, help="Field mapped to point size"),
    tooltip: Optional[str] = typer.Option(None, help="Field shown on hover"),
    label_tips: Optional[str] = typer.Option(None, help="Field used to label tips"),
    node_labels: bool = typer.Option(False, help="Show internal node labels"),
    min_abundance: float = typer.Option(float("inf"), help="Label points with abundance >= this"),
    base_spacing: float = typer.Option(0.02, help="Dodge spacing (fraction of tree width)"),
    tree_only: bool = typer.Option(False, "--tree-only", help="Draw the tree without abundance points"),
    static: Optional[Path] = typer.Option(None, help="Also save a static image (.png/.svg/.pdf)"),
    title: Optional[str] = typer.Option(None, help="Plot title"),
):
    """Render an abundance-annotated tree as interactive HTML."""
    from otutree.pipeline import load_dataset, plot_tree_html

    try:
        dataset = load_dataset(
            abundance,
            taxonomy=taxonomy,
            metadata=metadata,
            tree=tree,
            ranks=ranks or None,
            taxonomy_column=taxonomy_column,
        )
        config = TreePlotConfig(
            mode=PlotMode.LAYOUT_ONLY if tree_only else PlotMode.LAYOUT_WITH_ABUNDANCE,
            ladderize=ladderize,
            color=color,
            shape=shape,
            size=size,
            tooltip=tooltip,
            label_tips=label_tips,
            node_labels=node_labels,
            min_abundance=min_abundance,
            justify=justify,
            base_spacing=base_spacing,
            title=title,
        )
        result = plot_tree_html(dataset, output, config, static_output=static)
    except (OtuTreeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Wrote[/green] {result.html_path}")
    if result.static_path is not None:
        console.print(f"[green]Wrote[/green] {result.static_path}")


@app.command()
def summary(
    abundance: Path = typer.Argument(..., exists=True, dir_okay=False, help="Abundance table (taxa x samples)"),
    tree: Optional[Path] = typer.Option(None, "--tree", "-t", exists=True, dir_okay=False, help="Newick tree file"),
    taxonomy: Optional[Path] = typer.Option(None, "--taxonomy", exists=True, dir_okay=False, help="Taxonomy table"),
    metadata: Optional[Path] = typer.Option(None, "--metadata", exists=True, dir_okay=False, help="Sample metadata table"),
    taxonomy_column: Optional[str] = typer.Option(None, help="Lineage column to split into ranks"),
):
    """Check that inputs assemble and describe them."""
    from otutree.pipeline import load_dataset

    try:
        dataset = load_dataset(
            abundance,
            taxonomy=taxonomy,
            metadata=metadata,
            tree=tree,
            taxonomy_column=taxonomy_column,
        )
    except (OtuTreeError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Dataset")
    table.add_column("Component", style="cyan")
    table.add_column("Summary", style="green")

    nonzero = int((dataset.abundance.values > 0).sum())
    table.add_row("Taxa", str(dataset.n_taxa))
    table.add_row("Samples", str(dataset.n_samples))
    table.add_row("Nonzero observations", str(nonzero))
    if dataset.taxonomy is not None:
        table.add_row("Taxonomy fields", ", ".join(dataset.taxonomy.columns))
    if dataset.metadata is not None:
        table.add_row("Metadata fields", ", ".join(dataset.metadata.columns))
    if dataset.tree is not None:
        table.add_row("Tree", f"{dataset.tree.n_tips} tips, {dataset.tree.n_nodes} nodes")
    else:
        table.add_row("Tree", "[yellow]none[/yellow]")

    console.print(table)


if __name__ == "__main__":
    app()
