"""End-to-end pipeline: input files -> interactive HTML tree plot."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import plotly.graph_objects as go

from otutree.core.config import TreePlotConfig, validate_encoding_fields
from otutree.core.data import FieldRoles, MicrobiomeDataset, assemble_dataset
from otutree.core.loaders import (
    load_abundance_table,
    load_sample_metadata,
    load_taxonomy_table,
)
from otutree.core.taxonomy import add_lowest_rank_column
from otutree.core.trees import load_tree
from otutree.plotting.interactive import save_html, to_interactive
from otutree.plotting.primitives import build_tree_plot
from otutree.plotting.static import StaticPlot, render_static

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class PipelineResult:
    """Artifacts produced by `plot_tree_html`."""
    dataset: MicrobiomeDataset
    static: StaticPlot
    figure: go.Figure
    html_path: Path
    static_path: Optional[Path] = None


def load_dataset(
    abundance: PathLike,
    taxonomy: Optional[PathLike] = None,
    metadata: Optional[PathLike] = None,
    tree: Optional[PathLike] = None,
    *,
    ranks: Optional[Sequence[str]] = None,
    taxonomy_column: Optional[str] = None,
    lowest_rank_column: Optional[str] = "Lowest",
    tree_backend: str = "simple",
    roles: Optional[FieldRoles] = None,
) -> MicrobiomeDataset:
    """
    Load and assemble the four inputs.

    Args:
        abundance: Abundance table (taxa x samples)
        taxonomy: Taxonomy table (taxa x ranks, or a lineage column)
        metadata: Sample metadata table
        tree: Newick tree file
        ranks: Rank names (see load_taxonomy_table)
        taxonomy_column: Lineage string column to split into ranks
        lowest_rank_column: Name of the added lowest-known-rank column (None to skip)
        tree_backend: Newick parser backend
        roles: Column names for taxon/sample/abundance roles
    """
    logger.info(f"Loading abundance table from {abundance}")
    abundance_df = load_abundance_table(abundance)

    taxonomy_df = None
    if taxonomy is not None:
        logger.info(f"Loading taxonomy from {taxonomy}")
        taxonomy_df = load_taxonomy_table(taxonomy, ranks=ranks, taxonomy_column=taxonomy_column)
        if lowest_rank_column is not None:
            taxonomy_df = add_lowest_rank_column(taxonomy_df, column=lowest_rank_column)

    metadata_df = None
    if metadata is not None:
        logger.info(f"Loading sample metadata from {metadata}")
        metadata_df = load_sample_metadata(metadata)

    tree_obj = None
    if tree is not None:
        logger.info(f"Loading tree from {tree}")
        tree_obj = load_tree(tree, backend=tree_backend)

    return assemble_dataset(abundance_df, taxonomy_df, metadata_df, tree_obj, roles=roles)


def plot_tree_html(
    dataset: MicrobiomeDataset,
    output: PathLike,
    config: Optional[TreePlotConfig] = None,
    *,
    static_output: Optional[PathLike] = None,
) -> PipelineResult:
    """
    Render `dataset` as a tree plot and write it as standalone HTML.

    Encoding fields are validated before any layout work.

    Args:
        dataset: Assembled dataset with a tree
        output: HTML output path
        config: Plot options
        static_output: Optional path for a static image of the same plot
    """
    config = config or TreePlotConfig()
    validate_encoding_fields(config, dataset)

    primitives = build_tree_plot(dataset, config)
    static = render_static(primitives)
    static_path = static.save(static_output) if static_output is not None else None

    figure = to_interactive(static, tooltip=config.tooltip)
    html_path = save_html(figure, output)

    return PipelineResult(
        dataset=dataset,
        static=static,
        figure=figure,
        html_path=html_path,
        static_path=static_path,
    )
