"""
otutree: phylogenetic tree plots annotated with microbiome abundances.

Loads an abundance table, taxonomy, sample metadata and a Newick tree,
lays the tree out, dodges one point per nonzero (taxon, sample) beside
each tip and exports the plot as interactive HTML.
"""

__version__ = "0.1.0"

from otutree.core.config import Justify, Ladderize, PlotMode, TreePlotConfig
from otutree.core.data import FieldRoles, MicrobiomeDataset, assemble_dataset
from otutree.core.errors import (
    DegenerateTree,
    EncodingFieldNotFound,
    MissingTree,
    OtuTreeError,
    SchemaMismatch,
)
from otutree.core.layout import TreeLayout, compute_layout
from otutree.core.dodge import compute_dodge_points
from otutree.core.trees import TreeStructure, load_tree
from otutree.plotting.primitives import PlotPrimitives, build_tree_plot
from otutree.plotting.static import StaticPlot, render_static
from otutree.plotting.interactive import save_html, to_interactive
from otutree.pipeline import load_dataset, plot_tree_html

__all__ = [
    "Justify",
    "Ladderize",
    "PlotMode",
    "TreePlotConfig",
    "FieldRoles",
    "MicrobiomeDataset",
    "assemble_dataset",
    "DegenerateTree",
    "EncodingFieldNotFound",
    "MissingTree",
    "OtuTreeError",
    "SchemaMismatch",
    "TreeLayout",
    "compute_layout",
    "compute_dodge_points",
    "TreeStructure",
    "load_tree",
    "PlotPrimitives",
    "build_tree_plot",
    "StaticPlot",
    "render_static",
    "save_html",
    "to_interactive",
    "load_dataset",
    "plot_tree_html",
    "__version__",
]
