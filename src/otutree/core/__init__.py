"""Core data structures: trees, tables, configuration, layout and dodging."""

from otutree.core.errors import (
    OtuTreeError,
    SchemaMismatch,
    MissingTree,
    EncodingFieldNotFound,
    DegenerateTree,
    ZeroLengthBranch,
)
from otutree.core.trees import TreeStructure, TreeNode, load_tree
from otutree.core.loaders import (
    load_abundance_table,
    load_taxonomy_table,
    load_sample_metadata,
)
from otutree.core.taxonomy import (
    split_taxonomy,
    lowest_known_rank,
    add_lowest_rank_column,
)
from otutree.core.data import FieldRoles, MicrobiomeDataset, assemble_dataset
from otutree.core.config import (
    PlotMode,
    Ladderize,
    Justify,
    TreePlotConfig,
    validate_encoding_fields,
)
from otutree.core.layout import TreeLayout, compute_layout, ladderize_order
from otutree.core.dodge import compute_dodge_points

__all__ = [
    "OtuTreeError",
    "SchemaMismatch",
    "MissingTree",
    "EncodingFieldNotFound",
    "DegenerateTree",
    "ZeroLengthBranch",
    "TreeStructure",
    "TreeNode",
    "load_tree",
    "load_abundance_table",
    "load_taxonomy_table",
    "load_sample_metadata",
    "split_taxonomy",
    "lowest_known_rank",
    "add_lowest_rank_column",
    "FieldRoles",
    "MicrobiomeDataset",
    "assemble_dataset",
    "PlotMode",
    "Ladderize",
    "Justify",
    "TreePlotConfig",
    "validate_encoding_fields",
    "TreeLayout",
    "compute_layout",
    "ladderize_order",
    "compute_dodge_points",
]
