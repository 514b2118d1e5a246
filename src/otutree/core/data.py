"""Composite microbiome dataset: abundance, taxonomy, sample metadata and tree."""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from otutree.core.errors import MissingTree, SchemaMismatch
from otutree.core.trees import TreeStructure

logger = logging.getLogger(__name__)

# Columns the dodge stage adds to the melted table
DERIVED_COLUMNS = ("xleft", "xright", "y", "index", "x", "abundance_label")


@dataclass(frozen=True)
class FieldRoles:
    """
    Column names used for the three logical roles in melted output.

    Attributes:
        taxon: Column holding the taxon identifier
        sample: Column holding the sample identifier
        abundance: Column holding the abundance value
    """

    taxon: str = "OTU"
    sample: str = "Sample"
    abundance: str = "Abundance"

    def __post_init__(self):
        names = [self.taxon, self.sample, self.abundance]
        if len(set(names)) != len(names):
            raise ValueError(f"Field role names must be distinct: {names}")
        reserved = sorted(set(names) & set(DERIVED_COLUMNS))
        if reserved:
            raise ValueError(f"Field role names are reserved for plot coordinates: {reserved}")

    def names(self) -> List[str]:
        return [self.taxon, self.sample, self.abundance]


@dataclass(frozen=True, eq=False)
class MicrobiomeDataset:
    """
    Validated composite of the four input structures.

    Build with `assemble_dataset`, which checks identifier consistency.

    Attributes:
        abundance: Taxa x samples abundance matrix
        taxonomy: Taxa x ranks table (optional)
        metadata: Samples x attributes table (optional)
        tree: Rooted tree over taxa (optional until layout)
        roles: Column names for taxon/sample/abundance roles
    """

    abundance: pd.DataFrame
    taxonomy: Optional[pd.DataFrame] = None
    metadata: Optional[pd.DataFrame] = None
    tree: Optional[TreeStructure] = None
    roles: FieldRoles = FieldRoles()

    @property
    def taxa_names(self) -> List[str]:
        return list(self.abundance.index)

    @property
    def sample_names(self) -> List[str]:
        return list(self.abundance.columns)

    @property
    def n_taxa(self) -> int:
        return self.abundance.shape[0]

    @property
    def n_samples(self) -> int:
        return self.abundance.shape[1]

    def require_tree(self) -> TreeStructure:
        """Return the attached tree or raise MissingTree."""
        if self.tree is None:
            raise MissingTree("No phylogenetic tree is attached to the dataset")
        return self.tree

    def columns(self) -> List[str]:
        """All field names available for encodings, in melt() column order."""
        fields = self.roles.names()
        if self.taxonomy is not None:
            fields += list(self.taxonomy.columns)
        if self.metadata is not None:
            fields += list(self.metadata.columns)
        return fields

    def melt(self) -> pd.DataFrame:
        """
        Long-format table: one row per (taxon, sample) pair.

        Taxonomy columns are joined by taxon, metadata columns by sample.
        Rows are ordered by taxon (abundance table order) then sample.
        """
        roles = self.roles
        wide = self.abundance.rename_axis(roles.taxon).reset_index()
        long = wide.melt(
            id_vars=roles.taxon, var_name=roles.sample, value_name=roles.abundance
        )
        taxon_order = {t: i for i, t in enumerate(self.abundance.index)}
        sample_order = {s: i for i, s in enumerate(self.abundance.columns)}
        order = np.lexsort((
            long[roles.sample].map(sample_order).to_numpy(),
            long[roles.taxon].map(taxon_order).to_numpy(),
        ))
        long = long.iloc[order]

        if self.taxonomy is not None:
            long = long.merge(
                self.taxonomy, left_on=roles.taxon, right_index=True, how="left"
            )
        if self.metadata is not None:
            long = long.merge(
                self.metadata, left_on=roles.sample, right_index=True, how="left"
            )
        return long.reset_index(drop=True)

    def __repr__(self) -> str:
        tree = repr(self.tree) if self.tree is not None else "no tree"
        return f"MicrobiomeDataset({self.n_taxa} taxa, {self.n_samples} samples, {tree})"


def _check_equal(expected, actual, what: str):
    missing = set(expected) - set(actual)
    extra = set(actual) - set(expected)
    if missing or extra:
        raise SchemaMismatch(
            f"{what} (missing {len(missing)}, unexpected {len(extra)})",
            missing | extra,
        )


def assemble_dataset(
    abundance: pd.DataFrame,
    taxonomy: Optional[pd.DataFrame] = None,
    metadata: Optional[pd.DataFrame] = None,
    tree: Optional[TreeStructure] = None,
    roles: Optional[FieldRoles] = None,
) -> MicrobiomeDataset:
    """
    Bind independently-parsed tables and tree into one validated dataset.

    Constraints (each violation raises SchemaMismatch with the offending IDs):
    - abundance rows are a subset of the tree's tip names
    - taxonomy rows equal the tree's tip names (or, without a tree,
      cover every abundance row)
    - metadata rows equal the abundance columns
    - role names, taxonomy columns and metadata columns do not collide
    - taxonomy and metadata columns avoid DERIVED_COLUMNS

    Returns:
        MicrobiomeDataset
    """
    roles = roles or FieldRoles()

    abundance = abundance.copy()
    abundance.index = abundance.index.astype(str)
    abundance.columns = [str(c) for c in abundance.columns]

    if tree is not None:
        tips = set(tree.tip_names)
        unknown = set(abundance.index) - tips
        if unknown:
            raise SchemaMismatch("Abundance taxa not present in tree", unknown)

    if taxonomy is not None:
        taxonomy = taxonomy.copy()
        taxonomy.index = taxonomy.index.astype(str)
        if tree is not None:
            _check_equal(tree.tip_names, taxonomy.index, "Taxonomy rows do not match tree tips")
        else:
            uncovered = set(abundance.index) - set(taxonomy.index)
            if uncovered:
                raise SchemaMismatch("Abundance taxa without taxonomy", uncovered)
        # Only rows for taxa present in the abundance table are joined
        present = set(abundance.index)
        taxonomy = taxonomy.loc[[t for t in taxonomy.index if t in present]]

    if metadata is not None:
        metadata = metadata.copy()
        metadata.index = metadata.index.astype(str)
        _check_equal(abundance.columns, metadata.index, "Metadata rows do not match abundance samples")
        metadata = metadata.loc[list(abundance.columns)]

    reserved = set(roles.names())
    tax_cols = set(taxonomy.columns) if taxonomy is not None else set()
    meta_cols = set(metadata.columns) if metadata is not None else set()
    derived = set(DERIVED_COLUMNS) & (tax_cols | meta_cols)
    if derived:
        raise SchemaMismatch("Column names are reserved for plot coordinates; rename them", derived)
    collisions = (reserved & tax_cols) | (reserved & meta_cols) | (tax_cols & meta_cols)
    if collisions:
        raise SchemaMismatch("Column names collide between tables", collisions)

    dataset = MicrobiomeDataset(
        abundance=abundance,
        taxonomy=taxonomy,
        metadata=metadata,
        tree=tree,
        roles=roles,
    )
    logger.info(f"Assembled {dataset!r}")
    return dataset
