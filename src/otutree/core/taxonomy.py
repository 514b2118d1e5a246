"""
Taxonomy label helpers.

Lineage strings arrive in several flavours ("Bacteria;Proteobacteria;NA",
"k__Bacteria; p__Firmicutes; g__", SILVA "d__Bacteria;p__..."). These
helpers normalise them to one value per rank and pick the most specific
known rank for labelling.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

DEFAULT_RANKS = ["Kingdom", "Phylum", "Class", "Order", "Family", "Genus", "Species"]

PLACEHOLDERS = {"", "na", "nan", "none", "null", "unclassified", "unknown", "unassigned"}

# Greengenes / SILVA rank prefixes: k__, p__, d__, ...
_RANK_PREFIX = re.compile(r"^[a-z]__")


def normalize_rank_value(value) -> Optional[str]:
    """Strip rank prefixes and map placeholder values to None."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    text = _RANK_PREFIX.sub("", str(value).strip()).strip()
    if text.lower() in PLACEHOLDERS:
        return None
    return text


def split_taxonomy(
    lineage,
    ranks: Sequence[str] = DEFAULT_RANKS,
    sep: str = ";",
) -> Dict[str, Optional[str]]:
    """
    Split a delimited lineage string into one value per rank.

    Missing trailing ranks are padded with None; extra levels beyond
    `ranks` are dropped.

    Example:
        >>> split_taxonomy("Bacteria;Proteobacteria;NA", ["Kingdom", "Phylum", "Class"])
        {'Kingdom': 'Bacteria', 'Phylum': 'Proteobacteria', 'Class': None}
    """
    if lineage is None or (isinstance(lineage, float) and pd.isna(lineage)):
        parts: List[str] = []
    else:
        parts = str(lineage).split(sep)
    values = [normalize_rank_value(p) for p in parts[:len(ranks)]]
    values += [None] * (len(ranks) - len(values))
    return dict(zip(ranks, values))


def strip_trailing_unknown(values: Iterable) -> List[Optional[str]]:
    """Normalise values and drop unknown ranks from the right-hand end."""
    normalized = [normalize_rank_value(v) for v in values]
    while normalized and normalized[-1] is None:
        normalized.pop()
    return normalized


def lowest_known_rank(values) -> Optional[str]:
    """
    Most specific (rightmost) known classification.

    Accepts either a lineage string or a sequence of rank values.

    Example:
        >>> lowest_known_rank("Bacteria;Proteobacteria;NA;NA;NA;NA")
        'Proteobacteria'
    """
    if isinstance(values, str):
        values = values.split(";")
    known = strip_trailing_unknown(values)
    return known[-1] if known else None


def add_lowest_rank_column(
    taxonomy: pd.DataFrame,
    column: str = "Lowest",
    ranks: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Return a copy of `taxonomy` with the lowest known rank per taxon added.

    Args:
        taxonomy: Taxa x ranks table
        column: Name of the new column
        ranks: Rank columns to consider, most general first (default: all)
    """
    if column in taxonomy.columns:
        raise ValueError(f"Column {column!r} already exists in taxonomy table")
    ranks = list(ranks) if ranks is not None else list(taxonomy.columns)
    result = taxonomy.copy()
    result[column] = [
        lowest_known_rank(row) for row in taxonomy[ranks].itertuples(index=False, name=None)
    ]
    return result
