"""
Table loaders for abundance, taxonomy and sample metadata files.

All tables are row-indexed by their first column. Format is chosen by
file suffix: .csv (comma) or .tsv/.txt (tab).
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from otutree.core.taxonomy import DEFAULT_RANKS, normalize_rank_value, split_taxonomy

logger = logging.getLogger(__name__)


def read_table(path: Union[str, Path], **kwargs) -> pd.DataFrame:
    """Read a row-indexed delimited table, choosing the separator by suffix."""
    path = Path(path)
    if path.suffix == '.csv':
        df = pd.read_csv(path, index_col=0, **kwargs)
    elif path.suffix in ['.tsv', '.txt']:
        df = pd.read_csv(path, sep='\t', index_col=0, **kwargs)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")
    df.index = df.index.astype(str)
    df.columns = [str(c) for c in df.columns]
    if df.index.has_duplicates:
        dupes = sorted(set(df.index[df.index.duplicated()]))
        raise ValueError(f"Duplicate row identifiers in {path.name}: {', '.join(dupes)}")
    return df


def load_abundance_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load an abundance table (taxa as rows, samples as columns).

    Empty cells are read as zero abundance.

    Returns:
        DataFrame of floats indexed by taxon ID, columns are sample IDs
    """
    df = read_table(path)
    for column in df.columns:
        converted = pd.to_numeric(df[column], errors='coerce')
        bad = converted.isna() & df[column].notna()
        if bad.any():
            raise ValueError(
                f"Non-numeric abundance in sample {column!r} "
                f"for taxa: {', '.join(df.index[bad][:5])}"
            )
        df[column] = converted
    df = df.fillna(0.0).astype(float)

    if (df.values < 0).any():
        rows, cols = np.nonzero(df.values < 0)
        raise ValueError(
            f"Negative abundance {df.iat[rows[0], cols[0]]} "
            f"for ({df.index[rows[0]]}, {df.columns[cols[0]]})"
        )

    logger.debug(f"Loaded abundance table: {df.shape[0]} taxa x {df.shape[1]} samples")
    return df


def load_taxonomy_table(
    path: Union[str, Path],
    ranks: Optional[Sequence[str]] = None,
    taxonomy_column: Optional[str] = None,
    sep: str = ";",
) -> pd.DataFrame:
    """
    Load a taxonomy table (taxa as rows, ranks as columns).

    Supports:
    - One column per rank (Kingdom, Phylum, ...)
    - A single lineage column ("Bacteria;Proteobacteria;...") split into `ranks`

    Args:
        path: Path to taxonomy file
        ranks: Rank names for a split lineage column (default: Kingdom..Species)
        taxonomy_column: Column holding the delimited lineage string
        sep: Lineage delimiter

    Returns:
        DataFrame of strings/None indexed by taxon ID
    """
    df = read_table(path, dtype=str, keep_default_na=False)

    if taxonomy_column is not None:
        if taxonomy_column not in df.columns:
            raise ValueError(
                f"Taxonomy column {taxonomy_column!r} not found in {Path(path).name}"
            )
        ranks = list(ranks) if ranks is not None else list(DEFAULT_RANKS)
        rows = [split_taxonomy(v, ranks, sep=sep) for v in df[taxonomy_column]]
        result = pd.DataFrame(rows, index=df.index, columns=ranks)
    else:
        result = df.apply(lambda col: col.map(normalize_rank_value))
        if ranks is not None:
            missing = [r for r in ranks if r not in result.columns]
            if missing:
                raise ValueError(f"Rank columns not found: {', '.join(missing)}")
            result = result[list(ranks)]

    result = result.astype(object).where(result.notna(), None)
    logger.debug(f"Loaded taxonomy table: {result.shape[0]} taxa x {result.shape[1]} ranks")
    return result


def load_sample_metadata(path: Union[str, Path]) -> pd.DataFrame:
    """Load sample metadata (samples as rows, arbitrary attribute columns)."""
    df = read_table(path)
    logger.debug(f"Loaded sample metadata: {df.shape[0]} samples x {df.shape[1]} fields")
    return df
