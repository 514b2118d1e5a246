"""Shared value -> visual channel helpers for the renderers."""

import numbers
from typing import Any, Dict, List, Sequence


def is_numeric(values: Sequence[Any]) -> bool:
    """True if every non-missing value is a real number (bools excluded)."""
    present = [v for v in values if v is not None]
    return bool(present) and all(
        isinstance(v, numbers.Real) and not isinstance(v, bool) for v in present
    )


def category_label(value: Any) -> str:
    return "NA" if value is None else str(value)


def categories(values: Sequence[Any]) -> List[str]:
    """Distinct category labels in order of first appearance."""
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(category_label(v), None)
    return list(seen)


def scale_sizes(values: Sequence[Any], base: float) -> List[float]:
    """
    Map numeric values linearly onto [0.5 * base, 2 * base].

    Non-numeric fields get one size per category step; missing values get `base`.
    """
    if not values:
        return []
    if not is_numeric(values):
        levels = categories(values)
        step = 1.5 * base / max(len(levels) - 1, 1)
        return [0.5 * base + step * levels.index(category_label(v)) for v in values]
    present = [float(v) for v in values if v is not None]
    low, high = min(present), max(present)
    if high == low:
        return [base] * len(values)
    return [
        base if v is None else 0.5 * base + 1.5 * base * (float(v) - low) / (high - low)
        for v in values
    ]
