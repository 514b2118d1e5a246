"""Exceptions and warnings raised by otutree."""

from typing import Iterable, Optional


class OtuTreeError(Exception):
    """Base class for otutree errors."""


class SchemaMismatch(OtuTreeError, ValueError):
    """
    Input tables reference inconsistent identifier sets.

    Attributes:
        identifiers: The offending identifiers (sorted)
    """

    def __init__(self, message: str, identifiers: Optional[Iterable] = None):
        self.identifiers = sorted(str(i) for i in identifiers) if identifiers is not None else []
        if self.identifiers:
            shown = ", ".join(self.identifiers[:10])
            if len(self.identifiers) > 10:
                shown += f", ... ({len(self.identifiers)} total)"
            message = f"{message}: {shown}"
        super().__init__(message)


class MissingTree(OtuTreeError):
    """No phylogenetic tree is attached to the dataset."""


class EncodingFieldNotFound(OtuTreeError, LookupError):
    """
    A configured encoding field does not exist in any joined table.

    Attributes:
        field: The missing field name
        option: The configuration option that named it (color, shape, ...)
    """

    def __init__(self, field: str, option: str, available: Iterable[str] = ()):
        self.field = field
        self.option = option
        self.available = sorted(available)
        super().__init__(
            f"{option} field {field!r} not found. "
            f"Available fields: {', '.join(self.available) or '(none)'}"
        )

    def __str__(self) -> str:
        return self.args[0]


class DegenerateTree(UserWarning):
    """Tree has no edges to draw; an empty layout is produced."""


class ZeroLengthBranch(UserWarning):
    """Zero or missing branch lengths were replaced by the minimal unit."""
