"""Structural value comparison."""

from vouch.comparison.diff import DiffKind, DiffNode, DiffResult, diff
from vouch.comparison.equality import MAX_DEPTH, detect_circular, equal
from vouch.comparison.formatting import format_path, pretty_format
from vouch.comparison.types import TypeTag, type_of

__all__ = [
    "MAX_DEPTH",
    "DiffKind",
    "DiffNode",
    "DiffResult",
    "TypeTag",
    "detect_circular",
    "diff",
    "equal",
    "format_path",
    "pretty_format",
    "type_of",
]
