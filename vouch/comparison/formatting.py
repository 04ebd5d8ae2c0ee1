"""Deterministic, indentation-stable rendering of values."""

from collections.abc import Sequence
from typing import Any

from vouch.comparison.types import TypeTag, members, type_of

INDENT = "  "

# Rendering depth guard, deeper levels are elided
MAX_RENDER_DEPTH = 100

_BRACKETS = {
    TypeTag.ARRAY: ("[", "]"),
    TypeTag.TUPLE: ("(", ")"),
    TypeTag.SET: ("{", "}"),
    TypeTag.MAP: ("{", "}"),
    TypeTag.OBJECT: ("{", "}"),
}


def pretty_format(value: Any, depth: int = 0) -> str:
    """Render a value as text, tagging every container with its kind.

    ``depth`` is the indentation level of the line the value starts on;
    nested lines are indented one level deeper. Self-containing values are
    rendered with a ``[Circular]`` placeholder instead of recursing.
    """
    return _format(value, depth, frozenset())


def container_name(value: Any) -> str:
    """Kind label used in front of a container's brackets."""
    match type_of(value):
        case TypeTag.ARRAY if type(value) is list:
            return "List"
        case TypeTag.TUPLE if type(value) is tuple:
            return "Tuple"
        case TypeTag.SET if type(value) is set:
            return "Set"
        case TypeTag.SET if type(value) is frozenset:
            return "FrozenSet"
        case TypeTag.MAP if type(value) is dict:
            return "Dict"
        case _:
            return type(value).__name__


def brackets(value: Any) -> tuple[str, str]:
    return _BRACKETS[type_of(value)]


def format_key(key: Any) -> str:
    """Render a mapping key or attribute name."""
    if isinstance(key, str):
        return key if key.isidentifier() else repr(key)
    return f"[{pretty_format(key)}]"


def format_path(path: Sequence[str | int]) -> str:
    """Render a structural path such as ``a.b[0]['odd key']``."""
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif segment.isidentifier():
            parts.append(f".{segment}" if parts else segment)
        else:
            parts.append(f"[{segment!r}]")
    return "".join(parts)


def block(header: str, close: str, entries: Sequence[str], depth: int) -> str:
    """Join pre-rendered entries into an indented container block."""
    if not entries:
        return f"{header}{close}"
    pad = INDENT * (depth + 1)
    body = ",\n".join(f"{pad}{entry}" for entry in entries)
    return f"{header}\n{body}\n{INDENT * depth}{close}"


def _format(value: Any, depth: int, ancestors: frozenset[int]) -> str:
    tag = type_of(value)

    match tag:
        case TypeTag.DATE:
            return f"{type(value).__name__}({value.isoformat()})"
        case TypeTag.PATTERN:
            return f"Pattern({value.pattern!r}, flags={value.flags})"
        case TypeTag.ARRAY | TypeTag.TUPLE | TypeTag.SET | TypeTag.MAP | TypeTag.OBJECT:
            pass
        case _:
            return repr(value)

    if id(value) in ancestors:
        return "[Circular]"
    if depth > MAX_RENDER_DEPTH:
        return "..."

    inner = ancestors | {id(value)}
    opening, closing = _BRACKETS[tag]
    header = f"{container_name(value)} {opening}"

    match tag:
        case TypeTag.ARRAY | TypeTag.TUPLE:
            entries = [_format(item, depth + 1, inner) for item in value]
        case TypeTag.SET:
            entries = sorted(_format(item, depth + 1, inner) for item in value)
        case TypeTag.MAP:
            entries = [
                f"{format_key(key)}: {_format(item, depth + 1, inner)}"
                for key, item in value.items()
            ]
        case _:
            entries = [
                f"{name}: {_format(item, depth + 1, inner)}"
                for name, item in members(value).items()
            ]

    return block(header, closing, entries, depth)
