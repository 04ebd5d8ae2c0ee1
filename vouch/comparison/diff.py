"""Structural difference computation and rendering."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from vouch.comparison.equality import (
    MAX_DEPTH,
    ensure_acyclic,
    scalars_equal,
    unmatched,
    values_equal,
)
from vouch.comparison.formatting import (
    INDENT,
    brackets,
    container_name,
    format_key,
    format_path,
    pretty_format,
)
from vouch.comparison.types import COMPOSITE_TAGS, TypeTag, members, type_of
from vouch.errors import MaxDepthError

type Segment = str | int
type Path = tuple[Segment, ...]


class DiffKind(StrEnum):
    """Kind of a single difference."""

    NEW = "N"
    DELETED = "D"
    EDITED = "E"
    ARRAY = "A"


@dataclass(frozen=True, kw_only=True)
class DiffNode:
    """One difference between two values, addressed by its path.

    ``ARRAY`` nodes describe an index added to or removed from a sequence;
    the change itself is the nested ``item``.
    """

    kind: DiffKind
    path: Path
    lhs: Any = None
    rhs: Any = None
    index: int | None = None
    item: "DiffNode | None" = None

    @property
    def location(self) -> str:
        return format_path(self.path)


@dataclass(frozen=True, kw_only=True)
class DiffResult:
    """Outcome of comparing two values."""

    has_differences: bool
    structural_diffs: Sequence[DiffNode]
    formatted: str


def diff(lhs: Any, rhs: Any, *, max_depth: int = MAX_DEPTH) -> DiffResult:
    """Compute every difference between ``lhs`` and ``rhs``.

    Lines prefixed ``-`` show ``lhs``, lines prefixed ``+`` show ``rhs``.

    Raises:
        CircularReferenceError: If either value contains itself
        MaxDepthError: If nesting goes beyond ``max_depth``

    """
    ensure_acyclic(lhs, rhs)

    nodes: list[DiffNode] = []
    _collect(lhs, rhs, (), 0, max_depth, nodes)
    formatted = _render(lhs, rhs, 0, max_depth) if nodes else ""

    return DiffResult(
        has_differences=bool(nodes),
        structural_diffs=tuple(nodes),
        formatted=formatted,
    )


def _check_depth(depth: int, max_depth: int) -> None:
    if depth > max_depth:
        raise MaxDepthError(f"Maximum diff depth of {max_depth} exceeded")


def _segment(key: Any) -> Segment:
    return key if type(key) in (str, int) else format_key(key)


def _same_kind(lhs: Any, rhs: Any) -> bool:
    tag = type_of(lhs)
    if tag is not type_of(rhs):
        return False
    return tag is not TypeTag.OBJECT or type(lhs) is type(rhs)


def _collect(
    lhs: Any, rhs: Any, path: Path, depth: int, max_depth: int, out: list[DiffNode]
) -> None:
    if lhs is rhs:
        return
    _check_depth(depth, max_depth)

    if not _same_kind(lhs, rhs):
        out.append(DiffNode(kind=DiffKind.EDITED, path=path, lhs=lhs, rhs=rhs))
        return

    match type_of(lhs):
        case TypeTag.ARRAY | TypeTag.TUPLE:
            _collect_sequence(lhs, rhs, path, depth, max_depth, out)
        case TypeTag.MAP:
            _collect_mapping(lhs, rhs, path, depth, max_depth, out)
        case TypeTag.OBJECT:
            _collect_mapping(members(lhs), members(rhs), path, depth, max_depth, out)
        case TypeTag.SET:
            missing, extra = unmatched(lhs, rhs, depth, max_depth)
            for item in missing:
                out.append(
                    DiffNode(
                        kind=DiffKind.DELETED,
                        path=(*path, pretty_format(item)),
                        lhs=item,
                    )
                )
            for item in extra:
                out.append(
                    DiffNode(
                        kind=DiffKind.NEW, path=(*path, pretty_format(item)), rhs=item
                    )
                )
        case tag:
            if not scalars_equal(tag, lhs, rhs):
                out.append(
                    DiffNode(kind=DiffKind.EDITED, path=path, lhs=lhs, rhs=rhs)
                )


def _collect_sequence(
    lhs: Sequence[Any],
    rhs: Sequence[Any],
    path: Path,
    depth: int,
    max_depth: int,
    out: list[DiffNode],
) -> None:
    for index, (left, right) in enumerate(zip(lhs, rhs)):
        _collect(left, right, (*path, index), depth + 1, max_depth, out)

    for index in range(len(lhs), len(rhs)):
        item = DiffNode(kind=DiffKind.NEW, path=(*path, index), rhs=rhs[index])
        out.append(DiffNode(kind=DiffKind.ARRAY, path=path, index=index, item=item))

    for index in range(len(rhs), len(lhs)):
        item = DiffNode(kind=DiffKind.DELETED, path=(*path, index), lhs=lhs[index])
        out.append(DiffNode(kind=DiffKind.ARRAY, path=path, index=index, item=item))


def _collect_mapping(
    lhs: Mapping[Any, Any],
    rhs: Mapping[Any, Any],
    path: Path,
    depth: int,
    max_depth: int,
    out: list[DiffNode],
) -> None:
    for key, value in lhs.items():
        key_path = (*path, _segment(key))
        if key not in rhs:
            out.append(DiffNode(kind=DiffKind.DELETED, path=key_path, lhs=value))
        else:
            _collect(value, rhs[key], key_path, depth + 1, max_depth, out)

    for key, value in rhs.items():
        if key not in lhs:
            out.append(
                DiffNode(kind=DiffKind.NEW, path=(*path, _segment(key)), rhs=value)
            )


def _render(lhs: Any, rhs: Any, depth: int, max_depth: int) -> str:
    """Render the difference between two values known to differ."""
    _check_depth(depth, max_depth)

    if not _same_kind(lhs, rhs):
        return (
            f"- {pretty_format(lhs, depth)}\n"
            f"{INDENT * depth}+ {pretty_format(rhs, depth)}"
        )

    match type_of(lhs):
        case TypeTag.ARRAY | TypeTag.TUPLE:
            entries = _render_sequence(lhs, rhs, depth, max_depth)
        case TypeTag.MAP:
            entries = _render_mapping(lhs, rhs, depth, max_depth)
        case TypeTag.OBJECT:
            entries = _render_mapping(members(lhs), members(rhs), depth, max_depth)
        case TypeTag.SET:
            entries = _render_set(lhs, rhs, depth, max_depth)
        case _:
            return f"-{pretty_format(lhs, depth)} +{pretty_format(rhs, depth)}"

    opening, closing = brackets(lhs)
    return _diff_block(f"{container_name(lhs)} {opening}", closing, entries, depth)


def _diff_block(header: str, close: str, entries: list[str], depth: int) -> str:
    # Entries carry their own "+ ", "- " or "  " marker, no separators
    pad = INDENT * (depth + 1)
    body = "\n".join(f"{pad}{entry}" for entry in entries)
    return f"{header}\n{body}\n{INDENT * depth}{close}"


def _render_entry(
    name: str, lhs: Any, rhs: Any, depth: int, max_depth: int
) -> list[str]:
    """Lines for a key or index present on both sides."""
    inner = depth + 1
    if values_equal(lhs, rhs, inner, max_depth):
        return [f"  {name}: {pretty_format(lhs, inner)}"]
    if _same_kind(lhs, rhs) and type_of(lhs) in COMPOSITE_TAGS:
        return [f"  {name}: {_render(lhs, rhs, inner, max_depth)}"]
    return [
        f"- {name}: {pretty_format(lhs, inner)}",
        f"+ {name}: {pretty_format(rhs, inner)}",
    ]


def _render_mapping(
    lhs: Mapping[Any, Any], rhs: Mapping[Any, Any], depth: int, max_depth: int
) -> list[str]:
    inner = depth + 1
    entries: list[str] = []

    for key, value in lhs.items():
        name = format_key(key)
        if key in rhs:
            entries.extend(_render_entry(name, value, rhs[key], depth, max_depth))
        else:
            entries.append(f"- {name}: {pretty_format(value, inner)}")

    for key, value in rhs.items():
        if key not in lhs:
            entries.append(f"+ {format_key(key)}: {pretty_format(value, inner)}")

    return entries


def _render_sequence(
    lhs: Sequence[Any], rhs: Sequence[Any], depth: int, max_depth: int
) -> list[str]:
    inner = depth + 1
    entries: list[str] = []

    for index in range(max(len(lhs), len(rhs))):
        name = f"[{index}]"
        if index >= len(lhs):
            entries.append(f"+ {name}: {pretty_format(rhs[index], inner)}")
        elif index >= len(rhs):
            entries.append(f"- {name}: {pretty_format(lhs[index], inner)}")
        else:
            entries.extend(
                _render_entry(name, lhs[index], rhs[index], depth, max_depth)
            )

    return entries


def _render_set(lhs: Any, rhs: Any, depth: int, max_depth: int) -> list[str]:
    inner = depth + 1
    missing, extra = unmatched(lhs, rhs, depth, max_depth)
    missing_ids = {id(item) for item in missing}

    kept = sorted(
        pretty_format(item, inner) for item in lhs if id(item) not in missing_ids
    )
    removed = sorted(pretty_format(item, inner) for item in missing)
    added = sorted(pretty_format(item, inner) for item in extra)

    return (
        [f"  {item}" for item in kept]
        + [f"- {item}" for item in removed]
        + [f"+ {item}" for item in added]
    )
