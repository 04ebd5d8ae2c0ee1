"""Structural equality between arbitrary values."""

from collections.abc import Iterable, Mapping
from typing import Any

from vouch.comparison.types import TypeTag, children, is_composite, members, type_of
from vouch.errors import CircularReferenceError, MaxDepthError

MAX_DEPTH = 100


def equal(a: Any, b: Any, *, max_depth: int = MAX_DEPTH) -> bool:
    """Decide whether two values are structurally equal.

    Raises:
        CircularReferenceError: If either value contains itself
        MaxDepthError: If nesting goes beyond ``max_depth``

    """
    ensure_acyclic(a, b)
    return values_equal(a, b, 0, max_depth)


def ensure_acyclic(*values: Any) -> None:
    """Reject values that are reachable from themselves."""
    if any(detect_circular(value) for value in values):
        raise CircularReferenceError("Circular reference detected in input")


def detect_circular(value: Any) -> bool:
    """Check whether a value is reachable from itself.

    Walks the structure iteratively, tracking the containers on the current
    path. A container shared by two branches is not a cycle.
    """
    on_path: set[int] = set()
    finished: set[int] = set()
    stack: list[tuple[Any, bool]] = [(value, False)]

    while stack:
        node, leaving = stack.pop()
        if leaving:
            on_path.discard(id(node))
            finished.add(id(node))
            continue
        if not is_composite(node) or id(node) in finished:
            continue
        if id(node) in on_path:
            return True

        on_path.add(id(node))
        stack.append((node, True))
        stack.extend((child, False) for child in children(node))

    return False


def values_equal(a: Any, b: Any, depth: int, max_depth: int) -> bool:
    """Compare two acyclic values, ``depth`` levels below the root."""
    if a is b:
        return True
    if depth > max_depth:
        raise MaxDepthError(f"Maximum comparison depth of {max_depth} exceeded")

    tag = type_of(a)
    if tag is not type_of(b):
        return False

    match tag:
        case TypeTag.ARRAY | TypeTag.TUPLE:
            return len(a) == len(b) and all(
                values_equal(x, y, depth + 1, max_depth) for x, y in zip(a, b)
            )
        case TypeTag.MAP:
            return mappings_equal(a, b, depth, max_depth)
        case TypeTag.OBJECT:
            return type(a) is type(b) and mappings_equal(
                members(a), members(b), depth, max_depth
            )
        case TypeTag.SET:
            missing, extra = unmatched(a, b, depth, max_depth)
            return not missing and not extra
        case _:
            return scalars_equal(tag, a, b)


def mappings_equal(
    a: Mapping[Any, Any], b: Mapping[Any, Any], depth: int, max_depth: int
) -> bool:
    if len(a) != len(b):
        return False
    return all(
        key in b and values_equal(value, b[key], depth + 1, max_depth)
        for key, value in a.items()
    )


def unmatched(
    left: Iterable[Any], right: Iterable[Any], depth: int, max_depth: int
) -> tuple[list[Any], list[Any]]:
    """Pair up structurally equal elements of two collections.

    Returns:
        Elements of ``left`` without a partner, and leftovers of ``right``

    """
    remaining = list(right)
    missing: list[Any] = []

    for item in left:
        for index, candidate in enumerate(remaining):
            if values_equal(item, candidate, depth + 1, max_depth):
                del remaining[index]
                break
        else:
            missing.append(item)

    return missing, remaining


def scalars_equal(tag: TypeTag, a: Any, b: Any) -> bool:
    """Compare two non-composite values of the same tag."""
    if tag is TypeTag.PATTERN:
        return a.pattern == b.pattern and a.flags == b.flags
    return bool(a == b)
