"""Type tags used to decide how two values are compared."""

import datetime
import re
from collections.abc import Iterator, Mapping
from dataclasses import fields, is_dataclass
from enum import StrEnum
from numbers import Number
from typing import Any


class TypeTag(StrEnum):
    """Kind of a value as far as structural comparison is concerned."""

    NONE = "none"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    BYTES = "bytes"
    ARRAY = "array"
    TUPLE = "tuple"
    SET = "set"
    MAP = "map"
    DATE = "date"
    PATTERN = "pattern"
    OBJECT = "object"
    OTHER = "other"


COMPOSITE_TAGS = frozenset(
    {TypeTag.ARRAY, TypeTag.TUPLE, TypeTag.SET, TypeTag.MAP, TypeTag.OBJECT}
)


def type_of(value: Any) -> TypeTag:
    """Classify a value.

    Dataclass instances and plain instances that keep the default ``__eq__``
    are compared attribute by attribute (``OBJECT``). Anything else that is
    not a builtin kind falls back to ``==`` (``OTHER``).
    """
    if value is None:
        return TypeTag.NONE
    # bool before Number, bool is an int subclass
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, Number):
        return TypeTag.NUMBER
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, bytes | bytearray | memoryview):
        return TypeTag.BYTES
    if isinstance(value, list):
        return TypeTag.ARRAY
    if isinstance(value, tuple):
        return TypeTag.TUPLE
    if isinstance(value, set | frozenset):
        return TypeTag.SET
    if isinstance(value, Mapping):
        return TypeTag.MAP
    if isinstance(value, datetime.date | datetime.time):
        return TypeTag.DATE
    if isinstance(value, re.Pattern):
        return TypeTag.PATTERN
    if is_dataclass(value) and not isinstance(value, type):
        return TypeTag.OBJECT
    if _is_plain_instance(value):
        return TypeTag.OBJECT
    return TypeTag.OTHER


def is_composite(value: Any) -> bool:
    return type_of(value) in COMPOSITE_TAGS


def members(value: Any) -> dict[str, Any]:
    """Attributes compared for an ``OBJECT`` value, slots included."""
    if is_dataclass(value):
        return {f.name: getattr(value, f.name) for f in fields(value)}
    found = dict(getattr(value, "__dict__", {}))
    for name in _slot_names(type(value)):
        if name not in found and hasattr(value, name):
            found[name] = getattr(value, name)
    return found


def children(value: Any) -> Iterator[Any]:
    """Direct child values of a composite, empty for anything else."""
    match type_of(value):
        case TypeTag.ARRAY | TypeTag.TUPLE | TypeTag.SET:
            yield from value
        case TypeTag.MAP:
            yield from value.values()
        case TypeTag.OBJECT:
            yield from members(value).values()


def _slot_names(klass: type) -> list[str]:
    names: list[str] = []
    for base in klass.__mro__:
        slots = base.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(
            name for name in slots if name not in ("__dict__", "__weakref__")
        )
    return names


def _is_plain_instance(value: Any) -> bool:
    if isinstance(value, type) or callable(value):
        return False
    if type(value).__eq__ is not object.__eq__:
        return False
    return hasattr(value, "__dict__") or bool(_slot_names(type(value)))
