"""Tests for structural equality."""

import datetime
import math
import re
from dataclasses import dataclass
from typing import Any

import pytest

from vouch.comparison import TypeTag, detect_circular, equal, type_of
from vouch.errors import CircularReferenceError, MaxDepthError


@dataclass
class Point:
    x: int
    y: int


@dataclass
class Vector:
    x: int
    y: int


class Plain:
    def __init__(self, name: str) -> None:
        self.name = name


class Slotted:
    __slots__ = ("x", "y")

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y


def nested_lists(depth: int) -> list[Any]:
    value: list[Any] = []
    for _ in range(depth):
        value = [value]
    return value


class TestTypeOf:
    """Tests for type_of."""

    @pytest.mark.parametrize(
        ("value", "tag"),
        [
            (None, TypeTag.NONE),
            (True, TypeTag.BOOLEAN),
            (1, TypeTag.NUMBER),
            (1.5, TypeTag.NUMBER),
            ("text", TypeTag.STRING),
            (b"raw", TypeTag.BYTES),
            ([1], TypeTag.ARRAY),
            ((1,), TypeTag.TUPLE),
            ({1}, TypeTag.SET),
            (frozenset({1}), TypeTag.SET),
            ({"a": 1}, TypeTag.MAP),
            (datetime.date(2024, 1, 1), TypeTag.DATE),
            (re.compile("a"), TypeTag.PATTERN),
            (Point(1, 2), TypeTag.OBJECT),
            (Plain("a"), TypeTag.OBJECT),
            (len, TypeTag.OTHER),
        ],
    )
    def test_classifies_value(self, value: Any, tag: TypeTag) -> None:
        """Maps each value to its comparison tag."""
        assert type_of(value) is tag

    def test_bool_is_not_a_number(self) -> None:
        """Booleans are tagged before the numeric check."""
        assert type_of(False) is TypeTag.BOOLEAN


class TestEqual:
    """Tests for equal."""

    @pytest.mark.parametrize(
        "value",
        [
            None,
            0,
            "text",
            [1, [2, 3]],
            {"a": 1, "b": {"c": 2}},
            {1, 2, 3},
            (1, "a"),
            Point(1, 2),
            datetime.datetime(2024, 1, 1, 12, 0),
        ],
    )
    def test_reflexive(self, value: Any) -> None:
        """Every value equals itself and a structural copy."""
        assert equal(value, value)

    def test_nested_mappings_equal(self) -> None:
        """Compares nested mappings by value."""
        assert equal({"a": 1, "b": {"c": 2}}, {"a": 1, "b": {"c": 2}})

    def test_key_order_is_ignored(self) -> None:
        """Mappings with the same entries in another order are equal."""
        assert equal({"a": 1, "b": 2}, {"b": 2, "a": 1})

    def test_extra_key_is_unequal(self) -> None:
        """A key present on one side only makes mappings unequal."""
        assert not equal({"a": 1}, {"a": 1, "b": 2})

    def test_sequence_order_matters(self) -> None:
        """Lists compare index by index."""
        assert not equal([1, 2], [2, 1])

    def test_list_and_tuple_are_unequal(self) -> None:
        """Different container kinds never compare equal."""
        assert not equal([1, 2], (1, 2))

    def test_bool_and_int_are_unequal(self) -> None:
        """True does not equal 1 structurally."""
        assert not equal(True, 1)

    def test_int_and_float_are_equal(self) -> None:
        """Numbers compare by value across numeric types."""
        assert equal(1, 1.0)

    def test_sets_compare_structurally(self) -> None:
        """Set elements are paired regardless of order."""
        assert equal(frozenset({(1, 2), (3, 4)}), frozenset({(3, 4), (1, 2)}))
        assert not equal({1, 2}, {1, 3})

    def test_nan_is_unequal_to_other_nan(self) -> None:
        """Distinct NaN values are unequal, the same object is equal."""
        nan = math.nan
        assert equal(nan, nan)
        assert not equal(float("nan"), float("nan"))

    def test_dataclasses_compare_fields(self) -> None:
        """Dataclass instances compare by type and field values."""
        assert equal(Point(1, 2), Point(1, 2))
        assert not equal(Point(1, 2), Point(1, 3))

    def test_dataclasses_of_different_types_are_unequal(self) -> None:
        """Same fields on different classes are not equal."""
        assert not equal(Point(1, 2), Vector(1, 2))

    def test_plain_instances_compare_attributes(self) -> None:
        """Plain objects compare their attributes."""
        assert equal(Plain("a"), Plain("a"))
        assert not equal(Plain("a"), Plain("b"))

    def test_slotted_instances_compare_slots(self) -> None:
        """Instances with __slots__ compare their slot values."""
        assert type_of(Slotted(1, 2)) is TypeTag.OBJECT
        assert equal(Slotted(1, 2), Slotted(1, 2))
        assert not equal(Slotted(1, 2), Slotted(1, 3))

    def test_patterns_compare_source_and_flags(self) -> None:
        """Compiled patterns are equal with the same source and flags."""
        assert equal(re.compile("a+"), re.compile("a+"))
        assert not equal(re.compile("a+"), re.compile("a+", re.IGNORECASE))

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ({"a": [1, 2]}, {"a": [1, 2]}),
            ({"a": [1, 2]}, {"a": [1, 3]}),
            ([{"x": 1}], [{"x": 1}, {"y": 2}]),
            ({1, 2}, {2, 3}),
        ],
    )
    def test_symmetric(self, a: Any, b: Any) -> None:
        """Swapping the arguments does not change the verdict."""
        assert equal(a, b) == equal(b, a)


class TestCircularReferences:
    """Tests for cycle detection."""

    def test_self_containing_list_is_rejected(self) -> None:
        """Comparing a value that contains itself raises."""
        value: list[Any] = [1]
        value.append(value)

        with pytest.raises(CircularReferenceError, match="Circular reference"):
            equal(value, [1, [1]])

    def test_cycle_through_mapping_is_detected(self) -> None:
        """Cycles through nested mappings are found."""
        inner: dict[str, Any] = {}
        outer = {"inner": inner}
        inner["outer"] = outer

        assert detect_circular(outer)

    def test_shared_reference_is_not_a_cycle(self) -> None:
        """A container reachable from two branches is not circular."""
        shared = [1, 2]
        value = {"a": shared, "b": shared}

        assert not detect_circular(value)
        assert equal(value, {"a": [1, 2], "b": [1, 2]})


class TestMaxDepth:
    """Tests for the nesting limit."""

    def test_raises_beyond_max_depth(self) -> None:
        """Values nested deeper than the limit raise."""
        with pytest.raises(MaxDepthError):
            equal(nested_lists(5), nested_lists(5), max_depth=3)

    def test_default_limit_allows_shallow_values(self) -> None:
        """Values within the default limit compare normally."""
        assert equal(nested_lists(50), nested_lists(50))
