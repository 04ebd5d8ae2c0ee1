"""Matcher catalog.

Every matcher is a plain function ``(received, *args, **kwargs) ->
MatchResult`` describing the positive expectation. Negation and the choice
between raising and returning a boolean belong to the evaluator.
"""

import inspect
import operator
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from numbers import Number
from typing import Any

from vouch.comparison import diff, equal, pretty_format
from vouch.comparison.types import TypeTag, type_of
from vouch.errors import UsageError
from vouch.tracking import TrackedFunction


class Matcher(StrEnum):
    """Closed set of matcher kinds."""

    TO_BE_DEFINED = "to_be_defined"
    TO_BE_NONE = "to_be_none"
    TO_BE_TRUTHY = "to_be_truthy"
    TO_BE_FALSY = "to_be_falsy"
    TO_BE_GREATER_THAN = "to_be_greater_than"
    TO_BE_GREATER_THAN_OR_EQUAL = "to_be_greater_than_or_equal"
    TO_BE_LESS_THAN = "to_be_less_than"
    TO_BE_LESS_THAN_OR_EQUAL = "to_be_less_than_or_equal"
    TO_BE_BETWEEN = "to_be_between"
    TO_BE_IN_RANGE = "to_be_in_range"
    TO_BE_AT_LEAST = "to_be_at_least"
    TO_BE_AT_MOST = "to_be_at_most"
    TO_BE_NAN = "to_be_nan"
    TO_MATCH = "to_match"
    TO_BE = "to_be"
    TO_EQUAL = "to_equal"
    TO_CONTAIN = "to_contain"
    TO_BE_INSTANCE_OF = "to_be_instance_of"
    TO_BE_CLOSE_TO = "to_be_close_to"
    TO_RAISE = "to_raise"
    TO_HAVE_LENGTH = "to_have_length"
    TO_HAVE_PROPERTY = "to_have_property"
    TO_HAVE_BEEN_CALLED = "to_have_been_called"
    TO_HAVE_BEEN_CALLED_TIMES = "to_have_been_called_times"
    TO_HAVE_BEEN_CALLED_WITH = "to_have_been_called_with"
    TO_HAVE_BEEN_LAST_CALLED_WITH = "to_have_been_last_called_with"
    TO_HAVE_BEEN_NTH_CALLED_WITH = "to_have_been_nth_called_with"
    TO_HAVE_RETURNED = "to_have_returned"
    TO_HAVE_RETURNED_WITH = "to_have_returned_with"
    TO_HAVE_THROWN = "to_have_thrown"


@dataclass(frozen=True, kw_only=True)
class MatchResult:
    """Outcome of one matcher, before negation.

    ``expectation`` completes the sentence "Expected <received> ...".
    """

    passed: bool
    expectation: str
    detail: str = ""


type MatcherFn = Callable[..., MatchResult]

_IDENTITY_TAGS = frozenset(
    {TypeTag.NONE, TypeTag.BOOLEAN, TypeTag.NUMBER, TypeTag.STRING, TypeTag.BYTES}
)

_MISSING = object()


def _to_be_defined(received: Any) -> MatchResult:
    return MatchResult(passed=received is not None, expectation="to be defined")


def _to_be_none(received: Any) -> MatchResult:
    return MatchResult(passed=received is None, expectation="to be None")


def _to_be_truthy(received: Any) -> MatchResult:
    return MatchResult(passed=bool(received), expectation="to be truthy")


def _to_be_falsy(received: Any) -> MatchResult:
    return MatchResult(passed=not received, expectation="to be falsy")


def _ordered(check: Callable[[], Any], expectation: str) -> MatchResult:
    """Evaluate an ordering check; values that cannot be ordered do not match."""
    try:
        passed = bool(check())
    except TypeError as exc:
        return MatchResult(
            passed=False, expectation=expectation, detail=f"Not comparable: {exc}"
        )
    return MatchResult(passed=passed, expectation=expectation)


def _comparison(op: Callable[[Any, Any], Any], phrase: str) -> MatcherFn:
    def matcher(received: Any, expected: Any) -> MatchResult:
        return _ordered(
            lambda: op(received, expected),
            f"{phrase} {pretty_format(expected)}",
        )

    return matcher


def _to_be_between(received: Any, low: Any, high: Any) -> MatchResult:
    return _ordered(
        lambda: low < received < high,
        f"to be between {low!r} and {high!r} (exclusive)",
    )


def _to_be_in_range(received: Any, low: Any, high: Any) -> MatchResult:
    return _ordered(
        lambda: low <= received <= high,
        f"to be in range {low!r} to {high!r} (inclusive)",
    )


def _to_be_nan(received: Any) -> MatchResult:
    is_nan = isinstance(received, Number) and received != received
    return MatchResult(passed=is_nan, expectation="to be NaN")


def _to_match(received: Any, pattern: str | re.Pattern[str]) -> MatchResult:
    if not isinstance(received, str):
        raise UsageError(f"to_match expects a string, got {pretty_format(received)}")
    if isinstance(pattern, re.Pattern):
        passed = pattern.search(received) is not None
    else:
        passed = pattern in received
    return MatchResult(passed=passed, expectation=f"to match {pretty_format(pattern)}")


def _to_be(received: Any, expected: Any) -> MatchResult:
    passed = received is expected or (
        type(received) is type(expected)
        and type_of(received) in _IDENTITY_TAGS
        and received == expected
    )
    return MatchResult(passed=passed, expectation=f"to be {pretty_format(expected)}")


def _to_equal(received: Any, expected: Any) -> MatchResult:
    result = diff(received, expected)
    return MatchResult(
        passed=not result.has_differences,
        expectation=f"to equal {pretty_format(expected)}",
        detail=result.formatted,
    )


def _to_contain(received: Any, item: Any) -> MatchResult:
    expectation = f"to contain {pretty_format(item)}"
    if isinstance(received, str):
        if not isinstance(item, str):
            raise UsageError("to_contain on a string expects a substring")
        return MatchResult(passed=item in received, expectation=expectation)
    if isinstance(received, Mapping):
        return MatchResult(passed=item in received, expectation=expectation)
    try:
        elements = list(received)
    except TypeError as exc:
        raise UsageError(
            f"to_contain expects a string or collection, got {pretty_format(received)}"
        ) from exc
    return MatchResult(
        passed=any(equal(element, item) for element in elements),
        expectation=expectation,
    )


def _to_be_instance_of(received: Any, expected: type | str) -> MatchResult:
    # Matches by class name along the MRO, not by class identity
    name = expected if isinstance(expected, str) else expected.__name__
    passed = any(klass.__name__ == name for klass in type(received).__mro__)
    return MatchResult(passed=passed, expectation=f"to be an instance of {name}")


def _to_be_close_to(received: Any, expected: float, digits: int = 2) -> MatchResult:
    return _ordered(
        lambda: abs(expected - received) < 10**-digits / 2,
        f"to be close to {expected!r} ({digits} digits)",
    )


def error_matches(error: BaseException, expected: Any) -> bool:
    """Match a raised error against ``None``, a class, an instance, text or regex."""
    if expected is None:
        return True
    if isinstance(expected, type) and issubclass(expected, BaseException):
        return isinstance(error, expected)
    if isinstance(expected, BaseException):
        return type(error) is type(expected) and str(error) == str(expected)
    if isinstance(expected, re.Pattern):
        return expected.search(str(error)) is not None
    if isinstance(expected, str):
        return expected in str(error)
    raise UsageError(f"Cannot match an error against {pretty_format(expected)}")


def _describe_error(expected: Any) -> str:
    if expected is None:
        return ""
    if isinstance(expected, type):
        return f" {expected.__name__}"
    return f" {pretty_format(expected)}"


def _to_raise(received: Any, expected: Any = None) -> MatchResult:
    if not callable(received):
        raise UsageError(f"to_raise expects a callable, got {pretty_format(received)}")

    expectation = f"to raise{_describe_error(expected)}"
    try:
        result = received()
    except Exception as exc:
        return MatchResult(
            passed=error_matches(exc, expected),
            expectation=expectation,
            detail=f"Raised: {type(exc).__name__}: {exc}",
        )

    if inspect.iscoroutine(result):
        result.close()
        raise UsageError("to_raise cannot await, use rejects for async callables")
    return MatchResult(
        passed=False, expectation=expectation, detail="Nothing was raised"
    )


def _to_have_length(received: Any, length: int) -> MatchResult:
    try:
        actual = len(received)
    except TypeError as exc:
        raise UsageError(
            f"to_have_length expects a sized value, got {pretty_format(received)}"
        ) from exc
    return MatchResult(
        passed=actual == length,
        expectation=f"to have length {length}",
        detail=f"Received length: {actual}",
    )


def resolve_property(value: Any, path: str | Sequence[str | int]) -> Any:
    """Follow a dotted path through mappings, sequences and attributes.

    Returns:
        The value found, or a private sentinel when a segment is missing

    """
    segments = path.split(".") if isinstance(path, str) else list(path)
    current = value

    for segment in segments:
        if isinstance(current, Mapping):
            if segment in current:
                current = current[segment]
                continue
            key = int(segment) if str(segment).isdigit() else _MISSING
            if key in current:
                current = current[key]
                continue
            return _MISSING
        if isinstance(current, Sequence) and not isinstance(current, str):
            if not str(segment).isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
            continue
        if not isinstance(segment, str) or not hasattr(current, segment):
            return _MISSING
        current = getattr(current, segment)

    return current


def _to_have_property(
    received: Any, path: str | Sequence[str | int], value: Any = _MISSING
) -> MatchResult:
    found = resolve_property(received, path)
    rendered = path if isinstance(path, str) else ".".join(map(str, path))

    if value is _MISSING:
        return MatchResult(
            passed=found is not _MISSING,
            expectation=f"to have property {rendered!r}",
        )
    return MatchResult(
        passed=found is not _MISSING and equal(found, value),
        expectation=f"to have property {rendered!r} equal to {pretty_format(value)}",
    )


def _arguments(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    parts = [pretty_format(arg) for arg in args]
    parts.extend(f"{key}={pretty_format(val)}" for key, val in kwargs.items())
    return f"({', '.join(parts)})"


def _calls_detail(received: TrackedFunction) -> str:
    lines = [
        f"  {index}: {_arguments(record.args, record.kwargs)}"
        for index, record in enumerate(received.calls, start=1)
    ]
    return "Recorded calls:\n" + "\n".join(lines) if lines else "Recorded calls: none"


def _to_have_been_called(received: TrackedFunction) -> MatchResult:
    return MatchResult(
        passed=received.was_called(), expectation="to have been called"
    )


def _to_have_been_called_times(received: TrackedFunction, count: int) -> MatchResult:
    return MatchResult(
        passed=received.was_called_times(count),
        expectation=f"to have been called {count} times",
        detail=f"Received calls: {received.call_count}",
    )


def _to_have_been_called_with(
    received: TrackedFunction, *args: Any, **kwargs: Any
) -> MatchResult:
    return MatchResult(
        passed=received.was_called_with(*args, **kwargs),
        expectation=f"to have been called with {_arguments(args, kwargs)}",
        detail=_calls_detail(received),
    )


def _to_have_been_last_called_with(
    received: TrackedFunction, *args: Any, **kwargs: Any
) -> MatchResult:
    calls = received.calls
    passed = bool(calls) and calls[-1].matches(args, kwargs)
    return MatchResult(
        passed=passed,
        expectation=f"to have been last called with {_arguments(args, kwargs)}",
        detail=_calls_detail(received),
    )


def _to_have_been_nth_called_with(
    received: TrackedFunction, nth: int, *args: Any, **kwargs: Any
) -> MatchResult:
    if nth < 1:
        raise UsageError(f"Call numbers start at 1, got {nth}")
    calls = received.calls
    passed = len(calls) >= nth and calls[nth - 1].matches(args, kwargs)
    return MatchResult(
        passed=passed,
        expectation=(
            f"to have been called with {_arguments(args, kwargs)} on call {nth}"
        ),
        detail=_calls_detail(received),
    )


def _to_have_returned(received: TrackedFunction) -> MatchResult:
    return MatchResult(
        passed=bool(received.all_returns()), expectation="to have returned"
    )


def _to_have_returned_with(received: TrackedFunction, value: Any) -> MatchResult:
    returns = received.all_returns()
    return MatchResult(
        passed=any(equal(item, value) for item in returns),
        expectation=f"to have returned {pretty_format(value)}",
        detail=f"Returned values: {pretty_format(returns)}",
    )


def _to_have_thrown(received: TrackedFunction, expected: Any = None) -> MatchResult:
    return MatchResult(
        passed=any(error_matches(error, expected) for error in received.all_errors()),
        expectation=f"to have thrown{_describe_error(expected)}",
    )


MATCHERS: Mapping[Matcher, MatcherFn] = {
    Matcher.TO_BE_DEFINED: _to_be_defined,
    Matcher.TO_BE_NONE: _to_be_none,
    Matcher.TO_BE_TRUTHY: _to_be_truthy,
    Matcher.TO_BE_FALSY: _to_be_falsy,
    Matcher.TO_BE_GREATER_THAN: _comparison(operator.gt, "to be greater than"),
    Matcher.TO_BE_GREATER_THAN_OR_EQUAL: _comparison(
        operator.ge, "to be greater than or equal to"
    ),
    Matcher.TO_BE_LESS_THAN: _comparison(operator.lt, "to be less than"),
    Matcher.TO_BE_LESS_THAN_OR_EQUAL: _comparison(
        operator.le, "to be less than or equal to"
    ),
    Matcher.TO_BE_BETWEEN: _to_be_between,
    Matcher.TO_BE_IN_RANGE: _to_be_in_range,
    Matcher.TO_BE_AT_LEAST: _comparison(operator.ge, "to be at least"),
    Matcher.TO_BE_AT_MOST: _comparison(operator.le, "to be at most"),
    Matcher.TO_BE_NAN: _to_be_nan,
    Matcher.TO_MATCH: _to_match,
    Matcher.TO_BE: _to_be,
    Matcher.TO_EQUAL: _to_equal,
    Matcher.TO_CONTAIN: _to_contain,
    Matcher.TO_BE_INSTANCE_OF: _to_be_instance_of,
    Matcher.TO_BE_CLOSE_TO: _to_be_close_to,
    Matcher.TO_RAISE: _to_raise,
    Matcher.TO_HAVE_LENGTH: _to_have_length,
    Matcher.TO_HAVE_PROPERTY: _to_have_property,
    Matcher.TO_HAVE_BEEN_CALLED: _to_have_been_called,
    Matcher.TO_HAVE_BEEN_CALLED_TIMES: _to_have_been_called_times,
    Matcher.TO_HAVE_BEEN_CALLED_WITH: _to_have_been_called_with,
    Matcher.TO_HAVE_BEEN_LAST_CALLED_WITH: _to_have_been_last_called_with,
    Matcher.TO_HAVE_BEEN_NTH_CALLED_WITH: _to_have_been_nth_called_with,
    Matcher.TO_HAVE_RETURNED: _to_have_returned,
    Matcher.TO_HAVE_RETURNED_WITH: _to_have_returned_with,
    Matcher.TO_HAVE_THROWN: _to_have_thrown,
}

TRACKED_MATCHERS = frozenset(
    {
        Matcher.TO_HAVE_BEEN_CALLED,
        Matcher.TO_HAVE_BEEN_CALLED_TIMES,
        Matcher.TO_HAVE_BEEN_CALLED_WITH,
        Matcher.TO_HAVE_BEEN_LAST_CALLED_WITH,
        Matcher.TO_HAVE_BEEN_NTH_CALLED_WITH,
        Matcher.TO_HAVE_RETURNED,
        Matcher.TO_HAVE_RETURNED_WITH,
        Matcher.TO_HAVE_THROWN,
    }
)