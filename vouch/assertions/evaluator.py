"""Assertion expressions over the matcher catalog."""

import inspect
from dataclasses import dataclass, replace
from typing import Any, Literal, Self

from vouch.assertions.matchers import MATCHERS, TRACKED_MATCHERS, Matcher
from vouch.comparison import pretty_format
from vouch.errors import AssertionFailure, UsageError
from vouch.tracking import is_tracked


@dataclass(frozen=True, kw_only=True)
class EvaluationMode:
    """How one assertion expression reports its outcome.

    ``throwing`` expressions raise ``AssertionFailure`` on mismatch, the others
    return ``False``. ``negate`` inverts the matcher's verdict.
    """

    negate: bool = False
    throwing: bool = True


class Expectation:
    """Matchers applied to one received value."""

    def __init__(self, received: Any, mode: EvaluationMode | None = None) -> None:
        self.received = received
        self.mode = mode or EvaluationMode()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.received!r}, {self.mode})"

    def _with_mode(self, mode: EvaluationMode) -> Self:
        return type(self)(self.received, mode)

    @property
    def not_(self) -> Self:
        """The same expression with its verdict inverted."""
        return self._with_mode(replace(self.mode, negate=not self.mode.negate))

    @property
    def resolves(self) -> "AsyncExpectation":
        """Await the received value and match against what it resolves to."""
        return AsyncExpectation(self.received, self.mode, projection="resolves")

    @property
    def rejects(self) -> "AsyncExpectation":
        """Await the received value and match against the error it raises."""
        return AsyncExpectation(self.received, self.mode, projection="rejects")

    def _evaluate(self, matcher: Matcher, *args: Any, **kwargs: Any) -> Any:
        return self._apply(self.received, matcher, args, kwargs)

    def _apply(
        self,
        received: Any,
        matcher: Matcher,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> bool:
        if matcher in TRACKED_MATCHERS and not is_tracked(received):
            raise UsageError(
                f"{matcher} requires a tracked function, got {pretty_format(received)}"
            )

        result = MATCHERS[matcher](received, *args, **kwargs)
        if result.passed != self.mode.negate:
            return True
        if not self.mode.throwing:
            return False

        negation = "not " if self.mode.negate else ""
        message = f"Expected {pretty_format(received)} {negation}{result.expectation}"
        if result.detail and not self.mode.negate:
            message = f"{message}\n\n{result.detail}"
        raise AssertionFailure(matcher, message)

    def to_be_defined(self) -> bool:
        return self._evaluate(Matcher.TO_BE_DEFINED)

    def to_be_none(self) -> bool:
        return self._evaluate(Matcher.TO_BE_NONE)

    def to_be_truthy(self) -> bool:
        return self._evaluate(Matcher.TO_BE_TRUTHY)

    def to_be_falsy(self) -> bool:
        return self._evaluate(Matcher.TO_BE_FALSY)

    def to_be_greater_than(self, expected: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_GREATER_THAN, expected)

    def to_be_greater_than_or_equal(self, expected: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_GREATER_THAN_OR_EQUAL, expected)

    def to_be_less_than(self, expected: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_LESS_THAN, expected)

    def to_be_less_than_or_equal(self, expected: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_LESS_THAN_OR_EQUAL, expected)

    def to_be_between(self, low: Any, high: Any) -> bool:
        """Strictly between both bounds."""
        return self._evaluate(Matcher.TO_BE_BETWEEN, low, high)

    def to_be_in_range(self, low: Any, high: Any) -> bool:
        """Between both bounds, bounds included."""
        return self._evaluate(Matcher.TO_BE_IN_RANGE, low, high)

    def to_be_at_least(self, minimum: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_AT_LEAST, minimum)

    def to_be_at_most(self, maximum: Any) -> bool:
        return self._evaluate(Matcher.TO_BE_AT_MOST, maximum)

    def to_be_nan(self) -> bool:
        return self._evaluate(Matcher.TO_BE_NAN)

    def to_match(self, pattern: Any) -> bool:
        """Regex search for compiled patterns, substring test for text."""
        return self._evaluate(Matcher.TO_MATCH, pattern)

    def to_be(self, expected: Any) -> bool:
        """Identity, or value equality for scalars of the same type."""
        return self._evaluate(Matcher.TO_BE, expected)

    def to_equal(self, expected: Any) -> bool:
        """Structural equality; failures carry a diff of both values."""
        return self._evaluate(Matcher.TO_EQUAL, expected)

    def to_contain(self, item: Any) -> bool:
        return self._evaluate(Matcher.TO_CONTAIN, item)

    def to_be_instance_of(self, expected: type | str) -> bool:
        """Compare class names along the MRO.

        Two distinct classes sharing a name are indistinguishable here.
        """
        return self._evaluate(Matcher.TO_BE_INSTANCE_OF, expected)

    def to_be_close_to(self, expected: float, digits: int = 2) -> bool:
        return self._evaluate(Matcher.TO_BE_CLOSE_TO, expected, digits)

    def to_raise(self, expected: Any = None) -> bool:
        """Call the received value without arguments and inspect what it raises.

        ``expected`` may be ``None`` (anything), an exception class, an
        exception instance (same type and message), a substring of the
        message or a compiled pattern searched in it.
        """
        return self._evaluate(Matcher.TO_RAISE, expected)

    def to_have_length(self, length: int) -> bool:
        return self._evaluate(Matcher.TO_HAVE_LENGTH, length)

    def to_have_property(self, path: Any, *value: Any) -> bool:
        """Follow a dotted path; optionally compare the value found there."""
        return self._evaluate(Matcher.TO_HAVE_PROPERTY, path, *value)

    def to_have_been_called(self) -> bool:
        return self._evaluate(Matcher.TO_HAVE_BEEN_CALLED)

    def to_have_been_called_times(self, count: int) -> bool:
        return self._evaluate(Matcher.TO_HAVE_BEEN_CALLED_TIMES, count)

    def to_have_been_called_with(self, *args: Any, **kwargs: Any) -> bool:
        return self._evaluate(Matcher.TO_HAVE_BEEN_CALLED_WITH, *args, **kwargs)

    def to_have_been_last_called_with(self, *args: Any, **kwargs: Any) -> bool:
        return self._evaluate(Matcher.TO_HAVE_BEEN_LAST_CALLED_WITH, *args, **kwargs)

    def to_have_been_nth_called_with(self, nth: int, *args: Any, **kwargs: Any) -> bool:
        """Compare the arguments of call number ``nth``, counting from 1."""
        return self._evaluate(
            Matcher.TO_HAVE_BEEN_NTH_CALLED_WITH, nth, *args, **kwargs
        )

    def to_have_returned(self) -> bool:
        return self._evaluate(Matcher.TO_HAVE_RETURNED)

    def to_have_returned_with(self, value: Any) -> bool:
        return self._evaluate(Matcher.TO_HAVE_RETURNED_WITH, value)

    def to_have_thrown(self, expected: Any = None) -> bool:
        return self._evaluate(Matcher.TO_HAVE_THROWN, expected)


class AsyncExpectation(Expectation):
    """Expectation on the settled outcome of an awaitable.

    Every matcher method returns a coroutine. The received value (or the
    result of calling it, when it is a plain callable) is awaited once per
    matcher call.
    """

    def __init__(
        self,
        received: Any,
        mode: EvaluationMode | None = None,
        *,
        projection: Literal["resolves", "rejects"],
    ) -> None:
        super().__init__(received, mode)
        self.projection = projection

    def _with_mode(self, mode: EvaluationMode) -> Self:
        return type(self)(self.received, mode, projection=self.projection)

    async def _evaluate(self, matcher: Matcher, *args: Any, **kwargs: Any) -> bool:
        awaitable = self.received
        if callable(awaitable) and not inspect.isawaitable(awaitable):
            awaitable = awaitable()
        if not inspect.isawaitable(awaitable):
            raise UsageError(
                f"{self.projection} expects an awaitable, "
                f"got {pretty_format(self.received)}"
            )

        try:
            value = await awaitable
        except Exception as exc:
            if self.projection == "resolves":
                return self._settled_wrongly(
                    matcher,
                    f"Expected awaitable to resolve, but it raised {exc!r}",
                    exc,
                )
            return self._apply(exc, matcher, args, kwargs)

        if self.projection == "rejects":
            return self._settled_wrongly(
                matcher,
                "Expected awaitable to raise, "
                f"but it resolved to {pretty_format(value)}",
            )
        return self._apply(value, matcher, args, kwargs)

    def _settled_wrongly(
        self, matcher: Matcher, message: str, cause: BaseException | None = None
    ) -> bool:
        # Fails regardless of negation, which only applies to the matcher
        if not self.mode.throwing:
            return False
        raise AssertionFailure(matcher, message) from cause


def expect(received: Any) -> Expectation:
    """Start an assertion that raises ``AssertionFailure`` on mismatch."""
    return Expectation(received)


def check(received: Any) -> Expectation:
    """Start an assertion that returns ``True`` or ``False``."""
    return Expectation(received, EvaluationMode(throwing=False))
