"""Tests for assertion expressions."""

import asyncio

import pytest

from vouch.assertions import check, expect
from vouch.errors import AssertionFailure, CircularReferenceError, UsageError
from vouch.tracking import track


class TestThrowingMode:
    """Tests for expect()."""

    def test_passing_expectation_returns_true(self) -> None:
        """A satisfied matcher returns True."""
        assert expect({"a": 1, "b": {"c": 2}}).to_equal({"a": 1, "b": {"c": 2}})

    def test_failure_carries_matcher_and_diff(self) -> None:
        """A failed matcher raises with its name and a diff."""
        with pytest.raises(AssertionFailure) as exc_info:
            expect({"a": 1}).to_equal({"a": 2})

        assert exc_info.value.matcher == "to_equal"
        assert "- a: 1" in exc_info.value.message
        assert "+ a: 2" in exc_info.value.message
        assert exc_info.value.message.startswith("Expected Dict {")

    def test_failure_is_an_assertion_error(self) -> None:
        """Failures read like ordinary assertion errors."""
        with pytest.raises(AssertionError, match="Expected 1 to be greater than 2"):
            expect(1).to_be_greater_than(2)

    def test_negation_inverts_the_verdict(self) -> None:
        """not_ passes when the matcher fails."""
        assert expect(1).not_.to_be(2)

        with pytest.raises(AssertionFailure, match="Expected 1 not to be 1"):
            expect(1).not_.to_be(1)

    def test_double_negation(self) -> None:
        """Negating twice restores the positive expectation."""
        assert expect(1).not_.not_.to_be(1)

    def test_negation_does_not_leak(self) -> None:
        """Each expression carries its own mode."""
        expectation = expect(1)
        negated = expectation.not_

        assert expectation.to_be(1)
        assert negated.to_be(2)

    def test_comparator_errors_propagate(self) -> None:
        """Circular inputs surface as errors, not as failed matches."""
        value: list[object] = []
        value.append(value)

        with pytest.raises(CircularReferenceError):
            expect(value).to_equal([])


class TestBooleanMode:
    """Tests for check()."""

    def test_returns_verdict(self) -> None:
        """Boolean expressions never raise on mismatch."""
        assert check([1, 2]).to_contain(2) is True
        assert check([1, 2]).to_contain(3) is False
        assert check([1, 2]).not_.to_contain(3) is True

    def test_incomparable_values_return_false(self) -> None:
        """Ordering matchers on values that cannot be ordered do not raise."""
        assert check(None).to_be_greater_than(1) is False
        assert check("a").to_be_between(1, 3) is False
        assert check(None).to_be_close_to(0.3) is False

    def test_usage_errors_still_raise(self) -> None:
        """Untracked values raise UsageError in boolean mode too."""
        with pytest.raises(UsageError, match="tracked function"):
            check(len).to_have_been_called()


class TestTrackedMatchers:
    """Tests for matchers over tracked functions."""

    def test_called_with(self) -> None:
        """Arguments are compared structurally."""
        f = track()
        f(1, [2, 3])
        f("last", flag=True)

        assert expect(f).to_have_been_called()
        assert expect(f).to_have_been_called_times(2)
        assert expect(f).to_have_been_called_with(1, [2, 3])
        assert expect(f).to_have_been_last_called_with("last", flag=True)
        assert expect(f).to_have_been_nth_called_with(1, 1, [2, 3])

    def test_failure_lists_recorded_calls(self) -> None:
        """The failure message lists every recorded call."""
        f = track()
        f(1)

        with pytest.raises(AssertionFailure) as exc_info:
            expect(f).to_have_been_called_with(2)

        assert "Recorded calls:\n  1: (1)" in exc_info.value.message

    def test_returned_and_thrown(self) -> None:
        """Return values and errors of past calls are inspectable."""

        def parse(text: str) -> int:
            return int(text)

        f = track(parse)
        f("4")
        with pytest.raises(ValueError):
            f("x")

        assert expect(f).to_have_returned()
        assert expect(f).to_have_returned_with(4)
        assert expect(f).to_have_thrown(ValueError)
        assert check(f).to_have_thrown(KeyError) is False

    def test_nth_call_is_one_indexed(self) -> None:
        """Call numbers start at 1."""
        f = track()
        f()

        with pytest.raises(UsageError):
            expect(f).to_have_been_nth_called_with(0)


class TestAsyncProjections:
    """Tests for resolves and rejects."""

    async def test_resolves(self) -> None:
        """Matches against the awaited value."""

        async def answer() -> int:
            return 42

        assert await expect(answer()).resolves.to_be(42)
        assert await expect(answer).resolves.not_.to_be(0)

    async def test_rejects(self) -> None:
        """Matches against the raised error."""

        async def fail() -> None:
            raise ValueError("nope")

        assert await expect(fail()).rejects.to_be_instance_of(ValueError)
        assert await expect(fail()).rejects.to_have_property("args", ("nope",))

    async def test_resolves_but_raised(self) -> None:
        """An unexpected rejection fails the expression."""

        async def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(AssertionFailure, match="to resolve"):
            await expect(fail()).resolves.to_be_none()

        assert await check(fail()).resolves.to_be_none() is False

    async def test_rejects_but_resolved(self) -> None:
        """An unexpected resolution fails even when negated."""
        future: asyncio.Future[int] = asyncio.get_running_loop().create_future()
        future.set_result(1)

        with pytest.raises(AssertionFailure, match="to raise"):
            await expect(future).rejects.not_.to_be_none()

    async def test_non_awaitable_is_a_usage_error(self) -> None:
        """The projections require an awaitable."""
        with pytest.raises(UsageError, match="awaitable"):
            await expect(1).resolves.to_be(1)
