"""Tests for the declaration API."""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from vouch.assertions import expect
from vouch.config import RunConfig
from vouch.registry import HookPhase
from vouch.suite import Suite


def test_declares_tests_with_options() -> None:
    """Decorated functions become tests carrying their options."""
    suite = Suite("math")

    @suite.test("adds", retry=2, timeout=100)
    def adds() -> None:
        pass

    [test] = suite.registry.tests
    assert test.description == "adds"
    assert test.fn is adds
    assert test.options.retry == 2
    assert test.options.timeout == 100
    assert test.options.model_fields_set == {"retry", "timeout"}


def test_only_marks_exclusive() -> None:
    """Tests declared with only() are exclusive."""
    suite = Suite()

    suite.test("a")(Mock())
    suite.only("b")(Mock())

    assert [test.description for test in suite.registry.selected_tests] == ["b"]


def test_hooks_bare_and_with_options() -> None:
    """Hook decorators work with and without options."""
    suite = Suite()

    @suite.before_all
    def setup() -> None:
        pass

    @suite.after_each(retry=1)
    def cleanup() -> None:
        pass

    before_all = suite.registry.hook(HookPhase.BEFORE_ALL)
    after_each = suite.registry.hook(HookPhase.AFTER_EACH)
    assert before_all is not None and before_all.fn is setup
    assert after_each is not None and after_each.options.retry == 1


def test_invalid_options_are_rejected() -> None:
    """Options are validated at declaration time."""
    suite = Suite()

    with pytest.raises(ValidationError):
        suite.test("bad", retry=-1)


def test_describe() -> None:
    """The suite description can be changed after creation."""
    suite = Suite("draft")

    suite.describe("final")

    assert suite.description == "final"
    assert repr(suite) == "Suite('final')"


async def test_run() -> None:
    """Running a suite produces its report."""
    suite = Suite("strings")
    seen: list[str] = []

    @suite.before_each
    def remember() -> None:
        seen.append("before")

    @suite.test("upper")
    async def upper() -> None:
        expect("a".upper()).to_be("A")

    @suite.test("broken")
    def broken() -> None:
        expect([1, 2]).to_equal([1, 3])

    report = await suite.run(RunConfig(concurrency=1))

    assert report.description == "strings"
    assert report.stats.passed == 1
    assert report.stats.failed == 1
    assert report.status == "failed"
    assert seen == ["before", "before"]
    [failure] = [result for result in report.tests if result.status == "failed"]
    assert failure.error is not None
    assert "- [1]: 2" in failure.error.message
