"""Assertion expressions."""

from vouch.assertions.evaluator import (
    AsyncExpectation,
    EvaluationMode,
    Expectation,
    check,
    expect,
)
from vouch.assertions.matchers import MATCHERS, Matcher, MatchResult

__all__ = [
    "MATCHERS",
    "AsyncExpectation",
    "EvaluationMode",
    "Expectation",
    "MatchResult",
    "Matcher",
    "check",
    "expect",
]
