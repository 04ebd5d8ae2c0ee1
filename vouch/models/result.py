"""Models for test and hook execution results."""

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

type Status = Literal["passed", "failed", "skipped", "soft-fail"]
type ResultKind = Literal[
    "test", "before_all", "before_each", "after_each", "after_all"
]


@dataclass(frozen=True, kw_only=True)
class ErrorInfo:
    """Message and formatted traceback of the last failed attempt."""

    message: str
    stack: str


@dataclass(frozen=True, kw_only=True)
class ExecutionResult:
    """Terminal outcome of one test or hook.

    ``retries`` counts failed attempts, so a test that passes on its third
    attempt reports ``retries == 2`` and a skipped one reports zero.
    """

    description: str
    status: Status
    retries: int = 0
    kind: ResultKind = "test"
    error: ErrorInfo | None = None
    duration: float = 0.0


@dataclass(kw_only=True)
class Stats:
    """Counters over the selected tests of one run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    soft_failed: int = 0

    def record(self, status: Status) -> None:
        """Count one terminal test status."""
        match status:
            case "passed":
                self.passed += 1
            case "failed":
                self.failed += 1
            case "skipped":
                self.skipped += 1
            case "soft-fail":
                self.soft_failed += 1


@dataclass(kw_only=True)
class Report:
    """Aggregated outcome of one suite run.

    Owned and mutated by the scheduler until ``run()`` returns; read-only for
    everybody else afterwards.
    """

    description: str
    status: Literal["passed", "failed"] = "passed"
    stats: Stats = field(default_factory=Stats)
    tests: list[ExecutionResult] = field(default_factory=list)
    hooks: list[ExecutionResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def count(self, results: Sequence[ExecutionResult]) -> None:
        """Fold a settled batch of test results into the stats."""
        for result in results:
            self.stats.record(result.status)
            if result.status == "failed":
                self.status = "failed"

    def to_dict(self) -> dict[str, Any]:
        """Plain data for external report writers."""
        return asdict(self)
