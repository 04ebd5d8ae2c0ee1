"""Scheduler running one registered suite to completion."""

import asyncio
import inspect
import logging
import time
import traceback
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from vouch.config import RunConfig
from vouch.errors import TimeoutFault
from vouch.models.options import Options
from vouch.models.result import ErrorInfo, ExecutionResult, Report, ResultKind
from vouch.registry import Hook, HookPhase, Test, TestRegistry

log = logging.getLogger(__name__)

SOFT_FAILURE_PREFIX = "Soft failure: "


def error_info(exc: BaseException, *, soft: bool = False) -> ErrorInfo:
    """Describe a failed attempt for the report."""
    message = str(exc) or type(exc).__name__
    if soft:
        message = f"{SOFT_FAILURE_PREFIX}{message}"
    return ErrorInfo(
        message=message,
        stack="".join(traceback.format_exception(exc)),
    )


@dataclass(kw_only=True)
class Scheduler:
    """Runs the selected tests of a registry in bounded concurrent batches.

    Attempts that time out are abandoned, not cancelled: they keep running in
    the background and are held in ``abandoned`` until they settle.
    """

    registry: TestRegistry
    config: RunConfig = field(default_factory=RunConfig)
    abandoned: set[asyncio.Future[Any]] = field(default_factory=set, init=False)

    async def run(self) -> Report:
        """Execute hooks and selected tests and aggregate their results.

        Returns:
            Report of the run; read-only once returned

        Raises:
            RegistryLockedError: If the registry is already being run

        """
        with self.registry.sealed() as registry:
            report = Report(description=registry.description)
            selected = registry.selected_tests
            report.stats.total = len(selected)
            width = self.config.batch_width

            log.info(
                "Running suite %r: %d test(s), batch width %d",
                registry.description,
                len(selected),
                width,
            )

            before_all = await self._run_hook(HookPhase.BEFORE_ALL, report)
            if (
                before_all is not None
                and before_all.status == "failed"
                and self.config.bail_on_before_all_failure
            ):
                log.warning("before_all failed, skipping %d test(s)", len(selected))
                skipped = [
                    ExecutionResult(description=test.description, status="skipped")
                    for test in selected
                ]
                report.tests.extend(skipped)
                report.count(skipped)
            else:
                for batch in self._batches(selected, width):
                    log.debug("Starting batch of %d test(s)", len(batch))
                    results = await asyncio.gather(
                        *(self._run_test(test, report) for test in batch)
                    )
                    report.count(results)

            await self._run_hook(HookPhase.AFTER_ALL, report)

        log.info(
            "Suite %r %s: %d passed, %d failed, %d skipped, %d soft-failed",
            report.description,
            report.status,
            report.stats.passed,
            report.stats.failed,
            report.stats.skipped,
            report.stats.soft_failed,
        )
        return report

    @staticmethod
    def _batches(tests: Sequence[Test], width: int) -> list[Sequence[Test]]:
        return [tests[start : start + width] for start in range(0, len(tests), width)]

    async def _run_test(self, test: Test, report: Report) -> ExecutionResult:
        await self._run_hook(HookPhase.BEFORE_EACH, report)
        try:
            result = await self.execute(test)
            report.tests.append(result)
        finally:
            await self._run_hook(HookPhase.AFTER_EACH, report)
        return result

    async def _run_hook(
        self, phase: HookPhase, report: Report
    ) -> ExecutionResult | None:
        hook = self.registry.hook(phase)
        if hook is None:
            return None
        result = await self.execute(hook, kind=phase.value)
        report.hooks.append(result)
        return result

    async def execute(
        self, item: Test | Hook, kind: ResultKind = "test"
    ) -> ExecutionResult:
        """Run one test or hook under its options.

        Args:
            item: Test or hook to run
            kind: Label stored on the result

        Returns:
            Terminal result; ``retries`` counts the failed attempts

        """
        options = item.options.merged_over(self.config.defaults)
        started = time.perf_counter()

        try:
            runnable = await self._gate(options)
        except Exception as exc:
            log.warning("Condition of %r raised: %s", item.description, exc)
            return self._finalize(item, kind, options, exc, 0, started)

        if not runnable:
            log.debug("Skipping %r", item.description)
            return ExecutionResult(
                description=item.description, status="skipped", kind=kind
            )

        retries = 0
        while True:
            try:
                await self._attempt(item, options.timeout)
            except Exception as exc:
                retries += 1
                if retries > options.retry:
                    return self._finalize(item, kind, options, exc, retries, started)
                log.warning(
                    "%r failed (attempt %d of %d), retrying: %s",
                    item.description,
                    retries,
                    options.retry + 1,
                    exc,
                )
                continue

            log.debug("%r passed after %d retries", item.description, retries)
            return ExecutionResult(
                description=item.description,
                status="passed",
                retries=retries,
                kind=kind,
                duration=time.perf_counter() - started,
            )

    @staticmethod
    async def _gate(options: Options) -> bool:
        if options.skip:
            return False
        condition = options.condition
        if callable(condition):
            condition = condition()
            if inspect.isawaitable(condition):
                condition = await condition
        return bool(condition)

    @staticmethod
    def _finalize(
        item: Test | Hook,
        kind: ResultKind,
        options: Options,
        exc: BaseException,
        retries: int,
        started: float,
    ) -> ExecutionResult:
        status = "soft-fail" if options.soft_fail else "failed"
        log.info("%r %s: %s", item.description, status, exc)
        return ExecutionResult(
            description=item.description,
            status=status,
            retries=retries,
            kind=kind,
            error=error_info(exc, soft=options.soft_fail),
            duration=time.perf_counter() - started,
        )

    async def _attempt(self, item: Test | Hook, timeout: int) -> None:
        """Run the body once, racing it against ``timeout`` milliseconds."""
        task = asyncio.ensure_future(self._invoke(item))
        if timeout <= 0:
            await task
            return

        done, _ = await asyncio.wait({task}, timeout=timeout / 1000)
        if task in done:
            task.result()
            return

        self._abandon(item, task)
        raise TimeoutFault(item.description, timeout)

    @staticmethod
    async def _invoke(item: Test | Hook) -> None:
        result = item.fn()
        if inspect.isawaitable(result):
            await result

    def _abandon(self, item: Test | Hook, task: asyncio.Future[Any]) -> None:
        log.warning("Abandoning timed out attempt of %r", item.description)
        self.abandoned.add(task)

        def _settled(future: asyncio.Future[Any]) -> None:
            self.abandoned.discard(future)
            if future.cancelled():
                log.debug("Abandoned attempt of %r was cancelled", item.description)
            elif (exc := future.exception()) is not None:
                log.debug("Abandoned attempt of %r raised: %s", item.description, exc)
            else:
                log.debug("Abandoned attempt of %r finished", item.description)

        task.add_done_callback(_settled)
