"""Decorator API for declaring a suite."""

from collections.abc import Callable
from typing import Any

from vouch.config import RunConfig
from vouch.models.options import Options
from vouch.models.result import Report
from vouch.registry import Body, HookPhase, TestRegistry
from vouch.scheduler import Scheduler

type Decorator = Callable[[Body], Body]


class Suite:
    """Declares tests and hooks on a registry and runs them.

    Example::

        suite = Suite("parser")

        @suite.test("reads empty input", retry=1)
        async def _():
            expect(parse("")).to_equal([])

        report = await suite.run()

    Option keywords are those of ``Options``; only the ones given explicitly
    override ``RunConfig.defaults``.
    """

    def __init__(self, description: str = "") -> None:
        self.registry = TestRegistry(description=description)

    def __repr__(self) -> str:
        return f"Suite({self.registry.description!r})"

    @property
    def description(self) -> str:
        return self.registry.description

    def describe(self, description: str) -> None:
        self.registry.describe(description)

    def test(self, description: str, **options: Any) -> Decorator:
        return self._declare(description, options, exclusive=False)

    def only(self, description: str, **options: Any) -> Decorator:
        """Declare a test and restrict the run to tests declared this way."""
        return self._declare(description, options, exclusive=True)

    def _declare(
        self, description: str, options: dict[str, Any], *, exclusive: bool
    ) -> Decorator:
        parsed = Options(**options)

        def decorator(fn: Body) -> Body:
            self.registry.add_test(description, fn, parsed, exclusive=exclusive)
            return fn

        return decorator

    def before_all(self, fn: Body | None = None, **options: Any) -> Any:
        return self._hook(HookPhase.BEFORE_ALL, fn, options)

    def before_each(self, fn: Body | None = None, **options: Any) -> Any:
        return self._hook(HookPhase.BEFORE_EACH, fn, options)

    def after_each(self, fn: Body | None = None, **options: Any) -> Any:
        return self._hook(HookPhase.AFTER_EACH, fn, options)

    def after_all(self, fn: Body | None = None, **options: Any) -> Any:
        return self._hook(HookPhase.AFTER_ALL, fn, options)

    def _hook(
        self, phase: HookPhase, fn: Body | None, options: dict[str, Any]
    ) -> Body | Decorator:
        parsed = Options(**options)

        def decorator(body: Body) -> Body:
            self.registry.set_hook(phase, body, parsed)
            return body

        # Usable bare (@suite.before_all) or with options (@suite.before_all(retry=1))
        if fn is not None:
            return decorator(fn)
        return decorator

    async def run(self, config: RunConfig | None = None) -> Report:
        scheduler = Scheduler(registry=self.registry, config=config or RunConfig())
        return await scheduler.run()
