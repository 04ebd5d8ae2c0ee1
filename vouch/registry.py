"""Registry of declared tests and lifecycle hooks."""

import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from vouch.errors import RegistryLockedError
from vouch.models.options import Options

log = logging.getLogger(__name__)

type Body = Callable[[], Awaitable[Any] | Any]


class HookPhase(StrEnum):
    """Point of the run a hook is attached to."""

    BEFORE_ALL = "before_all"
    BEFORE_EACH = "before_each"
    AFTER_EACH = "after_each"
    AFTER_ALL = "after_all"


@dataclass(frozen=True, kw_only=True)
class Test:
    """A declared test."""

    __test__ = False

    description: str
    fn: Body = field(repr=False)
    options: Options = field(default_factory=Options)
    exclusive: bool = False


@dataclass(frozen=True, kw_only=True)
class Hook:
    """A lifecycle hook, executed with the same policy machinery as tests."""

    phase: HookPhase
    description: str
    fn: Body = field(repr=False)
    options: Options = field(default_factory=Options)


@dataclass(kw_only=True)
class TestRegistry:
    """Tests and hooks of one suite, in registration order.

    Populated during declaration, read-only while a run is in progress.
    """

    __test__ = False

    description: str = ""
    _tests: list[Test] = field(default_factory=list, repr=False)
    _hooks: dict[HookPhase, Hook] = field(default_factory=dict, repr=False)
    _sealed: bool = field(default=False, repr=False)

    @property
    def tests(self) -> Sequence[Test]:
        return tuple(self._tests)

    @property
    def hooks(self) -> Mapping[HookPhase, Hook]:
        return dict(self._hooks)

    @property
    def exclusive_tests(self) -> Sequence[Test]:
        return tuple(test for test in self._tests if test.exclusive)

    @property
    def selected_tests(self) -> Sequence[Test]:
        """Exclusive tests when any were declared, otherwise all tests."""
        return self.exclusive_tests or self.tests

    def hook(self, phase: HookPhase) -> Hook | None:
        return self._hooks.get(phase)

    def add_test(
        self,
        description: str,
        fn: Body,
        options: Options | None = None,
        *,
        exclusive: bool = False,
    ) -> Test:
        """Declare a test; ``exclusive`` restricts the run to exclusive tests."""
        self._ensure_open()
        test = Test(
            description=description,
            fn=fn,
            options=options or Options(),
            exclusive=exclusive,
        )
        self._tests.append(test)
        return test

    def set_hook(
        self, phase: HookPhase, fn: Body, options: Options | None = None
    ) -> Hook:
        """Attach a hook, replacing any hook already registered for ``phase``."""
        self._ensure_open()
        if phase in self._hooks:
            log.debug("Replacing %s hook of suite %r", phase, self.description)
        hook = Hook(
            phase=phase,
            description=phase.value,
            fn=fn,
            options=options or Options(),
        )
        self._hooks[phase] = hook
        return hook

    def describe(self, description: str) -> None:
        """Set the suite description."""
        self._ensure_open()
        self.description = description

    def rename(self, description: str, new_description: str) -> Test:
        """Change the description of the first test named ``description``.

        Raises:
            KeyError: If no test has that description

        """
        self._ensure_open()
        for index, test in enumerate(self._tests):
            if test.description == description:
                renamed = replace(test, description=new_description)
                self._tests[index] = renamed
                return renamed
        raise KeyError(f"No test described as {description!r}")

    @contextmanager
    def sealed(self) -> Iterator["TestRegistry"]:
        """Reject mutation for the duration of a run."""
        if self._sealed:
            raise RegistryLockedError(f"Suite {self.description!r} is already running")
        self._sealed = True
        try:
            yield self
        finally:
            self._sealed = False

    def _ensure_open(self) -> None:
        if self._sealed:
            raise RegistryLockedError(
                f"Suite {self.description!r} cannot change while it is running"
            )
