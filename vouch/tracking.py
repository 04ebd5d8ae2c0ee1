"""Call tracking for wrapped callables.

A tracked function records every invocation (a snapshot of its arguments and
what it returned or raised) and can have its behaviour overridden. Records are
appended in invocation order; a tracker shared by tests running concurrently
in one batch is not synchronized.
"""

import asyncio
import copy
import functools
import inspect
import itertools
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass, field
from typing import Any

from vouch.comparison import equal

_ordinals = itertools.count(1)


def _noop(*args: Any, **kwargs: Any) -> None:
    return None


def _snapshot[T](value: T) -> T:
    """Copy call arguments so later mutation does not rewrite history."""
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        # Uncopyable arguments (locks, generators, ...) are kept by reference
        return value


@dataclass(kw_only=True)
class CallRecord:
    """One invocation of a tracked function.

    ``args`` and ``kwargs`` are snapshots taken at call time; ``received_args``
    and ``received_kwargs`` hold the objects actually passed, so identity-only
    values such as sentinels still match.
    """

    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    ordinal: int
    received_args: tuple[Any, ...] = field(default=(), repr=False)
    received_kwargs: dict[str, Any] = field(default_factory=dict, repr=False)
    returned: Any = None
    threw: BaseException | None = None
    settled: bool = False

    def finish(
        self, *, returned: Any = None, threw: BaseException | None = None
    ) -> None:
        self.returned = returned
        self.threw = threw
        self.settled = True

    def matches(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> bool:
        """Whether this call had structurally equal arguments."""
        return equal((self.args, self.kwargs), (args, kwargs)) or equal(
            (self.received_args, self.received_kwargs), (args, kwargs)
        )


class TrackedFunction:
    """Callable wrapper recording every call made through it.

    Results are handed back unchanged. Futures are observed through a done
    callback and coroutines are wrapped so the record settles once they are
    awaited.
    """

    def __init__(self, func: Callable[..., Any] | None = None) -> None:
        if func is not None:
            functools.update_wrapper(self, func)
        self._original: Callable[..., Any] = func or _noop
        self._impl: Callable[..., Any] = self._original
        self._calls: list[CallRecord] = []
        self._called = False

    def __repr__(self) -> str:
        name = getattr(self._original, "__name__", "anonymous")
        return f"<tracked {name} calls={self.call_count}>"

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        record = CallRecord(
            args=_snapshot(args),
            kwargs=_snapshot(kwargs),
            ordinal=next(_ordinals),
            received_args=args,
            received_kwargs=dict(kwargs),
        )
        self._calls.append(record)
        self._called = True

        try:
            result = self._impl(*args, **kwargs)
        except Exception as exc:
            record.finish(threw=exc)
            raise

        if asyncio.isfuture(result):
            result.add_done_callback(functools.partial(_settle_future, record))
            return result
        if inspect.iscoroutine(result):
            return _settle(record, result)

        record.finish(returned=result)
        return result

    # Queries

    @property
    def calls(self) -> Sequence[CallRecord]:
        return tuple(self._calls)

    @property
    def call_count(self) -> int:
        """Number of recorded calls since the last ``clear`` or ``reset``."""
        return len(self._calls)

    def was_called(self) -> bool:
        """Whether the function was invoked since the last ``reset``.

        Unlike ``call_count`` this survives ``clear``.
        """
        return self._called

    def was_called_with(self, *args: Any, **kwargs: Any) -> bool:
        """Whether any recorded call had structurally equal arguments."""
        return any(record.matches(args, kwargs) for record in self._calls)

    def was_called_times(self, count: int) -> bool:
        return self.call_count == count

    def call_args(self, index: int) -> tuple[Any, ...]:
        """Positional arguments of a recorded call (0-indexed).

        Raises:
            IndexError: If fewer calls were recorded

        """
        return self._calls[index].args

    def last_call_args(self) -> tuple[Any, ...] | None:
        return self._calls[-1].args if self._calls else None

    def all_args(self) -> list[tuple[Any, ...]]:
        return [record.args for record in self._calls]

    def all_returns(self) -> list[Any]:
        return [
            record.returned
            for record in self._calls
            if record.settled and record.threw is None
        ]

    def all_errors(self) -> list[BaseException]:
        return [record.threw for record in self._calls if record.threw is not None]

    # Mutators

    def returns(self, value: Any) -> "TrackedFunction":
        """Make every later call return ``value`` without running the body."""

        def _return(*args: Any, **kwargs: Any) -> Any:
            return value

        self._impl = _return
        return self

    def raises(self, error: BaseException) -> "TrackedFunction":
        """Make every later call raise ``error``."""

        def _raise(*args: Any, **kwargs: Any) -> Any:
            raise error

        self._impl = _raise
        return self

    def use(self, func: Callable[..., Any]) -> "TrackedFunction":
        """Replace the wrapped implementation."""
        self._impl = func
        return self

    def reset(self) -> None:
        """Forget every call and restore the original implementation."""
        self._calls.clear()
        self._called = False
        self._impl = self._original

    def clear(self) -> None:
        """Forget every call, keeping any override in place."""
        self._calls.clear()


async def _settle(record: CallRecord, coroutine: Coroutine[Any, Any, Any]) -> Any:
    try:
        value = await coroutine
    except Exception as exc:
        record.finish(threw=exc)
        raise
    record.finish(returned=value)
    return value


def _settle_future(record: CallRecord, future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        record.finish(threw=asyncio.CancelledError())
    elif (exc := future.exception()) is not None:
        record.finish(threw=exc)
    else:
        record.finish(returned=future.result())


def track(func: Callable[..., Any] | None = None) -> TrackedFunction:
    """Wrap ``func`` (or a no-op) so its calls are recorded."""
    return TrackedFunction(func)


def is_tracked(value: Any) -> bool:
    return isinstance(value, TrackedFunction)
