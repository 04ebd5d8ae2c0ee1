"""Error taxonomy for the execution engine."""


class VouchError(Exception):
    """Base class for errors raised by the engine itself."""


class AssertionFailure(AssertionError):
    """Raised by a throwing expectation when a matcher does not pass.

    Subclasses ``AssertionError`` so that a failing expectation reads like
    any other failed assertion when it escapes a test body.
    """

    def __init__(self, matcher: str, message: str) -> None:
        super().__init__(message)
        self.matcher = matcher
        self.message = message


class UsageError(VouchError):
    """Raised when an assertion is applied to a value it cannot handle.

    Indicates a bug in the test itself, so it is raised in boolean mode too.
    """


class ComparisonError(VouchError):
    """Base class for faults raised while comparing two values."""


class CircularReferenceError(ComparisonError):
    """Raised when a compared value contains itself."""


class MaxDepthError(ComparisonError):
    """Raised when a compared value nests deeper than the allowed depth."""


class TimeoutFault(TimeoutError):
    """Synthetic failure for an attempt that did not settle in time."""

    def __init__(self, description: str, timeout: int) -> None:
        super().__init__(f"{description} exceeded {timeout} ms.")
        self.description = description
        self.timeout = timeout


class RegistryLockedError(VouchError):
    """Raised when a registry is mutated while a run is in progress."""


class ConfigError(VouchError):
    """Raised when a run configuration cannot be loaded."""
