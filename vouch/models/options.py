"""Per-test execution options."""

from collections.abc import Awaitable, Callable

from pydantic import Field

from vouch.models.base import Model

type ConditionResult = bool | None
type Condition = (
    bool
    | Callable[[], ConditionResult | Awaitable[ConditionResult]]
    | None
)


class Options(Model):
    """Execution policy attached to a test or hook."""

    timeout: int = Field(
        default=0, ge=0, description="Attempt timeout in milliseconds (0 = none)"
    )
    skip: bool = Field(default=False, description="Always report as skipped")
    condition: Condition = Field(
        default=True,
        description="Run only when true; callables are invoked and awaited",
    )
    soft_fail: bool = Field(
        default=False, description="Report final failure as soft-fail"
    )
    retry: int = Field(default=0, ge=0, description="Extra attempts after a failure")

    def merged_over(self, defaults: "Options") -> "Options":
        """Return ``defaults`` overridden by the fields explicitly set here."""
        overrides = {name: getattr(self, name) for name in self.model_fields_set}
        return defaults.model_copy(update=overrides)
