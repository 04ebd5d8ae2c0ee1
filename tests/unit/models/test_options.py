"""Tests for execution options."""

import pytest
from pydantic import ValidationError

from vouch.models.options import Options
from vouch.testing.factories import OptionsFactory


def test_defaults() -> None:
    """Options default to a single, unconditional attempt."""
    options = Options()

    assert options.timeout == 0
    assert options.skip is False
    assert options.condition is True
    assert options.soft_fail is False
    assert options.retry == 0


@pytest.mark.parametrize("field", ["timeout", "retry"])
def test_rejects_negative_values(field: str) -> None:
    """Negative timeouts and retry counts are invalid."""
    with pytest.raises(ValidationError):
        Options(**{field: -1})


def test_accepts_callable_condition() -> None:
    """Conditions may be predicates."""
    options = Options(condition=lambda: None)

    assert callable(options.condition)


def test_is_frozen() -> None:
    """Options cannot change after creation."""
    options = Options()

    with pytest.raises(ValidationError):
        options.retry = 3  # type: ignore[misc]


def test_merged_over_keeps_only_explicit_fields() -> None:
    """Fields set explicitly override the defaults, others inherit them."""
    defaults = Options(timeout=500, retry=2)

    merged = Options(retry=0, soft_fail=True).merged_over(defaults)

    assert merged.timeout == 500
    assert merged.retry == 0
    assert merged.soft_fail is True


def test_merged_over_factory_defaults() -> None:
    """Options without explicit fields take the defaults unchanged."""
    defaults = OptionsFactory.build()

    assert Options().merged_over(defaults) == defaults
