"""Run configuration and its YAML loader."""

import asyncio
import os
from pathlib import Path

import yaml
from pydantic import Field, ValidationError

from vouch.errors import ConfigError
from vouch.models.base import Model
from vouch.models.options import Options

MIN_CONCURRENCY = 4


class RunConfig(Model):
    """Settings shared by every test of a run."""

    concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Batch width (None derives it from the CPU count)",
    )
    defaults: Options = Field(
        default_factory=Options,
        description="Options applied where a test does not set its own",
    )
    bail_on_before_all_failure: bool = Field(
        default=False,
        description="Skip every test when the before_all hook fails",
    )

    @property
    def batch_width(self) -> int:
        """Configured concurrency, or the CPU count with a floor of 4."""
        if self.concurrency is not None:
            return self.concurrency
        return max(os.cpu_count() or 0, MIN_CONCURRENCY)


async def load_run_config(path: Path) -> RunConfig:
    """Load and validate a run configuration file.

    Args:
        path: YAML file, for example::

            concurrency: 8
            defaults:
              timeout: 5000
              retry: 1

    Returns:
        The validated configuration (defaults when the file is empty)

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file is not valid YAML or fails validation

    """
    content = await asyncio.to_thread(path.read_text)

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")

    try:
        return RunConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid run configuration in {path}: {exc}") from exc
