"""CLI entry point running the suites declared in test modules."""

import argparse
import asyncio
import importlib.util
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

from vouch.config import RunConfig, load_run_config
from vouch.models.result import Report
from vouch.suite import Suite

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
    "skipped": "⏭️",
    "soft-fail": "⚠️",
}


def log_results_summary(log: logging.Logger, reports: Sequence[Report]) -> None:
    """Log a formatted summary of every suite's results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for report in reports:
        log.info("%s (%s)", report.description or "<unnamed suite>", report.status)
        for result in [*report.hooks, *report.tests]:
            if result.kind != "test" and result.status == "passed":
                continue
            symbol = STATUS_SYMBOLS.get(result.status, "?")
            log.info(
                "%s %s: %s (%.2fs)",
                symbol,
                result.description,
                result.status,
                result.duration,
            )
            if result.retries:
                log.info("  Retries: %d", result.retries)
            if result.error:
                log.info("  Message: %s", result.error.message)


def load_module(path: Path) -> ModuleType:
    """Import a test module from its file path.

    Raises:
        FileNotFoundError: If the file does not exist
        ImportError: If the file cannot be loaded as a module

    """
    if not path.is_file():
        raise FileNotFoundError(f"Test module not found: {path}")

    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load test module: {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def collect_suites(module: ModuleType) -> Sequence[Suite]:
    """Suites defined at the top level of a module, in definition order."""
    return tuple(value for value in vars(module).values() if isinstance(value, Suite))


def format_output(reports: Sequence[Report]) -> dict[str, Any]:
    """Format reports for JSON output."""
    return {
        "total": sum(report.stats.total for report in reports),
        "passed": sum(report.stats.passed for report in reports),
        "failed": sum(report.stats.failed for report in reports),
        "skipped": sum(report.stats.skipped for report in reports),
        "soft_failed": sum(report.stats.soft_failed for report in reports),
        "suites": [report.to_dict() for report in reports],
    }


async def resolve_config(
    config_path: Path | None, concurrency: int | None
) -> RunConfig:
    """Load the run configuration and apply command line overrides."""
    config = await load_run_config(config_path) if config_path else RunConfig()
    if concurrency is not None:
        config = RunConfig.model_validate(
            {**config.model_dump(), "concurrency": concurrency}
        )
    return config


async def run(
    paths: Sequence[Path],
    config_path: Path | None = None,
    concurrency: int | None = None,
) -> int:
    """Run the suites of the given test modules and return exit code."""
    log = logging.getLogger("vouch")

    config = await resolve_config(config_path, concurrency)

    suites: list[Suite] = []
    for path in paths:
        log.info("Loading test module: %s", path)
        suites.extend(collect_suites(load_module(path)))

    if not suites:
        log.info("No suites found")
        print(json.dumps(format_output([])))
        return 0

    log.info("Running %d suite(s)...", len(suites))
    reports = [await suite.run(config) for suite in suites]

    log_results_summary(log, reports)
    print(json.dumps(format_output(reports), indent=2, default=str))

    return 1 if any(report.failed for report in reports) else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run the suites of test modules")
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Test modules declaring suites",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML run configuration",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of tests run concurrently per batch",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            paths=args.paths,
            config_path=args.config,
            concurrency=args.concurrency,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
