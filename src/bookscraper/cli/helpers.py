"""Shared utilities for bookscraper CLI commands.

This module contains helpers used across multiple CLI command modules:
- Logging configuration from global options
- Error catalog loading
- Running a command's work inside the execution boundary
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console
from rich.markup import escape

from bookscraper.core.config import (
    LogConfig,
    ProcessingOptions,
    bind_processing_options,
    load_app_config,
)
from bookscraper.core.constants import DEFAULT_FALLBACK_EXIT_CODE
from bookscraper.core.errors import ContractLoader, ErrorCatalog, InvalidConfigurationFailure
from bookscraper.core.logging import configure_logging, get_logger
from bookscraper.execution import ExecutionBoundary, RetryPolicy

from .output import render_error_response

# =============================================================================
# Module-level logger
# =============================================================================

_logger = get_logger("cli")


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """CLI logging state collected from global options."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console"] = "console"
    configured: bool = False
    explicit: set[str] = field(default_factory=set)


_log_config = CliLoggingConfig()


def get_log_level() -> str:
    return _log_config.level


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]
    _log_config.explicit.add("level")


def get_log_file() -> Path | None:
    return _log_config.file


def set_log_file(path: Path | None) -> None:
    _log_config.file = path
    _log_config.explicit.add("file")


def get_log_format() -> str:
    return _log_config.format


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]
    _log_config.explicit.add("format")


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options, once per session.

    Raises:
        typer.Exit: If the options are not valid logging settings.
    """
    if _log_config.configured:
        return

    if _log_config.level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        console.print(f"[red]Logging configuration error:[/red] unknown level {_log_config.level!r}")
        raise typer.Exit(DEFAULT_FALLBACK_EXIT_CODE)
    if _log_config.format not in ("json", "console"):
        console.print(f"[red]Logging configuration error:[/red] unknown format {_log_config.format!r}")
        raise typer.Exit(DEFAULT_FALLBACK_EXIT_CODE)

    configure_logging(
        level=_log_config.level,
        format=_log_config.format,
        file_path=_log_config.file,
    )
    _log_config.configured = True


def reset_logging_state() -> None:
    """Reset logging state (primarily for testing)."""
    _log_config.level = "WARNING"
    _log_config.file = None
    _log_config.format = "console"
    _log_config.configured = False
    _log_config.explicit.clear()


def apply_file_logging(log_config: LogConfig) -> None:
    """Reconfigure logging from a config file's ``logging`` section.

    Global CLI options (and their environment variables) win over file
    values; file values win over defaults.
    """
    level = _log_config.level if "level" in _log_config.explicit else log_config.level
    fmt = _log_config.format if "format" in _log_config.explicit else log_config.format
    path = _log_config.file if "file" in _log_config.explicit else log_config.file_path
    configure_logging(
        level=level,
        format=fmt,
        file_path=path,
        max_file_size_mb=log_config.max_file_size_mb,
        backup_count=log_config.backup_count,
        include_timestamps=log_config.include_timestamps,
    )
    _log_config.configured = True


# =============================================================================
# Error catalog
# =============================================================================


def load_catalog(contracts_dir: Path | None, console: Console) -> ErrorCatalog:
    """Load the error catalog, exiting with a message if the directory is unusable.

    Raises:
        typer.Exit: If the contracts directory is blank or missing.
    """
    try:
        return ContractLoader(contracts_dir).load()
    except (FileNotFoundError, ValueError) as e:
        _logger.error("cli.contracts_unavailable", error=str(e))
        console.print(f"[red]Cannot load error contracts:[/red] {escape(str(e))}")
        raise typer.Exit(DEFAULT_FALLBACK_EXIT_CODE) from None


def load_configured_catalog(contracts_dir: Path) -> ErrorCatalog:
    """Load a catalog named by a config file.

    Raises:
        InvalidConfigurationFailure: The directory is missing.
    """
    try:
        return ContractLoader(contracts_dir).load()
    except (FileNotFoundError, ValueError) as e:
        raise InvalidConfigurationFailure(
            "Configured contracts directory is unusable.",
            str(e),
            offending_input=str(contracts_dir),
        ) from e


# =============================================================================
# Boundary execution
# =============================================================================


@dataclass(frozen=True)
class PreparedRun:
    """Options and catalog resolved before the main unit of work runs."""

    options: ProcessingOptions
    catalog: ErrorCatalog


def prepare_run(
    catalog: ErrorCatalog,
    config_file: Path | None,
    contracts_dir: Path | None,
    **overrides: object,
) -> PreparedRun:
    """Load the config file, apply its logging, and bind processing options.

    Raises:
        FileAccessFailure: The config file cannot be read.
        InvalidConfigurationFailure: The config or overrides are invalid.
    """
    app_config = load_app_config(config_file)
    if config_file is not None:
        apply_file_logging(app_config.logging)
    if contracts_dir is None and app_config.contracts_dir is not None:
        catalog = load_configured_catalog(app_config.contracts_dir)
    options = bind_processing_options(app_config.processing, **overrides)  # type: ignore[arg-type]
    return PreparedRun(options=options, catalog=catalog)


def run_in_boundary(
    catalog: ErrorCatalog,
    prepare: Callable[[], PreparedRun],
    work: Callable[[ProcessingOptions], int],
) -> int:
    """Prepare, then run ``work`` under the execution boundary.

    Preparation runs in its own boundary without retries, so a bad config
    file or CLI value becomes a classified terminal failure. The work runs
    with the retry policy taken from the bound options.
    """
    prepared: list[PreparedRun] = []

    def prepare_unit() -> int:
        prepared.append(prepare())
        return 0

    bootstrap = ExecutionBoundary(
        catalog,
        RetryPolicy(max_retries=0, base_delay=timedelta(0)),
        on_terminal_failure=render_error_response,
    )
    status = bootstrap.execute(prepare_unit)
    if not prepared:
        return status

    run = prepared[0]
    _logger.debug(
        "cli.options_bound",
        output_dir=str(run.options.output_directory),
        max_retries=run.options.retry.max_retries,
        retry_delay=run.options.retry.retry_delay,
        language=run.options.language,
    )
    boundary = ExecutionBoundary(
        run.catalog,
        RetryPolicy.from_config(run.options.retry),
        on_terminal_failure=render_error_response,
    )
    return boundary.execute(lambda: work(run.options))


__all__ = [
    "CliLoggingConfig",
    "PreparedRun",
    "apply_file_logging",
    "configure_global_logging",
    "get_log_file",
    "get_log_format",
    "get_log_level",
    "load_catalog",
    "load_configured_catalog",
    "prepare_run",
    "reset_logging_state",
    "run_in_boundary",
    "set_log_file",
    "set_log_format",
    "set_log_level",
]
