"""bookscraper CLI.

The CLI is built using Typer and organized into command modules:

    cli/
    ├── __init__.py           # App assembly and global options
    ├── helpers.py            # Logging setup, catalog loading, boundary runs
    ├── output.py             # Rich formatting
    └── commands/
        ├── process.py        # process-book, process-all
        ├── errors.py         # errors, exit-code
        └── validate.py       # validate-contracts
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from bookscraper import __version__

from .commands import errors, exit_code, process_all, process_book, validate_contracts
from .helpers import set_log_file, set_log_format, set_log_level
from .output import console

# =============================================================================
# Typer app definition
# =============================================================================

app = typer.Typer(
    name="bookscraper",
    help="Turn scanned book pages into per-page YAML files",
    add_completion=False,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"bookscraper v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="BOOKSCRAPER_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="BOOKSCRAPER_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json or console",
            envvar="BOOKSCRAPER_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """bookscraper - contract-driven book page extraction."""


# =============================================================================
# Command registration
# =============================================================================

app.command(name="process-book")(process_book)
app.command(name="process-all")(process_all)
app.command()(errors)
app.command(name="exit-code")(exit_code)
app.command(name="validate-contracts")(validate_contracts)


__all__ = [
    "app",
    "main",
    "console",
]
