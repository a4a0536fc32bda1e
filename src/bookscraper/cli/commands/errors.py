"""Error catalog inspection commands: ``errors`` and ``exit-code``."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..helpers import configure_global_logging, load_catalog
from ..output import (
    catalog_rows,
    console,
    create_failure_mappings_table,
    render_catalog,
)


def errors(
    contracts_dir: Path | None = typer.Option(
        None,
        "--contracts-dir",
        help="Directory holding the error contracts",
        envvar="BOOKSCRAPER_CONTRACTS_DIR",
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List error codes with their transience and exit codes."""
    configure_global_logging(console)
    catalog = load_catalog(contracts_dir, console)

    if json_output:
        payload = {
            "fallback_error_code": str(catalog.fallback_error_code),
            "fallback_exit_code": catalog.fallback_exit_code,
            "errors": catalog_rows(catalog),
            "failure_mappings": {k: str(v) for k, v in catalog.failure_mappings.items()},
        }
        console.print(json.dumps(payload, indent=2), soft_wrap=True, highlight=False)
        return

    console.print(render_catalog(catalog))
    console.print(create_failure_mappings_table(catalog))


def exit_code(
    code: str = typer.Argument(..., help="Error code, e.g. ERR.IO_FILE_ACCESS"),
    contracts_dir: Path | None = typer.Option(
        None,
        "--contracts-dir",
        help="Directory holding the error contracts",
        envvar="BOOKSCRAPER_CONTRACTS_DIR",
    ),
) -> None:
    """Print the process exit code an error code resolves to."""
    configure_global_logging(console)
    catalog = load_catalog(contracts_dir, console)
    console.print(str(catalog.resolve_exit_code(code)), highlight=False)
