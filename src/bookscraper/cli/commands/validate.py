"""Contract validation command: ``validate-contracts``.

Exit codes:
  0: Every contract file loaded
  1: The contracts directory is unusable, or a contract file was skipped
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from bookscraper.core.constants import DEFAULT_FALLBACK_EXIT_CODE
from bookscraper.core.errors import ContractLoader

from ..helpers import configure_global_logging
from ..output import console


def validate_contracts(
    contracts_dir: Path | None = typer.Option(
        None,
        "--contracts-dir",
        help="Directory holding the error contracts",
        envvar="BOOKSCRAPER_CONTRACTS_DIR",
    ),
) -> None:
    """Load the error contracts and report on each file."""
    configure_global_logging(console)

    try:
        loader = ContractLoader(contracts_dir)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(DEFAULT_FALLBACK_EXIT_CODE) from None

    catalog = loader.load()
    console.print(f"Contracts directory: {loader.contracts_dir}")
    for path in loader.loaded_files:
        console.print(f"[green]✓[/green] {path.name}")
    for path, reason in loader.skipped_files:
        console.print(f"[red]✗[/red] {path.name}: {escape(reason)}")

    console.print(
        f"\n{len(catalog.error_metadata)} error codes, "
        f"{len(catalog.error_code_to_exit_code)} exit mappings, "
        f"{len(catalog.failure_mappings)} failure mappings; "
        f"fallback {catalog.fallback_error_code} -> {catalog.fallback_exit_code}",
        highlight=False,
    )

    if loader.skipped_files:
        raise typer.Exit(DEFAULT_FALLBACK_EXIT_CODE)
