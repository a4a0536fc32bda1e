"""Rich output formatting for the bookscraper CLI.

This module centralizes the Rich-based formatting used by commands:
- The shared console instance
- Table builders for the error catalog
- Panels for terminal failures and run summaries
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from pathlib import Path

    from bookscraper.core.errors import ErrorCatalog, ErrorResponse

# =============================================================================
# Shared console instance
# =============================================================================

console = Console()


# =============================================================================
# Table builders
# =============================================================================


def create_error_codes_table(title: str = "Error Catalog") -> Table:
    """Create a styled table for error code listings."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Transient", justify="center", width=9)
    table.add_column("Exit", justify="right", width=4)
    table.add_column("Message", no_wrap=False)
    return table


def catalog_rows(catalog: ErrorCatalog) -> list[dict[str, object]]:
    """One row per known error code, sorted by code.

    Codes appear when they have metadata, an exit mapping, or are the
    fallback code.
    """
    codes = {catalog.fallback_error_code}
    codes.update(catalog.error_metadata)
    codes.update(catalog.error_code_to_exit_code)

    rows = []
    for code in sorted(codes, key=lambda c: c.casefold()):
        metadata = catalog.lookup_metadata(code)
        rows.append({
            "error_code": str(metadata.error_code),
            "is_transient": metadata.is_transient,
            "exit_code": catalog.resolve_exit_code(code),
            "default_message": metadata.default_message,
            "fallback": code == catalog.fallback_error_code,
        })
    return rows


def render_catalog(catalog: ErrorCatalog) -> Table:
    table = create_error_codes_table()
    for row in catalog_rows(catalog):
        code = str(row["error_code"])
        if row["fallback"]:
            code += " [dim](fallback)[/dim]"
        table.add_row(
            code,
            "[yellow]yes[/yellow]" if row["is_transient"] else "no",
            str(row["exit_code"]),
            escape(str(row["default_message"])),
        )
    return table


def create_failure_mappings_table(catalog: ErrorCatalog) -> Table:
    table = Table(title="Failure Mappings", show_header=True, header_style="bold")
    table.add_column("Failure", style="cyan", no_wrap=True)
    table.add_column("Code")
    for kind, code in sorted(catalog.failure_mappings.items()):
        table.add_row(kind, str(code))
    return table


# =============================================================================
# Panels
# =============================================================================


def render_error_response(response: ErrorResponse, exit_code: int) -> None:
    """Print a terminal failure to the console."""
    body = f"[bold]{escape(response.error_message)}[/bold]"
    if response.details:
        body += f"\n\n[dim]{escape(response.details)}[/dim]"
    console.print(
        Panel(
            body,
            title=f"[red]{response.error_code}[/red]",
            subtitle=f"exit code {exit_code}",
            border_style="red",
        )
    )


def render_written_pages(book_name: str, pages: list[Path]) -> None:
    console.print(f"[green]✓[/green] {escape(book_name)}: {len(pages)} page(s) written")
