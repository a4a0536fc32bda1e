"""Processing commands: ``process-book`` and ``process-all``.

Both commands only assemble collaborators. All work, including config
loading and option binding, runs inside the execution boundary, and the
command exits with whatever status the boundary returns.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

import typer

from bookscraper.core.config import ProcessingOptions
from bookscraper.core.logging import RunContext, with_context
from bookscraper.pipeline import BatchProcessor, BookProcessor

from ..helpers import configure_global_logging, load_catalog, prepare_run, run_in_boundary
from ..output import console, render_written_pages

# =============================================================================
# Shared options
# =============================================================================

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML configuration file",
)
OutputDirOption = typer.Option(None, "--output-dir", "-o", help="Directory for page YAML files")
MaxRetriesOption = typer.Option(None, "--max-retries", help="Retries after the first failure")
RetryDelayOption = typer.Option(
    None, "--retry-delay", help="Base backoff delay in seconds (doubles per retry)"
)
LanguageOption = typer.Option(None, "--lang", help="OCR language code (e.g. eng)")
ContractsDirOption = typer.Option(
    None,
    "--contracts-dir",
    help="Directory holding the error contracts",
    envvar="BOOKSCRAPER_CONTRACTS_DIR",
)


def process_book(
    book_path: str = typer.Option(..., "--book-path", "-b", help="Directory of page images"),
    config_file: Path | None = ConfigOption,
    output_dir: Path | None = OutputDirOption,
    max_retries: int | None = MaxRetriesOption,
    retry_delay: float | None = RetryDelayOption,
    lang: str | None = LanguageOption,
    contracts_dir: Path | None = ContractsDirOption,
) -> None:
    """Process a single book directory into page YAML files.

    Exit codes come from the error contracts: 0 on success, otherwise the
    exit code mapped to the terminal failure's error code.
    """
    configure_global_logging(console)
    catalog = load_catalog(contracts_dir, console)
    processor = BookProcessor()

    def work(options: ProcessingOptions) -> int:
        pages = processor.process_book(options, book_path)
        render_written_pages(Path(book_path).name, pages)
        return 0

    prepare = partial(
        prepare_run,
        catalog,
        config_file,
        contracts_dir,
        output_directory=output_dir,
        max_retries=max_retries,
        retry_delay_seconds=retry_delay,
        language=lang,
    )
    with with_context(RunContext(command="process-book", book_name=Path(book_path).name or None)):
        exit_code = run_in_boundary(catalog, prepare, work)
    raise typer.Exit(exit_code)


def process_all(
    input_dir: Path | None = typer.Option(
        None, "--input-dir", "-i", help="Directory whose sub-directories are books"
    ),
    config_file: Path | None = ConfigOption,
    output_dir: Path | None = OutputDirOption,
    max_retries: int | None = MaxRetriesOption,
    retry_delay: float | None = RetryDelayOption,
    lang: str | None = LanguageOption,
    contracts_dir: Path | None = ContractsDirOption,
) -> None:
    """Process every book directory under the input directory."""
    configure_global_logging(console)
    catalog = load_catalog(contracts_dir, console)
    batch = BatchProcessor()

    def work(options: ProcessingOptions) -> int:
        results = batch.process_all(options)
        for book_name, pages in results.items():
            render_written_pages(book_name, pages)
        if not results:
            console.print(f"[yellow]No book directories found in {options.input_directory}[/yellow]")
        return 0

    prepare = partial(
        prepare_run,
        catalog,
        config_file,
        contracts_dir,
        input_directory=input_dir,
        output_directory=output_dir,
        max_retries=max_retries,
        retry_delay_seconds=retry_delay,
        language=lang,
    )
    with with_context(RunContext(command="process-all")):
        exit_code = run_in_boundary(catalog, prepare, work)
    raise typer.Exit(exit_code)
