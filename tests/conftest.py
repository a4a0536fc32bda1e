"""Pytest fixtures for bookscraper tests."""

import logging
from collections.abc import Callable, Generator
from datetime import timedelta
from pathlib import Path

import pytest
import structlog

from bookscraper.core.errors import ErrorCatalog, ErrorMetadata, FailureKind

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 24


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    from bookscraper.cli import helpers

    helpers.reset_logging_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def catalog() -> ErrorCatalog:
    """A small catalog mirroring the packaged contracts."""
    return ErrorCatalog(
        failure_mappings={
            FailureKind.FILE_ACCESS: "ERR.IO_FILE_ACCESS",
            FailureKind.INVALID_CONFIGURATION: "ERR.CONFIG_INVALID_BOOK_OPTIONS",
            FailureKind.NETWORK_CONNECTION: "ERR.NETWORK_CONNECTION",
            FailureKind.SERIALIZATION: "ERR.YAML_SERIALIZATION_FAILED",
        },
        error_metadata={
            "ERR.IO_FILE_ACCESS": ErrorMetadata("ERR.IO_FILE_ACCESS", True, "File access failed"),
            "ERR.CONFIG_INVALID_BOOK_OPTIONS": ErrorMetadata(
                "ERR.CONFIG_INVALID_BOOK_OPTIONS", False, "Invalid options"
            ),
            "ERR.NETWORK_CONNECTION": ErrorMetadata("ERR.NETWORK_CONNECTION", True, ""),
            "ERR.UNEXPECTED": ErrorMetadata("ERR.UNEXPECTED", False, "Unexpected error"),
        },
        fallback_error_code="ERR.UNEXPECTED",
        error_code_to_exit_code={
            "ERR.UNEXPECTED": 1,
            "ERR.CONFIG_INVALID_BOOK_OPTIONS": 2,
            "ERR.IO_FILE_ACCESS": 3,
            "ERR.NETWORK_CONNECTION": 4,
        },
    )


class RecordingWaiter:
    """Waiter that records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[timedelta] = []

    def __call__(self, delay: timedelta) -> None:
        self.delays.append(delay)


@pytest.fixture
def waiter() -> RecordingWaiter:
    return RecordingWaiter()


@pytest.fixture
def make_book(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a book directory with the given image file names."""

    def _make(name: str = "moby-dick", pages: tuple[str, ...] = ("p1.png",)) -> Path:
        book = tmp_path / "books" / name
        book.mkdir(parents=True, exist_ok=True)
        for page in pages:
            data = JPEG_BYTES if page.lower().endswith((".jpg", ".jpeg")) else PNG_BYTES
            (book / page).write_bytes(data)
        return book

    return _make


@pytest.fixture
def write_contract(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing a contract file into a temporary contracts directory."""
    contracts = tmp_path / "contracts"
    contracts.mkdir(exist_ok=True)

    def _write(name: str, text: str) -> Path:
        path = contracts / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
