"""CLI command implementations."""

from .errors import errors, exit_code
from .process import process_all, process_book
from .validate import validate_contracts

__all__ = [
    "errors",
    "exit_code",
    "process_all",
    "process_book",
    "validate_contracts",
]
