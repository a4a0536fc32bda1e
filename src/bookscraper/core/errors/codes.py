"""Error codes and failure kinds.

Contains the identifiers the classification catalog joins on.

This module provides:
- ErrorCode: Case-insensitive, namespaced error code string (``ERR.*``)
- FailureKind: Stable tag carried by every taxonomy failure
- WellKnownCodes: Error codes referenced from code rather than contracts

Error Code Format
=================

Error codes are opaque, dotted tokens authored in the YAML contracts::

    ERR.IO_FILE_ACCESS
    ERR.NETWORK_CONNECTION
    ERR.CONFIG_INVALID_BOOK_OPTIONS

The part before the first dot is the namespace. Codes compare equal
regardless of case, so ``err.io_file_access`` written in one contract joins
with ``ERR.IO_FILE_ACCESS`` written in another.

Failure Kinds
=============

| Kind | Raised by | Typical code | Transient |
|------|-----------|--------------|-----------|
| file_access | image loading, output writes | ERR.IO_FILE_ACCESS | Yes |
| content_processing | image decoding | ERR.IMAGE_PROCESSING_FAILED | No |
| network_connection | remote OCR services | ERR.NETWORK_CONNECTION | Yes |
| operation_timeout | OCR inference | ERR.OPERATION_TIMEOUT | Yes |
| serialization | page YAML (de)serialization | ERR.YAML_SERIALIZATION_FAILED | No |
| invalid_configuration | option binding, input layout | ERR.CONFIG_INVALID_BOOK_OPTIONS | No |
| missing_book_name | book name derivation | ERR.CONFIG_MISSING_BOOK_NAME | No |

Anything else falls through to the catalog's fallback code.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from bookscraper.core.constants import DEFAULT_FALLBACK_ERROR_CODE, YAML_SERIALIZATION_ERROR_CODE


class ErrorCode(str):
    """Stable, case-insensitive error code identifier.

    Behaves like the string it was built from (printing, JSON, YAML), but
    equality and hashing ignore case so dictionaries keyed by ErrorCode join
    codes written with different casing.

    Raises:
        ValueError: If the value is empty or whitespace.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> ErrorCode:
        if not isinstance(value, str):
            raise TypeError(f"error code must be a string, got {type(value).__name__}")
        stripped = value.strip()
        if not stripped:
            raise ValueError("Error code must not be empty or whitespace")
        return super().__new__(cls, stripped)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return self.casefold() == other.strip().casefold()
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(self.casefold())

    def __repr__(self) -> str:
        return f"ErrorCode({str.__repr__(self)})"

    @property
    def namespace(self) -> str:
        """Namespace prefix (text before the first dot), e.g. ``ERR``."""
        head, _, _ = self.partition(".")
        return head

    @classmethod
    def coerce(cls, value: Any) -> ErrorCode | None:
        """Build an ErrorCode from an arbitrary value, or None if not possible.

        Used where contract data may hold non-string or blank keys that should
        be skipped rather than rejected.
        """
        if isinstance(value, ErrorCode):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        return cls(value)


class FailureKind(str, Enum):
    """Stable tag identifying a taxonomy failure.

    The classification catalog keys on these values, so renaming an
    exception class never changes how it is classified.
    """

    FILE_ACCESS = "file_access"
    """A file or directory could not be read or written."""

    CONTENT_PROCESSING = "content_processing"
    """An artifact was read but its content could not be processed."""

    NETWORK_CONNECTION = "network_connection"
    """A remote service could not be reached."""

    OPERATION_TIMEOUT = "operation_timeout"
    """An operation exceeded its time budget."""

    SERIALIZATION = "serialization"
    """Page YAML could not be produced or parsed."""

    INVALID_CONFIGURATION = "invalid_configuration"
    """Options or input layout are invalid; requires user fix."""

    MISSING_BOOK_NAME = "missing_book_name"
    """A logical book name could not be derived from the filesystem layout."""


class WellKnownCodes:
    """Error codes referenced from code.

    Everything else lives in the YAML contracts; these are the few codes the
    pipeline itself needs to name.
    """

    UNEXPECTED = ErrorCode(DEFAULT_FALLBACK_ERROR_CODE)
    YAML_SERIALIZATION_FAILED = ErrorCode(YAML_SERIALIZATION_ERROR_CODE)
