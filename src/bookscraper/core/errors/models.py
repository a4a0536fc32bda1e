"""Data models for error classification.

This module provides:
- ErrorMetadata: Contract metadata for one error code
- ErrorResponse: User-facing description of a terminal failure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bookscraper.core.constants import DEFAULT_FALLBACK_ERROR_CODE

from .codes import ErrorCode


@dataclass(frozen=True)
class ErrorMetadata:
    """Metadata view over one ``errors`` entry of the YAML contracts.

    Attributes:
        error_code: The code this metadata describes.
        is_transient: Whether failures with this code are worth retrying.
        default_message: Human-readable message shown instead of the raw
            exception message (empty means "use the exception message").
    """

    error_code: ErrorCode
    is_transient: bool = False
    default_message: str = ""

    def __post_init__(self) -> None:
        # Accept plain strings; normalize to ErrorCode (raises on blank).
        object.__setattr__(self, "error_code", ErrorCode(self.error_code))
        object.__setattr__(self, "default_message", self.default_message or "")

    @classmethod
    def unknown(cls, error_code: ErrorCode) -> ErrorMetadata:
        """Metadata synthesized for a code with no contract entry."""
        return cls(error_code=error_code, is_transient=False, default_message="")


@dataclass(frozen=True)
class ErrorResponse:
    """Structured description of a terminal failure.

    Built only by the classification catalog, at the moment a failure stops
    being retried. ``details`` always carries the full diagnostic text even
    when ``error_message`` is a friendly contract message.
    """

    error_code: ErrorCode = field(default_factory=lambda: ErrorCode(DEFAULT_FALLBACK_ERROR_CODE))
    error_message: str = ""
    details: str = ""

    def __post_init__(self) -> None:
        code = ErrorCode.coerce(self.error_code) or ErrorCode(DEFAULT_FALLBACK_ERROR_CODE)
        object.__setattr__(self, "error_code", code)
        object.__setattr__(self, "error_message", self.error_message or "")
        object.__setattr__(self, "details", self.details or "")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "error_code": str(self.error_code),
            "error_message": self.error_message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return (
            f"ErrorCode: {self.error_code}, Message: {self.error_message}, "
            f"Details: {self.details}"
        )
