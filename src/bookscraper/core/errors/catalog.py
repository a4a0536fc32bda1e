"""Classification catalog: failure kinds, error codes, metadata, exit codes.

The catalog is a thin, immutable view over tables hydrated from the YAML
error contracts (see ``bookscraper.core.errors.contracts``). It owns no
hard-coded error data and performs no I/O: it only stores and serves the
finished tables.

Lookups never fail. A failure whose kind has no mapping resolves to the
fallback error code; a code with no metadata is treated as non-transient
with no default message; a code with no exit mapping resolves to the
fallback exit code.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from bookscraper.core.constants import DEFAULT_FALLBACK_EXIT_CODE

from .codes import ErrorCode, FailureKind
from .failures import describe_failure, failure_kind_key
from .models import ErrorMetadata, ErrorResponse


def _kind_key(key: FailureKind | str) -> str:
    if isinstance(key, FailureKind):
        return key.value
    if not isinstance(key, str) or not key.strip():
        raise ValueError(f"Failure mapping key must be a non-empty string, got {key!r}")
    return key.strip()


def derive_fallback_exit_code(
    fallback_error_code: ErrorCode,
    error_code_to_exit_code: Mapping[ErrorCode, int],
) -> int:
    """Fallback exit code: the fallback code's own mapping, else the default (1)."""
    return error_code_to_exit_code.get(fallback_error_code, DEFAULT_FALLBACK_EXIT_CODE)


class ErrorCatalog:
    """Immutable classification tables shared by every operation in a run.

    Exposes:
    - failure kind -> error code (for building ErrorResponse)
    - error code -> metadata (transience, default message)
    - error code -> exit code, plus a fallback exit code for unmapped codes

    Example:
        catalog = ErrorCatalog(
            failure_mappings={FailureKind.FILE_ACCESS: "ERR.IO_FILE_ACCESS"},
            error_metadata={
                "ERR.IO_FILE_ACCESS": ErrorMetadata("ERR.IO_FILE_ACCESS", True, "File access failed"),
            },
            fallback_error_code="ERR.UNEXPECTED",
            error_code_to_exit_code={"ERR.UNEXPECTED": 1, "ERR.IO_FILE_ACCESS": 3},
        )
        catalog.is_transient(FileAccessFailure("boom", "/tmp/page.png"))  # True
    """

    def __init__(
        self,
        failure_mappings: Mapping[FailureKind | str, str],
        error_metadata: Mapping[str, ErrorMetadata],
        fallback_error_code: str,
        error_code_to_exit_code: Mapping[str, int],
        fallback_exit_code: int | None = None,
    ) -> None:
        """Build the catalog from finished tables.

        Args:
            failure_mappings: Failure kind tag (or qualified foreign exception
                name) -> error code. May be empty.
            error_metadata: Error code -> metadata. May be empty.
            fallback_error_code: Code used for failures with no mapping.
            error_code_to_exit_code: Error code -> process exit code. May be empty.
            fallback_exit_code: Exit code for codes with no mapping. When
                omitted it is derived from the fallback error code's mapping,
                defaulting to 1.

        Raises:
            TypeError: If any mapping is None.
            ValueError: If the fallback error code is blank.
        """
        if failure_mappings is None:
            raise TypeError("failure_mappings must not be None")
        if error_metadata is None:
            raise TypeError("error_metadata must not be None")
        if error_code_to_exit_code is None:
            raise TypeError("error_code_to_exit_code must not be None")
        if fallback_error_code is None or not str(fallback_error_code).strip():
            raise ValueError("Fallback error code must not be empty or whitespace")

        self._fallback_error_code = ErrorCode(fallback_error_code)

        self._failure_mappings: Mapping[str, ErrorCode] = MappingProxyType({
            _kind_key(kind): ErrorCode(code) for kind, code in failure_mappings.items()
        })
        self._error_metadata: Mapping[ErrorCode, ErrorMetadata] = MappingProxyType({
            ErrorCode(code): metadata for code, metadata in error_metadata.items()
        })
        self._exit_codes: Mapping[ErrorCode, int] = MappingProxyType({
            ErrorCode(code): int(exit_code)
            for code, exit_code in error_code_to_exit_code.items()
        })

        if fallback_exit_code is None:
            fallback_exit_code = derive_fallback_exit_code(
                self._fallback_error_code, self._exit_codes
            )
        self._fallback_exit_code = int(fallback_exit_code)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def fallback_error_code(self) -> ErrorCode:
        return self._fallback_error_code

    @property
    def fallback_exit_code(self) -> int:
        """Exit code used when an error code has no exit mapping."""
        return self._fallback_exit_code

    @property
    def failure_mappings(self) -> Mapping[str, ErrorCode]:
        return self._failure_mappings

    @property
    def error_metadata(self) -> Mapping[ErrorCode, ErrorMetadata]:
        return self._error_metadata

    @property
    def error_code_to_exit_code(self) -> Mapping[ErrorCode, int]:
        """Contract-driven mapping from error codes to CLI exit codes."""
        return self._exit_codes

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def map_failure_to_error_code(self, failure: BaseException) -> ErrorCode:
        """Map a failure to its error code, or the fallback code if unmapped."""
        if failure is None:
            raise TypeError("failure must not be None")
        return self._failure_mappings.get(failure_kind_key(failure), self._fallback_error_code)

    def lookup_metadata(self, error_code: str) -> ErrorMetadata:
        """Metadata for a code; unknown codes get non-transient, empty-message metadata."""
        code = ErrorCode(error_code)
        metadata = self._error_metadata.get(code)
        if metadata is None:
            return ErrorMetadata.unknown(code)
        return metadata

    def is_transient(self, failure: BaseException) -> bool:
        """Whether the failure should be treated as transient (retryable)."""
        return self.lookup_metadata(self.map_failure_to_error_code(failure)).is_transient

    def build_error_response(self, failure: BaseException) -> ErrorResponse:
        """Build the user-facing response for a terminal failure.

        The message is the contract's default message when one exists, else
        the failure's own message. Details always carry the full diagnostic
        (message, typed context, cause chain).
        """
        error_code = self.map_failure_to_error_code(failure)
        metadata = self.lookup_metadata(error_code)

        message = metadata.default_message
        if not message.strip():
            message = str(failure)

        return ErrorResponse(
            error_code=metadata.error_code,
            error_message=message,
            details=describe_failure(failure),
        )

    def resolve_exit_code(self, error_code: str | None) -> int:
        """Exit code for an error code; the fallback exit code when unmapped.

        Membership in the exit map decides fallback use, so a mapped code
        whose value equals the fallback still counts as mapped.
        """
        code = ErrorCode.coerce(error_code)
        if code is None:
            return self._fallback_exit_code
        exit_code = self._exit_codes.get(code)
        if exit_code is None:
            return self._fallback_exit_code
        return exit_code

    def __repr__(self) -> str:
        return (
            f"ErrorCatalog(failure_mappings={len(self._failure_mappings)}, "
            f"error_codes={len(self._error_metadata)}, "
            f"exit_codes={len(self._exit_codes)}, "
            f"fallback={self._fallback_error_code!s}->{self._fallback_exit_code})"
        )
