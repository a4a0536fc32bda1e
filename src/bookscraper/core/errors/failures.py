"""Failure taxonomy for the book processing pipeline.

Every fallible pipeline operation raises one of the failures below (or lets a
lower-level exception escape, which the catalog then treats as unexpected).
All failures inherit from PipelineFailure, enabling callers to catch broad
(PipelineFailure) or narrow (e.g., FileAccessFailure).

Each failure class carries:
- a stable ``kind`` tag (FailureKind) the classification catalog keys on
- a typed context payload (a path, a URL, a duration, a detail string)
- an optional wrapped cause, set either with ``cause=`` or ``raise ... from``

Required context is validated at construction; a failure can never exist
without the context needed to diagnose it.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, ClassVar

from .codes import FailureKind


def _require_text(value: Any, field_name: str) -> str:
    """Return ``value`` if it is a non-blank string, else raise ValueError."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string, got {type(value).__name__}")
    if not value.strip():
        raise ValueError(f"{field_name} must not be empty or whitespace")
    return value


def _optional_text(value: Any, field_name: str) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _require_text(value, field_name)


class PipelineFailure(Exception):
    """Base exception for all classified pipeline failures.

    Subclasses set ``kind`` and ``context_fields``; the base class provides
    cause wrapping and diagnostic rendering.
    """

    kind: ClassVar[FailureKind]
    context_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        """The wrapped lower-level exception, if any."""
        return self.__cause__

    def context(self) -> dict[str, Any]:
        """Typed context as a dictionary (None values omitted)."""
        result: dict[str, Any] = {}
        for name in self.context_fields:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result

    def diagnostic(self) -> str:
        """Full diagnostic text: message, typed context, and cause chain."""
        return describe_failure(self)

    def __str__(self) -> str:
        return self.message


class FileAccessFailure(PipelineFailure):
    """A file or directory could not be read, written, or found."""

    kind = FailureKind.FILE_ACCESS
    context_fields = ("file_path",)

    def __init__(
        self,
        message: str,
        file_path: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.file_path = _require_text(file_path, "file_path")


class ImageProcessingFailure(PipelineFailure):
    """A page image was read but could not be processed."""

    kind = FailureKind.CONTENT_PROCESSING
    context_fields = ("image_path",)

    def __init__(
        self,
        message: str,
        image_path: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.image_path = _require_text(image_path, "image_path")


class NetworkConnectionFailure(PipelineFailure):
    """A remote service (e.g. a hosted OCR endpoint) could not be reached."""

    kind = FailureKind.NETWORK_CONNECTION
    context_fields = ("service_url",)

    def __init__(
        self,
        message: str,
        service_url: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.service_url = _require_text(service_url, "service_url")


class OperationTimeoutFailure(PipelineFailure):
    """An operation exceeded its time budget.

    Not to be confused with the builtin TimeoutError, which is a foreign
    exception as far as classification is concerned.
    """

    kind = FailureKind.OPERATION_TIMEOUT
    context_fields = ("timeout",)

    def __init__(
        self,
        message: str,
        timeout: timedelta,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        if timeout is None:
            raise ValueError("timeout is required")
        if not isinstance(timeout, timedelta):
            raise TypeError(f"timeout must be a timedelta, got {type(timeout).__name__}")
        if timeout < timedelta(0):
            raise ValueError(f"timeout must not be negative, got {timeout}")
        self.timeout = timeout


class YamlSerializationFailure(PipelineFailure):
    """Page YAML could not be produced or parsed.

    ``error_code`` is the serializer's own code for the failure; it is
    reported as context and does not override catalog classification.
    """

    kind = FailureKind.SERIALIZATION
    context_fields = ("error_code",)

    def __init__(
        self,
        message: str,
        error_code: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.error_code = _require_text(error_code, "error_code")


class InvalidConfigurationFailure(PipelineFailure):
    """Options, arguments, or input layout are invalid."""

    kind = FailureKind.INVALID_CONFIGURATION
    context_fields = ("configuration_details", "offending_input")

    def __init__(
        self,
        message: str,
        configuration_details: str,
        *,
        offending_input: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.configuration_details = _require_text(
            configuration_details, "configuration_details"
        )
        self.offending_input = offending_input


class MissingBookNameFailure(PipelineFailure):
    """A logical book name could not be derived from the filesystem layout."""

    kind = FailureKind.MISSING_BOOK_NAME
    context_fields = ("book_root_path", "image_path")

    def __init__(
        self,
        message: str,
        book_root_path: str,
        image_path: str | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.book_root_path = _require_text(book_root_path, "book_root_path")
        self.image_path = _optional_text(image_path, "image_path")


# =============================================================================
# Registration table
# =============================================================================

FAILURE_TYPES: dict[str, type[PipelineFailure]] = {
    "FileAccessFailure": FileAccessFailure,
    "ImageProcessingFailure": ImageProcessingFailure,
    "NetworkConnectionFailure": NetworkConnectionFailure,
    "OperationTimeoutFailure": OperationTimeoutFailure,
    "YamlSerializationFailure": YamlSerializationFailure,
    "InvalidConfigurationFailure": InvalidConfigurationFailure,
    "MissingBookNameFailure": MissingBookNameFailure,
}
"""Taxonomy class name -> class, used to resolve contract keys by name."""


def failure_kind_key(failure: BaseException) -> str:
    """Return the classification key for any exception.

    Taxonomy failures use their kind tag. Foreign exceptions use their fully
    qualified class name (``builtins.TimeoutError``), which contracts may map
    explicitly; otherwise they resolve to the fallback code.
    """
    if isinstance(failure, PipelineFailure):
        return failure.kind.value
    failure_type = type(failure)
    return f"{failure_type.__module__}.{failure_type.__qualname__}"


def _headline(failure: BaseException) -> str:
    message = str(failure)
    name = type(failure).__name__
    return f"{name}: {message}" if message else name


def describe_failure(failure: BaseException) -> str:
    """Render a diagnostic string for any exception.

    Includes the exception's type and message, its typed context when it is
    a PipelineFailure, and every wrapped cause (explicit ``__cause__`` or
    implicit ``__context__``), innermost last.
    """
    lines: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = failure
    prefix = ""

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        lines.append(f"{prefix}{_headline(current)}")
        if isinstance(current, PipelineFailure):
            for name, value in current.context().items():
                lines.append(f"  {name}: {value}")

        if current.__cause__ is not None:
            current = current.__cause__
        elif current.__context__ is not None and not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
        prefix = "Caused by: "

    return "\n".join(lines)
