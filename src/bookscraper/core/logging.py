"""Structured logging for bookscraper.

Every component logs through ``get_logger(component)``. Records are
rendered by structlog on top of the stdlib logging tree, so the stderr
handler and the optional rotating log file see the same events.

Each record carries:
- ``component``: the subsystem that emitted it (boundary, contracts, pipeline, cli)
- ``run_id``/``command``/``book_name``: from the active RunContext, if any
- ``level`` and, by default, an ISO-8601 UTC ``timestamp``

Usage::

    configure_logging(level="DEBUG", format="json")
    logger = get_logger("boundary")

    with with_context(RunContext(command="process-book").with_book("moby-dick")):
        logger.warning("boundary.retry_scheduled", attempt=1, delay=timedelta(seconds=5))
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Keys containing any of these are redacted before rendering
SENSITIVE_PATTERNS = frozenset({"password", "secret", "token", "api_key", "credential"})

# Longer strings (base64 page images, OCR text) are cut down to this many characters
MAX_VALUE_CHARS = 512

# Diagnostic keys kept whole so cause chains survive in log files
UNTRUNCATED_KEYS = frozenset({"details"})

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


# =============================================================================
# Run context
# =============================================================================


@dataclass(frozen=True)
class RunContext:
    """Correlation fields shared by every record of one CLI invocation.

    Attributes:
        run_id: Unique ID per process invocation.
        command: CLI command being executed (e.g. "process-book").
        book_name: Book currently being processed, if any.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    command: str = "unknown"
    book_name: str | None = None

    def with_book(self, book_name: str) -> RunContext:
        return replace(self, book_name=book_name)

    def to_dict(self) -> dict[str, Any]:
        """Context fields for logging, without unset values."""
        fields = {"run_id": self.run_id, "command": self.command, "book_name": self.book_name}
        return {k: v for k, v in fields.items() if v is not None}


_current_context: ContextVar[RunContext | None] = ContextVar(
    "bookscraper_run_context", default=None
)


def get_current_context() -> RunContext | None:
    return _current_context.get()


@contextmanager
def with_context(ctx: RunContext) -> Iterator[RunContext]:
    """Make ``ctx`` the active RunContext inside the block."""
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


# =============================================================================
# Processors
# =============================================================================


def _scrub(key: str, value: Any) -> Any:
    if any(pattern in key.lower() for pattern in SENSITIVE_PATTERNS):
        return "[REDACTED]"
    if key in UNTRUNCATED_KEYS:
        return value
    if isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
        return f"{value[:MAX_VALUE_CHARS]}... ({len(value)} chars)"
    return value


def _scrub_event(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact secrets and truncate bulky values, one level into dict values."""
    return {
        key: (
            {k: _scrub(k, v) for k, v in value.items()}
            if isinstance(value, dict)
            else _scrub(key, value)
        )
        for key, value in event_dict.items()
    }


def _merge_run_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add RunContext fields; explicitly bound keys win."""
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


def _seconds_for_durations(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, timedelta):
            event_dict[key] = value.total_seconds()
    return event_dict


def _utc_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _build_processors(format: LogFormat, include_timestamps: bool) -> list[Processor]:  # noqa: A002
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _scrub_event,
        _merge_run_context,
        _seconds_for_durations,
    ]
    if include_timestamps:
        processors.append(_utc_timestamp)
    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


# =============================================================================
# Logger wrapper
# =============================================================================


class BookscraperLogger:
    """Component logger that resolves the structlog logger on every call.

    Module-level loggers are created at import time, before the CLI has
    configured logging, so nothing is cached here.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def bind(self, **context: Any) -> BookscraperLogger:
        return BookscraperLogger(self._component, **{**self._context, **context})

    def unbind(self, *keys: str) -> BookscraperLogger:
        kept = {k: v for k, v in self._context.items() if k != "component" and k not in keys}
        return BookscraperLogger(self._component, **kept)

    def _emit(self, method: str, event: str, kw: dict[str, Any]) -> None:
        bound = structlog.get_logger().bind(**self._context)
        getattr(bound, method)(event, **kw)

    def debug(self, event: str, **kw: Any) -> None:
        self._emit("debug", event, kw)

    def info(self, event: str, **kw: Any) -> None:
        self._emit("info", event, kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._emit("warning", event, kw)

    def error(self, event: str, **kw: Any) -> None:
        self._emit("error", event, kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._emit("exception", event, kw)


def get_logger(component: str, **initial_context: Any) -> BookscraperLogger:
    return BookscraperLogger(component, **initial_context)


# =============================================================================
# Configuration
# =============================================================================


def _build_handlers(
    level: int,
    file_path: Path | None,
    max_file_size_mb: int,
    backup_count: int,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Route bookscraper records to stderr and, optionally, a rotating file.

    Safe to call more than once; each call replaces the root handlers.

    Args:
        level: Minimum log level to capture.
        format: "json" for one JSON object per line, "console" for humans.
        file_path: Optional log file; parent directories are created.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Add an ISO-8601 UTC ``timestamp`` to each record.
    """
    numeric_level = logging.getLevelName(level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _build_handlers(numeric_level, file_path, max_file_size_mb, backup_count):
        root.addHandler(handler)
    root.setLevel(numeric_level)

    structlog.configure(
        processors=_build_processors(format, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


__all__ = [
    "BookscraperLogger",
    "LogFormat",
    "LogLevel",
    "MAX_VALUE_CHARS",
    "RunContext",
    "SENSITIVE_PATTERNS",
    "UNTRUNCATED_KEYS",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
