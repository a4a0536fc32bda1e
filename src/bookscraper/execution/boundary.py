"""Execution boundary: the single place where failures are caught.

Everything below the boundary (the pipeline, image loading, serialization)
raises and never recovers locally. The boundary runs a unit of work, asks
the classification catalog whether a failure is transient, consults the
retry policy, and either waits and tries again or turns the failure into a
logged ErrorResponse and a process exit code.

Example usage:
    from bookscraper.core.errors import load_error_catalog
    from bookscraper.execution import ExecutionBoundary, RetryPolicy

    boundary = ExecutionBoundary(
        load_error_catalog(),
        RetryPolicy(max_retries=3, base_delay=timedelta(seconds=5)),
    )

    def run_book() -> int:
        processor.process_book(options, book_root)
        return 0

    exit_code = boundary.execute(run_book)
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta

from bookscraper.core.errors import (
    ErrorCatalog,
    ErrorResponse,
    PipelineFailure,
    failure_kind_key,
)
from bookscraper.core.logging import get_logger
from bookscraper.execution.retry_policy import RetryPolicy

_logger = get_logger("boundary")

UnitOfWork = Callable[[], int]
"""Zero-argument callable returning a process exit status, or raising."""

Waiter = Callable[[timedelta], None]
"""Blocks for the given backoff delay."""

TerminalFailureHook = Callable[[ErrorResponse, int], None]
"""Called with the response and exit code once a failure becomes terminal."""


def blocking_wait(delay: timedelta) -> None:
    """Sleep for ``delay``, capped at the platform's maximum timeout."""
    seconds = min(delay.total_seconds(), threading.TIMEOUT_MAX)
    if seconds > 0:
        time.sleep(seconds)


class FailureHandler:
    """Builds and logs the ErrorResponse for a terminal failure."""

    def __init__(self, catalog: ErrorCatalog) -> None:
        self._catalog = catalog

    def handle(self, failure: BaseException) -> ErrorResponse:
        response = self._catalog.build_error_response(failure)
        context = failure.context() if isinstance(failure, PipelineFailure) else {}
        _logger.error(
            "failure.terminal",
            error_code=str(response.error_code),
            failure_kind=failure_kind_key(failure),
            failure_type=type(failure).__name__,
            error_message=response.error_message,
            context=context,
            details=response.details,
        )
        return response


class ExecutionBoundary:
    """Synchronous retry loop around one unit of work.

    Only ``Exception`` subclasses are treated as failures. KeyboardInterrupt
    and SystemExit propagate to the caller untouched.
    """

    def __init__(
        self,
        catalog: ErrorCatalog,
        retry_policy: RetryPolicy,
        *,
        waiter: Waiter = blocking_wait,
        on_terminal_failure: TerminalFailureHook | None = None,
        failure_handler: FailureHandler | None = None,
    ) -> None:
        """Initialize the boundary.

        Args:
            catalog: Classification tables for transience, codes, exit codes.
            retry_policy: Retry budget and backoff schedule.
            waiter: Called with each backoff delay. Tests inject a recorder.
            on_terminal_failure: Optional hook for rendering a terminal
                failure (the CLI prints it with rich).
            failure_handler: Override for building and logging responses.
        """
        if catalog is None:
            raise TypeError("catalog must not be None")
        if retry_policy is None:
            raise TypeError("retry_policy must not be None")
        self._catalog = catalog
        self._retry_policy = retry_policy
        self._waiter = waiter
        self._on_terminal_failure = on_terminal_failure
        self._failure_handler = failure_handler or FailureHandler(catalog)

    @property
    def catalog(self) -> ErrorCatalog:
        return self._catalog

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def execute(self, unit_of_work: UnitOfWork) -> int:
        """Run ``unit_of_work`` until it succeeds or fails terminally.

        Returns:
            The unit's own status on success, otherwise the exit code
            resolved from the terminal failure's error code.
        """
        attempt = 0
        while True:
            try:
                return unit_of_work()
            except Exception as failure:
                if not self._should_retry(failure, attempt):
                    return self._terminate(failure, attempt)

                delay = self._retry_policy.get_delay(attempt)
                _logger.warning(
                    "boundary.retry_scheduled",
                    failure_kind=failure_kind_key(failure),
                    error_code=str(self._catalog.map_failure_to_error_code(failure)),
                    attempt=attempt + 1,
                    max_retries=self._retry_policy.max_retries,
                    delay=delay,
                    error_message=str(failure),
                )
            # Outside the except block: later failures must not chain onto this one.
            self._waiter(delay)
            attempt += 1

    def _should_retry(self, failure: Exception, attempt: int) -> bool:
        if not self._catalog.is_transient(failure):
            return False
        return self._retry_policy.should_retry(failure, attempt)

    def _terminate(self, failure: Exception, attempt: int) -> int:
        response = self._failure_handler.handle(failure)
        exit_code = self._catalog.resolve_exit_code(response.error_code)
        _logger.info(
            "boundary.exiting",
            error_code=str(response.error_code),
            exit_code=exit_code,
            attempts=attempt + 1,
        )
        if self._on_terminal_failure is not None:
            try:
                self._on_terminal_failure(response, exit_code)
            except Exception:
                _logger.exception(
                    "boundary.terminal_hook_failed",
                    error_code=str(response.error_code),
                    exit_code=exit_code,
                )
        return exit_code
