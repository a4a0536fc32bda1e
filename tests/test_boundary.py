"""Tests for the execution boundary.

Covers the retry loop end to end with a recording waiter:
- Transient failures retried with exponential backoff, then terminal
- Non-transient failures terminal on the first attempt
- Recovery on a later attempt
- Logging of retries and terminal failures
"""

from datetime import timedelta

import pytest
from structlog.testing import capture_logs

from bookscraper.core.errors import (
    ErrorCatalog,
    ErrorResponse,
    FileAccessFailure,
    InvalidConfigurationFailure,
)
from bookscraper.execution import ExecutionBoundary, FailureHandler, RetryPolicy, blocking_wait


class Unit:
    """Unit of work that raises the queued failures, then returns a status."""

    def __init__(self, failures: list[BaseException], status: int = 0) -> None:
        self.failures = list(failures)
        self.status = status
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.status


def file_access_failure() -> FileAccessFailure:
    return FileAccessFailure("disk busy", "/books/moby/p1.png")


class TestRetryScenarios:
    """End-to-end retry scenarios."""

    def test_always_transient_exhausts_budget(self, catalog: ErrorCatalog, waiter) -> None:
        """Test 3 retries wait 10, 20, 40 ms, then exit with the mapped code."""
        boundary = ExecutionBoundary(
            catalog, RetryPolicy(3, timedelta(milliseconds=10)), waiter=waiter
        )
        unit = Unit([file_access_failure() for _ in range(10)])

        exit_code = boundary.execute(unit)

        assert waiter.delays == [
            timedelta(milliseconds=10),
            timedelta(milliseconds=20),
            timedelta(milliseconds=40),
        ]
        assert unit.calls == 4
        assert exit_code == catalog.resolve_exit_code("ERR.IO_FILE_ACCESS") == 3

    def test_non_transient_is_terminal_immediately(self, catalog: ErrorCatalog, waiter) -> None:
        """Test invalid configuration is never retried."""
        boundary = ExecutionBoundary(
            catalog, RetryPolicy(3, timedelta(milliseconds=10)), waiter=waiter
        )
        unit = Unit([InvalidConfigurationFailure("bad", "max_retries was -1")])

        exit_code = boundary.execute(unit)

        assert waiter.delays == []
        assert unit.calls == 1
        assert exit_code == 2

    def test_recovers_on_second_attempt(self, catalog: ErrorCatalog, waiter) -> None:
        """Test success after one retry returns the unit's own status."""
        responses: list[ErrorResponse] = []
        boundary = ExecutionBoundary(
            catalog,
            RetryPolicy(3, timedelta(milliseconds=10)),
            waiter=waiter,
            on_terminal_failure=lambda response, code: responses.append(response),
        )
        unit = Unit([file_access_failure()], status=7)

        with capture_logs() as logs:
            exit_code = boundary.execute(unit)

        assert exit_code == 7
        assert waiter.delays == [timedelta(milliseconds=10)]
        assert responses == []
        events = [e["event"] for e in logs]
        assert events.count("boundary.retry_scheduled") == 1
        assert "failure.terminal" not in events

    def test_success_first_time(self, catalog: ErrorCatalog, waiter) -> None:
        """Test a successful unit runs once with no waits."""
        boundary = ExecutionBoundary(catalog, RetryPolicy(3, timedelta(seconds=1)), waiter=waiter)
        unit = Unit([], status=0)
        assert boundary.execute(unit) == 0
        assert unit.calls == 1
        assert waiter.delays == []

    def test_zero_budget_transient_is_terminal(self, catalog: ErrorCatalog, waiter) -> None:
        """Test transient failures are terminal when no retries are allowed."""
        boundary = ExecutionBoundary(catalog, RetryPolicy(0, timedelta(seconds=1)), waiter=waiter)
        assert boundary.execute(Unit([file_access_failure()])) == 3
        assert waiter.delays == []

    def test_unmapped_failure_uses_fallback_exit(self, catalog: ErrorCatalog, waiter) -> None:
        """Test foreign exceptions exit with the fallback exit code."""
        boundary = ExecutionBoundary(catalog, RetryPolicy(3, timedelta(seconds=1)), waiter=waiter)
        assert boundary.execute(Unit([ZeroDivisionError("oops")])) == catalog.fallback_exit_code
        assert waiter.delays == []

    def test_transience_rechecked_per_attempt(self, catalog: ErrorCatalog, waiter) -> None:
        """Test a transient failure followed by a permanent one stops retrying."""
        boundary = ExecutionBoundary(
            catalog, RetryPolicy(5, timedelta(milliseconds=1)), waiter=waiter
        )
        unit = Unit([file_access_failure(), InvalidConfigurationFailure("bad", "details")])
        assert boundary.execute(unit) == 2
        assert unit.calls == 2
        assert len(waiter.delays) == 1


class TestTerminalFailure:
    """Tests for terminal failure handling."""

    def test_hook_receives_response_and_exit_code(self, catalog: ErrorCatalog, waiter) -> None:
        """Test on_terminal_failure is called once with the final response."""
        seen: list[tuple[ErrorResponse, int]] = []
        boundary = ExecutionBoundary(
            catalog,
            RetryPolicy(1, timedelta(0)),
            waiter=waiter,
            on_terminal_failure=lambda response, code: seen.append((response, code)),
        )
        boundary.execute(Unit([file_access_failure(), file_access_failure()]))

        assert len(seen) == 1
        response, exit_code = seen[0]
        assert response.error_code == "ERR.IO_FILE_ACCESS"
        assert response.error_message == "File access failed"
        assert "file_path: /books/moby/p1.png" in response.details
        assert exit_code == 3

    def test_terminal_logging(self, catalog: ErrorCatalog, waiter) -> None:
        """Test retries, the terminal failure, and exit are logged."""
        boundary = ExecutionBoundary(
            catalog, RetryPolicy(2, timedelta(milliseconds=5)), waiter=waiter
        )
        with capture_logs() as logs:
            boundary.execute(Unit([file_access_failure() for _ in range(3)]))

        retries = [e for e in logs if e["event"] == "boundary.retry_scheduled"]
        assert [e["attempt"] for e in retries] == [1, 2]
        assert [e["delay"] for e in retries] == [timedelta(milliseconds=5), timedelta(milliseconds=10)]
        assert retries[0]["error_code"] == "ERR.IO_FILE_ACCESS"
        assert retries[0]["failure_kind"] == "file_access"

        terminal = [e for e in logs if e["event"] == "failure.terminal"]
        assert len(terminal) == 1
        assert terminal[0]["log_level"] == "error"
        assert terminal[0]["context"] == {"file_path": "/books/moby/p1.png"}

        exiting = [e for e in logs if e["event"] == "boundary.exiting"]
        assert exiting[0]["exit_code"] == 3
        assert exiting[0]["attempts"] == 3

    def test_failing_hook_still_returns_exit_code(self, catalog: ErrorCatalog, waiter) -> None:
        """Test a hook that raises is logged and the exit code is still returned."""

        def broken_render(response: ErrorResponse, exit_code: int) -> None:
            raise OSError("console closed")

        boundary = ExecutionBoundary(
            catalog,
            RetryPolicy(0, timedelta(0)),
            waiter=waiter,
            on_terminal_failure=broken_render,
        )
        with capture_logs() as logs:
            exit_code = boundary.execute(Unit([file_access_failure()]))

        assert exit_code == 3
        hook_failed = [e for e in logs if e["event"] == "boundary.terminal_hook_failed"]
        assert len(hook_failed) == 1
        assert hook_failed[0]["log_level"] == "error"
        assert hook_failed[0]["exit_code"] == 3

    def test_failure_handler_returns_response(self, catalog: ErrorCatalog) -> None:
        """Test FailureHandler builds the catalog's response."""
        failure = file_access_failure()
        assert FailureHandler(catalog).handle(failure) == catalog.build_error_response(failure)


class TestNonFailures:
    """Tests for exceptions the boundary must not catch."""

    @pytest.mark.parametrize("exc", [KeyboardInterrupt(), SystemExit(3)])
    def test_base_exceptions_propagate(self, catalog: ErrorCatalog, waiter, exc) -> None:
        """Test KeyboardInterrupt and SystemExit are not classified."""
        boundary = ExecutionBoundary(catalog, RetryPolicy(3, timedelta(0)), waiter=waiter)
        with pytest.raises(type(exc)):
            boundary.execute(Unit([exc]))

    def test_requires_catalog_and_policy(self, catalog: ErrorCatalog) -> None:
        """Test missing collaborators are rejected."""
        with pytest.raises(TypeError):
            ExecutionBoundary(None, RetryPolicy(0, timedelta(0)))  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            ExecutionBoundary(catalog, None)  # type: ignore[arg-type]


class TestBlockingWait:
    """Tests for the default waiter."""

    def test_zero_delay_returns_immediately(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test no sleep happens for a zero delay."""
        calls: list[float] = []
        monkeypatch.setattr("bookscraper.execution.boundary.time.sleep", calls.append)
        blocking_wait(timedelta(0))
        assert calls == []

    def test_sleeps_for_delay(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the delay is passed to time.sleep in seconds."""
        calls: list[float] = []
        monkeypatch.setattr("bookscraper.execution.boundary.time.sleep", calls.append)
        blocking_wait(timedelta(milliseconds=250))
        assert calls == [0.25]

    def test_huge_delay_is_capped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test timedelta.max is capped to the platform maximum."""
        import threading

        calls: list[float] = []
        monkeypatch.setattr("bookscraper.execution.boundary.time.sleep", calls.append)
        blocking_wait(timedelta.max)
        assert calls == [threading.TIMEOUT_MAX]
