"""Execution layer: retry policy and the execution boundary."""

from bookscraper.execution.boundary import (
    ExecutionBoundary,
    FailureHandler,
    TerminalFailureHook,
    UnitOfWork,
    Waiter,
    blocking_wait,
)
from bookscraper.execution.retry_policy import RetryPolicy

__all__ = [
    "ExecutionBoundary",
    "FailureHandler",
    "RetryPolicy",
    "TerminalFailureHook",
    "UnitOfWork",
    "Waiter",
    "blocking_wait",
]
