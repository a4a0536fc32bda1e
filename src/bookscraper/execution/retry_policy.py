"""Bounded exponential backoff for the execution boundary.

The policy answers "may I try again?" and "how
long do I wait?" for a 0-based attempt index. Whether a failure is worth
retrying at all is the classification catalog's decision, not the policy's.

Example usage:
    from datetime import timedelta
    from bookscraper.execution.retry_policy import RetryPolicy

    policy = RetryPolicy(max_retries=3, base_delay=timedelta(seconds=5))
    policy.should_retry(failure, 0)   # True
    policy.get_delay(2)               # timedelta(seconds=20)
    policy.should_retry(failure, 3)   # False
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookscraper.core.config import RetryConfig


def _check_attempt_index(attempt_index: int) -> None:
    if attempt_index < 0:
        raise ValueError(f"attempt_index must not be negative, got {attempt_index}")


class RetryPolicy:
    """Deterministic exponential backoff with a fixed retry budget.

    ``max_retries`` counts retries, not attempts: a budget of 3 allows up to
    four executions of the unit of work. Delays double with each attempt and
    carry no jitter, so the schedule is fully reproducible.
    """

    def __init__(self, max_retries: int, base_delay: timedelta) -> None:
        """Initialize the retry policy.

        Args:
            max_retries: Retries allowed after the first failure (0 disables).
            base_delay: Delay before the first retry.

        Raises:
            ValueError: If max_retries or base_delay is negative.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {max_retries}")
        if base_delay < timedelta(0):
            raise ValueError(f"base_delay must not be negative, got {base_delay}")
        self._max_retries = max_retries
        self._base_delay = base_delay

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        """Build a policy from validated retry configuration."""
        return cls(max_retries=config.max_retries, base_delay=config.retry_delay)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def base_delay(self) -> timedelta:
        return self._base_delay

    def should_retry(self, failure: BaseException, attempt_index: int) -> bool:
        """Whether another attempt is allowed after ``attempt_index`` failed.

        The failure itself is not inspected; transience is decided by the
        caller before consulting the policy.
        """
        _check_attempt_index(attempt_index)
        return attempt_index < self._max_retries

    def get_delay(self, attempt_index: int) -> timedelta:
        """Backoff before the retry following ``attempt_index``.

        Returns ``base_delay * 2**attempt_index``, saturating at
        ``timedelta.max`` instead of overflowing.
        """
        _check_attempt_index(attempt_index)
        try:
            return self._base_delay * (2**attempt_index)
        except OverflowError:
            return timedelta.max

    def __repr__(self) -> str:
        return f"RetryPolicy(max_retries={self._max_retries}, base_delay={self._base_delay!r})"
