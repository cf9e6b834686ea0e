"""Retry policy with exponential backoff."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

Sleep = Callable[[float], Awaitable[None]]


def compute_backoff_delay(attempt: int, base_delay: float) -> float:
    """Compute the delay after a failed attempt.

    delay = base_delay * 2^(attempt - 1)
    """
    return base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff.

    ``attempt`` numbers passed to the policy are 1-based: the delay after
    the first failure is ``base_delay``, then ``2 * base_delay`` and so on.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    sleep: Sleep = field(default=asyncio.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        return compute_backoff_delay(attempt, self.base_delay)

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed."""
        return attempt < self.max_attempts

    def with_max_attempts(self, max_attempts: int) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=max_attempts,
            base_delay=self.base_delay,
            sleep=self.sleep,
        )
