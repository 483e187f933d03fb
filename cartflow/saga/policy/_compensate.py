"""
Compensation policies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry failed compensators `times` extra attempts, `delay` apart."""
    times: int = 0
    delay: timedelta = timedelta(0)

    @property
    def attempts(self) -> int:
        return self.times + 1


def retry(times: int = 3, delay: timedelta = timedelta(seconds=1)) -> RetryPolicy:
    """Retry compensators on failure."""
    return RetryPolicy(times, delay)


def once() -> RetryPolicy:
    """Single attempt, no retry."""
    return RetryPolicy()


__all__ = ("RetryPolicy", "retry", "once")
