"""
Saga execution policies.

Namespace: S.policy.*

Examples:
    await S.run_chain(saga, compensation=S.policy.compensate.retry(times=2))
"""

from __future__ import annotations

from cartflow.saga.policy._compensate import RetryPolicy, retry, once


# Namespace objects
class compensate:
    """Compensation policies."""

    retry = staticmethod(retry)
    once = staticmethod(once)


__all__ = (
    "RetryPolicy",
    "compensate",
)
