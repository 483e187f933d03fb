"""
Saga — forward steps with compensation.

    from cartflow import saga as S

    saga = S.step(create_order, cancel_order).then(lambda order: S.step(charge(order)))
    result = await S.shielded(S.run_chain(saga))
"""

from __future__ import annotations

from cartflow.saga._types import (
    CompensatorWithValue,
    SagaStep,
    SagaResult,
    SagaError,
    Then,
)
from cartflow.saga._step import step, from_async
from cartflow.saga._run import run, run_chain, run_compensators, shielded
from cartflow.saga import policy

__all__ = (
    "CompensatorWithValue",
    "SagaStep",
    "SagaResult",
    "SagaError",
    "Then",
    "step",
    "from_async",
    "run",
    "run_chain",
    "run_compensators",
    "shielded",
    "policy",
)
