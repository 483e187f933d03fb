"""
Saga execution with automatic rollback.

Steps run strictly in sequence; there is no fan-out. On failure every
recorded compensator runs (newest first) before the error is returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable

import structlog
from kungfu import Result, Ok, Error

from cartflow.saga._types import (
    SagaStep,
    SagaResult,
    SagaError,
    Then,
    CompensatorWithValue,
)
from cartflow.saga.policy import RetryPolicy

logger = structlog.get_logger(__name__)

_NO_RETRY = RetryPolicy()

# ═══════════════════════════════════════════════════════════════════════════════
# Recorded Compensator
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator[T] = tuple[str, T, CompensatorWithValue[T]]

# ═══════════════════════════════════════════════════════════════════════════════
# run_step() — Execute single step
# ═══════════════════════════════════════════════════════════════════════════════

async def run_step[T, E](
    step: SagaStep[T, E],
    compensators: list[RecordedCompensator[T]],
) -> Result[T, E]:
    """Execute single step, recording compensator on success."""
    result = await step.action
    match result:
        case Ok(value):
            if step.compensate is not None:
                compensators.append((step.name, value, step.compensate))
            return Ok(value)
        case Error(e):
            logger.info("saga_step_failed", step=step.name, error=repr(e))
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — Rollback
# ═══════════════════════════════════════════════════════════════════════════════

async def run_compensators[T](
    compensators: list[RecordedCompensator[T]],
    policy: RetryPolicy = _NO_RETRY,
) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for name, value, comp in reversed(compensators):
        for attempt in range(1, policy.attempts + 1):
            try:
                await comp(value)
            except Exception as exc:
                logger.warning(
                    "compensation_failed",
                    step=name,
                    attempt=attempt,
                    attempts=policy.attempts,
                    error=repr(exc),
                )
                if attempt < policy.attempts:
                    await asyncio.sleep(policy.delay.total_seconds())
                continue
            comp_run += 1
            break
        else:
            comp_failed += 1

    return comp_run, comp_failed


def _failed[E](
    error: E,
    step_failed: int,
    step_name: str,
    comp_run: int,
    comp_failed: int,
) -> SagaError[E]:
    return SagaError(
        error=error,
        step_failed=step_failed,
        step_name=step_name,
        compensators_run=comp_run,
        compensators_failed=comp_failed,
        rollback_complete=comp_failed == 0,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# run() — Execute Saga Step
# ═══════════════════════════════════════════════════════════════════════════════

async def run[T, E](
    saga: SagaStep[T, E],
    compensation: RetryPolicy = _NO_RETRY,
) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute saga step with automatic rollback on failure.

    On success: returns SagaResult with value and metadata.
    On failure: returns SagaError (a single step has nothing to roll back).
    """
    compensators: list[RecordedCompensator[T]] = []

    result = await run_step(saga, compensators)

    match result:
        case Ok(value):
            return Ok(SagaResult(
                value=value,
                steps_executed=1,
                compensators_recorded=len(compensators),
            ))

        case Error(error):
            comp_run, comp_failed = await run_compensators(compensators, compensation)
            return Error(_failed(error, 1, saga.name, comp_run, comp_failed))


# ═══════════════════════════════════════════════════════════════════════════════
# run_chain() — Execute Then chain
# ═══════════════════════════════════════════════════════════════════════════════

async def run_chain[T, U, E, E2](
    chain: Then[T, U, E, E2],
    compensation: RetryPolicy = _NO_RETRY,
) -> Result[SagaResult[U], SagaError[E | E2]]:
    """
    Execute chained saga steps.

    Runs inner step, then applies f to get next step, and runs that.
    On any failure, compensators run in reverse.

    Example:
        saga = S.step(create_order, cancel_order, name="create_order").then(
            lambda order: S.step(charge(order), name="process_payment")
        )

        match await S.run_chain(saga, compensation=S.policy.compensate.retry(2)):
            case Ok(r):
                payment = r.value
            case Error(e):
                # e.error is the payment failure; the order is already canceled
                ...
    """
    compensators_t: list[RecordedCompensator[T]] = []
    compensators_u: list[RecordedCompensator[U]] = []
    steps = 0

    # Run inner step
    inner_result = await run_step(chain.inner, compensators_t)
    steps += 1

    match inner_result:
        case Ok(value):
            next_step = chain.f(value)

            next_result = await run_step(next_step, compensators_u)
            steps += 1

            match next_result:
                case Ok(final_value):
                    return Ok(SagaResult(
                        value=final_value,
                        steps_executed=steps,
                        compensators_recorded=len(compensators_t) + len(compensators_u),
                    ))

                case Error(e):
                    # Rollback next compensators first, then inner
                    comp_run1, comp_failed1 = await run_compensators(compensators_u, compensation)
                    comp_run2, comp_failed2 = await run_compensators(compensators_t, compensation)

                    return Error(_failed(
                        e,
                        steps,
                        next_step.name,
                        comp_run1 + comp_run2,
                        comp_failed1 + comp_failed2,
                    ))

        case Error(e):
            comp_run, comp_failed = await run_compensators(compensators_t, compensation)
            return Error(_failed(e, steps, chain.inner.name, comp_run, comp_failed))


# ═══════════════════════════════════════════════════════════════════════════════
# shielded() — Survive caller cancellation
# ═══════════════════════════════════════════════════════════════════════════════

_inflight: set[asyncio.Future[object]] = set()


async def shielded[T](awaitable: Awaitable[T]) -> T:
    """
    Run `awaitable` to completion even if the caller is cancelled.

    A caller-side timeout abandons the wait, but the wrapped saga (and any
    compensation it triggers) keeps running in the background.
    """
    task = asyncio.ensure_future(awaitable)
    _inflight.add(task)
    task.add_done_callback(_inflight.discard)
    return await asyncio.shield(task)


__all__ = ("run_step", "run_compensators", "run", "run_chain", "shielded")
