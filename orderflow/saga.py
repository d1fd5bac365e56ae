"""
Saga — multi-transaction workflows with compensation.

    from orderflow import saga as S

    placed = (
        S.step(LazyCoroResult(create_order), compensate=drop_order)
        .then(lambda order: S.step(LazyCoroResult(lambda: copy_lines(order)), compensate=drop_lines))
        .then(lambda lines: S.step(LazyCoroResult(lambda: close_cart(lines))))
    )

    match await S.run(placed):
        case Ok(r):
            print(r.value, r.steps_executed)
        case Error(e):
            print(e.error, e.rollback_complete)

Each step's action is a `LazyCoroResult`. When a step succeeds its compensator
is recorded with the step's value; when a later step fails the recorded
compensators run newest first.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from orderflow._types import Error, LazyCoroResult, Ok, Result

logger = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Types
# ═══════════════════════════════════════════════════════════════════════════════

type Compensator[T] = Callable[[T], Awaitable[None]]
"""Receives the action's value and undoes it."""


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """A single step: action plus optional compensator."""

    action: LazyCoroResult[T, E]
    compensate: Compensator[T] | None = None
    name: str | None = None

    def then[U](self, f: Callable[[T], SagaStep[U, E]]) -> Then[T, U, E]:
        return Then(self, f)


@dataclass(frozen=True, slots=True)
class Then[T, U, E]:
    """Sequential composition: the next step is built from the previous value."""

    inner: SagaStep[T, E] | Then[Any, T, E]
    f: Callable[[T], SagaStep[U, E]]

    def then[V](self, f: Callable[[U], SagaStep[V, E]]) -> Then[U, V, E]:
        return Then(self, f)


type Saga[T, E] = SagaStep[T, E] | Then[Any, T, E]


@dataclass(frozen=True, slots=True)
class SagaResult[T]:
    value: T
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    error: E
    step_failed: int
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool


# ═══════════════════════════════════════════════════════════════════════════════
# step()
# ═══════════════════════════════════════════════════════════════════════════════


def step[T, E](
    action: LazyCoroResult[T, E],
    compensate: Compensator[T] | None = None,
    *,
    name: str | None = None,
) -> SagaStep[T, E]:
    return SagaStep(action=action, compensate=compensate, name=name)


# ═══════════════════════════════════════════════════════════════════════════════
# run()
# ═══════════════════════════════════════════════════════════════════════════════


class _Ledger:
    """Steps executed so far and the compensators they recorded."""

    def __init__(self) -> None:
        self.steps = 0
        self.compensators: list[tuple[str, Any, Compensator[Any]]] = []

    async def rollback(self) -> tuple[int, int]:
        ran = failed = 0
        for name, value, compensate in reversed(self.compensators):
            try:
                await compensate(value)
                ran += 1
            except Exception:
                failed += 1
                logger.exception("saga.compensator_failed", step=name)
        return ran, failed


async def _execute(saga: Saga[Any, Any], ledger: _Ledger) -> Result[Any, Any]:
    match saga:
        case SagaStep(action=action, compensate=compensate, name=name):
            ledger.steps += 1
            match await action:
                case Ok(value):
                    if compensate is not None:
                        ledger.compensators.append((name or f"step-{ledger.steps}", value, compensate))
                    return Ok(value)
                case Error(e):
                    return Error(e)
        case Then(inner=inner, f=f):
            match await _execute(inner, ledger):
                case Ok(value):
                    return await _execute(f(value), ledger)
                case Error(e):
                    return Error(e)
    raise TypeError(f"Not a saga: {saga!r}")


async def run[T, E](saga: Saga[T, E]) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute a step or a `.then` chain.

    On failure every recorded compensator runs in reverse order; a failing
    compensator is logged and counted, and the remaining ones still run.
    """
    ledger = _Ledger()

    match await _execute(saga, ledger):
        case Ok(value):
            return Ok(SagaResult(
                value=value,
                steps_executed=ledger.steps,
                compensators_recorded=len(ledger.compensators),
            ))
        case Error(error):
            comp_run, comp_failed = await ledger.rollback()
            return Error(SagaError(
                error=error,
                step_failed=ledger.steps,
                compensators_run=comp_run,
                compensators_failed=comp_failed,
                rollback_complete=comp_failed == 0,
            ))
    raise AssertionError("unreachable")


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Compensator",
    "SagaStep",
    "Then",
    "Saga",
    "SagaResult",
    "SagaError",
    "step",
    "run",
)
