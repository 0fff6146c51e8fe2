"""
Placement chain — compensated steps for order placement.

Each step is a LazyCoroResult plus an optional compensator. When a step
succeeds its compensator is recorded; when a later step fails, recorded
compensators run in reverse and the failure reports how far it got.

    chain = (
        step("begin", L.catching(begin, on_error=...), compensate=back_to_review)
        .then(lambda _: step("intent", api.create_payment_intent(total)))
        .then(lambda intent: step("pay", await_payment(intent)))
    )
    match await run_placement(chain):
        case Ok(done): done.value
        case Error(failure): failure.error, failure.step_name
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from storefront._types import Error, LazyCoroResult, Ok, Result
from storefront.errors import StorefrontError

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Steps
# ═══════════════════════════════════════════════════════════════════════════════

type Compensator[T] = Callable[[T], Awaitable[None]]
"""Receives the step's result and undoes it."""


@dataclass(frozen=True, slots=True)
class PlacementStep[T]:
    name: str
    action: LazyCoroResult[T, StorefrontError]
    compensate: Compensator[T] | None = None

    def then[U](self, f: Callable[[T], PlacementStep[U]]) -> PlacementChain:
        return PlacementChain(self, (f,))


@dataclass(frozen=True, slots=True)
class PlacementChain:
    """First step plus continuations, each building the next step from the previous value."""

    head: PlacementStep[Any]
    rest: tuple[Callable[[Any], PlacementStep[Any]], ...] = ()

    def then(self, f: Callable[[Any], PlacementStep[Any]]) -> PlacementChain:
        return PlacementChain(self.head, (*self.rest, f))


def step[T](
    name: str,
    action: LazyCoroResult[T, StorefrontError],
    compensate: Compensator[T] | None = None,
) -> PlacementStep[T]:
    return PlacementStep(name=name, action=action, compensate=compensate)


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PlacementResult[T]:
    value: T
    steps_executed: int


@dataclass(frozen=True, slots=True)
class PlacementFailure:
    error: StorefrontError
    step_failed: int
    step_name: str
    compensators_run: int
    compensators_failed: int

    @property
    def rollback_complete(self) -> bool:
        return self.compensators_failed == 0


# ═══════════════════════════════════════════════════════════════════════════════
# Execution
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator = tuple[str, Any, Compensator[Any]]


async def _run_step[T](
    s: PlacementStep[T],
    compensators: list[RecordedCompensator],
) -> Result[T, StorefrontError]:
    result = await s.action
    match result:
        case Ok(value):
            if s.compensate is not None:
                compensators.append((s.name, value, s.compensate))
            return Ok(value)
        case Error(e):
            return Error(e)


async def _run_compensators(compensators: list[RecordedCompensator]) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for name, value, comp in reversed(compensators):
        try:
            await comp(value)
            comp_run += 1
        except Exception:
            comp_failed += 1
            logger.exception("Compensator for step %r failed", name)

    return comp_run, comp_failed


async def run_placement(
    chain: PlacementChain | PlacementStep[Any],
) -> Result[PlacementResult[Any], PlacementFailure]:
    """Run steps in order; stop and roll back at the first failure."""
    if isinstance(chain, PlacementStep):
        chain = PlacementChain(chain)

    compensators: list[RecordedCompensator] = []
    current: PlacementStep[Any] = chain.head
    pending = list(chain.rest)
    executed = 0

    while True:
        executed += 1
        logger.debug("Placement step %d: %s", executed, current.name)
        match await _run_step(current, compensators):
            case Ok(value):
                if not pending:
                    return Ok(PlacementResult(value=value, steps_executed=executed))
                current = pending.pop(0)(value)
            case Error(e):
                comp_run, comp_failed = await _run_compensators(compensators)
                logger.info(
                    "Placement failed at step %r (%s); %d compensator(s) run",
                    current.name,
                    e.kind.name,
                    comp_run,
                )
                return Error(
                    PlacementFailure(
                        error=e,
                        step_failed=executed,
                        step_name=current.name,
                        compensators_run=comp_run,
                        compensators_failed=comp_failed,
                    )
                )


__all__ = (
    "Compensator",
    "PlacementStep",
    "PlacementChain",
    "step",
    "PlacementResult",
    "PlacementFailure",
    "run_placement",
)
