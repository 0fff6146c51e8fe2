"""
Checkout types.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from storefront.domain import Address, PaymentMethod
from storefront.orders import Order

# ═══════════════════════════════════════════════════════════════════════════════
# Steps
# ═══════════════════════════════════════════════════════════════════════════════


class Step(Enum):
    """SHIPPING → PAYMENT → REVIEW → SUBMITTING → SUCCESS."""

    SHIPPING = auto()
    PAYMENT = auto()
    REVIEW = auto()
    SUBMITTING = auto()
    SUCCESS = auto()


_FORWARD: dict[Step, Step] = {
    Step.SHIPPING: Step.PAYMENT,
    Step.PAYMENT: Step.REVIEW,
}

_BACKWARD: dict[Step, Step] = {
    Step.PAYMENT: Step.SHIPPING,
    Step.REVIEW: Step.PAYMENT,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Placement Outcome
# ═══════════════════════════════════════════════════════════════════════════════


class PlacementStatus(Enum):
    PLACED = auto()
    IGNORED = auto()
    """A placement was already in flight; nothing was sent."""


@dataclass(frozen=True, slots=True)
class Placement:
    status: PlacementStatus
    order: Order | None = None


@dataclass(frozen=True, slots=True)
class Prefill:
    """Shopper details handed to the gateway UI."""

    name: str
    email: str
    contact: str


type Navigator = Callable[[str], None]
"""Receives the confirmation path after a successful placement."""


__all__ = (
    "Address",
    "PaymentMethod",
    "Step",
    "PlacementStatus",
    "Placement",
    "Prefill",
    "Navigator",
)
