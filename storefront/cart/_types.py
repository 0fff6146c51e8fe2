"""
Cart store types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto

from storefront.domain import AppliedCoupon, Cart
from storefront.pricing import Totals

# ═══════════════════════════════════════════════════════════════════════════════
# Operation Status
# ═══════════════════════════════════════════════════════════════════════════════


class CartOp(Enum):
    FETCH = auto()
    ADD = auto()
    UPDATE = auto()
    REMOVE = auto()
    APPLY_COUPON = auto()
    REMOVE_COUPON = auto()
    CLEAR = auto()


class OpStatus(Enum):
    """idle → pending → fulfilled | rejected, per operation kind."""

    IDLE = auto()
    PENDING = auto()
    FULFILLED = auto()
    REJECTED = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# State Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartState:
    """Immutable view of the store handed to subscribers."""

    cart: Cart
    coupon: AppliedCoupon | None
    statuses: Mapping[CartOp, OpStatus]
    error: str | None = None

    @property
    def loading(self) -> bool:
        return any(s is OpStatus.PENDING for s in self.statuses.values())

    @property
    def totals(self) -> Totals:
        return self.cart.totals

    def status(self, op: CartOp) -> OpStatus:
        return self.statuses.get(op, OpStatus.IDLE)


__all__ = ("CartOp", "OpStatus", "CartState")
