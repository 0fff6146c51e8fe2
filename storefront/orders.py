"""
Orders — status rules and the placed-order value.

    from storefront import orders as O

    O.can_cancel(order.status)
    O.estimated_delivery(O.ShippingMethod.EXPRESS)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from enum import Enum

from storefront._types import Money, ZERO

# ═══════════════════════════════════════════════════════════════════════════════
# Statuses
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PRINTED = "printed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


_DELIVERY_DAYS: dict[ShippingMethod, int] = {
    ShippingMethod.STANDARD: 7,
    ShippingMethod.EXPRESS: 3,
    ShippingMethod.OVERNIGHT: 1,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Rules
# ═══════════════════════════════════════════════════════════════════════════════


def can_cancel(status: OrderStatus) -> bool:
    """Only orders that have not started processing."""
    return status in (OrderStatus.PENDING, OrderStatus.CONFIRMED)


def can_refund(status: OrderStatus, payment_status: PaymentStatus) -> bool:
    """Delivered and actually paid."""
    return status is OrderStatus.DELIVERED and payment_status is PaymentStatus.COMPLETED


def estimated_delivery(
    method: ShippingMethod = ShippingMethod.STANDARD,
    now: datetime | None = None,
) -> datetime:
    start = now if now is not None else datetime.now(UTC)
    return start + timedelta(days=_DELIVERY_DAYS[method])


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    """A persisted order as returned by order creation or payment verification."""

    id: str
    order_number: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    total: Money = ZERO

    @property
    def confirmation_path(self) -> str:
        return f"/orders/{self.id}?success=true"


__all__ = (
    "OrderStatus",
    "PaymentStatus",
    "ShippingMethod",
    "can_cancel",
    "can_refund",
    "estimated_delivery",
    "Order",
)
