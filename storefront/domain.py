"""
Domain — cart, lines, coupons, checkout values.

Values are immutable: every store mutation produces a new Cart built from the
server's response, never an in-place patch.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from storefront._types import LineId, Money, ZERO
from storefront.pricing import Totals, reconcile_totals

# ═══════════════════════════════════════════════════════════════════════════════
# Seller
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Seller:
    id: str
    name: str


CUSTOM_SELLER = Seller("custom", "Custom Design")
"""Sentinel seller for designed products with no catalog seller."""


# ═══════════════════════════════════════════════════════════════════════════════
# Product References
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CustomProduct:
    """A designed product with no catalog identity."""

    type: str
    name: str
    base_price: Money


type ProductRef = str | CustomProduct
"""Catalog product id, or a custom-product descriptor."""


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Line
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One purchasable unit in the cart.

    `price` is the server's unit price at the last sync. `product_id` is
    None for custom designs. `customization` is opaque and passed through.
    """

    id: LineId
    product_id: str | None
    name: str
    price: Money
    quantity: int
    size: str = ""
    color: str = ""
    original_price: Money | None = None
    stock: int | None = None
    customization: Mapping[str, Any] | None = None
    seller: Seller = CUSTOM_SELLER
    image: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Line {self.id}: quantity must be >= 1, got {self.quantity}")

    @property
    def is_custom(self) -> bool:
        return self.product_id is None

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity

    def clamp_quantity(self, wanted: int) -> int:
        """UI helper: keep a requested quantity within [1, stock]."""
        upper = self.stock if self.stock is not None and self.stock > 0 else wanted
        return max(1, min(wanted, upper))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Cart:
    """
    The cart aggregate for one session.

    subtotal/tax/shipping hold what the server reported (None when it did
    not report them); `totals` fills the gaps locally.
    """

    lines: tuple[CartLine, ...] = ()
    subtotal: Money | None = None
    tax: Money | None = None
    shipping: Money | None = None
    discount: Money = ZERO
    coupon_code: str | None = None
    updated_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> Cart:
        return cls()

    @property
    def totals(self) -> Totals:
        return reconcile_totals(
            self.lines,
            subtotal=self.subtotal,
            tax=self.tax,
            shipping=self.shipping,
            discount=self.discount,
        )

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find(self, line_id: LineId) -> CartLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def with_coupon(self, code: str, discount: Money) -> Cart:
        """Replace the discount and code together."""
        return replace(self, coupon_code=code, discount=discount)

    def without_coupon(self) -> Cart:
        """Zero the discount and drop the code together."""
        return replace(self, coupon_code=None, discount=ZERO)


# ═══════════════════════════════════════════════════════════════════════════════
# Applied Coupon
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True, slots=True)
class AppliedCoupon:
    """
    The single active discount.

    `discount` is the absolute amount already resolved by the server;
    `discount_type` is informational.
    """

    code: str
    discount: Money
    discount_type: DiscountType
    applied_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Values
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Address:
    name: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "India"
    email: str = ""


class PaymentMethod(Enum):
    ONLINE = "online"
    COD = "cod"


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """Gateway-side order created before the shopper pays."""

    order_id: str
    key: str
    amount: Money
    currency: str = "INR"


@dataclass(frozen=True, slots=True)
class PaymentCredentials:
    """What the gateway hands back once the shopper has paid."""

    payment_id: str
    order_id: str
    signature: str


@dataclass(frozen=True, slots=True)
class OrderDraft:
    """Everything the server needs to persist an order."""

    lines: tuple[CartLine, ...]
    shipping_address: Address
    billing_address: Address
    payment_method: PaymentMethod
    totals: Totals
    coupon_code: str | None = None
    notes: str = ""


__all__ = (
    "Seller",
    "CUSTOM_SELLER",
    "CustomProduct",
    "ProductRef",
    "CartLine",
    "Cart",
    "DiscountType",
    "AppliedCoupon",
    "Address",
    "PaymentMethod",
    "PaymentIntent",
    "PaymentCredentials",
    "OrderDraft",
)
