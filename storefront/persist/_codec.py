"""
Snapshot codecs — pydantic models for the persisted `cart` and `coupon` keys.

Models implement the to_domain()/from_domain() codec pair.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain import AppliedCoupon, Cart, CartLine, DiscountType, Seller


class _Snapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


class StoredSeller(_Snapshot):
    id: str
    name: str


class StoredLine(_Snapshot):
    id: str
    product_id: str | None = Field(default=None, alias="productId")
    name: str
    price: Decimal
    quantity: int = Field(ge=1)
    size: str = ""
    color: str = ""
    original_price: Decimal | None = Field(default=None, alias="originalPrice")
    stock: int | None = None
    customization: dict[str, Any] | None = None
    seller: StoredSeller
    image: str | None = None

    @classmethod
    def from_domain(cls, line: CartLine) -> StoredLine:
        return cls(
            id=line.id,
            product_id=line.product_id,
            name=line.name,
            price=line.price,
            quantity=line.quantity,
            size=line.size,
            color=line.color,
            original_price=line.original_price,
            stock=line.stock,
            customization=dict(line.customization) if line.customization is not None else None,
            seller=StoredSeller(id=line.seller.id, name=line.seller.name),
            image=line.image,
        )

    def to_domain(self) -> CartLine:
        return CartLine(
            id=self.id,
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            size=self.size,
            color=self.color,
            original_price=self.original_price,
            stock=self.stock,
            customization=self.customization,
            seller=Seller(self.seller.id, self.seller.name),
            image=self.image,
        )


class StoredCart(_Snapshot):
    """Payload under the `cart` key."""

    items: list[StoredLine] = Field(default_factory=list)
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    shipping: Decimal | None = None
    discount: Decimal = Decimal("0")
    coupon_code: str | None = Field(default=None, alias="couponCode")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_domain(cls, cart: Cart, updated_at: datetime) -> StoredCart:
        return cls(
            items=[StoredLine.from_domain(line) for line in cart.lines],
            subtotal=cart.subtotal,
            tax=cart.tax,
            shipping=cart.shipping,
            discount=cart.discount,
            coupon_code=cart.coupon_code,
            updated_at=updated_at,
        )

    def to_domain(self) -> Cart:
        return Cart(
            lines=tuple(item.to_domain() for item in self.items),
            subtotal=self.subtotal,
            tax=self.tax,
            shipping=self.shipping,
            discount=self.discount,
            coupon_code=self.coupon_code,
            updated_at=self.updated_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Coupon Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


class StoredCoupon(_Snapshot):
    """Payload under the `coupon` key."""

    code: str
    discount: Decimal
    discount_type: DiscountType = Field(alias="discountType")
    applied_at: datetime = Field(alias="appliedAt")

    @classmethod
    def from_domain(cls, coupon: AppliedCoupon) -> StoredCoupon:
        return cls(
            code=coupon.code,
            discount=coupon.discount,
            discount_type=coupon.discount_type,
            applied_at=coupon.applied_at,
        )

    def to_domain(self) -> AppliedCoupon:
        return AppliedCoupon(
            code=self.code,
            discount=self.discount,
            discount_type=self.discount_type,
            applied_at=self.applied_at,
        )


__all__ = ("StoredSeller", "StoredLine", "StoredCart", "StoredCoupon")
