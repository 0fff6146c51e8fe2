"""
Wire models — JSON exchanged with the REST collaborators.

Inbound models implement to_domain(), outbound ones from_domain().
Lenient on input (extra keys ignored, `_id` or `id`), exact on output.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Protocol, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer, ValidationInfo, field_validator

from storefront._types import Money, ZERO, to_wire_number
from storefront.domain import (
    CUSTOM_SELLER,
    Address,
    AppliedCoupon,
    Cart,
    CartLine,
    CustomProduct,
    DiscountType,
    OrderDraft,
    PaymentCredentials,
    PaymentIntent,
    PaymentMethod,
    Seller,
)
from storefront.orders import Order, OrderStatus, PaymentStatus

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Codec Protocols
# ═══════════════════════════════════════════════════════════════════════════════


class ToDomain[T](Protocol):
    def to_domain(self) -> T: ...


class FromDomain[T](Protocol):
    @classmethod
    def from_domain(cls, dom: T) -> Self: ...


WireMoney = Annotated[
    Decimal,
    PlainSerializer(to_wire_number, return_type=int | float, when_used="json"),
]
"""Decimal in memory, plain JSON number on the wire."""


class _Inbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _Outbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _id_field() -> Any:
    return Field(validation_alias=AliasChoices("_id", "id"))


# ═══════════════════════════════════════════════════════════════════════════════
# Cart (inbound)
# ═══════════════════════════════════════════════════════════════════════════════


class SellerWire(_Inbound):
    id: str = _id_field()
    name: str = ""

    def to_domain(self) -> Seller:
        return Seller(self.id, self.name)


class ProductWire(_Inbound):
    id: str = _id_field()
    name: str = ""
    price: Decimal | None = None
    original_price: Decimal | None = Field(default=None, alias="originalPrice")
    images: list[str] = Field(default_factory=list)
    stock: int | None = None
    seller: SellerWire | None = None


class CustomProductWire(_Inbound):
    type: str = "custom"
    name: str
    base_price: Decimal = Field(alias="basePrice")

    def to_domain(self) -> CustomProduct:
        return CustomProduct(self.type, self.name, self.base_price)


class LineWire(_Inbound):
    """
    One cart line as the server sends it.

    Catalog lines carry a `product` snapshot (or just its id), designed
    products a `customProduct` descriptor. Line level fields win over the
    snapshot.
    """

    id: str = _id_field()
    product: ProductWire | str | None = None
    custom_product: CustomProductWire | None = Field(default=None, alias="customProduct")
    product_id: str | None = Field(default=None, alias="productId")
    name: str | None = None
    price: Decimal | None = None
    original_price: Decimal | None = Field(default=None, alias="originalPrice")
    quantity: int
    size: str = ""
    color: str = ""
    customization: dict[str, Any] | None = None
    image: str | None = None
    seller: SellerWire | None = None

    def to_domain(self) -> CartLine:
        snapshot = self.product if isinstance(self.product, ProductWire) else None
        custom = self.custom_product

        if custom is not None:
            product_id = None
        elif snapshot is not None:
            product_id = snapshot.id
        elif isinstance(self.product, str):
            product_id = self.product
        else:
            product_id = self.product_id

        price = self.price
        if price is None and snapshot is not None:
            price = snapshot.price
        if price is None and custom is not None:
            price = custom.base_price
        if price is None:
            raise ValueError(f"Cart line {self.id} has no price")

        seller_wire = snapshot.seller if snapshot is not None and snapshot.seller else self.seller

        return CartLine(
            id=self.id,
            product_id=product_id,
            name=self.name or (snapshot.name if snapshot else "") or (custom.name if custom else ""),
            price=price,
            quantity=self.quantity,
            size=self.size,
            color=self.color,
            original_price=self.original_price
            if self.original_price is not None
            else (snapshot.original_price if snapshot else None),
            stock=snapshot.stock if snapshot else None,
            customization=self.customization,
            seller=seller_wire.to_domain() if seller_wire is not None else CUSTOM_SELLER,
            image=self.image or (snapshot.images[0] if snapshot and snapshot.images else None),
        )


class CartWire(_Inbound):
    items: list[LineWire] = Field(default_factory=list)
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    shipping: Decimal | None = None
    discount: Decimal | None = None
    coupon_code: str | None = Field(default=None, alias="couponCode")

    def to_domain(self) -> Cart:
        return Cart(
            lines=tuple(item.to_domain() for item in self.items),
            subtotal=self.subtotal,
            tax=self.tax,
            shipping=self.shipping,
            discount=self.discount if self.discount is not None else ZERO,
            coupon_code=self.coupon_code or None,
        )


class CouponWire(_Inbound):
    code: str = Field(validation_alias=AliasChoices("couponCode", "code"))
    discount: Decimal
    discount_type: DiscountType = Field(default=DiscountType.FIXED, alias="discountType")

    def to_domain(self, applied_at: datetime) -> AppliedCoupon:
        return AppliedCoupon(
            code=self.code,
            discount=self.discount,
            discount_type=self.discount_type,
            applied_at=applied_at,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart (outbound)
# ═══════════════════════════════════════════════════════════════════════════════


class CustomProductBody(_Outbound):
    type: str
    name: str
    base_price: WireMoney = Field(serialization_alias="basePrice")

    @classmethod
    def from_domain(cls, dom: CustomProduct) -> Self:
        return cls(type=dom.type, name=dom.name, base_price=dom.base_price)


class AddLineBody(_Outbound):
    product_id: str | None = Field(default=None, serialization_alias="productId")
    custom_product: CustomProductBody | None = Field(
        default=None, serialization_alias="customProduct"
    )
    quantity: int
    size: str
    color: str
    customization: dict[str, Any] | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Orders & Payments (outbound)
# ═══════════════════════════════════════════════════════════════════════════════


class AddressBody(_Outbound):
    name: str
    phone: str
    email: str | None = None
    street: str
    city: str
    state: str
    postal_code: str = Field(serialization_alias="zipCode")
    country: str

    @classmethod
    def from_domain(cls, dom: Address) -> Self:
        return cls(
            name=dom.name,
            phone=dom.phone,
            email=dom.email or None,
            street=dom.street,
            city=dom.city,
            state=dom.state,
            postal_code=dom.postal_code,
            country=dom.country,
        )


class OrderItemBody(_Outbound):
    product_id: str | None = Field(default=None, serialization_alias="productId")
    name: str
    price: WireMoney
    quantity: int
    size: str
    color: str
    image: str | None = None
    customization: dict[str, Any] | None = None

    @classmethod
    def from_domain(cls, dom: CartLine) -> Self:
        return cls(
            product_id=dom.product_id,
            name=dom.name,
            price=dom.price,
            quantity=dom.quantity,
            size=dom.size,
            color=dom.color,
            image=dom.image,
            customization=dict(dom.customization) if dom.customization is not None else None,
        )


class OrderBody(_Outbound):
    items: list[OrderItemBody]
    shipping_address: AddressBody = Field(serialization_alias="shippingAddress")
    billing_address: AddressBody = Field(serialization_alias="billingAddress")
    payment_method: str = Field(serialization_alias="paymentMethod")
    subtotal: WireMoney
    tax: WireMoney
    shipping: WireMoney
    discount: WireMoney
    total_amount: WireMoney = Field(serialization_alias="totalAmount")
    coupon_code: str | None = Field(default=None, serialization_alias="couponCode")
    notes: str | None = None

    @classmethod
    def from_draft(cls, dom: OrderDraft, gateway: str) -> Self:
        method = gateway if dom.payment_method is PaymentMethod.ONLINE else "cod"
        return cls(
            items=[OrderItemBody.from_domain(line) for line in dom.lines],
            shipping_address=AddressBody.from_domain(dom.shipping_address),
            billing_address=AddressBody.from_domain(dom.billing_address),
            payment_method=method,
            subtotal=dom.totals.subtotal,
            tax=dom.totals.tax,
            shipping=dom.totals.shipping,
            discount=dom.totals.discount,
            total_amount=dom.totals.total,
            coupon_code=dom.coupon_code,
            notes=dom.notes or None,
        )


class PaymentIntentBody(_Outbound):
    amount: WireMoney
    currency: str
    receipt: str | None = None


def verification_body(
    credentials: PaymentCredentials,
    order: OrderBody,
    gateway: str,
) -> dict[str, Any]:
    """Gateway callback fields, prefixed with the gateway name, plus the order."""
    return {
        f"{gateway}_payment_id": credentials.payment_id,
        f"{gateway}_order_id": credentials.order_id,
        f"{gateway}_signature": credentials.signature,
        "orderData": order.to_json(),
    }


# ═══════════════════════════════════════════════════════════════════════════════
# Orders & Payments (inbound)
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentIntentWire(_Inbound):
    order_id: str = Field(validation_alias=AliasChoices("orderId", "id"))
    key: str = ""
    currency: str | None = None

    def to_domain(self, amount: Money, currency: str) -> PaymentIntent:
        return PaymentIntent(
            order_id=self.order_id,
            key=self.key,
            amount=amount,
            currency=self.currency or currency,
        )


class OrderWire(_Inbound):
    id: str = _id_field()
    order_number: str | None = Field(default=None, alias="orderNumber")
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, alias="paymentStatus")
    total: Decimal = Field(default=ZERO, validation_alias=AliasChoices("total", "totalAmount"))

    @field_validator("status", "payment_status", mode="before")
    @classmethod
    def _known_or_pending(cls, v: Any, info: ValidationInfo) -> Any:
        """Status is display-only; an unknown value never fails a placed order."""
        enum = OrderStatus if info.field_name == "status" else PaymentStatus
        try:
            return enum(v)
        except ValueError:
            logger.warning("Unknown order %s %r, treating as pending", info.field_name, v)
            return enum.PENDING

    def to_domain(self) -> Order:
        return Order(
            id=self.id,
            order_number=self.order_number,
            status=self.status,
            payment_status=self.payment_status,
            total=self.total,
        )


class VerificationWire(_Inbound):
    verified: bool = False
    order: OrderWire | None = None


__all__ = (
    "ToDomain",
    "FromDomain",
    "WireMoney",
    "SellerWire",
    "ProductWire",
    "CustomProductWire",
    "LineWire",
    "CartWire",
    "CouponWire",
    "CustomProductBody",
    "AddLineBody",
    "AddressBody",
    "OrderItemBody",
    "OrderBody",
    "PaymentIntentBody",
    "verification_body",
    "PaymentIntentWire",
    "OrderWire",
    "VerificationWire",
)
