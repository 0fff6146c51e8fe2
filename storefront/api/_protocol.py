"""
Collaborator contracts.

CartStore depends on CartAPI, CheckoutSession on CheckoutAPI. The HTTP
client implements both; tests substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from storefront._types import LazyCoroResult, LineId, Money
from storefront.domain import (
    AppliedCoupon,
    Cart,
    OrderDraft,
    PaymentCredentials,
    PaymentIntent,
    ProductRef,
)
from storefront.errors import StorefrontError
from storefront.orders import Order


@dataclass(frozen=True, slots=True)
class Verification:
    verified: bool
    order: Order | None = None


class CartAPI(Protocol):
    def fetch_cart(self) -> LazyCoroResult[Cart, StorefrontError]: ...

    def add_line(
        self,
        product: ProductRef,
        quantity: int,
        size: str,
        color: str,
        customization: Mapping[str, Any] | None = None,
    ) -> LazyCoroResult[Cart, StorefrontError]: ...

    def update_line(self, line_id: LineId, quantity: int) -> LazyCoroResult[Cart, StorefrontError]: ...

    def remove_line(self, line_id: LineId) -> LazyCoroResult[Cart, StorefrontError]: ...

    def apply_coupon(self, code: str) -> LazyCoroResult[AppliedCoupon, StorefrontError]: ...

    def remove_coupon(self) -> LazyCoroResult[None, StorefrontError]: ...

    def clear_cart(self) -> LazyCoroResult[None, StorefrontError]: ...


class CheckoutAPI(Protocol):
    def create_payment_intent(self, amount: Money) -> LazyCoroResult[PaymentIntent, StorefrontError]: ...

    def verify_payment(
        self,
        credentials: PaymentCredentials,
        draft: OrderDraft,
    ) -> LazyCoroResult[Verification, StorefrontError]: ...

    def create_order(self, draft: OrderDraft) -> LazyCoroResult[Order, StorefrontError]: ...


__all__ = ("Verification", "CartAPI", "CheckoutAPI")
