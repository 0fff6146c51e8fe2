from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest

from storefront._types import ZERO, Error, LazyCoroResult, Ok, Result
from storefront.api import Verification
from storefront.cart import CartStore
from storefront.checkout import CheckoutSession, PaymentContinuation, Prefill
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
    ProductRef,
    Seller,
)
from storefront.errors import Errors, StorefrontError
from storefront.orders import Order
from storefront.persist import CartCache, MemoryStorage

CATALOG: dict[str, tuple[str, Decimal]] = {
    "tee": ("Graphic Tee", Decimal("1000")),
    "mug": ("Coffee Mug", Decimal("250")),
    "cap": ("Cap", Decimal("499")),
}
SELLER = Seller("s-1", "Acme Prints")
FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


def make_line(
    price: int | str | Decimal,
    quantity: int = 1,
    line_id: str = "l-1",
    **kwargs: Any,
) -> CartLine:
    return CartLine(
        id=line_id,
        product_id=kwargs.pop("product_id", "p-1"),
        name=kwargs.pop("name", "Item"),
        price=Decimal(str(price)),
        quantity=quantity,
        **kwargs,
    )


def full_address(**overrides: str) -> Address:
    base = Address(
        name="Asha Rao",
        phone="9876543210",
        street="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
        email="asha@example.com",
    )
    return replace(base, **overrides)


# ═══════════════════════════════════════════════════════════════════════════════
# Fake server
# ═══════════════════════════════════════════════════════════════════════════════


class FakeStorefrontAPI:
    """In-memory CartAPI + CheckoutAPI with call log, failure injection and gates."""

    def __init__(self) -> None:
        self.lines: list[CartLine] = []
        self.coupons: dict[str, Decimal] = {"SAVE100": Decimal("100"), "SAVE50": Decimal("50")}
        self.coupon_code: str | None = None
        self.discount: Decimal = ZERO
        self.calls: list[str] = []
        self.failures: dict[str, StorefrontError] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.verification = Verification(True, Order(id="o-online"))
        self.drafts: list[OrderDraft] = []
        self._seq = 0

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    def cart(self) -> Cart:
        return Cart(lines=tuple(self.lines), discount=self.discount, coupon_code=self.coupon_code)

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def _lazy[T](self, name: str, fn: Callable[[], Result[T, StorefrontError]]) -> LazyCoroResult[T, StorefrontError]:
        async def run() -> Result[T, StorefrontError]:
            self.calls.append(name)
            gate = self.gates.get(name)
            if gate is not None:
                await gate.wait()
            failure = self.failures.get(name)
            if failure is not None:
                return Error(failure)
            return fn()

        return LazyCoroResult(run)

    def _find(self, line_id: str) -> int | None:
        for i, line in enumerate(self.lines):
            if line.id == line_id:
                return i
        return None

    # ─── CartAPI ─────────────────────────────────────────────────────────────

    def fetch_cart(self) -> LazyCoroResult[Cart, StorefrontError]:
        return self._lazy("fetch_cart", lambda: Ok(self.cart()))

    def add_line(
        self,
        product: ProductRef,
        quantity: int,
        size: str,
        color: str,
        customization: Mapping[str, Any] | None = None,
    ) -> LazyCoroResult[Cart, StorefrontError]:
        def do() -> Result[Cart, StorefrontError]:
            if isinstance(product, CustomProduct):
                product_id, name, price, seller = None, product.name, product.base_price, CUSTOM_SELLER
            else:
                if product not in CATALOG:
                    return Error(Errors.not_found("Product not found"))
                name, price = CATALOG[product]
                product_id, seller = product, SELLER
            self.lines.append(
                CartLine(
                    id=self._next_id("line"),
                    product_id=product_id,
                    name=name,
                    price=price,
                    quantity=quantity,
                    size=size,
                    color=color,
                    customization=customization,
                    seller=seller,
                )
            )
            return Ok(self.cart())

        return self._lazy("add_line", do)

    def update_line(self, line_id: str, quantity: int) -> LazyCoroResult[Cart, StorefrontError]:
        def do() -> Result[Cart, StorefrontError]:
            i = self._find(line_id)
            if i is None:
                return Error(Errors.not_found("Item not found in cart"))
            self.lines[i] = replace(self.lines[i], quantity=quantity)
            return Ok(self.cart())

        return self._lazy("update_line", do)

    def remove_line(self, line_id: str) -> LazyCoroResult[Cart, StorefrontError]:
        def do() -> Result[Cart, StorefrontError]:
            i = self._find(line_id)
            if i is None:
                return Error(Errors.not_found("Item not found in cart"))
            del self.lines[i]
            return Ok(self.cart())

        return self._lazy("remove_line", do)

    def apply_coupon(self, code: str) -> LazyCoroResult[AppliedCoupon, StorefrontError]:
        def do() -> Result[AppliedCoupon, StorefrontError]:
            code_upper = code.upper()
            if code_upper not in self.coupons:
                return Error(Errors.invalid_coupon("Invalid or expired coupon", status=400))
            self.coupon_code = code_upper
            self.discount = self.coupons[code_upper]
            return Ok(
                AppliedCoupon(
                    code=code_upper,
                    discount=self.discount,
                    discount_type=DiscountType.FIXED,
                    applied_at=FIXED_NOW,
                )
            )

        return self._lazy("apply_coupon", do)

    def remove_coupon(self) -> LazyCoroResult[None, StorefrontError]:
        def do() -> Result[None, StorefrontError]:
            self.coupon_code = None
            self.discount = ZERO
            return Ok(None)

        return self._lazy("remove_coupon", do)

    def clear_cart(self) -> LazyCoroResult[None, StorefrontError]:
        def do() -> Result[None, StorefrontError]:
            self.lines.clear()
            self.coupon_code = None
            self.discount = ZERO
            return Ok(None)

        return self._lazy("clear_cart", do)

    # ─── CheckoutAPI ─────────────────────────────────────────────────────────

    def create_payment_intent(self, amount: Decimal) -> LazyCoroResult[PaymentIntent, StorefrontError]:
        return self._lazy(
            "create_payment_intent",
            lambda: Ok(PaymentIntent(order_id="rzp_order_1", key="rzp_key", amount=amount)),
        )

    def verify_payment(
        self,
        credentials: PaymentCredentials,
        draft: OrderDraft,
    ) -> LazyCoroResult[Verification, StorefrontError]:
        def do() -> Result[Verification, StorefrontError]:
            self.drafts.append(draft)
            return Ok(self.verification)

        return self._lazy("verify_payment", do)

    def create_order(self, draft: OrderDraft) -> LazyCoroResult[Order, StorefrontError]:
        def do() -> Result[Order, StorefrontError]:
            self.drafts.append(draft)
            return Ok(Order(id="o-cod", total=draft.totals.total))

        return self._lazy("create_order", do)


class ScriptedGateway:
    """Payment window stand-in: completes, dismisses, fails or waits."""

    def __init__(self, behaviour: str = "complete") -> None:
        self.behaviour = behaviour
        self.opened: list[tuple[PaymentIntent, Prefill]] = []
        self.continuation: PaymentContinuation | None = None

    def open(self, intent: PaymentIntent, prefill: Prefill, continuation: PaymentContinuation) -> None:
        self.opened.append((intent, prefill))
        self.continuation = continuation
        match self.behaviour:
            case "complete":
                continuation.complete(PaymentCredentials("pay_1", intent.order_id, "sig_1"))
            case "dismiss":
                continuation.dismiss()
            case "fail":
                continuation.fail("Card declined")
            case "raise":
                raise RuntimeError("widget failed to load")
            case _:
                pass


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def api() -> FakeStorefrontAPI:
    return FakeStorefrontAPI()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage) -> CartCache:
    return CartCache(storage, clock=lambda: FIXED_NOW)


@pytest.fixture
def store(api: FakeStorefrontAPI, cache: CartCache) -> CartStore:
    return CartStore(api, cache, clock=lambda: FIXED_NOW)


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def visited() -> list[str]:
    return []


@pytest.fixture
def session(
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
    visited: list[str],
) -> CheckoutSession:
    return CheckoutSession(store, api, gateway, navigator=visited.append)
