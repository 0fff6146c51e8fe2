"""
HTTP client for the storefront REST API.

Every call is lazy: it returns a LazyCoroResult that performs the request
when awaited. Transport and status failures are mapped onto StorefrontError,
nothing escapes as an exception.

    api = HttpStorefrontAPI(build_client(settings), gateway=settings.payment_gateway)
    match await api.fetch_cart():
        case Ok(cart): ...
        case Error(err): ...
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import httpx
from combinators import lift as L

from storefront._types import JSON, LazyCoroResult, LineId, Money
from storefront.api._protocol import Verification
from storefront.api._wire import (
    AddLineBody,
    CartWire,
    CouponWire,
    CustomProductBody,
    OrderBody,
    OrderWire,
    PaymentIntentBody,
    PaymentIntentWire,
    VerificationWire,
    verification_body,
)
from storefront.config import StorefrontSettings, build_client
from storefront.domain import (
    AppliedCoupon,
    Cart,
    CustomProduct,
    OrderDraft,
    PaymentCredentials,
    PaymentIntent,
    ProductRef,
)
from storefront.errors import Errors, StorefrontError, StorefrontFailure, as_storefront_error
from storefront.orders import Order

logger = logging.getLogger(__name__)

type ClientErrorMapper = Callable[[str, int], StorefrontError]


def _reason(response: httpx.Response) -> str | None:
    """Human readable reason from an error body: `message` or `error`."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _unwrap(payload: JSON, key: str) -> JSON:
    """Accept both `{...}` and `{key: {...}}` envelopes."""
    inner = payload.get(key)
    return inner if isinstance(inner, dict) else payload


class HttpStorefrontAPI:
    """CartAPI + CheckoutAPI over httpx."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        gateway: str = "razorpay",
        currency: str = "INR",
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._client = client
        self._gateway = gateway
        self._currency = currency
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: StorefrontSettings) -> HttpStorefrontAPI:
        return cls(
            build_client(settings),
            gateway=settings.payment_gateway,
            currency=settings.currency,
        )

    @property
    def gateway(self) -> str:
        return self._gateway

    async def aclose(self) -> None:
        await self._client.aclose()

    # ═══════════════════════════════════════════════════════════════════════════
    # Transport
    # ═══════════════════════════════════════════════════════════════════════════

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        body: JSON | None = None,
        on_client_error: ClientErrorMapper | None = None,
    ) -> JSON:
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise StorefrontFailure(
                Errors.network(f"Could not reach the store to {action}", cause=e)
            ) from e

        status = response.status_code
        if response.is_success:
            if not response.content:
                return {}
            try:
                payload = response.json()
            except ValueError as e:
                raise StorefrontFailure(
                    Errors.server(f"Unexpected response while trying to {action}", status=status, cause=e)
                ) from e
            if not isinstance(payload, dict):
                raise StorefrontFailure(
                    Errors.server(f"Unexpected response while trying to {action}", status=status)
                )
            return payload

        reason = _reason(response)
        logger.info("%s %s -> %s (%s)", method, path, status, reason)
        if status == 404:
            raise StorefrontFailure(Errors.not_found(reason or "Not found", status=status))
        if on_client_error is not None and 400 <= status < 500:
            raise StorefrontFailure(on_client_error(reason or f"Failed to {action}", status))
        raise StorefrontFailure(Errors.server(reason or f"Failed to {action}", status=status))

    def _lazy[T](self, fn: Callable[[], Awaitable[T]], action: str) -> LazyCoroResult[T, StorefrontError]:
        return L.catching_async(
            fn,
            on_error=lambda e: as_storefront_error(e, f"Failed to {action}"),
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart
    # ═══════════════════════════════════════════════════════════════════════════

    def fetch_cart(self) -> LazyCoroResult[Cart, StorefrontError]:
        async def do_fetch() -> Cart:
            payload = await self._request("GET", "/cart", action="load your cart")
            return CartWire.model_validate(_unwrap(payload, "cart")).to_domain()

        return self._lazy(do_fetch, "load your cart")

    def add_line(
        self,
        product: ProductRef,
        quantity: int,
        size: str,
        color: str,
        customization: Mapping[str, Any] | None = None,
    ) -> LazyCoroResult[Cart, StorefrontError]:
        body = AddLineBody(
            product_id=product if isinstance(product, str) else None,
            custom_product=CustomProductBody.from_domain(product)
            if isinstance(product, CustomProduct)
            else None,
            quantity=quantity,
            size=size,
            color=color,
            customization=dict(customization) if customization is not None else None,
        )

        async def do_add() -> Cart:
            payload = await self._request("POST", "/cart", action="add to cart", body=body.to_json())
            return CartWire.model_validate(_unwrap(payload, "cart")).to_domain()

        return self._lazy(do_add, "add to cart")

    def update_line(self, line_id: LineId, quantity: int) -> LazyCoroResult[Cart, StorefrontError]:
        async def do_update() -> Cart:
            payload = await self._request(
                "PUT",
                f"/cart/{line_id}",
                action="update the cart",
                body={"quantity": quantity},
            )
            return CartWire.model_validate(_unwrap(payload, "cart")).to_domain()

        return self._lazy(do_update, "update the cart")

    def remove_line(self, line_id: LineId) -> LazyCoroResult[Cart, StorefrontError]:
        async def do_remove() -> Cart:
            payload = await self._request("DELETE", f"/cart/{line_id}", action="remove the item")
            return CartWire.model_validate(_unwrap(payload, "cart")).to_domain()

        return self._lazy(do_remove, "remove the item")

    def apply_coupon(self, code: str) -> LazyCoroResult[AppliedCoupon, StorefrontError]:
        async def do_apply() -> AppliedCoupon:
            payload = await self._request(
                "POST",
                "/cart/coupon",
                action="apply the coupon",
                body={"code": code},
                on_client_error=lambda reason, status: Errors.invalid_coupon(reason, status=status),
            )
            return CouponWire.model_validate(payload).to_domain(applied_at=self._clock())

        return self._lazy(do_apply, "apply the coupon")

    def remove_coupon(self) -> LazyCoroResult[None, StorefrontError]:
        async def do_remove() -> None:
            await self._request("DELETE", "/cart/coupon", action="remove the coupon")

        return self._lazy(do_remove, "remove the coupon")

    def clear_cart(self) -> LazyCoroResult[None, StorefrontError]:
        async def do_clear() -> None:
            await self._request("DELETE", "/cart", action="clear the cart")

        return self._lazy(do_clear, "clear the cart")

    # ═══════════════════════════════════════════════════════════════════════════
    # Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    def create_payment_intent(self, amount: Money) -> LazyCoroResult[PaymentIntent, StorefrontError]:
        body = PaymentIntentBody(
            amount=amount,
            currency=self._currency,
            receipt=f"receipt_{uuid.uuid4().hex[:16]}",
        )

        async def do_create() -> PaymentIntent:
            payload = await self._request(
                "POST",
                f"/payments/{self._gateway}",
                action="start the payment",
                body=body.to_json(),
            )
            return PaymentIntentWire.model_validate(payload).to_domain(amount, self._currency)

        return self._lazy(do_create, "start the payment")

    def verify_payment(
        self,
        credentials: PaymentCredentials,
        draft: OrderDraft,
    ) -> LazyCoroResult[Verification, StorefrontError]:
        body = verification_body(credentials, OrderBody.from_draft(draft, self._gateway), self._gateway)

        async def do_verify() -> Verification:
            payload = await self._request(
                "POST",
                "/payments/verify",
                action="verify the payment",
                body=body,
                on_client_error=lambda reason, status: Errors.payment_verification(reason),
            )
            wire = VerificationWire.model_validate(payload)
            return Verification(
                verified=wire.verified,
                order=wire.order.to_domain() if wire.order is not None else None,
            )

        return self._lazy(do_verify, "verify the payment")

    def create_order(self, draft: OrderDraft) -> LazyCoroResult[Order, StorefrontError]:
        body = OrderBody.from_draft(draft, self._gateway).to_json()

        async def do_create() -> Order:
            payload = await self._request("POST", "/orders", action="place the order", body=body)
            return OrderWire.model_validate(_unwrap(payload, "order")).to_domain()

        return self._lazy(do_create, "place the order")


__all__ = ("HttpStorefrontAPI",)
