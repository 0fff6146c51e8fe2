"""Shared infrastructure for examples: an in-process shop backend."""

from __future__ import annotations

import asyncio
import itertools
import json
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from storefront import persist as S
from storefront.api import HttpStorefrontAPI
from storefront.cart import CartStore
from storefront.checkout import PaymentContinuation, PaymentCredentials, PaymentIntent, Prefill


CATALOG: dict[str, dict[str, Any]] = {
    "tee-01": {
        "_id": "tee-01",
        "name": "Graphic Tee",
        "price": 1000,
        "originalPrice": 1299,
        "images": ["https://cdn.example.com/tee-01.png"],
        "stock": 20,
        "seller": {"_id": "s-1", "name": "Acme Prints"},
    },
    "mug-02": {
        "_id": "mug-02",
        "name": "Enamel Mug",
        "price": 250,
        "images": [],
        "stock": 3,
        "seller": {"_id": "s-2", "name": "Camp Goods"},
    },
}

COUPONS: dict[str, int] = {"SAVE100": 100}


# Fake backend
@dataclass(slots=True)
class DemoShop:
    """Just enough of the shop REST API to drive a CartStore and CheckoutSession."""

    items: list[dict[str, Any]] = field(default_factory=list)
    coupon: str | None = None
    orders: list[dict[str, Any]] = field(default_factory=list)
    fail_coupon_removal: bool = False
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def cart_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"items": self.items}
        if self.coupon is not None:
            body |= {"couponCode": self.coupon, "discount": COUPONS[self.coupon]}
        return body

    def _find(self, line_id: str) -> dict[str, Any] | None:
        return next((item for item in self.items if item["_id"] == line_id), None)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        data = json.loads(request.content) if request.content else {}
        print(f"    → {request.method} {path}")

        match request.method, path:
            case "GET", "/cart":
                return httpx.Response(200, json=self.cart_json())
            case "POST", "/cart":
                product = CATALOG.get(data.get("productId", ""))
                if product is None:
                    return httpx.Response(404, json={"message": "Product not found"})
                self.items.append({
                    "_id": f"line-{next(self._ids)}",
                    "product": product,
                    "quantity": data["quantity"],
                    "size": data.get("size", ""),
                    "color": data.get("color", ""),
                    "price": product["price"],
                })
                return httpx.Response(200, json=self.cart_json())
            case "POST", "/cart/coupon":
                code = data["code"].upper()
                if code not in COUPONS:
                    return httpx.Response(400, json={"error": "Invalid or expired coupon"})
                self.coupon = code
                return httpx.Response(200, json={"couponCode": code, "discount": COUPONS[code]})
            case "DELETE", "/cart/coupon":
                if self.fail_coupon_removal:
                    return httpx.Response(503, json={"error": "Coupon service unavailable"})
                self.coupon = None
                return httpx.Response(200, json={"message": "Coupon removed"})
            case "DELETE", "/cart":
                self.items.clear()
                self.coupon = None
                return httpx.Response(200, json={"message": "Cart cleared successfully"})
            case "PUT", _ if (line := self._find(path.removeprefix("/cart/"))) is not None:
                line["quantity"] = data["quantity"]
                return httpx.Response(200, json=self.cart_json())
            case "DELETE", _ if (line := self._find(path.removeprefix("/cart/"))) is not None:
                self.items.remove(line)
                return httpx.Response(200, json=self.cart_json())
            case "POST", "/payments/razorpay":
                return httpx.Response(200, json={"orderId": "order_demo_1", "key": "rzp_test_demo"})
            case "POST", "/payments/verify":
                if data["razorpay_signature"] != "good-signature":
                    return httpx.Response(400, json={"message": "Invalid signature"})
                return httpx.Response(200, json={"verified": True, "order": self._place(data["orderData"])})
            case "POST", "/orders":
                return httpx.Response(201, json=self._place(data))
            case _:
                return httpx.Response(404, json={"message": "Item not found in cart"})

    def _place(self, order: dict[str, Any]) -> dict[str, Any]:
        placed = {"_id": f"ord-{len(self.orders) + 1}", "orderNumber": f"ORD-{1000 + len(self.orders)}"}
        placed |= {"status": "confirmed", "totalAmount": order["totalAmount"]}
        self.orders.append(order | placed)
        self.items.clear()
        self.coupon = None
        return placed


def demo_api(shop: DemoShop) -> HttpStorefrontAPI:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(shop.handle),
        base_url="http://shop.local/api",
    )
    return HttpStorefrontAPI(client)


def demo_store(api: HttpStorefrontAPI, storage: S.Storage | None = None) -> CartStore:
    return CartStore(api, S.CartCache(storage if storage is not None else S.MemoryStorage()))


# Fake payment widget
@dataclass(slots=True)
class ConsoleGateway:
    """Pretends the shopper paid; `signature` decides whether the server accepts it."""

    signature: str = "good-signature"

    def open(self, intent: PaymentIntent, prefill: Prefill, continuation: PaymentContinuation) -> None:
        print(f"  💳 Pay {intent.amount} {intent.currency} as {prefill.name or 'guest'}")
        loop = asyncio.get_running_loop()
        loop.call_soon(
            continuation.complete,
            PaymentCredentials(payment_id="pay_demo_1", order_id=intent.order_id, signature=self.signature),
        )


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show_totals(store: CartStore) -> None:
    t = store.totals
    print(f"  subtotal={t.subtotal} tax={t.tax} shipping={t.shipping} discount={t.discount} total={t.total}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
