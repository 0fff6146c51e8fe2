"""
API — contracts and HTTP client for the storefront REST collaborators.

    from storefront import api as A

    client = A.HttpStorefrontAPI.from_settings(settings)
    result = await client.fetch_cart()     # Result[Cart, StorefrontError]

Tests and alternative transports implement A.CartAPI / A.CheckoutAPI.
"""

from __future__ import annotations

from storefront.api._protocol import CartAPI, CheckoutAPI, Verification
from storefront.api._http import HttpStorefrontAPI
from storefront.api._wire import (
    ToDomain,
    FromDomain,
    CartWire,
    LineWire,
    CouponWire,
    OrderWire,
    OrderBody,
    VerificationWire,
    PaymentIntentWire,
)

__all__ = (
    # Contracts
    "CartAPI",
    "CheckoutAPI",
    "Verification",
    # Client
    "HttpStorefrontAPI",
    # Wire
    "ToDomain",
    "FromDomain",
    "CartWire",
    "LineWire",
    "CouponWire",
    "OrderWire",
    "OrderBody",
    "VerificationWire",
    "PaymentIntentWire",
)
