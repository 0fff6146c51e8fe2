"""
Cart — domain values and the session cart store.

    from storefront import cart as C

    store = C.CartStore(api, cache)
    store.load_from_storage()
    await store.fetch_cart()
    await store.add_line("prod-1", quantity=2, size="M", color="Black")

    store.totals.total            # server components win, local fills gaps
    store.status(C.CartOp.ADD)    # OpStatus.FULFILLED
"""

from __future__ import annotations

from storefront.domain import (
    Seller,
    CUSTOM_SELLER,
    CustomProduct,
    ProductRef,
    CartLine,
    Cart,
    DiscountType,
    AppliedCoupon,
)
from storefront.cart._types import CartOp, OpStatus, CartState
from storefront.cart._store import CartStore

__all__ = (
    # Domain
    "Seller",
    "CUSTOM_SELLER",
    "CustomProduct",
    "ProductRef",
    "CartLine",
    "Cart",
    "DiscountType",
    "AppliedCoupon",
    # Store
    "CartOp",
    "OpStatus",
    "CartState",
    "CartStore",
)
