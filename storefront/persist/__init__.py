"""
Persist — local snapshots of the cart and coupon.

    from storefront import persist as S

    cache = S.CartCache(S.FileStorage("~/.storefront"))
    cache.save_cart(cart)
    cache.load_cart()          # Cart | None, never raises

Custom backends implement the S.Storage protocol (sync get/set/delete).
"""

from __future__ import annotations

from storefront.persist._types import Storage, MemoryStorage, FileStorage
from storefront.persist._codec import StoredCart, StoredCoupon, StoredLine, StoredSeller
from storefront.persist._cache import CartCache, CART_KEY, COUPON_KEY

__all__ = (
    # Storage
    "Storage",
    "MemoryStorage",
    "FileStorage",
    # Snapshots
    "StoredCart",
    "StoredCoupon",
    "StoredLine",
    "StoredSeller",
    # Cache
    "CartCache",
    "CART_KEY",
    "COUPON_KEY",
)
