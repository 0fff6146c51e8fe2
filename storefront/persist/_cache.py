"""
CartCache — typed snapshots of the cart and the applied coupon.

Best effort in both directions: a corrupt or unreadable entry loads as
None, a failed write is logged. The server stays the source of truth, so
neither ever fails the cart operation that triggered it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from storefront.domain import AppliedCoupon, Cart
from storefront.persist._codec import StoredCart, StoredCoupon
from storefront.persist._types import Storage

logger = logging.getLogger(__name__)

CART_KEY = "cart"
COUPON_KEY = "coupon"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CartCache:
    """
    Example:
        cache = CartCache(FileStorage(settings.storage_dir))
        cache.save_cart(cart)
        cache.load_cart()     # Cart | None
    """

    def __init__(
        self,
        storage: Storage,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._clock = clock

    @property
    def storage(self) -> Storage:
        return self._storage

    # ─── raw ─────────────────────────────────────────────────────────────────

    def _read(self, key: str) -> str | None:
        try:
            return self._storage.get(key)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read %r from %s: %s", key, self._storage.name, e)
            return None

    def _write(self, key: str, payload: str) -> bool:
        try:
            self._storage.set(key, payload)
        except (OSError, ValueError) as e:
            logger.warning("Failed to write %r to %s: %s", key, self._storage.name, e)
            return False
        return True

    def _drop(self, key: str) -> None:
        try:
            self._storage.delete(key)
        except (OSError, ValueError) as e:
            logger.warning("Failed to delete %r from %s: %s", key, self._storage.name, e)

    # ─── cart ────────────────────────────────────────────────────────────────

    def load_cart(self) -> Cart | None:
        raw = self._read(CART_KEY)
        if raw is None:
            return None
        try:
            return StoredCart.model_validate_json(raw).to_domain()
        except ValueError as e:
            logger.warning("Discarding unreadable cart snapshot: %s", e)
            return None

    def save_cart(self, cart: Cart) -> bool:
        snapshot = StoredCart.from_domain(cart, updated_at=self._clock())
        return self._write(CART_KEY, snapshot.model_dump_json(by_alias=True))

    def clear_cart(self) -> None:
        self._drop(CART_KEY)

    # ─── coupon ──────────────────────────────────────────────────────────────

    def load_coupon(self) -> AppliedCoupon | None:
        raw = self._read(COUPON_KEY)
        if raw is None:
            return None
        try:
            return StoredCoupon.model_validate_json(raw).to_domain()
        except ValueError as e:
            logger.warning("Discarding unreadable coupon snapshot: %s", e)
            return None

    def save_coupon(self, coupon: AppliedCoupon) -> bool:
        snapshot = StoredCoupon.from_domain(coupon)
        return self._write(COUPON_KEY, snapshot.model_dump_json(by_alias=True))

    def clear_coupon(self) -> None:
        self._drop(COUPON_KEY)

    # ─── both ────────────────────────────────────────────────────────────────

    def clear(self) -> None:
        self.clear_cart()
        self.clear_coupon()


__all__ = ("CartCache", "CART_KEY", "COUPON_KEY")
