"""
CartStore — the session's cart, kept in sync with the server.

Every fulfilled server response replaces the cart wholesale and is
persisted; a rejected one leaves the cart exactly as it was. Requests are
not fenced: when two mutations race, the last response to arrive wins.

    store = CartStore(api, CartCache(storage))
    store.load_from_storage()          # sync, before the first fetch
    await store.fetch_cart()

    match await store.apply_coupon("SAVE100"):
        case Ok(coupon): ...
        case Error(err) if err.kind is ErrorKind.INVALID_COUPON: ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from storefront._types import Error, LineId, Ok, Result
from storefront.api import CartAPI
from storefront.cart._types import CartOp, CartState, OpStatus
from storefront.domain import AppliedCoupon, Cart, DiscountType, ProductRef
from storefront.errors import ErrorKind, Errors, StorefrontError
from storefront.persist import CartCache
from storefront.pricing import Totals

logger = logging.getLogger(__name__)

_CLOSED = "Cart is closed"

type Listener = Callable[[CartState], None]


class CartStore:
    def __init__(
        self,
        api: CartAPI,
        cache: CartCache,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._api = api
        self._cache = cache
        self._clock = clock

        self._cart = Cart.empty()
        self._coupon: AppliedCoupon | None = None
        self._statuses: dict[CartOp, OpStatus] = {op: OpStatus.IDLE for op in CartOp}
        self._inflight: dict[CartOp, int] = {op: 0 for op in CartOp}
        self._error: str | None = None

        self._server_applied = False
        self._pending_coupon_removal = False
        self._coupon_generation = 0
        self._listeners: list[Listener] = []
        self._closed = False

    # ═══════════════════════════════════════════════════════════════════════════
    # Read side
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def coupon(self) -> AppliedCoupon | None:
        return self._coupon

    @property
    def totals(self) -> Totals:
        return self._cart.totals

    @property
    def loading(self) -> bool:
        return any(n > 0 for n in self._inflight.values())

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def closed(self) -> bool:
        return self._closed

    def status(self, op: CartOp) -> OpStatus:
        return self._statuses[op]

    @property
    def state(self) -> CartState:
        return CartState(
            cart=self._cart,
            coupon=self._coupon,
            statuses=MappingProxyType(dict(self._statuses)),
            error=self._error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for state changes. Returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    # ═══════════════════════════════════════════════════════════════════════════
    # Status machine
    # ═══════════════════════════════════════════════════════════════════════════

    def _begin(self, op: CartOp) -> None:
        self._inflight[op] += 1
        self._statuses[op] = OpStatus.PENDING
        self._error = None
        self._notify()

    def _fulfill(self, op: CartOp) -> None:
        self._inflight[op] -= 1
        if self._inflight[op] == 0:
            self._statuses[op] = OpStatus.FULFILLED
        self._notify()

    def _reject(self, op: CartOp, error: StorefrontError) -> None:
        self._inflight[op] -= 1
        if self._inflight[op] == 0:
            self._statuses[op] = OpStatus.REJECTED
        self._error = error.message
        logger.info("Cart %s rejected: %s (%s)", op.name.lower(), error.message, error.kind.name)
        self._notify()

    def _reject_locally(self, op: CartOp, error: StorefrontError) -> Result[Any, StorefrontError]:
        """Fail before any network call; the cart is never touched."""
        self._statuses[op] = OpStatus.REJECTED
        self._error = error.message
        self._notify()
        return Error(error)

    def _abandon(self, op: CartOp) -> Result[Any, StorefrontError]:
        """A response that arrived after close(); neither memory nor storage is written."""
        self._inflight[op] = max(self._inflight[op] - 1, 0)
        logger.debug("Dropping %s response that arrived after close", op.name.lower())
        return Error(Errors.validation(_CLOSED))

    # ═══════════════════════════════════════════════════════════════════════════
    # Reconciliation
    # ═══════════════════════════════════════════════════════════════════════════

    def _replace(self, cart: Cart) -> bool:
        """
        Install a server cart wholesale and persist it.

        Returns True when a locally removed coupon is still present on the
        server and the remote removal should be retried.
        """
        if self._closed:
            return False

        retry_coupon_removal = False
        if self._pending_coupon_removal:
            if cart.coupon_code:
                cart = cart.without_coupon()
                retry_coupon_removal = True
            else:
                self._pending_coupon_removal = False

        self._cart = cart
        self._server_applied = True
        self._sync_coupon()
        self._cache.save_cart(self._cart)
        return retry_coupon_removal

    def _sync_coupon(self) -> None:
        if self._closed:
            return
        code = self._cart.coupon_code
        if code is None:
            if self._coupon is not None:
                self._coupon = None
                self._cache.clear_coupon()
            return
        current = self._coupon
        if current is not None and current.code == code and current.discount == self._cart.discount:
            return
        self._coupon = AppliedCoupon(
            code=code,
            discount=self._cart.discount,
            discount_type=current.discount_type if current is not None else DiscountType.FIXED,
            applied_at=self._clock(),
        )
        self._cache.save_coupon(self._coupon)

    async def _retry_coupon_removal(self) -> None:
        result = await self._api.remove_coupon()
        if self._closed:
            return
        match result:
            case Ok(_):
                self._pending_coupon_removal = False
                logger.info("Remote coupon removal reconciled")
            case Error(err):
                logger.warning("Remote coupon removal still failing: %s", err.message)

    # ═══════════════════════════════════════════════════════════════════════════
    # Hydration
    # ═══════════════════════════════════════════════════════════════════════════

    def load_from_storage(self) -> bool:
        """
        Seed the store from the local snapshot.

        Synchronous. A no-op once any server response has been applied, so
        a late hydration can never overwrite fresher server state. Returns
        True when something was loaded.
        """
        if self._closed or self._server_applied:
            logger.debug("Skipping hydration: store closed or server state already applied")
            return False

        cart = self._cache.load_cart()
        coupon = self._cache.load_coupon()
        if cart is None and coupon is None:
            return False

        hydrated = cart if cart is not None else self._cart
        if coupon is not None and (hydrated.coupon_code in (None, coupon.code)):
            hydrated = hydrated.with_coupon(coupon.code, coupon.discount)
            self._coupon = coupon
        self._cart = hydrated
        self._notify()
        return True

    # ═══════════════════════════════════════════════════════════════════════════
    # Operations
    # ═══════════════════════════════════════════════════════════════════════════

    async def fetch_cart(self) -> Result[Cart, StorefrontError]:
        """Replace the cart with the server's. On failure the cart is kept."""
        if self._closed:
            return self._reject_locally(CartOp.FETCH, Errors.validation(_CLOSED))

        self._begin(CartOp.FETCH)
        result = await self._api.fetch_cart()
        if self._closed:
            return self._abandon(CartOp.FETCH)
        match result:
            case Ok(cart):
                retry = self._replace(cart)
                self._fulfill(CartOp.FETCH)
                if retry:
                    await self._retry_coupon_removal()
                return Ok(self._cart)
            case Error(err):
                self._reject(CartOp.FETCH, err)
                return Error(err)

    async def add_line(
        self,
        product: ProductRef,
        quantity: int = 1,
        size: str = "",
        color: str = "",
        customization: Mapping[str, Any] | None = None,
    ) -> Result[Cart, StorefrontError]:
        if self._closed:
            return self._reject_locally(CartOp.ADD, Errors.validation(_CLOSED))
        if quantity < 1:
            return self._reject_locally(CartOp.ADD, Errors.validation("Quantity must be at least 1"))
        if isinstance(product, str) and not product.strip():
            return self._reject_locally(CartOp.ADD, Errors.validation("Choose a product to add"))

        self._begin(CartOp.ADD)
        result = await self._api.add_line(product, quantity, size, color, customization)
        if self._closed:
            return self._abandon(CartOp.ADD)
        match result:
            case Ok(cart):
                self._replace(cart)
                self._fulfill(CartOp.ADD)
                return Ok(self._cart)
            case Error(err):
                self._reject(CartOp.ADD, err)
                return Error(err)

    async def update_line_quantity(
        self,
        line_id: LineId,
        quantity: int,
    ) -> Result[Cart, StorefrontError]:
        """
        Set a line's quantity.

        A line the server no longer knows yields NOT_FOUND, after the store
        has re-fetched the authoritative cart.
        """
        if self._closed:
            return self._reject_locally(CartOp.UPDATE, Errors.validation(_CLOSED))
        if quantity < 1:
            return self._reject_locally(CartOp.UPDATE, Errors.validation("Quantity must be at least 1"))

        self._begin(CartOp.UPDATE)
        result = await self._api.update_line(line_id, quantity)
        if self._closed:
            return self._abandon(CartOp.UPDATE)
        match result:
            case Ok(cart):
                self._replace(cart)
                self._fulfill(CartOp.UPDATE)
                return Ok(self._cart)
            case Error(err):
                self._reject(CartOp.UPDATE, err)
                if err.kind is ErrorKind.NOT_FOUND:
                    await self.fetch_cart()
                return Error(err)

    async def remove_line(self, line_id: LineId) -> Result[Cart, StorefrontError]:
        """Idempotent: removing an absent line re-syncs and succeeds."""
        if self._closed:
            return self._reject_locally(CartOp.REMOVE, Errors.validation(_CLOSED))

        self._begin(CartOp.REMOVE)
        result = await self._api.remove_line(line_id)
        if self._closed:
            return self._abandon(CartOp.REMOVE)
        match result:
            case Ok(cart):
                self._replace(cart)
                self._fulfill(CartOp.REMOVE)
                return Ok(self._cart)
            case Error(err) if err.kind is ErrorKind.NOT_FOUND:
                logger.info("Line %s already gone, re-syncing", line_id)
                self._fulfill(CartOp.REMOVE)
                return await self.fetch_cart()
            case Error(err):
                self._reject(CartOp.REMOVE, err)
                return Error(err)

    async def apply_coupon(self, code: str) -> Result[AppliedCoupon, StorefrontError]:
        """
        Apply a coupon; overwrites any active one.

        The discount and the code change together or not at all.
        """
        if self._closed:
            return self._reject_locally(CartOp.APPLY_COUPON, Errors.validation(_CLOSED))
        code = code.strip()
        if not code:
            return self._reject_locally(CartOp.APPLY_COUPON, Errors.validation("Enter a coupon code"))

        self._begin(CartOp.APPLY_COUPON)
        result = await self._api.apply_coupon(code)
        if self._closed:
            return self._abandon(CartOp.APPLY_COUPON)
        match result:
            case Ok(coupon):
                self._pending_coupon_removal = False
                self._coupon_generation += 1
                self._coupon = coupon
                self._cart = self._cart.with_coupon(coupon.code, coupon.discount)
                self._cache.save_coupon(coupon)
                self._cache.save_cart(self._cart)
                self._fulfill(CartOp.APPLY_COUPON)
                return Ok(coupon)
            case Error(err):
                self._reject(CartOp.APPLY_COUPON, err)
                return Error(err)

    async def remove_coupon(self) -> Result[Cart, StorefrontError]:
        """
        Drop the active coupon.

        Local first: discount and code are zeroed and persisted before the
        server is told. A remote failure is logged and reconciled on the
        next successful fetch_cart(), unless a coupon was applied meanwhile.
        """
        if self._closed:
            return self._reject_locally(CartOp.REMOVE_COUPON, Errors.validation(_CLOSED))

        self._begin(CartOp.REMOVE_COUPON)
        generation = self._coupon_generation
        self._coupon = None
        self._cart = self._cart.without_coupon()
        self._cache.clear_coupon()
        self._cache.save_cart(self._cart)
        self._notify()

        result = await self._api.remove_coupon()
        if self._closed:
            return self._abandon(CartOp.REMOVE_COUPON)
        superseded = generation != self._coupon_generation
        match result:
            case Ok(_):
                if not superseded:
                    self._pending_coupon_removal = False
            case Error(err) if superseded:
                logger.info("Server coupon removal failed after a newer coupon was applied: %s", err.message)
            case Error(err):
                self._pending_coupon_removal = True
                logger.warning("Coupon removed locally, server removal failed: %s", err.message)
        self._fulfill(CartOp.REMOVE_COUPON)
        return Ok(self._cart)

    async def clear_cart(self, remote: bool = False) -> Result[Cart, StorefrontError]:
        """
        Empty the cart in memory and in storage.

        `remote=True` also clears the server cart first; if that fails
        nothing local changes.
        """
        if self._closed:
            return self._reject_locally(CartOp.CLEAR, Errors.validation(_CLOSED))

        self._begin(CartOp.CLEAR)
        if remote:
            result = await self._api.clear_cart()
            if self._closed:
                return self._abandon(CartOp.CLEAR)
            match result:
                case Error(err):
                    self._reject(CartOp.CLEAR, err)
                    return Error(err)
                case Ok(_):
                    pass

        self._cart = Cart.empty()
        self._coupon = None
        self._pending_coupon_removal = False
        self._cache.clear()
        self._fulfill(CartOp.CLEAR)
        return Ok(self._cart)

    # ═══════════════════════════════════════════════════════════════════════════
    # Teardown
    # ═══════════════════════════════════════════════════════════════════════════

    def close(self, purge: bool = False) -> None:
        """Drop in-memory state and subscribers (logout). `purge` also wipes storage."""
        if purge:
            self._cache.clear()
        self._listeners.clear()
        self._cart = Cart.empty()
        self._coupon = None
        self._error = None
        self._pending_coupon_removal = False
        self._closed = True


__all__ = ("CartStore",)
