"""
CheckoutSession — the multi-step checkout for one placement attempt.

Reads the cart store, never mutates it until an order exists. Placement
runs as a compensated step chain: whatever fails, the session lands back
on REVIEW with the cart intact and `last_error` set.

    session = CheckoutSession(store, api, gateway, navigator=router.push)
    session.set_shipping_address(address)
    session.next_step()                     # → PAYMENT
    session.select_payment_method(PaymentMethod.COD)
    session.next_step()                     # → REVIEW
    session.accept_terms()
    match await session.place_order():
        case Ok(Placement(status=PlacementStatus.PLACED, order=order)): ...
        case Error(err): session.last_error
"""

from __future__ import annotations

import logging
from dataclasses import replace

from combinators import lift as L

from storefront._types import Error, LazyCoroResult, Ok, Result
from storefront.api import CheckoutAPI, Verification
from storefront.cart import CartStore
from storefront.checkout._gateway import PaymentContinuation, PaymentGateway
from storefront.checkout._steps import PlacementChain, run_placement, step
from storefront.checkout._types import (
    _BACKWARD,
    _FORWARD,
    Navigator,
    Placement,
    PlacementStatus,
    Prefill,
    Step,
)
from storefront.checkout._validate import validate_address
from storefront.domain import (
    Address,
    OrderDraft,
    PaymentCredentials,
    PaymentIntent,
    PaymentMethod,
)
from storefront.errors import Errors, StorefrontError, as_storefront_error
from storefront.orders import Order

logger = logging.getLogger(__name__)


class CheckoutSession:
    def __init__(
        self,
        store: CartStore,
        api: CheckoutAPI,
        gateway: PaymentGateway,
        navigator: Navigator | None = None,
        *,
        default_country: str = "India",
    ) -> None:
        self._store = store
        self._api = api
        self._gateway = gateway
        self._navigator = navigator

        self._step = Step.SHIPPING
        self._shipping = Address(country=default_country)
        self._billing = Address(country=default_country)
        self._use_shipping_for_billing = True
        self._payment_method: PaymentMethod | None = PaymentMethod.ONLINE
        self._terms_accepted = False
        self._notes = ""
        self._user_email = ""

        self._last_error: StorefrontError | None = None
        self._in_flight = False
        self._continuation: PaymentContinuation | None = None
        self._order: Order | None = None
        self._closed = False

    # ═══════════════════════════════════════════════════════════════════════════
    # State
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def step(self) -> Step:
        return self._step

    @property
    def shipping_address(self) -> Address:
        return self._shipping

    @property
    def billing_address(self) -> Address:
        return self._shipping if self._use_shipping_for_billing else self._billing

    @property
    def use_shipping_for_billing(self) -> bool:
        return self._use_shipping_for_billing

    @property
    def payment_method(self) -> PaymentMethod | None:
        return self._payment_method

    @property
    def terms_accepted(self) -> bool:
        return self._terms_accepted

    @property
    def notes(self) -> str:
        return self._notes

    @property
    def last_error(self) -> StorefrontError | None:
        return self._last_error

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def awaiting_payment(self) -> bool:
        return self._continuation is not None and not self._continuation.done

    @property
    def order(self) -> Order | None:
        return self._order

    # ═══════════════════════════════════════════════════════════════════════════
    # Form input
    # ═══════════════════════════════════════════════════════════════════════════

    def prefill(self, name: str = "", email: str = "") -> None:
        """Seed empty shipping fields from the signed-in user."""
        self._user_email = email
        self._shipping = replace(
            self._shipping,
            name=self._shipping.name or name,
            email=self._shipping.email or email,
        )

    def set_shipping_address(self, address: Address) -> None:
        self._shipping = address

    def set_billing_address(self, address: Address) -> None:
        self._billing = address
        self._use_shipping_for_billing = False

    def use_shipping_as_billing(self, enabled: bool = True) -> None:
        self._use_shipping_for_billing = enabled

    def select_payment_method(self, method: PaymentMethod | None) -> None:
        self._payment_method = method

    def accept_terms(self, accepted: bool = True) -> None:
        self._terms_accepted = accepted

    def set_notes(self, notes: str) -> None:
        self._notes = notes

    # ═══════════════════════════════════════════════════════════════════════════
    # Navigation
    # ═══════════════════════════════════════════════════════════════════════════

    def _fail(self, error: StorefrontError) -> Result[Step, StorefrontError]:
        self._last_error = error
        return Error(error)

    def _validate_addresses(self) -> Result[None, StorefrontError]:
        match validate_address(self._shipping, "Shipping"):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass
        if not self._use_shipping_for_billing:
            match validate_address(self._billing, "Billing"):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    pass
        return Ok(None)

    def next_step(self) -> Result[Step, StorefrontError]:
        """Advance one step if the current one is complete. Never advances partially."""
        if self._step not in _FORWARD:
            return self._fail(Errors.validation("Nothing left to fill in; place the order"))

        if self._step is Step.SHIPPING:
            match self._validate_addresses():
                case Error(e):
                    return self._fail(e)
                case Ok(_):
                    pass
        elif self._step is Step.PAYMENT and self._payment_method is None:
            return self._fail(Errors.validation("Choose a payment method"))

        self._step = _FORWARD[self._step]
        self._last_error = None
        return Ok(self._step)

    def previous_step(self) -> Step:
        if self._step in _BACKWARD and not self._in_flight:
            self._step = _BACKWARD[self._step]
        return self._step

    # ═══════════════════════════════════════════════════════════════════════════
    # Placement
    # ═══════════════════════════════════════════════════════════════════════════

    def _draft(self, payment_method: PaymentMethod) -> OrderDraft:
        cart = self._store.cart
        return OrderDraft(
            lines=cart.lines,
            shipping_address=self._shipping,
            billing_address=self.billing_address,
            payment_method=payment_method,
            totals=cart.totals,
            coupon_code=cart.coupon_code,
            notes=self._notes.strip(),
        )

    def _check_ready(self) -> Result[PaymentMethod, StorefrontError]:
        """The chosen payment method, once every placement precondition holds."""
        if self._closed:
            return Error(Errors.validation("Checkout is closed"))
        if self._step is not Step.REVIEW:
            return Error(Errors.validation("Review your order before placing it"))
        method = self._payment_method
        if method is None:
            return Error(Errors.validation("Choose a payment method"))
        if not self._terms_accepted:
            return Error(Errors.validation("Please accept the terms and conditions"))
        if self._store.cart.is_empty:
            return Error(Errors.validation("Your cart is empty"))
        match self._validate_addresses():
            case Error(e):
                return Error(e)
            case Ok(_):
                return Ok(method)

    async def _back_to_review(self, _previous: Step) -> None:
        self._step = Step.REVIEW

    def _begin_submission(self) -> LazyCoroResult[Step, StorefrontError]:
        def begin() -> Step:
            previous = self._step
            self._step = Step.SUBMITTING
            return previous

        return L.catching(begin, on_error=lambda e: as_storefront_error(e, "Could not start checkout"))

    def _await_payment(
        self,
        intent: PaymentIntent,
    ) -> LazyCoroResult[PaymentCredentials, StorefrontError]:
        async def do_pay() -> Result[PaymentCredentials, StorefrontError]:
            continuation = PaymentContinuation()
            self._continuation = continuation
            prefill = Prefill(
                name=self._shipping.name,
                email=self._shipping.email or self._user_email,
                contact=self._shipping.phone,
            )
            try:
                self._gateway.open(intent, prefill, continuation)
            except Exception as e:
                logger.exception("Payment gateway failed to open")
                return Error(Errors.server("Could not open the payment window", cause=e))
            return await continuation.wait()

        return LazyCoroResult(do_pay)

    def _verify(
        self,
        credentials: PaymentCredentials,
        draft: OrderDraft,
    ) -> LazyCoroResult[Order, StorefrontError]:
        async def do_verify() -> Result[Order, StorefrontError]:
            match await self._api.verify_payment(credentials, draft):
                case Ok(Verification(verified=True, order=Order() as order)):
                    return Ok(order)
                case Ok(_):
                    return Error(Errors.payment_verification("Payment verification failed"))
                case Error(e):
                    return Error(e)

        return LazyCoroResult(do_verify)

    def _placement_chain(self, draft: OrderDraft) -> PlacementChain:
        begin = step("begin_submission", self._begin_submission(), compensate=self._back_to_review)

        if draft.payment_method is PaymentMethod.COD:
            return begin.then(lambda _: step("create_order", self._api.create_order(draft)))

        return (
            begin.then(lambda _: step("payment_intent", self._api.create_payment_intent(draft.totals.total)))
            .then(lambda intent: step("await_payment", self._await_payment(intent)))
            .then(lambda credentials: step("verify_payment", self._verify(credentials, draft)))
        )

    async def _finish(self, order: Order) -> None:
        self._order = order
        await self._store.clear_cart()
        self._step = Step.SUCCESS
        logger.info("Order %s placed", order.id)
        if self._navigator is not None:
            self._navigator(order.confirmation_path)

    async def place_order(self) -> Result[Placement, StorefrontError]:
        """
        Place the order from REVIEW.

        Online payment never calls order creation directly: the order is
        persisted by the server only as part of a successful verification.
        A second call while one is in flight is ignored.
        """
        if self._in_flight:
            logger.info("Placement already in flight; ignoring repeat trigger")
            return Ok(Placement(PlacementStatus.IGNORED))

        match self._check_ready():
            case Error(e):
                self._last_error = e
                return Error(e)
            case Ok(method):
                pass

        self._in_flight = True
        self._last_error = None
        try:
            match await run_placement(self._placement_chain(self._draft(method))):
                case Ok(done):
                    order: Order = done.value
                    await self._finish(order)
                    return Ok(Placement(PlacementStatus.PLACED, order))
                case Error(failure):
                    self._last_error = failure.error
                    return Error(failure.error)
        finally:
            self._in_flight = False
            self._continuation = None

    # ═══════════════════════════════════════════════════════════════════════════
    # Teardown
    # ═══════════════════════════════════════════════════════════════════════════

    def close(self) -> None:
        """Abandon the session; a pending payment wait resolves as cancelled."""
        self._closed = True
        if self._continuation is not None:
            self._continuation.cancel()


__all__ = ("CheckoutSession",)
