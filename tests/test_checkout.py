import asyncio
from decimal import Decimal

import pytest
from combinators import lift as L

from storefront import checkout as K
from storefront._types import Error, Ok
from storefront.api import Verification
from storefront.cart import CartStore
from storefront.errors import ErrorKind, Errors
from storefront.orders import Order
from storefront.persist import CART_KEY, MemoryStorage

from conftest import FakeStorefrontAPI, ScriptedGateway, full_address


async def ready_for_review(
    session: K.CheckoutSession,
    store: CartStore,
    method: K.PaymentMethod = K.PaymentMethod.ONLINE,
) -> None:
    await store.add_line("tee", size="L", color="Black")
    session.set_shipping_address(full_address())
    assert session.next_step() == Ok(K.Step.PAYMENT)
    session.select_payment_method(method)
    assert session.next_step() == Ok(K.Step.REVIEW)
    session.accept_terms()


# ═══════════════════════════════════════════════════════════════════════════════
# Validation & navigation
# ═══════════════════════════════════════════════════════════════════════════════


def test_validate_address_lists_missing_fields() -> None:
    result = K.validate_address(full_address(city="  ", postal_code=""), "Shipping")

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.VALIDATION
    assert "City" in result.error.message
    assert "Postal code" in result.error.message
    assert K.missing_fields(full_address(city=" ", postal_code="")) == ("city", "postal_code")


def test_shipping_step_blocks_incomplete_address(session: K.CheckoutSession) -> None:
    session.set_shipping_address(full_address(phone="   "))

    result = session.next_step()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.VALIDATION
    assert session.step is K.Step.SHIPPING
    assert session.last_error == result.error


def test_separate_billing_address_is_validated(session: K.CheckoutSession) -> None:
    session.set_shipping_address(full_address())
    session.set_billing_address(full_address(street=""))

    result = session.next_step()

    assert isinstance(result, Error)
    assert "Billing" in result.error.message
    assert session.step is K.Step.SHIPPING

    session.use_shipping_as_billing()
    assert session.next_step() == Ok(K.Step.PAYMENT)
    assert session.billing_address == session.shipping_address


def test_payment_step_requires_a_method(session: K.CheckoutSession) -> None:
    session.set_shipping_address(full_address())
    session.next_step()
    session.select_payment_method(None)

    result = session.next_step()

    assert isinstance(result, Error)
    assert session.step is K.Step.PAYMENT


def test_previous_step_walks_back(session: K.CheckoutSession) -> None:
    session.set_shipping_address(full_address())
    session.next_step()
    session.next_step()

    assert session.previous_step() is K.Step.PAYMENT
    assert session.previous_step() is K.Step.SHIPPING
    assert session.previous_step() is K.Step.SHIPPING


def test_prefill_only_fills_empty_fields(session: K.CheckoutSession) -> None:
    session.prefill(name="Asha", email="asha@example.com")
    assert session.shipping_address.name == "Asha"
    assert session.shipping_address.country == "India"

    session.set_shipping_address(full_address(name="Ravi", email=""))
    session.prefill(name="Asha", email="asha@example.com")
    assert session.shipping_address.name == "Ravi"
    assert session.shipping_address.email == "asha@example.com"


async def test_place_order_requires_review_and_terms(session: K.CheckoutSession, store: CartStore) -> None:
    result = await session.place_order()
    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.VALIDATION

    await ready_for_review(session, store)
    session.accept_terms(False)

    result = await session.place_order()
    assert isinstance(result, Error)
    assert "terms" in result.error.message


async def test_empty_cart_cannot_be_placed(session: K.CheckoutSession, api: FakeStorefrontAPI) -> None:
    session.set_shipping_address(full_address())
    session.next_step()
    session.next_step()
    session.accept_terms()

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.message == "Your cart is empty"
    assert api.calls == []


# ═══════════════════════════════════════════════════════════════════════════════
# Cash on delivery
# ═══════════════════════════════════════════════════════════════════════════════


async def test_cod_places_exactly_one_order(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    storage: MemoryStorage,
    visited: list[str],
) -> None:
    await ready_for_review(session, store, K.PaymentMethod.COD)
    await store.apply_coupon("SAVE100")
    session.set_notes("  Call before delivery ")

    result = await session.place_order()

    assert result == Ok(K.Placement(K.PlacementStatus.PLACED, Order(id="o-cod", total=Decimal("1080"))))
    assert api.count("create_order") == 1
    assert api.count("create_payment_intent") == 0

    draft = api.drafts[0]
    assert draft.payment_method is K.PaymentMethod.COD
    assert draft.coupon_code == "SAVE100"
    assert draft.notes == "Call before delivery"
    assert draft.totals.total == Decimal("1080")

    assert session.step is K.Step.SUCCESS
    assert visited == ["/orders/o-cod?success=true"]
    assert store.cart.is_empty
    assert CART_KEY not in storage.keys()


async def test_cod_server_failure_returns_to_review(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    visited: list[str],
) -> None:
    await ready_for_review(session, store, K.PaymentMethod.COD)
    api.failures["create_order"] = Errors.server("Failed to create order", status=500)

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.SERVER
    assert session.step is K.Step.REVIEW
    assert session.last_error == result.error
    assert not store.cart.is_empty
    assert visited == []
    assert not session.in_flight


async def test_cod_double_submit_in_the_same_tick(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
) -> None:
    await ready_for_review(session, store, K.PaymentMethod.COD)

    first, second = await asyncio.gather(session.place_order(), session.place_order())

    assert isinstance(first, Ok)
    assert first.value.status is K.PlacementStatus.PLACED
    assert second == Ok(K.Placement(K.PlacementStatus.IGNORED))
    assert api.count("create_order") == 1


async def test_cleared_payment_method_blocks_placement(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store, K.PaymentMethod.COD)
    session.select_payment_method(None)

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.VALIDATION
    assert result.error.message == "Choose a payment method"
    assert session.step is K.Step.REVIEW
    assert gateway.opened == []
    assert api.count("create_payment_intent") == 0
    assert api.count("create_order") == 0


# ═══════════════════════════════════════════════════════════════════════════════
# Online payment
# ═══════════════════════════════════════════════════════════════════════════════


async def test_online_payment_places_order_through_verification(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
    visited: list[str],
) -> None:
    await ready_for_review(session, store)

    result = await session.place_order()

    assert result == Ok(K.Placement(K.PlacementStatus.PLACED, Order(id="o-online")))
    assert api.calls[-2:] == ["create_payment_intent", "verify_payment"]
    assert api.count("create_order") == 0

    intent, prefill = gateway.opened[0]
    assert intent.amount == Decimal("1180")
    assert prefill == K.Prefill(name="Asha Rao", email="asha@example.com", contact="9876543210")

    assert session.step is K.Step.SUCCESS
    assert visited == ["/orders/o-online?success=true"]
    assert store.cart.is_empty


@pytest.mark.parametrize(
    "verification",
    [Verification(False, Order(id="o-x")), Verification(True, None)],
    ids=["not-verified", "no-order"],
)
async def test_failed_verification_creates_no_order(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    storage: MemoryStorage,
    visited: list[str],
    verification: Verification,
) -> None:
    await ready_for_review(session, store)
    api.verification = verification
    cart_before = store.cart

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.PAYMENT_VERIFICATION
    assert api.count("create_order") == 0
    assert session.step is K.Step.REVIEW
    assert store.cart == cart_before
    assert CART_KEY in storage.keys()
    assert visited == []


async def test_dismissed_payment_returns_to_review(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "dismiss"

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.PAYMENT_CANCELLED
    assert api.count("verify_payment") == 0
    assert session.step is K.Step.REVIEW
    assert not store.cart.is_empty


async def test_gateway_reported_failure(session: K.CheckoutSession, store: CartStore, gateway: ScriptedGateway) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "fail"

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.message == "Card declined"
    assert session.step is K.Step.REVIEW


async def test_gateway_that_cannot_open(session: K.CheckoutSession, store: CartStore, gateway: ScriptedGateway) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "raise"

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.SERVER
    assert session.step is K.Step.REVIEW


async def test_payment_intent_failure_returns_to_review(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    api.failures["create_payment_intent"] = Errors.network("offline")

    result = await session.place_order()

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.NETWORK
    assert gateway.opened == []
    assert session.step is K.Step.REVIEW


async def wait_for_payment_window(session: K.CheckoutSession) -> None:
    for _ in range(100):
        if session.awaiting_payment:
            return
        await asyncio.sleep(0)
    raise AssertionError("payment window never opened")


async def test_double_submit_is_ignored(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "wait"

    first = asyncio.create_task(session.place_order())
    await wait_for_payment_window(session)
    assert session.step is K.Step.SUBMITTING

    second = await session.place_order()
    assert second == Ok(K.Placement(K.PlacementStatus.IGNORED))

    assert gateway.continuation is not None
    gateway.continuation.complete(K.PaymentCredentials("pay_1", "rzp_order_1", "sig"))
    result = await first

    assert isinstance(result, Ok)
    assert result.value.status is K.PlacementStatus.PLACED
    assert api.count("create_payment_intent") == 1
    assert api.count("verify_payment") == 1
    assert len(gateway.opened) == 1


async def test_late_gateway_callbacks_are_ignored(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "wait"

    task = asyncio.create_task(session.place_order())
    await wait_for_payment_window(session)
    continuation = gateway.continuation
    assert continuation is not None

    assert continuation.dismiss() is True
    assert continuation.complete(K.PaymentCredentials("pay_1", "rzp_order_1", "sig")) is False

    result = await task
    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.PAYMENT_CANCELLED
    assert api.count("verify_payment") == 0


async def test_closing_session_abandons_payment_wait(
    session: K.CheckoutSession,
    store: CartStore,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "wait"

    task = asyncio.create_task(session.place_order())
    await wait_for_payment_window(session)
    session.close()
    result = await task

    assert isinstance(result, Error)
    assert result.error.kind is ErrorKind.PAYMENT_CANCELLED
    assert session.step is K.Step.REVIEW
    assert not store.cart.is_empty

    again = await session.place_order()
    assert isinstance(again, Error)
    assert again.error.message == "Checkout is closed"


async def test_retry_after_failure_succeeds(
    session: K.CheckoutSession,
    store: CartStore,
    api: FakeStorefrontAPI,
    gateway: ScriptedGateway,
) -> None:
    await ready_for_review(session, store)
    gateway.behaviour = "dismiss"
    await session.place_order()

    gateway.behaviour = "complete"
    result = await session.place_order()

    assert isinstance(result, Ok)
    assert session.last_error is None
    assert len(gateway.opened) == 2


# ═══════════════════════════════════════════════════════════════════════════════
# Placement chain
# ═══════════════════════════════════════════════════════════════════════════════


async def test_placement_chain_rolls_back_in_reverse() -> None:
    undone: list[str] = []

    async def undo_a(value: int) -> None:
        undone.append(f"a:{value}")

    async def undo_b(value: int) -> None:
        undone.append(f"b:{value}")

    chain = (
        K.step("a", L.pure(1), compensate=undo_a)
        .then(lambda a: K.step("b", L.pure(a + 1), compensate=undo_b))
        .then(lambda b: K.step("c", L.fail(Errors.server("boom"))))
    )

    result = await K.run_placement(chain)

    assert isinstance(result, Error)
    failure = result.error
    assert (failure.step_failed, failure.step_name) == (3, "c")
    assert failure.compensators_run == 2
    assert failure.rollback_complete
    assert undone == ["b:2", "a:1"]


async def test_placement_chain_counts_failed_compensators() -> None:
    async def broken(_: int) -> None:
        raise RuntimeError("cannot undo")

    chain = K.step("a", L.pure(1), compensate=broken).then(
        lambda _: K.step("b", L.fail(Errors.network("down")))
    )

    result = await K.run_placement(chain)

    assert isinstance(result, Error)
    assert result.error.compensators_failed == 1
    assert not result.error.rollback_complete


async def test_single_step_success() -> None:
    result = await K.run_placement(K.step("only", L.pure("done")))

    assert isinstance(result, Ok)
    assert (result.value.value, result.value.steps_executed) == ("done", 1)
