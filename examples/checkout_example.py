"""
Checkout — address steps, COD and online placement with rollback.

Level 4: storefront.checkout
Level 3: storefront.cart
Level 2: kungfu.Result

    python -m examples.checkout_example
"""

from kungfu import Ok, Error
from combinators import lift as L
from storefront import checkout as K
from storefront.errors import Errors
from examples._infra import ConsoleGateway, DemoShop, banner, demo_api, demo_store, run, show_totals


ADDRESS = K.Address(
    name="Asha Rao",
    phone="9876543210",
    street="12 MG Road",
    city="Bengaluru",
    state="Karnataka",
    postal_code="560001",
)


def fill(session: K.CheckoutSession, method: K.PaymentMethod) -> None:
    session.prefill(name="Asha Rao", email="asha@example.com")
    session.set_shipping_address(ADDRESS)
    session.next_step()
    session.select_payment_method(method)
    session.next_step()
    session.accept_terms()


async def place(session: K.CheckoutSession) -> None:
    match await session.place_order():
        case Ok(placement):
            print(f"  ✓ {placement.status.name}: {placement.order}")
        case Error(e):
            print(f"  ✗ {e.kind.name}: {e.message} (step={session.step.name})")


async def main() -> None:
    shop = DemoShop()
    api = demo_api(shop)
    visited: list[str] = []

    banner("Incomplete address")
    store = demo_store(api)
    session = K.CheckoutSession(store, api, ConsoleGateway(), navigator=visited.append)
    session.set_shipping_address(K.Address(name="Asha", city="Bengaluru"))
    match session.next_step():
        case Error(e):
            print(f"  ✗ {e.message}")
        case Ok(step):
            print(f"  → {step.name}")

    banner("Cash on delivery")
    await store.add_line("tee-01", size="M")
    await store.apply_coupon("SAVE100")
    show_totals(store)
    fill(session, K.PaymentMethod.COD)
    await place(session)
    print(f"  navigated to {visited[-1]}, cart empty={store.cart.is_empty}")

    banner("Online payment, bad signature")
    store = demo_store(api)
    await store.fetch_cart()
    await store.add_line("mug-02", quantity=2)
    session = K.CheckoutSession(store, api, ConsoleGateway(signature="forged"), navigator=visited.append)
    fill(session, K.PaymentMethod.ONLINE)
    await place(session)
    print(f"  cart kept: {store.cart.item_count} items")

    banner("Online payment")
    session = K.CheckoutSession(store, api, ConsoleGateway(), navigator=visited.append)
    fill(session, K.PaymentMethod.ONLINE)
    await place(session)
    print(f"  navigated to {visited[-1]}")

    banner("Placement chain rollback")

    async def undo(value: str) -> None:
        print(f"  ← undo {value}")

    chain = (
        K.step("reserve", L.pure("stock-1"), undo)
        .then(lambda _: K.step("charge", L.pure("charge-1"), undo))
        .then(lambda _: K.step("ship", L.fail(Errors.server("Courier unavailable"))))
    )
    match await K.run_placement(chain):
        case Ok(r):
            print(f"  ✓ {r.value}")
        case Error(f):
            print(f"  ✗ {f.step_name}: {f.error.message} (rolled back: {f.rollback_complete})")

    await api.aclose()


if __name__ == "__main__":
    run(main)
