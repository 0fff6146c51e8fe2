"""
Cart — server-synced cart with coupons and local snapshots.

    python -m examples.cart_example
"""

from kungfu import Ok, Error
from storefront import persist as S
from examples._infra import DemoShop, banner, demo_api, demo_store, run, show_totals


async def main() -> None:
    shop = DemoShop()
    api = demo_api(shop)
    storage = S.MemoryStorage()
    store = demo_store(api, storage)
    store.subscribe(lambda state: print(f"  · loading={state.loading} lines={len(state.cart.lines)}"))

    banner("Add lines")
    await store.add_line("tee-01", quantity=1, size="L", color="Black")
    await store.add_line("mug-02", quantity=2)
    show_totals(store)

    banner("Unknown product")
    match await store.add_line("hat-99"):
        case Error(e):
            print(f"  ✗ {e.kind.name}: {e.message}")
        case Ok(_):
            print("  ✓ added (unexpected)")

    banner("Coupons")
    match await store.apply_coupon("nope"):
        case Error(e):
            print(f"  ✗ {e.message}")
        case Ok(_):
            pass
    match await store.apply_coupon("save100"):
        case Ok(coupon):
            print(f"  ✓ {coupon.code}: -{coupon.discount}")
        case Error(e):
            print(f"  ✗ {e.message}")
    show_totals(store)

    banner("Coupon removal while the server is down")
    shop.fail_coupon_removal = True
    await store.remove_coupon()
    print(f"  local coupon={store.coupon} server coupon={shop.coupon}")
    shop.fail_coupon_removal = False
    await store.fetch_cart()
    print(f"  after fetch: server coupon={shop.coupon}")

    banner("Reload from storage")
    fresh = demo_store(api, storage)
    fresh.load_from_storage()
    print(f"  restored {fresh.cart.item_count} items")
    show_totals(fresh)

    await api.aclose()


if __name__ == "__main__":
    run(main)
