from decimal import Decimal

from hypothesis import given, strategies as st

from storefront import pricing as P

from conftest import make_line


def D(v: int | str) -> Decimal:
    return Decimal(str(v))


def test_empty_cart_is_all_zero() -> None:
    assert P.compute_totals([]) == P.Totals(D(0), D(0), D(0), D(0), D(0))


def test_empty_cart_ignores_discount_for_shipping() -> None:
    totals = P.compute_totals([])
    assert totals.shipping == 0
    assert totals.total == 0


def test_single_line_worked_example() -> None:
    totals = P.compute_totals([make_line(1000)])
    assert (totals.subtotal, totals.tax, totals.shipping, totals.discount, totals.total) == (
        D(1000),
        D(180),
        D(0),
        D(0),
        D(1180),
    )


def test_free_shipping_threshold_is_inclusive() -> None:
    assert P.compute_totals([make_line(999)]).shipping == 0
    assert P.compute_totals([make_line(998)]).shipping == 99


def test_subtotal_sums_price_times_quantity_and_ignores_original_price() -> None:
    lines = [
        make_line(250, quantity=2, line_id="a", original_price=D(400)),
        make_line(100, quantity=3, line_id="b"),
    ]
    assert P.compute_totals(lines).subtotal == D(800)


def test_tax_rounds_half_away_from_zero() -> None:
    assert P.tax_for(D(25)) == D(5)  # 4.5
    assert P.tax_for(D(3)) == D(1)  # 0.54
    assert P.tax_for(D(2)) == D(0)  # 0.36
    assert P.tax_for(D(250)) == D(45)


def test_discount_is_clamped_at_zero_total() -> None:
    totals = P.compute_totals([make_line(100)], discount=D(1000))
    assert totals.discount == D(1000)
    assert totals.total == 0


def test_reconcile_prefers_server_components() -> None:
    lines = [make_line(1000)]
    totals = P.reconcile_totals(lines, subtotal=D(900), tax=D(150), shipping=D(40), discount=D(90))
    assert totals == P.Totals(D(900), D(150), D(40), D(90), D(1000))


def test_reconcile_fills_gaps_from_server_subtotal() -> None:
    totals = P.reconcile_totals([make_line(1)], subtotal=D(500))
    assert totals.tax == D(90)
    assert totals.shipping == D(99)
    assert totals.total == D(689)


def test_reconcile_without_server_values_equals_local() -> None:
    lines = [make_line(700, quantity=2)]
    assert P.reconcile_totals(lines, discount=D(50)) == P.compute_totals(lines, discount=D(50))


def test_calculate_order_totals_uses_supplied_charges() -> None:
    totals = P.calculate_order_totals([make_line(200, quantity=2)], shipping=D(50), tax=D(10), discount=D(500))
    assert totals.subtotal == D(400)
    assert totals.total == 0


@given(
    items=st.lists(
        st.tuples(st.integers(min_value=1, max_value=5000), st.integers(min_value=1, max_value=10)),
        max_size=8,
    ),
    discount=st.integers(min_value=0, max_value=20000),
)
def test_total_invariant_holds_for_any_cart(items: list[tuple[int, int]], discount: int) -> None:
    lines = [make_line(price, quantity=qty, line_id=f"l{i}") for i, (price, qty) in enumerate(items)]
    totals = P.compute_totals(lines, discount=D(discount))

    if not lines:
        assert totals == P.Totals.zero()
        return

    expected_subtotal = sum((D(p) * q for p, q in items), D(0))
    assert totals.subtotal == expected_subtotal
    assert totals.shipping == (0 if expected_subtotal >= 999 else 99)
    assert totals.total == max(D(0), totals.subtotal + totals.tax + totals.shipping - totals.discount)
    assert totals.total >= 0
