"""
Totals computation — pure, deterministic, no I/O.

Local numbers are an estimate. Whenever the server reported a component
(subtotal, tax, shipping) that value wins; see reconcile_totals().
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, ROUND_HALF_UP

from storefront._types import Money, ZERO, to_money
from storefront.pricing._types import PricedLine, Totals

# ═══════════════════════════════════════════════════════════════════════════════
# Constants — must match server-side pricing
# ═══════════════════════════════════════════════════════════════════════════════

TAX_RATE = Decimal("0.18")
FREE_SHIPPING_THRESHOLD = Decimal("999")
FLAT_SHIPPING_FEE = Decimal("99")

_UNIT = Decimal("1")


# ═══════════════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════════════


def round_currency(amount: Money) -> Money:
    """Nearest whole currency unit, ties away from zero."""
    return amount.quantize(_UNIT, rounding=ROUND_HALF_UP)


def subtotal_of(lines: Iterable[PricedLine]) -> Money:
    """Σ price × quantity. original_price never participates."""
    return sum((to_money(line.price) * line.quantity for line in lines), ZERO)


def tax_for(subtotal: Money) -> Money:
    return round_currency(subtotal * TAX_RATE)


def shipping_for(subtotal: Money) -> Money:
    return ZERO if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def grand_total(
    subtotal: Money,
    tax: Money,
    shipping: Money,
    discount: Money,
) -> Money:
    """Clamped at zero: a discount never produces a negative total."""
    return max(ZERO, subtotal + tax + shipping - discount)


# ═══════════════════════════════════════════════════════════════════════════════
# compute_totals() — Local Estimate
# ═══════════════════════════════════════════════════════════════════════════════


def compute_totals(
    lines: Iterable[PricedLine],
    discount: Money = ZERO,
) -> Totals:
    """
    Turn cart lines into totals.

    `discount` is pass-through: it comes from the coupon/server response
    and is carried across quantity changes, never computed here.

    Example:
        totals = compute_totals(cart.lines, discount=cart.discount)
        totals.total  # Decimal('1180')

    Empty line list → all fields 0.
    """
    items = list(lines)
    if not items:
        return Totals.zero()

    subtotal = subtotal_of(items)
    tax = tax_for(subtotal)
    shipping = shipping_for(subtotal)
    discount = to_money(discount)

    return Totals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=grand_total(subtotal, tax, shipping, discount),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# reconcile_totals() — Server Wins, Local Fills Gaps
# ═══════════════════════════════════════════════════════════════════════════════


def reconcile_totals(
    lines: Iterable[PricedLine],
    *,
    subtotal: Money | None = None,
    tax: Money | None = None,
    shipping: Money | None = None,
    discount: Money = ZERO,
) -> Totals:
    """
    Combine server-reported components with local fallbacks.

    Each component is taken from the server when given, computed locally
    otherwise. The total is always re-derived from the components so the
    invariant holds even right after a coupon changes the discount.
    """
    local = compute_totals(lines, discount)
    if subtotal is None and tax is None and shipping is None:
        return local

    sub = subtotal if subtotal is not None else local.subtotal
    tx = tax if tax is not None else tax_for(sub)
    ship = shipping if shipping is not None else shipping_for(sub)
    disc = to_money(discount)

    return Totals(
        subtotal=sub,
        tax=tx,
        shipping=ship,
        discount=disc,
        total=grand_total(sub, tx, ship, disc),
    )


def calculate_order_totals(
    lines: Iterable[PricedLine],
    shipping: Money = ZERO,
    tax: Money = ZERO,
    discount: Money = ZERO,
) -> Totals:
    """Order-side totals with caller-supplied charges (admin/seller order views)."""
    subtotal = subtotal_of(lines)
    return Totals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=grand_total(subtotal, tax, shipping, discount),
    )


__all__ = (
    "TAX_RATE",
    "FREE_SHIPPING_THRESHOLD",
    "FLAT_SHIPPING_FEE",
    "round_currency",
    "subtotal_of",
    "tax_for",
    "shipping_for",
    "grand_total",
    "compute_totals",
    "reconcile_totals",
    "calculate_order_totals",
)
