"""
Pricing — pure totals calculator.

    from storefront import pricing as P

    totals = P.compute_totals(cart.lines, discount=cart.discount)
    totals.total   # max(0, subtotal + tax + shipping - discount)
"""

from __future__ import annotations

from storefront.pricing._types import PricedLine, Totals
from storefront.pricing._compute import (
    TAX_RATE,
    FREE_SHIPPING_THRESHOLD,
    FLAT_SHIPPING_FEE,
    round_currency,
    subtotal_of,
    tax_for,
    shipping_for,
    grand_total,
    compute_totals,
    reconcile_totals,
    calculate_order_totals,
)

__all__ = (
    "PricedLine",
    "Totals",
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
