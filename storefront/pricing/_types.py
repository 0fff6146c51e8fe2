"""
Pricing types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from storefront._types import Money, ZERO

# ═══════════════════════════════════════════════════════════════════════════════
# Priced Line Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class PricedLine(Protocol):
    """
    Anything with a unit price and a quantity.

    CartLine satisfies it; so do order payload items.
    """

    @property
    def price(self) -> Decimal: ...

    @property
    def quantity(self) -> int: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Totals:
    """
    Derived cart totals.

    Invariant: total == max(0, subtotal + tax + shipping - discount).
    """

    subtotal: Money = ZERO
    tax: Money = ZERO
    shipping: Money = ZERO
    discount: Money = ZERO
    total: Money = ZERO

    @classmethod
    def zero(cls) -> Totals:
        return cls()


__all__ = ("PricedLine", "Totals")
