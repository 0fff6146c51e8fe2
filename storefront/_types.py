"""
Core types for storefront.

Re-exports from kungfu + money and identity aliases.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Domain Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Money = Decimal
"""Currency amount. Always Decimal, never float."""

type LineId = str
"""Server-assigned cart line identity."""

type JSON = dict[str, Any]
"""Decoded JSON object as exchanged with the REST collaborators."""

ZERO: Money = Decimal("0")


def to_money(value: object) -> Money:
    """
    Coerce a wire number into Decimal.

    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a currency amount")
    if isinstance(value, (int, float, str)):
        return Decimal(str(value))
    raise TypeError(f"Cannot convert {type(value).__name__} to money")


def to_wire_number(value: Money) -> int | float:
    """Decimal → JSON number (int when integral)."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Type aliases
    "Money",
    "LineId",
    "JSON",
    # Money helpers
    "ZERO",
    "to_money",
    "to_wire_number",
)
