"""
storefront — cart, pricing and checkout core.

    from storefront import pricing as P    # Totals calculator
    from storefront import persist as S    # Local cart/coupon snapshots
    from storefront import cart as C       # Session cart store
    from storefront import checkout as K   # Checkout session + placement chain
    from storefront import orders as O     # Order status rules
    from storefront import api as A        # REST contracts + httpx client
"""

from storefront import pricing
from storefront import persist
from storefront import api
from storefront import cart
from storefront import checkout
from storefront import orders
from storefront._types import (
    Money,
    LineId,
)
from storefront.errors import ErrorKind, StorefrontError, Errors

__version__ = "0.1.0"

__all__ = (
    "pricing",
    "persist",
    "api",
    "cart",
    "checkout",
    "orders",
    "Money",
    "LineId",
    "ErrorKind",
    "StorefrontError",
    "Errors",
)
