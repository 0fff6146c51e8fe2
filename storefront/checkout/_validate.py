"""
Address validation.
"""

from __future__ import annotations

from storefront._types import Error, Ok, Result
from storefront.domain import Address
from storefront.errors import Errors, StorefrontError

REQUIRED_ADDRESS_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "Full name"),
    ("phone", "Phone number"),
    ("street", "Street address"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal code"),
)


def missing_fields(address: Address) -> tuple[str, ...]:
    """Required fields that are empty or whitespace only, in form order."""
    return tuple(
        attr for attr, _ in REQUIRED_ADDRESS_FIELDS if not getattr(address, attr).strip()
    )


def validate_address(address: Address, label: str = "Shipping") -> Result[Address, StorefrontError]:
    missing = missing_fields(address)
    if not missing:
        return Ok(address)
    labels = dict(REQUIRED_ADDRESS_FIELDS)
    names = ", ".join(labels[attr] for attr in missing)
    return Error(Errors.validation(f"{label} address is incomplete: {names} required"))


__all__ = ("REQUIRED_ADDRESS_FIELDS", "missing_fields", "validate_address")
