"""
Checkout — validation, step machine and compensated order placement.

    from storefront import checkout as K

    session = K.CheckoutSession(store, api, gateway, navigator=router.push)
    session.set_shipping_address(K.Address(name="Asha", phone="98...", ...))
    session.next_step()                  # Result[Step, StorefrontError]
    session.next_step()
    session.accept_terms()
    result = await session.place_order() # Result[Placement, StorefrontError]

Online payment:
    place_order() → payment intent → gateway.open(intent, prefill, continuation)
                  → continuation.complete(credentials) → verify → order
"""

from __future__ import annotations

from storefront.checkout._types import (
    Address,
    PaymentMethod,
    Step,
    PlacementStatus,
    Placement,
    Prefill,
    Navigator,
)
from storefront.checkout._validate import (
    REQUIRED_ADDRESS_FIELDS,
    missing_fields,
    validate_address,
)
from storefront.checkout._steps import (
    Compensator,
    PlacementStep,
    PlacementChain,
    PlacementResult,
    PlacementFailure,
    step,
    run_placement,
)
from storefront.checkout._gateway import PaymentContinuation, PaymentGateway
from storefront.checkout._session import CheckoutSession
from storefront.domain import OrderDraft, PaymentCredentials, PaymentIntent

__all__ = (
    # Types
    "Address",
    "PaymentMethod",
    "PaymentIntent",
    "PaymentCredentials",
    "OrderDraft",
    "Step",
    "PlacementStatus",
    "Placement",
    "Prefill",
    "Navigator",
    # Validation
    "REQUIRED_ADDRESS_FIELDS",
    "missing_fields",
    "validate_address",
    # Placement chain
    "Compensator",
    "PlacementStep",
    "PlacementChain",
    "PlacementResult",
    "PlacementFailure",
    "step",
    "run_placement",
    # Gateway
    "PaymentContinuation",
    "PaymentGateway",
    # Session
    "CheckoutSession",
)
