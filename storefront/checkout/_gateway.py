"""
Payment gateway seam.

The gateway UI is opened with a PaymentContinuation and reports back
exactly once: complete() with credentials, dismiss() when the shopper
closes it, or fail() when the gateway itself reports a failed payment.
There is no timer; an abandoned window stays pending until the session
is closed.

    class RazorpayWindow:
        def open(self, intent, prefill, continuation):
            widget.on_success = lambda r: continuation.complete(
                PaymentCredentials(r.payment_id, r.order_id, r.signature)
            )
            widget.on_dismiss = continuation.dismiss
            widget.show(key=intent.key, order_id=intent.order_id)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from storefront._types import Error, Ok, Result
from storefront.checkout._types import Prefill
from storefront.domain import PaymentCredentials, PaymentIntent
from storefront.errors import Errors, StorefrontError

logger = logging.getLogger(__name__)


class PaymentContinuation:
    """Single-shot callback: the first outcome wins, later ones are ignored."""

    def __init__(self) -> None:
        self._future: asyncio.Future[Result[PaymentCredentials, StorefrontError]] = (
            asyncio.get_running_loop().create_future()
        )

    @property
    def done(self) -> bool:
        return self._future.done()

    def _resolve(self, outcome: Result[PaymentCredentials, StorefrontError]) -> bool:
        if self._future.done():
            logger.warning("Payment callback after the outcome was settled; ignored")
            return False
        self._future.set_result(outcome)
        return True

    def complete(self, credentials: PaymentCredentials) -> bool:
        return self._resolve(Ok(credentials))

    def dismiss(self) -> bool:
        return self._resolve(Error(Errors.payment_cancelled()))

    def fail(self, message: str = "Payment failed") -> bool:
        return self._resolve(Error(Errors.payment_verification(message)))

    def cancel(self) -> bool:
        """Abandon the wait (session closed)."""
        return self._resolve(Error(Errors.payment_cancelled("Checkout was closed")))

    async def wait(self) -> Result[PaymentCredentials, StorefrontError]:
        return await self._future


class PaymentGateway(Protocol):
    def open(
        self,
        intent: PaymentIntent,
        prefill: Prefill,
        continuation: PaymentContinuation,
    ) -> None: ...


__all__ = ("PaymentContinuation", "PaymentGateway")
