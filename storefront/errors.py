"""
Error taxonomy.

Every fallible storefront operation returns Result[T, StorefrontError].
`message` is always safe to show a shopper; transport detail lives in `cause`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

# ═══════════════════════════════════════════════════════════════════════════════
# Error Kind
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    """
    Kinds of storefront errors.

    Recoverable (stay on the current step, state untouched):
        VALIDATION, INVALID_COUPON, NOT_FOUND

    Remote failures (prior state intact, caller decides to retry):
        NETWORK, SERVER

    Fatal to the current order attempt (cart intact, back to review):
        PAYMENT_VERIFICATION, PAYMENT_CANCELLED
    """

    VALIDATION = auto()
    INVALID_COUPON = auto()
    NETWORK = auto()
    SERVER = auto()
    NOT_FOUND = auto()
    PAYMENT_VERIFICATION = auto()
    PAYMENT_CANCELLED = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Storefront Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class StorefrontError:
    """Storefront operation error."""

    kind: ErrorKind
    message: str
    cause: Exception | None = None
    status: int | None = None

    @property
    def is_recoverable(self) -> bool:
        return self.kind in (
            ErrorKind.VALIDATION,
            ErrorKind.INVALID_COUPON,
            ErrorKind.NOT_FOUND,
        )

    def __str__(self) -> str:
        return self.message


class Errors:
    @staticmethod
    def validation(msg: str) -> StorefrontError:
        return StorefrontError(ErrorKind.VALIDATION, msg)

    @staticmethod
    def invalid_coupon(msg: str, status: int | None = None) -> StorefrontError:
        return StorefrontError(ErrorKind.INVALID_COUPON, msg, status=status)

    @staticmethod
    def network(msg: str, cause: Exception | None = None) -> StorefrontError:
        return StorefrontError(ErrorKind.NETWORK, msg, cause=cause)

    @staticmethod
    def server(
        msg: str,
        status: int | None = None,
        cause: Exception | None = None,
    ) -> StorefrontError:
        return StorefrontError(ErrorKind.SERVER, msg, cause=cause, status=status)

    @staticmethod
    def not_found(msg: str, status: int | None = 404) -> StorefrontError:
        return StorefrontError(ErrorKind.NOT_FOUND, msg, status=status)

    @staticmethod
    def payment_verification(msg: str) -> StorefrontError:
        return StorefrontError(ErrorKind.PAYMENT_VERIFICATION, msg)

    @staticmethod
    def payment_cancelled(msg: str = "Payment was cancelled") -> StorefrontError:
        return StorefrontError(ErrorKind.PAYMENT_CANCELLED, msg)


def as_storefront_error(exc: Exception, fallback: str) -> StorefrontError:
    """
    Map an unexpected exception onto the taxonomy.

    Used as the `on_error` of L.catching_async around collaborator calls.
    """
    if isinstance(exc, StorefrontFailure):
        return exc.error
    return Errors.server(fallback, cause=exc)


class StorefrontFailure(Exception):
    """
    Raising carrier for StorefrontError.

    Collaborator adapters raise it inside L.catching_async bodies;
    as_storefront_error unwraps it back into the Result error channel.
    """

    def __init__(self, error: StorefrontError) -> None:
        super().__init__(error.message)
        self.error = error


__all__ = (
    "ErrorKind",
    "StorefrontError",
    "Errors",
    "StorefrontFailure",
    "as_storefront_error",
)
