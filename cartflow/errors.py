"""
Checkout error taxonomy.

Every orchestration failure is one `CheckoutError` carrying a machine-readable
code, a message, a kind, an HTTP-style status hint and structured context.
Errors travel inside `Error(...)`; collaborators may also raise them and the
orchestrator passes them through unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    """Failure classification."""

    VALIDATION = "validation"
    BUSINESS = "business"
    INFRASTRUCTURE = "infrastructure"
    NOT_FOUND = "not-found"


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutError(Exception):
    """Generic checkout business error."""

    code: ClassVar[str] = "CHECKOUT_ERROR"
    kind: ClassVar[ErrorKind] = ErrorKind.BUSINESS
    status_code: ClassVar[int] = 400

    def __init__(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message!r})"


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


class EmptyCartError(CheckoutError):
    code = "EMPTY_CART"
    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, cart_id: str) -> None:
        super().__init__(
            f"Cart {cart_id} is empty. Add products before checking out",
            {"cart_id": cart_id},
        )


class DeliveryDetailsInvalidError(CheckoutError):
    code = "DELIVERY_DETAILS_INVALID"
    kind = ErrorKind.VALIDATION
    status_code = 400


class PaymentDataInvalidError(CheckoutError):
    code = "PAYMENT_DATA_INVALID"
    kind = ErrorKind.VALIDATION
    status_code = 400


class GuestInfoInvalidError(CheckoutError):
    code = "GUEST_INFO_INVALID"
    kind = ErrorKind.VALIDATION
    status_code = 400


class InvalidTotalError(CheckoutError):
    code = "INVALID_TOTAL"
    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, total: int) -> None:
        super().__init__("Checkout total must be greater than 0", {"total": total})


# ═══════════════════════════════════════════════════════════════════════════════
# Business
# ═══════════════════════════════════════════════════════════════════════════════


class StockUnavailableError(CheckoutError):
    code = "STOCK_UNAVAILABLE"
    kind = ErrorKind.BUSINESS
    status_code = 409

    def __init__(self, cart_id: str, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            f"Some products in cart {cart_id} are out of stock",
            {"cart_id": cart_id, **(context or {})},
        )


class SessionExpiredError(CheckoutError):
    code = "SESSION_EXPIRED"
    kind = ErrorKind.BUSINESS
    status_code = 410

    def __init__(self, session_id: str, expires_at: datetime) -> None:
        super().__init__(
            f"Checkout session {session_id} has expired",
            {"session_id": session_id, "expires_at": expires_at.isoformat()},
        )


class InvalidTransitionError(CheckoutError):
    code = "INVALID_TRANSITION"
    kind = ErrorKind.BUSINESS
    status_code = 409

    def __init__(self, session_id: str, state: str, operation: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Cannot {operation} checkout session {session_id} in state {state}",
            {"session_id": session_id, "state": state, "operation": operation},
        )


class SessionAlreadyConfirmedError(InvalidTransitionError):
    code = "SESSION_ALREADY_CONFIRMED"

    def __init__(self, session_id: str, state: str, payment_reference: str | None) -> None:
        super().__init__(
            session_id,
            state,
            "confirm_payment",
            f"Checkout session {session_id} was already confirmed",
        )
        self.context["payment_reference"] = payment_reference


# ═══════════════════════════════════════════════════════════════════════════════
# Not Found
# ═══════════════════════════════════════════════════════════════════════════════


class SessionNotFoundError(CheckoutError):
    code = "SESSION_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Checkout session {session_id} not found", {"session_id": session_id})


class CartNotFoundError(CheckoutError):
    code = "CART_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, cart_id: str) -> None:
        super().__init__(f"Cart {cart_id} not found", {"cart_id": cart_id})


class CustomerNotFoundError(CheckoutError):
    code = "CUSTOMER_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, customer_id: str) -> None:
        super().__init__(f"Customer {customer_id} not found", {"customer_id": customer_id})


# ═══════════════════════════════════════════════════════════════════════════════
# Infrastructure
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentFailedError(CheckoutError):
    code = "PAYMENT_FAILED"
    kind = ErrorKind.INFRASTRUCTURE
    status_code = 402


class CollaboratorError(CheckoutError):
    """A collaborator raised something that is not a `CheckoutError`."""

    code = "COLLABORATOR_ERROR"
    kind = ErrorKind.INFRASTRUCTURE
    status_code = 502

    @classmethod
    def wrap(cls, operation: str, exc: Exception) -> CheckoutError:
        if isinstance(exc, CheckoutError):
            return exc
        return cls(f"{operation} failed: {exc}", {"operation": operation, "cause": repr(exc)})


class StoreError(CheckoutError):
    """Session storage backend error."""

    code = "STORE_ERROR"
    kind = ErrorKind.INFRASTRUCTURE
    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, {"cause": repr(cause)} if cause is not None else None)
        self.cause = cause


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "ErrorKind",
    "CheckoutError",
    "EmptyCartError",
    "DeliveryDetailsInvalidError",
    "PaymentDataInvalidError",
    "GuestInfoInvalidError",
    "InvalidTotalError",
    "StockUnavailableError",
    "SessionExpiredError",
    "InvalidTransitionError",
    "SessionAlreadyConfirmedError",
    "SessionNotFoundError",
    "CartNotFoundError",
    "CustomerNotFoundError",
    "PaymentFailedError",
    "CollaboratorError",
    "StoreError",
)
