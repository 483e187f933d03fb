"""
Checkout session — the state machine for one checkout attempt.

Transition table (anything else is rejected with a typed error):

    STARTED            --confirm_payment(ref)-->   PAYMENT_CONFIRMED
    PAYMENT_CONFIRMED  --complete(order_id)-->     COMPLETED
    STARTED            --cancel(reason)-->         CANCELED
    STARTED            --update_delivery(...)-->   STARTED   (not expired)

PAYMENT_CONFIRMED → CANCELED is rejected: once a payment is captured the
session can only be completed.

Re-applying the exact same transition on a session already in its target
state is a no-op `Ok`; any other repeat fails. No I/O happens here.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from kungfu import Result, Ok, Error

from cartflow._types import (
    SESSION_ID_PREFIX,
    Cents,
    PaymentMethod,
    SessionState,
    new_session_id,
)
from cartflow.config import utc_now
from cartflow.delivery import DeliveryDetails
from cartflow.errors import (
    CheckoutError,
    InvalidTotalError,
    InvalidTransitionError,
    SessionAlreadyConfirmedError,
    SessionExpiredError,
)
from cartflow.ports import GuestInfo

DEFAULT_TTL = timedelta(minutes=30)


class Transition(str, Enum):
    CONFIRM_PAYMENT = "confirm_payment"
    COMPLETE = "complete"
    CANCEL = "cancel"
    UPDATE_DELIVERY = "update_delivery_details"


TRANSITIONS: Mapping[tuple[SessionState, Transition], SessionState] = {
    (SessionState.STARTED, Transition.CONFIRM_PAYMENT): SessionState.PAYMENT_CONFIRMED,
    (SessionState.PAYMENT_CONFIRMED, Transition.COMPLETE): SessionState.COMPLETED,
    (SessionState.STARTED, Transition.CANCEL): SessionState.CANCELED,
    (SessionState.STARTED, Transition.UPDATE_DELIVERY): SessionState.STARTED,
}


def can_transition(state: SessionState, transition: Transition) -> bool:
    return (state, transition) in TRANSITIONS


_SESSION_ID = re.compile(r"^checkout-[a-z0-9-]+$", re.IGNORECASE)


def parse_session_id(value: str) -> Result[str, CheckoutError]:
    """Validate a `checkout-...` id coming from outside."""
    value = (value or "").strip()
    if len(value) < 10:
        return Error(CheckoutError("Checkout id is too short", {"session_id": value}))
    if len(value) > 100:
        return Error(CheckoutError("Checkout id is too long", {"session_id": value}))
    if not value.startswith(SESSION_ID_PREFIX):
        return Error(CheckoutError(f"Checkout id must start with {SESSION_ID_PREFIX!r}", {"session_id": value}))
    if not _SESSION_ID.match(value):
        return Error(CheckoutError("Checkout id contains invalid characters", {"session_id": value}))
    return Ok(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class CheckoutSession:
    """
    Stateful record of one checkout attempt.

    Build with `CheckoutSession.create`; mutate only through the transition
    methods. Every transition returns `Ok(self)` or `Error(CheckoutError)`.
    """

    id: str
    cart_id: str
    payment_method: PaymentMethod
    total: Cents
    delivery_details: DeliveryDetails
    created_at: datetime
    expires_at: datetime
    customer_id: str | None = None
    guest: GuestInfo | None = None
    state: SessionState = SessionState.STARTED
    payment_reference: str | None = None
    order_id: str | None = None
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    canceled_at: datetime | None = None
    cancel_reason: str | None = None

    @classmethod
    def create(
        cls,
        *,
        cart_id: str,
        payment_method: PaymentMethod,
        total: Cents,
        delivery_details: DeliveryDetails,
        customer_id: str | None = None,
        guest: GuestInfo | None = None,
        ttl: timedelta = DEFAULT_TTL,
        now: datetime | None = None,
    ) -> Result[CheckoutSession, CheckoutError]:
        if total <= 0:
            return Error(InvalidTotalError(total))
        if not cart_id:
            return Error(CheckoutError("cart_id is required"))

        created_at = now or utc_now()
        return Ok(cls(
            id=new_session_id(),
            cart_id=cart_id,
            payment_method=PaymentMethod(payment_method),
            total=total,
            delivery_details=delivery_details,
            created_at=created_at,
            expires_at=created_at + ttl,
            customer_id=customer_id,
            guest=guest,
        ))

    # ───────────────────────────────────────────────────────────────────────────
    # Queries
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def is_expired(self, now: datetime | None = None) -> bool:
        """Pure clock read; always False once COMPLETED or CANCELED."""
        if self.state.is_terminal:
            return False
        return (now or utc_now()) > self.expires_at

    def can_be_modified(self, now: datetime | None = None) -> bool:
        return self.state is SessionState.STARTED and not self.is_expired(now)

    # ───────────────────────────────────────────────────────────────────────────
    # Transitions
    # ───────────────────────────────────────────────────────────────────────────

    def confirm_payment(
        self, reference: str, now: datetime | None = None
    ) -> Result[CheckoutSession, CheckoutError]:
        """Record a captured payment. Expiry does not apply: the money has moved."""
        if not reference:
            return Error(self._rejected(Transition.CONFIRM_PAYMENT, "Payment reference is required"))

        if self.state is SessionState.PAYMENT_CONFIRMED and reference == self.payment_reference:
            return Ok(self)
        if self.state in (SessionState.PAYMENT_CONFIRMED, SessionState.COMPLETED):
            return Error(SessionAlreadyConfirmedError(self.id, self.state.value, self.payment_reference))
        if not can_transition(self.state, Transition.CONFIRM_PAYMENT):
            return Error(self._rejected(Transition.CONFIRM_PAYMENT))

        self.state = TRANSITIONS[(self.state, Transition.CONFIRM_PAYMENT)]
        self.payment_reference = reference
        self.confirmed_at = now or utc_now()
        return Ok(self)

    def complete(
        self, order_id: str, now: datetime | None = None
    ) -> Result[CheckoutSession, CheckoutError]:
        """Payment is already captured here, so expiry does not block completion."""
        if not order_id:
            return Error(self._rejected(Transition.COMPLETE, "Order id is required"))

        if self.state is SessionState.COMPLETED and order_id == self.order_id:
            return Ok(self)
        if not can_transition(self.state, Transition.COMPLETE):
            return Error(self._rejected(
                Transition.COMPLETE,
                "Checkout can only be completed after payment is confirmed",
            ))

        self.state = TRANSITIONS[(self.state, Transition.COMPLETE)]
        self.order_id = order_id
        self.completed_at = now or utc_now()
        return Ok(self)

    def cancel(
        self, reason: str, now: datetime | None = None
    ) -> Result[CheckoutSession, CheckoutError]:
        if self.state is SessionState.CANCELED and reason == self.cancel_reason:
            return Ok(self)
        if self.state is SessionState.COMPLETED:
            return Error(self._rejected(Transition.CANCEL, "Cannot cancel a completed checkout"))
        if self.state is SessionState.PAYMENT_CONFIRMED:
            return Error(self._rejected(
                Transition.CANCEL, "Cannot cancel a checkout whose payment is confirmed"
            ))
        if not can_transition(self.state, Transition.CANCEL):
            return Error(self._rejected(Transition.CANCEL))

        self.state = TRANSITIONS[(self.state, Transition.CANCEL)]
        self.cancel_reason = reason
        self.canceled_at = now or utc_now()
        return Ok(self)

    def update_delivery_details(
        self, details: DeliveryDetails, now: datetime | None = None
    ) -> Result[CheckoutSession, CheckoutError]:
        if not can_transition(self.state, Transition.UPDATE_DELIVERY):
            return Error(self._rejected(
                Transition.UPDATE_DELIVERY,
                "Delivery details cannot be modified in the current state",
            ))
        if self.is_expired(now):
            return Error(SessionExpiredError(self.id, self.expires_at))

        self.delivery_details = details
        return Ok(self)

    def _rejected(self, transition: Transition, message: str | None = None) -> InvalidTransitionError:
        return InvalidTransitionError(self.id, self.state.value, transition.value, message)

    # ───────────────────────────────────────────────────────────────────────────
    # Persistence
    # ───────────────────────────────────────────────────────────────────────────

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "cart_id": self.cart_id,
            "payment_method": self.payment_method.value,
            "state": self.state.value,
            "total": self.total,
            "delivery_details": self.delivery_details.to_dict(),
            "guest": (
                {"name": self.guest.name, "email": self.guest.email, "phone": self.guest.phone}
                if self.guest is not None
                else None
            ),
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "payment_reference": self.payment_reference,
            "order_id": self.order_id,
            "confirmed_at": self.confirmed_at,
            "completed_at": self.completed_at,
            "canceled_at": self.canceled_at,
            "cancel_reason": self.cancel_reason,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> CheckoutSession:
        """Rehydrate a stored session. Stored data is trusted, not re-validated."""
        guest = data.get("guest")
        return cls(
            id=data["id"],
            customer_id=data.get("customer_id"),
            cart_id=data["cart_id"],
            payment_method=PaymentMethod(data["payment_method"]),
            state=SessionState(data["state"]),
            total=data["total"],
            delivery_details=DeliveryDetails(**data["delivery_details"]),
            guest=GuestInfo(**guest) if guest else None,
            created_at=data["created_at"],
            expires_at=data["expires_at"],
            payment_reference=data.get("payment_reference"),
            order_id=data.get("order_id"),
            confirmed_at=data.get("confirmed_at"),
            completed_at=data.get("completed_at"),
            canceled_at=data.get("canceled_at"),
            cancel_reason=data.get("cancel_reason"),
        )


__all__ = (
    "DEFAULT_TTL",
    "Transition",
    "TRANSITIONS",
    "can_transition",
    "parse_session_id",
    "CheckoutSession",
)
