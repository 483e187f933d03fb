"""
Checkout request / result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cartflow._types import Cents, PaymentMethod
from cartflow.delivery import DeliveryData
from cartflow.ports import CardData, CartItem, GuestInfo, PaymentStatus

# ═══════════════════════════════════════════════════════════════════════════════
# Request
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    """
    Input to `execute` / `validate`.

    Either `customer_id` (registered customer) or `guest` (guest checkout)
    must be present. `card` is required for card payment methods.
    """

    cart_id: str
    payment_method: PaymentMethod
    delivery: DeliveryData
    customer_id: str | None = None
    card: CardData | None = None
    guest: GuestInfo | None = None

    @property
    def is_guest(self) -> bool:
        return self.customer_id is None


# ═══════════════════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════════════════

MESSAGE_PROCESSED = "Checkout processed successfully"
MESSAGE_PAYMENT_PENDING = "Order created, payment pending"


@dataclass(frozen=True, slots=True)
class CheckoutSuccess:
    order_id: str
    payment_id: str
    total: Cents
    payment_reference: str
    payment_status: PaymentStatus
    session_id: str
    message: str = MESSAGE_PROCESSED


@dataclass(frozen=True, slots=True)
class CheckoutSummary:
    items: tuple[CartItem, ...]
    subtotal: Cents
    discounts: Cents
    taxes: Cents
    total: Cents
    discount_code: str | None = None
    payment_method: PaymentMethod | None = field(default=None)


__all__ = (
    "CheckoutRequest",
    "CheckoutSuccess",
    "CheckoutSummary",
    "MESSAGE_PROCESSED",
    "MESSAGE_PAYMENT_PENDING",
)
