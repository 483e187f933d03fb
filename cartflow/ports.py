"""
Collaborator contracts consumed by the checkout orchestrator.

Cart, Customer, Order and Payment are owned elsewhere; this module only
describes the capability each one must offer and the data crossing the
boundary. Any storage or network implementation satisfying the protocols
can be injected, including in-memory fakes for tests.

Collaborators report failure by raising. A raised `CheckoutError` keeps its
type; anything else is wrapped by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol

from cartflow._types import Cents, PaymentMethod
from cartflow.delivery import DeliveryData, DeliveryDetails

# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItem:
    product_id: str
    name: str
    quantity: int
    unit_price: Cents
    subtotal: Cents


@dataclass(frozen=True, slots=True)
class CartTotals:
    subtotal: Cents
    discounts: Cents
    taxes: Cents
    total: Cents


@dataclass(frozen=True, slots=True)
class Cart:
    id: str
    items: tuple[CartItem, ...]
    subtotal: Cents
    discounts: Cents
    taxes: Cents
    total: Cents
    customer_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0


class CartService(Protocol):
    async def get_cart(self, cart_id: str) -> Cart | None:
        """Return None for an unknown cart."""
        ...

    async def check_availability(self, cart_id: str) -> bool: ...

    async def compute_total(self, cart_id: str, discount_code: str | None = None) -> CartTotals: ...

    async def clear_cart(self, cart_id: str) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Customer
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class GuestInfo:
    """Contact data for a checkout without an existing customer."""

    name: str
    email: str
    phone: str


@dataclass(frozen=True, slots=True)
class Customer:
    id: str
    name: str
    email: str
    phone: str | None = None
    is_guest: bool = False


class CustomerService(Protocol):
    async def get_customer(self, customer_id: str) -> Customer: ...

    async def create_guest_customer(self, guest: GuestInfo) -> Customer: ...

    async def validate_delivery_details(self, details: DeliveryData) -> bool:
        """Return False or raise `DeliveryDetailsInvalidError` when invalid."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    CANCELED = "canceled"


@dataclass(frozen=True, slots=True)
class OrderDraft:
    customer: Customer
    items: tuple[CartItem, ...]
    total: Cents
    delivery: DeliveryDetails


@dataclass(frozen=True, slots=True)
class Order:
    id: str
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    total: Cents = 0
    customer_id: str | None = None


class OrderService(Protocol):
    async def create_order(self, draft: OrderDraft) -> Order: ...

    async def cancel_order(self, order_id: str) -> None: ...

    async def update_status(self, order_id: str, status: OrderStatus) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Payment
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CardData:
    """Payment instrument for card methods."""

    number: str
    expiry: str  # MM/YY
    cvv: str
    holder: str

    def __repr__(self) -> str:
        return f"CardData(number=****{self.number[-4:]}, holder={self.holder!r})"


class PaymentStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    order_id: str
    amount: Cents
    method: PaymentMethod
    instrument: CardData | None = None


@dataclass(frozen=True, slots=True)
class Payment:
    id: str
    status: PaymentStatus
    provider_reference: str
    order_id: str | None = None
    amount: Cents = 0
    processed_at: datetime | None = field(default=None, compare=False)


class PaymentService(Protocol):
    async def process_payment(self, request: PaymentRequest) -> Payment:
        """Charge or register payment. Raise `PaymentFailedError` on rejection."""
        ...

    async def confirm_payment(self, payment_id: str) -> None: ...

    async def cancel_payment(self, payment_id: str) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CartItem",
    "CartTotals",
    "Cart",
    "CartService",
    "GuestInfo",
    "Customer",
    "CustomerService",
    "OrderStatus",
    "OrderDraft",
    "Order",
    "OrderService",
    "CardData",
    "PaymentStatus",
    "PaymentRequest",
    "Payment",
    "PaymentService",
)
