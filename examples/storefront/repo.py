"""
Services — simulate the storefront's neighbouring microservices.

Each call sleeps briefly to stand in for network latency.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cartflow.delivery import DeliveryData
from cartflow.errors import PaymentFailedError
from cartflow.ports import (
    Cart,
    CartItem,
    CartTotals,
    Customer,
    GuestInfo,
    Order,
    OrderDraft,
    OrderStatus,
    Payment,
    PaymentRequest,
    PaymentStatus,
)
from cartflow._types import PaymentMethod

LATENCY = 0.02


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Service
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class CartService:
    _carts: dict[str, Cart] = field(default_factory=dict[str, Cart])
    _out_of_stock: set[str] = field(default_factory=set[str])

    def seed(self) -> None:
        items = (
            CartItem("prod-1", "Croissants", 2, 1500, 3000),
            CartItem("prod-2", "Pan integral", 1, 2500, 2500),
        )
        self._carts = {
            "carrito-456": Cart("carrito-456", items, 5500, 0, 440, 5940, "cliente-123"),
            "carrito-guest": Cart("carrito-guest", items, 5500, 0, 440, 5940),
            "carrito-vacio": Cart("carrito-vacio", (), 0, 0, 0, 0),
            "carrito-agotado": Cart("carrito-agotado", items, 5500, 0, 440, 5940),
        }
        self._out_of_stock = {"carrito-agotado"}

    async def get_cart(self, cart_id: str) -> Cart | None:
        await asyncio.sleep(LATENCY)
        return self._carts.get(cart_id)

    async def check_availability(self, cart_id: str) -> bool:
        await asyncio.sleep(LATENCY)
        return cart_id not in self._out_of_stock

    async def compute_total(self, cart_id: str, discount_code: str | None = None) -> CartTotals:
        await asyncio.sleep(LATENCY)
        cart = self._carts[cart_id]
        discounts = cart.subtotal * 15 // 100 if discount_code == "VIP15" else 0
        taxes = (cart.subtotal - discounts) * 8 // 100
        return CartTotals(cart.subtotal, discounts, taxes, cart.subtotal - discounts + taxes)

    async def clear_cart(self, cart_id: str) -> None:
        await asyncio.sleep(LATENCY)
        cart = self._carts[cart_id]
        self._carts[cart_id] = Cart(cart.id, (), 0, 0, 0, 0, cart.customer_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Customer Service
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class CustomerService:
    _customers: dict[str, Customer] = field(default_factory=dict[str, Customer])
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(1))

    def seed(self) -> None:
        self._customers = {
            "cliente-123": Customer("cliente-123", "Juan Pérez", "juan@email.com", "+54911234567"),
        }

    async def get_customer(self, customer_id: str) -> Customer | None:
        await asyncio.sleep(LATENCY)
        return self._customers.get(customer_id)

    async def create_guest_customer(self, guest: GuestInfo) -> Customer:
        await asyncio.sleep(LATENCY)
        customer = Customer(f"invitado-{next(self._ids)}", guest.name, guest.email, guest.phone, True)
        self._customers[customer.id] = customer
        return customer

    async def validate_delivery_details(self, details: DeliveryData) -> bool:
        await asyncio.sleep(LATENCY)
        return "Antártida" not in details.city


# ═══════════════════════════════════════════════════════════════════════════════
# Order Service
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class OrderService:
    orders: dict[str, Order] = field(default_factory=dict[str, Order])
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(789))

    async def create_order(self, draft: OrderDraft) -> Order:
        await asyncio.sleep(LATENCY)
        order = Order(f"pedido-{next(self._ids)}", total=draft.total, customer_id=draft.customer.id)
        self.orders[order.id] = order
        return order

    async def cancel_order(self, order_id: str) -> None:
        await asyncio.sleep(LATENCY)
        order = self.orders[order_id]
        self.orders[order_id] = Order(order.id, OrderStatus.CANCELED, order.total, order.customer_id)

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        await asyncio.sleep(LATENCY)
        order = self.orders[order_id]
        self.orders[order_id] = Order(order.id, status, order.total, order.customer_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Service
# ═══════════════════════════════════════════════════════════════════════════════

DECLINED_CARD = "4000000000000002"


@dataclass
class PaymentService:
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(101))

    async def process_payment(self, request: PaymentRequest) -> Payment:
        await asyncio.sleep(LATENCY)
        if request.instrument is not None and request.instrument.number == DECLINED_CARD:
            raise PaymentFailedError("Card declined by issuer", {"order_id": request.order_id})

        n = next(self._ids)
        status = PaymentStatus.PENDING if request.method is PaymentMethod.CASH else PaymentStatus.APPROVED
        return Payment(
            id=f"pago-{n}",
            status=status,
            provider_reference=f"mp-{12244 + n}",
            order_id=request.order_id,
            amount=request.amount,
            processed_at=datetime.now(UTC),
        )

    async def confirm_payment(self, payment_id: str) -> None:
        await asyncio.sleep(LATENCY)

    async def cancel_payment(self, payment_id: str) -> None:
        await asyncio.sleep(LATENCY)
