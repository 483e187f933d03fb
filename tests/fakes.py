"""In-memory recording collaborators for checkout tests."""

from collections import defaultdict
from datetime import UTC, datetime

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


class Recorder:
    def __init__(self):
        self.calls = defaultdict(list)

    def record(self, name, *args):
        self.calls[name].append(args)

    def count(self, name):
        return len(self.calls[name])


def bakery_cart(cart_id="carrito-456", customer_id="cliente-123"):
    items = (
        CartItem("prod-1", "Croissants", 2, 1500, 3000),
        CartItem("prod-2", "Pan integral", 1, 2500, 2500),
    )
    return Cart(
        id=cart_id,
        items=items,
        subtotal=5500,
        discounts=0,
        taxes=440,
        total=5940,
        customer_id=customer_id,
    )


class FakeCartService(Recorder):
    def __init__(self, cart=None, available=True):
        super().__init__()
        self.cart = cart if cart is not None else bakery_cart()
        self.available = available
        self.clear_error = None
        self.totals = {
            None: CartTotals(subtotal=5500, discounts=0, taxes=440, total=5940),
            "VIP15": CartTotals(subtotal=5500, discounts=825, taxes=374, total=5049),
        }

    async def get_cart(self, cart_id):
        self.record("get_cart", cart_id)
        return self.cart

    async def check_availability(self, cart_id):
        self.record("check_availability", cart_id)
        return self.available

    async def compute_total(self, cart_id, discount_code=None):
        self.record("compute_total", cart_id, discount_code)
        return self.totals[discount_code]

    async def clear_cart(self, cart_id):
        self.record("clear_cart", cart_id)
        if self.clear_error is not None:
            raise self.clear_error


class FakeCustomerService(Recorder):
    def __init__(self, delivery_ok=True):
        super().__init__()
        self.delivery_ok = delivery_ok
        self.customers = {
            "cliente-123": Customer("cliente-123", "Juan Pérez", "juan@email.com", "+54911234567"),
        }

    async def get_customer(self, customer_id):
        self.record("get_customer", customer_id)
        return self.customers.get(customer_id)

    async def create_guest_customer(self, guest: GuestInfo):
        self.record("create_guest_customer", guest)
        return Customer("invitado-999", guest.name, guest.email, guest.phone, is_guest=True)

    async def validate_delivery_details(self, details):
        self.record("validate_delivery_details", details)
        return self.delivery_ok


class FakeOrderService(Recorder):
    def __init__(self, order_id="pedido-789"):
        super().__init__()
        self.order_id = order_id
        self.create_error = None
        # Number of cancel attempts that raise before one succeeds
        self.cancel_failures = 0

    async def create_order(self, draft: OrderDraft):
        self.record("create_order", draft)
        if self.create_error is not None:
            raise self.create_error
        return Order(self.order_id, total=draft.total, customer_id=draft.customer.id)

    async def cancel_order(self, order_id):
        self.record("cancel_order", order_id)
        if self.cancel_failures > 0:
            self.cancel_failures -= 1
            raise ConnectionError("orders service unavailable")

    async def update_status(self, order_id, status: OrderStatus):
        self.record("update_status", order_id, status)


class FakePaymentService(Recorder):
    def __init__(self, status=PaymentStatus.APPROVED, reference="mp-12345"):
        super().__init__()
        self.status = status
        self.reference = reference
        self.error = None

    async def process_payment(self, request: PaymentRequest):
        self.record("process_payment", request)
        if self.error is not None:
            raise self.error
        return Payment(
            id="pago-101",
            status=self.status,
            provider_reference=self.reference,
            order_id=request.order_id,
            amount=request.amount,
            processed_at=datetime.now(UTC),
        )

    async def confirm_payment(self, payment_id):
        self.record("confirm_payment", payment_id)

    async def cancel_payment(self, payment_id):
        self.record("cancel_payment", payment_id)


def declined():
    return PaymentFailedError("Card declined", {"provider": "mp"})
