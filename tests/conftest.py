from datetime import UTC, datetime, timedelta

import pytest

from cartflow._types import PaymentMethod
from cartflow.checkout import CheckoutOrchestrator, CheckoutRequest
from cartflow.config import CheckoutConfig
from cartflow.delivery import DeliveryData, DeliveryDetails
from cartflow.ports import CardData, GuestInfo
from cartflow.session import MemoryStore
from kungfu import Error, Ok

from tests.fakes import (
    FakeCartService,
    FakeCustomerService,
    FakeOrderService,
    FakePaymentService,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got Error({e!r})")


def err(result):
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")


class Clock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def delivery_data():
    return DeliveryData(
        address="Av. Corrientes 1234",
        city="Buenos Aires",
        postal_code="1043",
        phone="+54911234567",
        instructions="Timbre 2B",
    )


@pytest.fixture
def delivery(delivery_data):
    return ok(DeliveryDetails.create(delivery_data))


@pytest.fixture
def card():
    return CardData(number="4111111111111111", expiry="12/29", cvv="123", holder="Juan Pérez")


@pytest.fixture
def guest():
    return GuestInfo(name="María García", email="maria.garcia@email.com", phone="+54911987654")


@pytest.fixture
def card_request(delivery_data, card):
    return CheckoutRequest(
        cart_id="carrito-456",
        payment_method=PaymentMethod.CREDIT_CARD,
        delivery=delivery_data,
        customer_id="cliente-123",
        card=card,
    )


@pytest.fixture
def cart_service():
    return FakeCartService()


@pytest.fixture
def customer_service():
    return FakeCustomerService()


@pytest.fixture
def order_service():
    return FakeOrderService()


@pytest.fixture
def payment_service():
    return FakePaymentService()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def config(clock):
    return CheckoutConfig(
        compensation_retries=2,
        compensation_delay=timedelta(0),
        clock=clock,
    )


@pytest.fixture
def orchestrator(cart_service, customer_service, order_service, payment_service, store, config):
    return CheckoutOrchestrator(
        cart=cart_service,
        customers=customer_service,
        orders=order_service,
        payments=payment_service,
        store=store,
        config=config,
    )
