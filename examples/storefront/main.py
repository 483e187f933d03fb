"""
Entry point.

Run: python -m examples.storefront.main
"""

from kungfu import Ok

from cartflow._logging import configure_logging
from cartflow._types import PaymentMethod
from cartflow.checkout import CheckoutOrchestrator, CheckoutRequest
from cartflow.config import CheckoutConfig
from cartflow.delivery import DeliveryData
from cartflow.ports import CardData, GuestInfo
from cartflow.session import Base, SQLAlchemyStore
from examples._infra import banner, run, show
from examples.storefront.repo import (
    DECLINED_CARD,
    CartService,
    CustomerService,
    OrderService,
    PaymentService,
)
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

DELIVERY = DeliveryData(
    address="Av. Corrientes 1234",
    city="Buenos Aires",
    postal_code="1043",
    phone="+54911234567",
    instructions="Timbre 2B",
)
CARD = CardData(number="4111111111111111", expiry="12/30", cvv="123", holder="Juan Pérez")


async def main() -> None:
    configure_logging()

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    store = SQLAlchemyStore(async_sessionmaker(engine, expire_on_commit=False))

    carts, customers, orders, payments = CartService(), CustomerService(), OrderService(), PaymentService()
    carts.seed()
    customers.seed()

    orchestrator = CheckoutOrchestrator(
        carts, customers, orders, payments, store=store, config=CheckoutConfig.from_env()
    )

    banner("Summary with VIP15")
    show(await orchestrator.summarize("carrito-456", "VIP15"))

    banner("Validate empty cart")
    empty = CheckoutRequest("carrito-vacio", PaymentMethod.CASH, DELIVERY, customer_id="cliente-123")
    print(f"  valid: {await orchestrator.validate(empty)}")

    banner("Declined card → order rolled back")
    declined = CheckoutRequest(
        "carrito-456",
        PaymentMethod.CREDIT_CARD,
        DELIVERY,
        customer_id="cliente-123",
        card=CardData(DECLINED_CARD, "12/30", "123", "Juan Pérez"),
    )
    show(await orchestrator.execute(declined))
    for order in orders.orders.values():
        print(f"  {order.id}: {order.status.value}")

    banner("Card checkout")
    result = await orchestrator.execute(
        CheckoutRequest("carrito-456", PaymentMethod.CREDIT_CARD, DELIVERY, customer_id="cliente-123", card=CARD)
    )
    show(result)
    match result:
        case Ok(success):
            show(await orchestrator.get_session(success.session_id))
        case _:
            pass

    banner("Guest checkout, cash")
    guest = GuestInfo("María García", "maria.garcia@email.com", "+54911987654")
    show(await orchestrator.execute(
        CheckoutRequest("carrito-guest", PaymentMethod.CASH, DELIVERY, guest=guest)
    ))

    banner("Out of stock")
    show(await orchestrator.execute(
        CheckoutRequest("carrito-agotado", PaymentMethod.CASH, DELIVERY, customer_id="cliente-123")
    ))

    banner("Session stats")
    show(await store.stats())

    await engine.dispose()


if __name__ == "__main__":
    run(main)
