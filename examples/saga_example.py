"""
Saga — order + payment with automatic rollback.

Run: python -m examples.saga_example
"""

from kungfu import Ok, Error

from cartflow import saga as S
from cartflow.errors import CollaboratorError, PaymentFailedError
from examples._infra import banner, run


# Mock APIs
async def create_order(cart_id: str) -> str:
    print(f"  ✓ Create order for {cart_id}")
    return "pedido-789"


async def cancel_order(order_id: str) -> None:
    print(f"  ← Cancel order: {order_id}")


async def charge(order_id: str) -> str:
    print(f"  ✗ Charge order: {order_id}")
    raise PaymentFailedError("Card declined", {"order_id": order_id})


async def main() -> None:
    banner("Saga: Order → Payment")

    saga = S.from_async(
        lambda: create_order("carrito-456"),
        on_error=lambda e: CollaboratorError.wrap("create_order", e),
        compensate=cancel_order,
        name="create_order",
    ).then(lambda order_id: S.from_async(
        lambda: charge(order_id),
        on_error=lambda e: CollaboratorError.wrap("process_payment", e),
        name="process_payment",
    ))

    print("\nExecuting saga...")
    result = await S.run_chain(saga, compensation=S.policy.compensate.retry(times=2))

    match result:
        case Ok(r):
            print(f"\n✓ Success: {r.value}")
        case Error(e):
            print(f"\n✗ Failed at {e.step_name}: {e.error.message}")
            print(f"  Rolled back: {e.rollback_complete}")


if __name__ == "__main__":
    run(main)
