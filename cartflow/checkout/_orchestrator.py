"""
Checkout orchestrator — turns a cart into an order plus a payment.

Flow of `execute`:

    fetch cart → stock check → resolve customer → delivery check
        → payment data check → open session
        → saga [create_order ⟲ cancel_order] → [process_payment]
        → confirm + complete session → clear cart (best effort)

Everything up to "open session" is read-only. The saga is the only place
with side effects that need undoing: if payment fails, the order is
canceled before the error is returned. The saga runs shielded, so a
caller timeout can abandon the wait but never the rollback.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from combinators import lift as L
from kungfu import Result, Ok, Error

from cartflow import saga as S
from cartflow.checkout._request import (
    MESSAGE_PAYMENT_PENDING,
    MESSAGE_PROCESSED,
    CheckoutRequest,
    CheckoutSuccess,
    CheckoutSummary,
)
from cartflow.checkout._validate import (
    validate_guest,
    validate_payment,
    validate_shape,
)
from cartflow.config import CheckoutConfig
from cartflow.delivery import DeliveryData, DeliveryDetails
from cartflow.errors import (
    CartNotFoundError,
    CheckoutError,
    CollaboratorError,
    CustomerNotFoundError,
    DeliveryDetailsInvalidError,
    EmptyCartError,
    PaymentFailedError,
    StockUnavailableError,
)
from cartflow.ports import (
    Cart,
    CartService,
    Customer,
    CustomerService,
    Order,
    OrderDraft,
    OrderService,
    OrderStatus,
    Payment,
    PaymentRequest,
    PaymentService,
    PaymentStatus,
)
from cartflow.session import (
    CheckoutSession,
    MemoryStore,
    SessionStore,
    parse_session_id,
    require,
)
from cartflow._types import PaymentMethod

logger = structlog.get_logger(__name__)


def _as_payment_failure(exc: Exception) -> CheckoutError:
    if isinstance(exc, PaymentFailedError):
        return exc
    if isinstance(exc, CheckoutError):
        return PaymentFailedError(exc.message, {**exc.context, "code": exc.code})
    return PaymentFailedError(f"Payment processing failed: {exc}", {"cause": repr(exc)})


# ═══════════════════════════════════════════════════════════════════════════════
# Orchestrator
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutOrchestrator:
    """
    Coordinates cart, customer, order and payment collaborators.

    Collaborators are injected; none is constructed here. All public
    operations return `Result`; only programming errors raise.
    """

    def __init__(
        self,
        cart: CartService,
        customers: CustomerService,
        orders: OrderService,
        payments: PaymentService,
        store: SessionStore | None = None,
        config: CheckoutConfig | None = None,
    ) -> None:
        self._cart = cart
        self._customers = customers
        self._orders = orders
        self._payments = payments
        self._store: SessionStore = store if store is not None else MemoryStore()
        self._config = config or CheckoutConfig()
        self._compensation = S.policy.RetryPolicy(
            self._config.compensation_retries,
            self._config.compensation_delay,
        )

    @property
    def store(self) -> SessionStore:
        return self._store

    def _now(self) -> datetime:
        return self._config.clock()

    # ───────────────────────────────────────────────────────────────────────────
    # execute()
    # ───────────────────────────────────────────────────────────────────────────

    async def execute(self, request: CheckoutRequest) -> Result[CheckoutSuccess, CheckoutError]:
        with structlog.contextvars.bound_contextvars(cart_id=request.cart_id):
            logger.info(
                "checkout_started",
                customer_id=request.customer_id,
                guest=request.is_guest,
                payment_method=request.payment_method,
            )
            match await self._execute(request):
                case Ok(success):
                    logger.info(
                        "checkout_completed",
                        order_id=success.order_id,
                        payment_id=success.payment_id,
                        total=success.total,
                        payment_status=success.payment_status.value,
                    )
                    return Ok(success)
                case Error(e):
                    logger.warning(
                        "checkout_failed",
                        code=e.code,
                        step=e.context.get("step"),
                        error=e.message,
                    )
                    return Error(e)

    async def _execute(self, request: CheckoutRequest) -> Result[CheckoutSuccess, CheckoutError]:
        match validate_shape(request.cart_id, request.payment_method):
            case Error(e):
                return Error(e)
            case Ok(method):
                pass

        match await self._prepare(request):
            case Error(e):
                return Error(e)
            case Ok((cart, customer, details)):
                pass

        match validate_payment(method, request.card, self._config):
            case Error(e):
                e.context.setdefault("step", "validate_payment")
                return Error(e)
            case Ok(_):
                pass

        match CheckoutSession.create(
            cart_id=cart.id,
            payment_method=method,
            total=cart.total,
            delivery_details=details,
            customer_id=None if customer.is_guest else customer.id,
            guest=request.guest if customer.is_guest else None,
            ttl=self._config.session_ttl,
            now=self._now(),
        ):
            case Error(e):
                return Error(e)
            case Ok(session):
                pass

        match await self._store.save(session):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        with structlog.contextvars.bound_contextvars(session_id=session.id):
            return await S.shielded(self._commit(session, request, cart, customer, details))

    async def _prepare(
        self, request: CheckoutRequest
    ) -> Result[tuple[Cart, Customer, DeliveryDetails], CheckoutError]:
        """Read-only steps shared by `execute` and `validate`."""
        match await self._fetch_cart(request.cart_id):
            case Error(e):
                return Error(e)
            case Ok(cart):
                pass

        match await self._check_stock(cart.id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        match await self._resolve_customer(request):
            case Error(e):
                return Error(e)
            case Ok(customer):
                pass

        match await self._check_delivery(request.delivery):
            case Error(e):
                return Error(e)
            case Ok(details):
                return Ok((cart, customer, details))

    # ───────────────────────────────────────────────────────────────────────────
    # Steps
    # ───────────────────────────────────────────────────────────────────────────

    async def _fetch_cart(self, cart_id: str) -> Result[Cart, CheckoutError]:
        result = await L.catching_async(
            lambda: self._cart.get_cart(cart_id),
            on_error=lambda e: CollaboratorError.wrap("get_cart", e),
        )
        match result:
            case Ok(None):
                return Error(CartNotFoundError(cart_id))
            case Ok(cart) if cart.is_empty:
                return Error(EmptyCartError(cart_id))
            case Ok(cart):
                return Ok(cart)
            case Error(e):
                e.context.setdefault("step", "fetch_cart")
                return Error(e)

    async def _check_stock(self, cart_id: str) -> Result[None, CheckoutError]:
        result = await L.catching_async(
            lambda: self._cart.check_availability(cart_id),
            on_error=lambda e: CollaboratorError.wrap("check_availability", e),
        )
        match result:
            case Ok(True):
                return Ok(None)
            case Ok(_):
                return Error(StockUnavailableError(cart_id))
            case Error(e):
                e.context.setdefault("step", "check_stock")
                return Error(e)

    async def _resolve_customer(self, request: CheckoutRequest) -> Result[Customer, CheckoutError]:
        if request.customer_id is not None:
            customer_id = request.customer_id
            result = await L.catching_async(
                lambda: self._customers.get_customer(customer_id),
                on_error=lambda e: CollaboratorError.wrap("get_customer", e),
            )
            match result:
                case Ok(None):
                    return Error(CustomerNotFoundError(customer_id))
                case Ok(customer):
                    return Ok(customer)
                case Error(e):
                    e.context.setdefault("step", "resolve_customer")
                    return Error(e)

        match validate_guest(request.guest):
            case Error(e):
                return Error(e)
            case Ok(guest):
                pass

        result = await L.catching_async(
            lambda: self._customers.create_guest_customer(guest),
            on_error=lambda e: CollaboratorError.wrap("create_guest_customer", e),
        )
        match result:
            case Ok(customer):
                return Ok(customer)
            case Error(e):
                e.context.setdefault("step", "resolve_customer")
                return Error(e)

    async def _check_delivery(self, data: DeliveryData) -> Result[DeliveryDetails, CheckoutError]:
        result = await L.catching_async(
            lambda: self._customers.validate_delivery_details(data),
            on_error=lambda e: CollaboratorError.wrap("validate_delivery_details", e),
        )
        match result:
            case Ok(True):
                pass
            case Ok(_):
                return Error(DeliveryDetailsInvalidError(
                    "Delivery details were rejected", {"step": "check_delivery"}
                ))
            case Error(e):
                e.context.setdefault("step", "check_delivery")
                return Error(e)

        match DeliveryDetails.create(data, self._config.delivery):
            case Ok(details):
                return Ok(details)
            case Error(e):
                e.context.setdefault("step", "check_delivery")
                return Error(e)

    # ───────────────────────────────────────────────────────────────────────────
    # Commit — order + payment saga
    # ───────────────────────────────────────────────────────────────────────────

    def _saga(
        self,
        request: CheckoutRequest,
        cart: Cart,
        customer: Customer,
        details: DeliveryDetails,
        method: PaymentMethod,
    ) -> S.Then[Order, tuple[Order, Payment], CheckoutError, CheckoutError]:
        draft = OrderDraft(customer=customer, items=cart.items, total=cart.total, delivery=details)

        async def cancel_order(order: Order) -> None:
            await self._orders.cancel_order(order.id)
            logger.info("order_compensated", order_id=order.id)

        async def charge(order: Order) -> tuple[Order, Payment]:
            payment = await self._payments.process_payment(PaymentRequest(
                order_id=order.id,
                amount=cart.total,
                method=method,
                instrument=request.card,
            ))
            if payment.status is PaymentStatus.REJECTED:
                raise PaymentFailedError(
                    "Payment was rejected",
                    {"payment_id": payment.id, "order_id": order.id},
                )
            return order, payment

        return S.from_async(
            lambda: self._orders.create_order(draft),
            on_error=lambda e: CollaboratorError.wrap("create_order", e),
            compensate=cancel_order,
            name="create_order",
        ).then(lambda order: S.from_async(
            lambda: charge(order),
            on_error=_as_payment_failure,
            name="process_payment",
        ))

    async def _commit(
        self,
        session: CheckoutSession,
        request: CheckoutRequest,
        cart: Cart,
        customer: Customer,
        details: DeliveryDetails,
    ) -> Result[CheckoutSuccess, CheckoutError]:
        saga = self._saga(request, cart, customer, details, session.payment_method)

        match await S.run_chain(saga, compensation=self._compensation):
            case Error(failure):
                return await self._abort(session, failure)
            case Ok(result):
                order, payment = result.value

        logger.info("order_created", order_id=order.id, session_id=session.id)
        return await self._finalize(session, cart, order, payment)

    async def _abort(
        self,
        session: CheckoutSession,
        failure: S.SagaError[CheckoutError],
    ) -> Result[CheckoutSuccess, CheckoutError]:
        error = failure.error
        error.context.setdefault("step", failure.step_name)

        if failure.step_name == "process_payment":
            logger.warning("payment_failed", session_id=session.id, error=error.message)
            error.context["order_compensated"] = failure.rollback_complete
            if not failure.rollback_complete:
                logger.error(
                    "order_compensation_incomplete",
                    session_id=session.id,
                    compensators_failed=failure.compensators_failed,
                )

        match session.cancel(f"{failure.step_name} failed: {error.message}", self._now()):
            case Ok(_):
                await self._save_quietly(session)
            case Error(e):
                logger.warning("session_cancel_failed", session_id=session.id, error=e.message)

        return Error(error)

    async def _finalize(
        self,
        session: CheckoutSession,
        cart: Cart,
        order: Order,
        payment: Payment,
    ) -> Result[CheckoutSuccess, CheckoutError]:
        """Post-payment bookkeeping. Nothing here can fail the checkout."""
        reference = payment.provider_reference or payment.id
        now = self._now()

        if payment.status is PaymentStatus.APPROVED:
            try:
                await self._orders.update_status(order.id, OrderStatus.PAID)
            except Exception as exc:
                logger.warning("order_status_update_failed", order_id=order.id, error=repr(exc))

        match session.confirm_payment(reference, now):
            case Ok(_):
                match session.complete(order.id, now):
                    case Error(e):
                        logger.warning("session_update_failed", session_id=session.id, error=e.message)
                    case Ok(_):
                        pass
                await self._save_quietly(session)
            case Error(e):
                logger.warning("session_update_failed", session_id=session.id, error=e.message)

        try:
            await self._cart.clear_cart(cart.id)
        except Exception as exc:
            logger.warning("cart_clear_failed", cart_id=cart.id, error=repr(exc))

        pending = payment.status is PaymentStatus.PENDING
        return Ok(CheckoutSuccess(
            order_id=order.id,
            payment_id=payment.id,
            total=cart.total,
            payment_reference=reference,
            payment_status=payment.status,
            session_id=session.id,
            message=MESSAGE_PAYMENT_PENDING if pending else MESSAGE_PROCESSED,
        ))

    async def _save_quietly(self, session: CheckoutSession) -> None:
        match await self._store.save(session):
            case Error(e):
                logger.warning("session_save_failed", session_id=session.id, error=e.message)
            case Ok(_):
                pass

    # ───────────────────────────────────────────────────────────────────────────
    # validate() / summarize()
    # ───────────────────────────────────────────────────────────────────────────

    async def validate(self, request: CheckoutRequest) -> bool:
        """Dry run of the read-only steps. Never raises for expected failures."""
        match validate_shape(request.cart_id, request.payment_method):
            case Error(e):
                logger.info("checkout_validation_failed", cart_id=request.cart_id, code=e.code)
                return False
            case Ok(_):
                pass

        match await self._prepare(request):
            case Ok(_):
                return True
            case Error(e):
                logger.info("checkout_validation_failed", cart_id=request.cart_id, code=e.code)
                return False

    async def summarize(
        self,
        cart_id: str,
        discount_code: str | None = None,
        payment_method: PaymentMethod | None = None,
    ) -> Result[CheckoutSummary, CheckoutError]:
        """Preview totals for a cart, optionally with a discount code applied."""
        match await self._fetch_cart(cart_id):
            case Error(e):
                return Error(e)
            case Ok(cart):
                pass

        result = await L.catching_async(
            lambda: self._cart.compute_total(cart_id, discount_code),
            on_error=lambda e: CollaboratorError.wrap("compute_total", e),
        )
        match result:
            case Error(e):
                return Error(e)
            case Ok(totals):
                return Ok(CheckoutSummary(
                    items=cart.items,
                    subtotal=totals.subtotal,
                    discounts=totals.discounts,
                    taxes=totals.taxes,
                    total=totals.total,
                    discount_code=discount_code,
                    payment_method=payment_method,
                ))

    # ───────────────────────────────────────────────────────────────────────────
    # Sessions
    # ───────────────────────────────────────────────────────────────────────────

    async def get_session(self, session_id: str) -> Result[CheckoutSession, CheckoutError]:
        match parse_session_id(session_id):
            case Error(e):
                return Error(e)
            case Ok(valid_id):
                return await require(self._store, valid_id)

    async def cancel_session(
        self, session_id: str, reason: str
    ) -> Result[CheckoutSession, CheckoutError]:
        match await self.get_session(session_id):
            case Error(e):
                return Error(e)
            case Ok(session):
                pass

        match session.cancel(reason, self._now()):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        match await self._store.save(session):
            case Error(e):
                return Error(e)
            case Ok(_):
                logger.info("checkout_canceled", session_id=session.id, reason=reason)
                return Ok(session)

    async def update_delivery_details(
        self, session_id: str, data: DeliveryData
    ) -> Result[CheckoutSession, CheckoutError]:
        match await self.get_session(session_id):
            case Error(e):
                return Error(e)
            case Ok(session):
                pass

        match DeliveryDetails.create(data, self._config.delivery):
            case Error(e):
                return Error(e)
            case Ok(details):
                pass

        match session.update_delivery_details(details, self._now()):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        match await self._store.save(session):
            case Error(e):
                return Error(e)
            case Ok(_):
                return Ok(session)


__all__ = ("CheckoutOrchestrator",)
