"""Tests for the CheckoutSession state machine."""

from datetime import timedelta

import pytest

from cartflow._types import PaymentMethod, SessionState
from cartflow.errors import (
    CheckoutError,
    InvalidTotalError,
    InvalidTransitionError,
    SessionAlreadyConfirmedError,
    SessionExpiredError,
)
from cartflow.ports import GuestInfo
from cartflow.session import (
    CheckoutSession,
    Transition,
    can_transition,
    parse_session_id,
)

from tests.conftest import NOW, err, ok


@pytest.fixture
def session(delivery):
    return ok(CheckoutSession.create(
        cart_id="carrito-456",
        payment_method=PaymentMethod.CREDIT_CARD,
        total=5940,
        delivery_details=delivery,
        customer_id="cliente-123",
        now=NOW,
    ))


def confirmed(session):
    ok(session.confirm_payment("mp-12345", NOW))
    return session


class TestCreate:
    def test_starts_in_started(self, session):
        assert session.state is SessionState.STARTED
        assert session.id.startswith("checkout-")
        assert session.expires_at == NOW + timedelta(minutes=30)
        assert session.payment_reference is None
        assert not session.is_guest

    @pytest.mark.parametrize("total", [0, -100])
    def test_rejects_non_positive_total(self, delivery, total):
        e = err(CheckoutSession.create(
            cart_id="carrito-456",
            payment_method=PaymentMethod.CASH,
            total=total,
            delivery_details=delivery,
        ))
        assert isinstance(e, InvalidTotalError)

    def test_custom_ttl(self, delivery):
        session = ok(CheckoutSession.create(
            cart_id="carrito-456",
            payment_method=PaymentMethod.CASH,
            total=100,
            delivery_details=delivery,
            ttl=timedelta(minutes=5),
            now=NOW,
        ))
        assert session.expires_at == NOW + timedelta(minutes=5)

    def test_guest_session(self, delivery):
        guest = GuestInfo("María García", "maria.garcia@email.com", "+54911987654")
        session = ok(CheckoutSession.create(
            cart_id="carrito-456",
            payment_method=PaymentMethod.CASH,
            total=100,
            delivery_details=delivery,
            guest=guest,
        ))
        assert session.is_guest
        assert session.guest == guest

    def test_ids_are_unique(self, delivery):
        ids = {
            ok(CheckoutSession.create(
                cart_id="c", payment_method=PaymentMethod.CASH, total=1, delivery_details=delivery
            )).id
            for _ in range(50)
        }
        assert len(ids) == 50


class TestExpiry:
    def test_not_expired_before_deadline(self, session):
        assert not session.is_expired(NOW + timedelta(minutes=29))
        assert session.can_be_modified(NOW + timedelta(minutes=29))

    def test_expired_after_deadline(self, session):
        assert session.is_expired(NOW + timedelta(minutes=31))
        assert not session.can_be_modified(NOW + timedelta(minutes=31))

    def test_terminal_sessions_never_expire(self, session):
        ok(session.cancel("changed my mind", NOW))
        assert not session.is_expired(NOW + timedelta(days=365))

    def test_completed_never_expires(self, session):
        confirmed(session)
        ok(session.complete("pedido-789", NOW))
        assert not session.is_expired(NOW + timedelta(days=365))

    def test_confirmed_cannot_be_modified(self, session):
        confirmed(session)
        assert not session.can_be_modified(NOW)


class TestConfirmPayment:
    def test_confirm(self, session):
        confirmed(session)
        assert session.state is SessionState.PAYMENT_CONFIRMED
        assert session.payment_reference == "mp-12345"
        assert session.confirmed_at == NOW

    def test_requires_reference(self, session):
        assert isinstance(err(session.confirm_payment("", NOW)), InvalidTransitionError)
        assert session.state is SessionState.STARTED

    def test_second_confirm_fails(self, session):
        confirmed(session)
        e = err(session.confirm_payment("mp-99999", NOW))
        assert isinstance(e, SessionAlreadyConfirmedError)
        assert session.payment_reference == "mp-12345"

    def test_same_confirm_is_idempotent(self, session):
        confirmed(session)
        assert ok(session.confirm_payment("mp-12345", NOW)) is session
        assert session.confirmed_at == NOW

    def test_confirm_after_expiry(self, session):
        later = NOW + timedelta(hours=1)
        ok(session.confirm_payment("mp-12345", later))
        assert session.state is SessionState.PAYMENT_CONFIRMED
        assert session.confirmed_at == later

    def test_canceled_cannot_confirm(self, session):
        ok(session.cancel("abandoned", NOW))
        assert isinstance(err(session.confirm_payment("mp-12345", NOW)), InvalidTransitionError)


class TestComplete:
    def test_complete_after_confirm(self, session):
        confirmed(session)
        ok(session.complete("pedido-789", NOW))
        assert session.state is SessionState.COMPLETED
        assert session.order_id == "pedido-789"
        assert session.is_terminal

    def test_complete_requires_confirmation(self, session):
        e = err(session.complete("pedido-789", NOW))
        assert isinstance(e, InvalidTransitionError)
        assert session.state is SessionState.STARTED

    def test_complete_is_idempotent_for_same_order(self, session):
        confirmed(session)
        ok(session.complete("pedido-789", NOW))
        ok(session.complete("pedido-789", NOW))
        assert isinstance(err(session.complete("pedido-000", NOW)), InvalidTransitionError)

    def test_complete_after_expiry(self, session):
        confirmed(session)
        ok(session.complete("pedido-789", NOW + timedelta(hours=2)))
        assert session.state is SessionState.COMPLETED


class TestCancel:
    def test_cancel_started(self, session):
        ok(session.cancel("customer left", NOW))
        assert session.state is SessionState.CANCELED
        assert session.cancel_reason == "customer left"
        assert session.canceled_at == NOW

    def test_cancel_expired_started(self, session):
        ok(session.cancel("expired", NOW + timedelta(hours=1)))
        assert session.state is SessionState.CANCELED

    def test_cancel_confirmed_rejected(self, session):
        confirmed(session)
        assert isinstance(err(session.cancel("too late", NOW)), InvalidTransitionError)
        assert session.state is SessionState.PAYMENT_CONFIRMED

    def test_cancel_completed_rejected(self, session):
        confirmed(session)
        ok(session.complete("pedido-789", NOW))
        assert isinstance(err(session.cancel("too late", NOW)), InvalidTransitionError)

    def test_repeat_cancel(self, session):
        ok(session.cancel("customer left", NOW))
        ok(session.cancel("customer left", NOW))
        assert isinstance(err(session.cancel("other reason", NOW)), InvalidTransitionError)


class TestUpdateDeliveryDetails:
    def test_update(self, session, delivery):
        replacement = type(delivery)("Av. Santa Fe 900", "Buenos Aires", "1059", "+54911000000")
        ok(session.update_delivery_details(replacement, NOW))
        assert session.delivery_details == replacement
        assert session.state is SessionState.STARTED

    def test_expired_cannot_update(self, session, delivery):
        e = err(session.update_delivery_details(delivery, NOW + timedelta(hours=1)))
        assert isinstance(e, SessionExpiredError)

    def test_confirmed_cannot_update(self, session, delivery):
        confirmed(session)
        assert isinstance(err(session.update_delivery_details(delivery, NOW)), InvalidTransitionError)


class TestTransitionTable:
    def test_allowed(self):
        assert can_transition(SessionState.STARTED, Transition.CONFIRM_PAYMENT)
        assert can_transition(SessionState.PAYMENT_CONFIRMED, Transition.COMPLETE)
        assert can_transition(SessionState.STARTED, Transition.CANCEL)

    def test_rejected(self):
        assert not can_transition(SessionState.PAYMENT_CONFIRMED, Transition.CANCEL)
        assert not can_transition(SessionState.STARTED, Transition.COMPLETE)
        for transition in Transition:
            assert not can_transition(SessionState.COMPLETED, transition)
            assert not can_transition(SessionState.CANCELED, transition)


class TestRecord:
    def test_record_roundtrip(self, session):
        confirmed(session)
        restored = CheckoutSession.from_record(session.to_record())
        assert restored == session

    def test_record_uses_plain_values(self, session):
        record = session.to_record()
        assert record["state"] == "started"
        assert record["payment_method"] == "credit_card"
        assert record["delivery_details"]["postal_code"] == "1043"


class TestParseSessionId:
    def test_valid(self):
        assert ok(parse_session_id(" checkout-1700000000000-abc123 ")) == "checkout-1700000000000-abc123"

    @pytest.mark.parametrize("value", ["", "checkout", "order-1700000000000", "checkout-12_34!", "checkout-" + "a" * 100])
    def test_invalid(self, value):
        assert isinstance(err(parse_session_id(value)), CheckoutError)
