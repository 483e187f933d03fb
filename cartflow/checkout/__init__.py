"""
Checkout — orchestration of cart → order → payment.

    from cartflow import checkout as CO

    orchestrator = CO.CheckoutOrchestrator(cart, customers, orders, payments)

    match await orchestrator.execute(request):
        case Ok(success):
            print(success.order_id, success.payment_reference)
        case Error(e):
            print(e.code, e.message)
"""

from __future__ import annotations

from cartflow.checkout._request import (
    CheckoutRequest,
    CheckoutSuccess,
    CheckoutSummary,
    MESSAGE_PROCESSED,
    MESSAGE_PAYMENT_PENDING,
)
from cartflow.checkout._validate import (
    validate_request,
    validate_shape,
    validate_card,
    validate_payment,
    validate_guest,
)
from cartflow.checkout._orchestrator import CheckoutOrchestrator

__all__ = (
    "validate_request",
    "CheckoutRequest",
    "CheckoutSuccess",
    "CheckoutSummary",
    "MESSAGE_PROCESSED",
    "MESSAGE_PAYMENT_PENDING",
    "validate_shape",
    "validate_card",
    "validate_payment",
    "validate_guest",
    "CheckoutOrchestrator",
)
