"""
Request validators.

Field checks that decide saga control flow: whether the buyer is
identified, whether a card payment carries a usable instrument.
"""

from __future__ import annotations

import re
from datetime import date

from kungfu import Result, Ok, Error

from cartflow._types import PaymentMethod
from cartflow.checkout._request import CheckoutRequest
from cartflow.config import CheckoutConfig
from cartflow.errors import (
    CheckoutError,
    GuestInfoInvalidError,
    PaymentDataInvalidError,
)
from cartflow.ports import CardData, GuestInfo

_CARD_NUMBER = re.compile(r"^\d{13,19}$")
_EXPIRY = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
_CVV = re.compile(r"^\d{3}$")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_shape(
    cart_id: str, payment_method: PaymentMethod | str
) -> Result[PaymentMethod, CheckoutError]:
    if not cart_id:
        return Error(CheckoutError("cart_id is required"))
    try:
        return Ok(PaymentMethod(payment_method))
    except ValueError:
        return Error(CheckoutError(
            f"Invalid payment method: {payment_method}",
            {"payment_method": str(payment_method)},
        ))


def validate_card(card: CardData, today: date) -> Result[CardData, PaymentDataInvalidError]:
    number = re.sub(r"[\s\-]", "", card.number or "")
    if not _CARD_NUMBER.match(number):
        return Error(PaymentDataInvalidError("Invalid card number", {"field": "number"}))

    expiry = _EXPIRY.match(card.expiry or "")
    if expiry is None:
        return Error(PaymentDataInvalidError("Invalid expiry format (MM/YY)", {"field": "expiry"}))
    month, year = int(expiry.group(1)), 2000 + int(expiry.group(2))
    if (year, month) < (today.year, today.month):
        return Error(PaymentDataInvalidError("Card is expired", {"field": "expiry"}))

    if not _CVV.match(card.cvv or ""):
        return Error(PaymentDataInvalidError("CVV must be 3 digits", {"field": "cvv"}))

    holder = (card.holder or "").strip()
    if len(holder) < 2:
        return Error(PaymentDataInvalidError("Card holder name is required", {"field": "holder"}))
    if len(holder) > 100:
        return Error(PaymentDataInvalidError(
            "Card holder name cannot exceed 100 characters", {"field": "holder"}
        ))
    if not all(ch.isalpha() or ch.isspace() for ch in holder):
        return Error(PaymentDataInvalidError(
            "Card holder name may only contain letters and spaces", {"field": "holder"}
        ))

    return Ok(card)


def validate_payment(
    method: PaymentMethod,
    card: CardData | None,
    config: CheckoutConfig,
) -> Result[CardData | None, PaymentDataInvalidError]:
    """Card methods need a valid instrument; other methods ignore it."""
    if not config.requires_card(method):
        return Ok(card)
    if card is None:
        return Error(PaymentDataInvalidError(
            f"Card data is required for {method.value}", {"payment_method": method.value}
        ))
    return validate_card(card, config.clock().date())


def validate_guest(guest: GuestInfo | None) -> Result[GuestInfo, GuestInfoInvalidError]:
    if guest is None:
        return Error(GuestInfoInvalidError("customer_id or guest info is required"))
    if not (guest.name or "").strip():
        return Error(GuestInfoInvalidError("Name is required", {"field": "name"}))
    if not _EMAIL.match(guest.email or ""):
        return Error(GuestInfoInvalidError("Invalid email", {"field": "email"}))
    if not (guest.phone or "").strip():
        return Error(GuestInfoInvalidError("Phone is required", {"field": "phone"}))
    return Ok(guest)


def validate_request(
    request: CheckoutRequest, config: CheckoutConfig
) -> Result[CheckoutRequest, CheckoutError]:
    """
    Standalone pre-check for callers: every collaborator-free rule at once.

    `CheckoutOrchestrator` does not call this; it runs the same component
    validators at their own steps (shape first, guest while resolving the
    customer, payment after delivery) so earlier failures win.
    """
    match validate_shape(request.cart_id, request.payment_method):
        case Error(e):
            return Error(e)
        case Ok(method):
            pass

    if request.customer_id is None:
        match validate_guest(request.guest):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

    match validate_payment(method, request.card, config):
        case Error(e):
            return Error(e)
        case Ok(_):
            return Ok(request)


__all__ = (
    "validate_request",
    "validate_shape",
    "validate_card",
    "validate_payment",
    "validate_guest",
)
