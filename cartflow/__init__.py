"""
cartflow — checkout orchestration for storefront backends.

    from cartflow import checkout as CO   # Orchestrator, request/result types
    from cartflow import session as SS    # Session state machine and stores
    from cartflow import saga as S        # Compensating transactions
"""

from cartflow import saga
from cartflow import session
from cartflow import checkout
from cartflow._types import (
    Cents,
    PaymentMethod,
    SessionState,
)
from cartflow.config import CheckoutConfig, DeliveryFormat
from cartflow.delivery import DeliveryData, DeliveryDetails
from cartflow.errors import CheckoutError, ErrorKind

__version__ = "0.1.0"

__all__ = (
    "saga",
    "session",
    "checkout",
    "Cents",
    "PaymentMethod",
    "SessionState",
    "CheckoutConfig",
    "DeliveryFormat",
    "DeliveryData",
    "DeliveryDetails",
    "CheckoutError",
    "ErrorKind",
)
