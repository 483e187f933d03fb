"""
Core types for cartflow.

Re-exports from kungfu + checkout enumerations and type aliases.
"""

from __future__ import annotations

import secrets
import time
from enum import Enum

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Cents = int
"""Monetary amount in minor units (no currency, no tax math)."""

# ═══════════════════════════════════════════════════════════════════════════════
# Enumerations
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentMethod(str, Enum):
    """Closed set of payment methods accepted at checkout."""

    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"


class SessionState(str, Enum):
    """
    Checkout session lifecycle.

        STARTED → PAYMENT_CONFIRMED → COMPLETED
           ↓
        CANCELED
    """

    STARTED = "started"
    PAYMENT_CONFIRMED = "payment_confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.CANCELED)


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════

SESSION_ID_PREFIX = "checkout-"


def new_session_id() -> str:
    """Generate `checkout-<millis>-<random>`."""
    return f"{SESSION_ID_PREFIX}{int(time.time() * 1000)}-{secrets.token_hex(5)}"


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Type aliases
    "Cents",
    # Enumerations
    "PaymentMethod",
    "SessionState",
    # Identity
    "SESSION_ID_PREFIX",
    "new_session_id",
)
