"""
Checkout configuration.

    config = CheckoutConfig()                      # defaults
    config = CheckoutConfig.from_env()             # CARTFLOW_* overrides
    config = CheckoutConfig(session_ttl=timedelta(minutes=10))
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from cartflow._types import PaymentMethod


def utc_now() -> datetime:
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery Format — Region-specific Rules
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DeliveryFormat:
    """
    Region-specific delivery validation rules.

    Defaults describe Argentina: 4-digit postal codes, optional +54 prefix.
    """

    postal_code: re.Pattern[str] = re.compile(r"^\d{4}$")
    phone: re.Pattern[str] = re.compile(r"^(\+54)?[\s\-()]?[0-9\s\-()]{8,15}$")
    address_min: int = 5
    address_max: int = 200
    city_min: int = 2
    city_max: int = 100
    instructions_max: int = 500
    postal_code_hint: str = "4 digits"


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Config
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutConfig:
    """Orchestrator and session settings."""

    session_ttl: timedelta = timedelta(minutes=30)
    card_methods: frozenset[PaymentMethod] = frozenset(
        {PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD}
    )
    delivery: DeliveryFormat = field(default_factory=DeliveryFormat)
    compensation_retries: int = 2
    compensation_delay: timedelta = timedelta(milliseconds=200)
    clock: Callable[[], datetime] = utc_now

    def __post_init__(self) -> None:
        if self.session_ttl <= timedelta(0):
            raise ValueError("session_ttl must be positive")
        if self.compensation_retries < 0:
            raise ValueError("compensation_retries must be >= 0")

    def requires_card(self, method: PaymentMethod) -> bool:
        return method in self.card_methods

    @classmethod
    def from_env(
        cls,
        prefix: str = "CARTFLOW_",
        environ: Mapping[str, str] | None = None,
    ) -> CheckoutConfig:
        """
        Build config from environment variables.

        Reads `{prefix}SESSION_TTL_MINUTES`, `{prefix}COMPENSATION_RETRIES`
        and `{prefix}COMPENSATION_DELAY_SECONDS`. Missing keys keep defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        ttl = env.get(f"{prefix}SESSION_TTL_MINUTES")
        retries = env.get(f"{prefix}COMPENSATION_RETRIES")
        delay = env.get(f"{prefix}COMPENSATION_DELAY_SECONDS")

        return cls(
            session_ttl=timedelta(minutes=float(ttl)) if ttl else defaults.session_ttl,
            compensation_retries=int(retries) if retries else defaults.compensation_retries,
            compensation_delay=(
                timedelta(seconds=float(delay)) if delay else defaults.compensation_delay
            ),
        )


__all__ = ("DeliveryFormat", "CheckoutConfig", "utc_now")
