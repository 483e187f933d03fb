"""Tests for CheckoutConfig."""

from datetime import timedelta

import pytest

from cartflow._types import PaymentMethod
from cartflow.config import CheckoutConfig


class TestCheckoutConfig:
    def test_defaults(self):
        config = CheckoutConfig()
        assert config.session_ttl == timedelta(minutes=30)
        assert config.compensation_retries == 2
        assert config.requires_card(PaymentMethod.CREDIT_CARD)
        assert config.requires_card(PaymentMethod.DEBIT_CARD)
        assert not config.requires_card(PaymentMethod.CASH)
        assert not config.requires_card(PaymentMethod.BANK_TRANSFER)

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            CheckoutConfig(session_ttl=timedelta(0))

    def test_rejects_negative_retries(self):
        with pytest.raises(ValueError):
            CheckoutConfig(compensation_retries=-1)

    def test_from_env(self):
        config = CheckoutConfig.from_env(environ={
            "CARTFLOW_SESSION_TTL_MINUTES": "10",
            "CARTFLOW_COMPENSATION_RETRIES": "5",
            "CARTFLOW_COMPENSATION_DELAY_SECONDS": "0.5",
        })
        assert config.session_ttl == timedelta(minutes=10)
        assert config.compensation_retries == 5
        assert config.compensation_delay == timedelta(seconds=0.5)

    def test_from_env_missing_keys_keep_defaults(self):
        assert CheckoutConfig.from_env(environ={}).session_ttl == timedelta(minutes=30)

    def test_from_env_custom_prefix(self):
        config = CheckoutConfig.from_env(prefix="SHOP_", environ={"SHOP_SESSION_TTL_MINUTES": "45"})
        assert config.session_ttl == timedelta(minutes=45)
