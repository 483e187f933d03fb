"""Tests for logging configuration."""

import logging

import pytest
import structlog

from cartflow._logging import configure_logging, get_environment, get_log_level


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ENV", "ENVIRONMENT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestLogLevel:
    def test_environment_map(self, clean_env):
        clean_env.setenv("ENV", "production")
        assert get_log_level() == "INFO"
        clean_env.setenv("ENV", "test")
        assert get_log_level() == "WARNING"

    def test_explicit_level_wins(self, clean_env):
        clean_env.setenv("ENV", "production")
        clean_env.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"

    def test_unknown_environment(self, clean_env):
        clean_env.setenv("ENV", "qa")
        assert get_log_level() == "INFO"

    def test_environment_fallbacks(self, clean_env):
        assert get_environment() == "development"
        clean_env.setenv("ENVIRONMENT", "Staging")
        assert get_environment() == "staging"
        clean_env.setenv("ENV", "production")
        assert get_environment() == "production"


class TestConfigureLogging:
    @pytest.mark.parametrize("variable", ["ENV", "ENVIRONMENT"])
    def test_production_renders_json(self, clean_env, restore_logging, variable):
        clean_env.setenv(variable, "production")
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.INFO
        assert len(logging.getLogger().handlers) == 1

    def test_development_renders_console(self, clean_env, restore_logging):
        configure_logging()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger().level == logging.DEBUG
