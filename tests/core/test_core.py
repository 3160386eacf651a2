"""
Tests for the core package: clock, exceptions, configuration.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.clock import MockClock, SystemClock
from core.config import AppConfig, ServerConfig, SimulationConfig
from core.exceptions import (
    DuplicateSymbolError,
    InternalServiceError,
    InvalidArgumentError,
    InvalidIndexError,
    NotFoundError,
    ScreenInterfaceError,
    Severity,
)
from core.logging_setup import setup_logging


# ============================================================
# CLOCK
# ============================================================

class TestClock:
    """Tests for clock implementations."""

    def test_system_clock_is_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_mock_clock_advance(self):
        start = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        clock = MockClock(start)

        clock.advance(seconds=90)

        assert clock.now() == start + timedelta(seconds=90)

    def test_mock_clock_naive_time_becomes_utc(self):
        clock = MockClock(datetime(2025, 1, 1, 12, 0, 0))
        assert clock.now().tzinfo == timezone.utc

    def test_format_hms(self):
        clock = MockClock()
        stamp = clock.format_hms()
        assert len(stamp) == 8
        assert stamp[2] == ":" and stamp[5] == ":"


# ============================================================
# EXCEPTIONS
# ============================================================

class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_status_codes(self):
        assert InvalidArgumentError("bad").status_code == 400
        assert NotFoundError("Position", "AAPL").status_code == 404
        assert DuplicateSymbolError("AAPL").status_code == 409
        assert InvalidIndexError("t", 5, 2).status_code == 400
        assert ScreenInterfaceError("boom").status_code == 500

    def test_all_derive_from_base(self):
        for error in (
            InvalidArgumentError("bad"),
            NotFoundError("Table", "x"),
            DuplicateSymbolError("AAPL"),
            InvalidIndexError("t", 1, 0),
        ):
            assert isinstance(error, ScreenInterfaceError)

    def test_not_found_default_message(self):
        error = NotFoundError("Table", "orders")
        assert str(error) == "Table orders not found"
        assert error.context == {"kind": "Table", "key": "orders"}

    def test_internal_service_error_wraps_cause(self):
        error = InternalServiceError("Get positions", RuntimeError("book locked"))

        assert error.status_code == 500
        assert str(error) == "Get positions error: book locked"
        assert error.context["cause_type"] == "RuntimeError"

    def test_duplicate_symbol_message(self):
        error = DuplicateSymbolError("AAPL")
        assert "AAPL already exists" in str(error)

    def test_invalid_argument_context(self):
        error = InvalidArgumentError("Valid quantity is required", field="quantity_input", value="abc")
        assert error.context["field"] == "quantity_input"
        assert error.context["value"] == "abc"
        assert error.severity == Severity.LOW

    def test_to_dict(self):
        data = InvalidIndexError("orders", 7, 3).to_dict()
        assert data["type"] == "InvalidIndexError"
        assert data["message"] == "Invalid row index"
        assert data["context"]["row_count"] == 3


# ============================================================
# CONFIGURATION
# ============================================================

class TestConfig:
    """Tests for configuration loading and validation."""

    def test_defaults_are_valid(self):
        assert AppConfig().validate() == []

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCREEN_PORT", "8081")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PRICE_SIMULATION_ENABLED", "false")
        monkeypatch.setenv("PRICE_UPDATE_INTERVAL", "0.5")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example")
        monkeypatch.setenv("ACCOUNT_BALANCE", "1000.50")

        config = AppConfig.from_env(load_env_file=False)

        assert config.server.port == 8081
        assert config.server.log_level == "DEBUG"
        assert config.simulation.enabled is False
        assert config.simulation.price_update_interval_seconds == 0.5
        assert config.server.cors_origins == ["http://a.example", "http://b.example"]
        assert config.simulation.account_balance == Decimal("1000.50")

    def test_validate_reports_every_problem(self):
        config = AppConfig(
            server=ServerConfig(port=0, log_format="xml"),
            simulation=SimulationConfig(price_update_interval_seconds=0, latency_ms=-1),
        )

        errors = config.validate()

        assert len(errors) == 4

    def test_invalid_balance_fails_validation(self, monkeypatch):
        monkeypatch.setenv("ACCOUNT_BALANCE", "lots")
        config = AppConfig.from_env(load_env_file=False)
        assert "account_balance must not be negative" in config.validate()

    def test_push_send_timeout(self, monkeypatch):
        monkeypatch.setenv("PUSH_SEND_TIMEOUT", "0")
        config = AppConfig.from_env(load_env_file=False)

        assert config.server.push_send_timeout_seconds == 0.0
        assert "push_send_timeout_seconds must be positive" in config.validate()


class TestLoggingSetup:

    def test_installs_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging(level="DEBUG", log_format="json", service_name="screen_test")
            logger = setup_logging(level="INFO", log_format="text")

            assert len(root.handlers) == 1
            assert root.level == logging.INFO
            assert logger.name == "screen_interface"
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)
