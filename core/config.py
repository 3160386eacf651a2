"""
Core Module - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the screen interface service.

Values come from dataclass defaults, overridden by environment
variables (a local .env file is loaded first when present) and
finally by command line flags in app.py.

============================================================
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List

from dotenv import load_dotenv


# ============================================================
# SERVER CONFIGURATION
# ============================================================

@dataclass
class ServerConfig:
    """HTTP / push channel server settings."""

    host: str = "0.0.0.0"
    """Interface to bind."""

    port: int = 5000
    """Port to listen on."""

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    """Origins allowed by the CORS middleware."""

    log_level: str = "INFO"
    """Logging level."""

    log_format: str = "text"
    """Logging output format (json or text)."""

    push_send_timeout_seconds: float = 5.0
    """Longest a single push to one subscriber may take."""


# ============================================================
# SIMULATION CONFIGURATION
# ============================================================

@dataclass
class SimulationConfig:
    """Mock trading backend settings."""

    enabled: bool = True
    """Run the background price simulator."""

    price_update_interval_seconds: float = 2.0
    """Interval between random-walk price steps."""

    max_price_step: float = 1.0
    """Largest absolute price change per step."""

    broadcast_ticks: bool = True
    """Push a positions update to subscribers after each step."""

    latency_ms: float = 0.0
    """Simulated backend latency per call."""

    account_balance: Decimal = Decimal("50000.00")
    """Starting account balance."""

    seed_positions: bool = True
    """Start with the demo AAPL/GOOGL/MSFT book."""

    restart_max_backoff_seconds: float = 30.0
    """Upper bound of the simulator's restart backoff."""


# ============================================================
# CONSOLE CONFIGURATION
# ============================================================

@dataclass
class ConsoleConfig:
    """Console and event feed retention."""

    max_messages: int = 1000
    """Console messages kept (oldest dropped first)."""

    max_events: int = 100
    """Structured UI events kept (oldest dropped first)."""

    startup_banner: bool = True
    """Write the welcome lines when the console is created."""


# ============================================================
# APPLICATION CONFIGURATION
# ============================================================

def _env_bool(key: str, default: bool) -> bool:
    return os.getenv(key, "true" if default else "false").lower() in ("1", "true", "yes")


@dataclass
class AppConfig:
    """Aggregate configuration for the whole service."""

    server: ServerConfig = field(default_factory=ServerConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "AppConfig":
        """Load configuration from environment variables."""
        if load_env_file:
            load_dotenv()

        origins = os.getenv("CORS_ORIGINS", "*")

        try:
            balance = Decimal(os.getenv("ACCOUNT_BALANCE", "50000.00"))
        except InvalidOperation:
            balance = Decimal("-1")

        return cls(
            server=ServerConfig(
                host=os.getenv("SCREEN_HOST", "0.0.0.0"),
                port=int(os.getenv("SCREEN_PORT", os.getenv("PORT", "5000"))),
                cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", "text"),
                push_send_timeout_seconds=float(os.getenv("PUSH_SEND_TIMEOUT", "5.0")),
            ),
            simulation=SimulationConfig(
                enabled=_env_bool("PRICE_SIMULATION_ENABLED", True),
                price_update_interval_seconds=float(os.getenv("PRICE_UPDATE_INTERVAL", "2.0")),
                broadcast_ticks=_env_bool("PRICE_BROADCAST_TICKS", True),
                latency_ms=float(os.getenv("BACKEND_LATENCY_MS", "0")),
                account_balance=balance,
                seed_positions=_env_bool("SEED_POSITIONS", True),
            ),
            console=ConsoleConfig(
                max_messages=int(os.getenv("CONSOLE_MAX_MESSAGES", "1000")),
                max_events=int(os.getenv("EVENT_MAX_EVENTS", "100")),
                startup_banner=_env_bool("CONSOLE_STARTUP_BANNER", True),
            ),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not 0 < self.server.port < 65536:
            errors.append("port must be between 1 and 65535")

        if self.server.log_format not in ("json", "text"):
            errors.append("log_format must be 'json' or 'text'")

        if self.server.push_send_timeout_seconds <= 0:
            errors.append("push_send_timeout_seconds must be positive")

        if self.simulation.price_update_interval_seconds <= 0:
            errors.append("price_update_interval_seconds must be positive")

        if self.simulation.max_price_step < 0:
            errors.append("max_price_step must not be negative")

        if self.simulation.latency_ms < 0:
            errors.append("latency_ms must not be negative")

        if self.simulation.account_balance < 0:
            errors.append("account_balance must not be negative")

        if self.console.max_messages < 1:
            errors.append("max_messages must be at least 1")

        if self.console.max_events < 1:
            errors.append("max_events must be at least 1")

        return errors


__all__ = [
    "ServerConfig",
    "SimulationConfig",
    "ConsoleConfig",
    "AppConfig",
]
