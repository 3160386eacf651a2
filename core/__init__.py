"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- exceptions: Screen interface exception hierarchy
- config: Dataclass configuration loaded from the environment
- logging_setup: Structured logging bootstrap
"""

from .clock import ClockProtocol, SystemClock, MockClock
from .exceptions import (
    ScreenInterfaceError,
    InvalidArgumentError,
    NotFoundError,
    DuplicateSymbolError,
    InvalidIndexError,
    InternalServiceError,
)
from .config import AppConfig, ServerConfig, SimulationConfig, ConsoleConfig
from .logging_setup import setup_logging

__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ScreenInterfaceError",
    "InvalidArgumentError",
    "NotFoundError",
    "DuplicateSymbolError",
    "InvalidIndexError",
    "InternalServiceError",
    "AppConfig",
    "ServerConfig",
    "SimulationConfig",
    "ConsoleConfig",
    "setup_logging",
]
