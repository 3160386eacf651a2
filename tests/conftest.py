"""
Shared fixtures for the screen interface tests.
"""

import random
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from broadcast.hub import Subscriber
from core.clock import MockClock
from core.config import AppConfig, ConsoleConfig, SimulationConfig
from trading_backend.mock import MockTradingSystem
from web_interface.services import ScreenServices, build_services


class RecordingSubscriber(Subscriber):
    """Subscriber that keeps every envelope it receives."""

    def __init__(self, subscriber_id: str = "recorder"):
        super().__init__(subscriber_id)
        self.messages: List[Dict[str, Any]] = []

    async def send(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    def of_type(self, method: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m["type"] == method]


class FailingSubscriber(Subscriber):
    """Subscriber whose channel is broken."""

    async def send(self, message: Dict[str, Any]) -> None:
        raise ConnectionError("socket closed")


@pytest.fixture
def clock():
    """Fixed clock."""
    return MockClock(datetime(2025, 1, 15, 14, 30, 45, tzinfo=timezone.utc))


@pytest.fixture
def test_config():
    """Configuration with the price simulator disabled."""
    return AppConfig(
        simulation=SimulationConfig(enabled=False, broadcast_ticks=False),
        console=ConsoleConfig(startup_banner=False),
    )


@pytest.fixture
def backend(test_config):
    """Mock backend seeded with the demo book."""
    return MockTradingSystem(test_config.simulation, rng=random.Random(42))


@pytest.fixture
def services(test_config, clock, backend) -> ScreenServices:
    return build_services(test_config, clock=clock, backend=backend)


@pytest.fixture
def recorder(services) -> RecordingSubscriber:
    subscriber = RecordingSubscriber()
    services.hub.register(subscriber)
    return subscriber
