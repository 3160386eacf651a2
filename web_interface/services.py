"""
Web Interface - Service Container.

Every store and service the routes and the push hub need is
built once per application by build_services() and kept on
app.state.services.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, WebSocket

from broadcast.hub import SubscriberHub
from broadcast.notifications import NotificationService
from broadcast.ui_bus import UiBus
from core.clock import ClockProtocol, SystemClock
from core.config import AppConfig
from screen_state.event_log import ConsoleLog, EventLog
from screen_state.field_store import PageFieldRegistry, ScreenFieldStore
from screen_state.page_service import WebPageInterfaceService
from screen_state.table_store import TableStore
from trading_backend.mock import MockTradingSystem
from trading_backend.price_simulator import PriceSimulator
from .commands import CommandService


logger = logging.getLogger(__name__)


@dataclass
class ScreenServices:
    """Owned state and services of one application instance."""
    config: AppConfig
    clock: ClockProtocol
    fields: ScreenFieldStore
    page_fields: PageFieldRegistry
    tables: TableStore
    console: ConsoleLog
    events: EventLog
    backend: MockTradingSystem
    page: WebPageInterfaceService
    hub: SubscriberHub
    notifications: NotificationService
    ui_bus: UiBus
    commands: CommandService
    simulator: PriceSimulator


def build_services(
    config: Optional[AppConfig] = None,
    clock: Optional[ClockProtocol] = None,
    backend: Optional[MockTradingSystem] = None,
) -> ScreenServices:
    """Wire a fresh set of stores and services."""
    config = config or AppConfig()
    clock = clock or SystemClock()

    fields = ScreenFieldStore(clock)
    page_fields = PageFieldRegistry(clock)
    tables = TableStore(clock)
    console = ConsoleLog(
        clock,
        max_messages=config.console.max_messages,
        startup_banner=config.console.startup_banner,
    )
    events = EventLog(max_events=config.console.max_events)
    backend = backend or MockTradingSystem(config.simulation)

    page = WebPageInterfaceService(
        backend=backend,
        console=console,
        tables=tables,
        page_fields=page_fields,
        events=events,
        clock=clock,
    )

    hub = SubscriberHub(send_timeout_seconds=config.server.push_send_timeout_seconds)
    notifications = NotificationService(hub, console)
    ui_bus = UiBus(hub, fields)
    commands = CommandService(fields, console, backend, notifications)

    async def broadcast_tick(moved):
        if config.simulation.broadcast_ticks and moved and len(hub) > 0:
            await notifications.notify_positions_updated(await backend.get_account_summary())

    simulator = PriceSimulator(
        backend,
        interval_seconds=config.simulation.price_update_interval_seconds,
        on_tick=broadcast_tick,
        max_backoff_seconds=config.simulation.restart_max_backoff_seconds,
    )

    logger.info("Screen services built")
    return ScreenServices(
        config=config,
        clock=clock,
        fields=fields,
        page_fields=page_fields,
        tables=tables,
        console=console,
        events=events,
        backend=backend,
        page=page,
        hub=hub,
        notifications=notifications,
        ui_bus=ui_bus,
        commands=commands,
        simulator=simulator,
    )


# ============================================================
# DEPENDENCIES
# ============================================================

def get_services(request: Request) -> ScreenServices:
    return request.app.state.services


def get_ws_services(websocket: WebSocket) -> ScreenServices:
    return websocket.app.state.services


__all__ = [
    "ScreenServices",
    "build_services",
    "get_services",
    "get_ws_services",
]
