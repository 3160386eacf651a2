"""
Web Interface Package.

Request/command surface of the trading screen.

Modules:
- main: FastAPI application factory
- routers/: REST routes and the WebSocket push hub
- commands: Button callbacks and row commands
- services: Per-application service container
- client: aiohttp client for the REST surface
"""

from .commands import CommandResult, CommandService
from .services import ScreenServices, build_services, get_services
from .main import create_app
from .client import TradingInterfaceClient

__all__ = [
    "CommandResult",
    "CommandService",
    "ScreenServices",
    "build_services",
    "get_services",
    "create_app",
    "TradingInterfaceClient",
]
