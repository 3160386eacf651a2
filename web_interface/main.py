"""
Web Interface - Application Factory.

Builds the FastAPI application for the trading screen:
- REST routes under /api/trading
- WebSocket push hub at /hub/trading
- GET /health

Domain errors are answered with their mapped status and a
{"success": false, "message", "errorType"} body.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import AppConfig
from core.exceptions import ScreenInterfaceError
from web_interface.routers import hub, trading
from web_interface.schemas import ErrorResponse, HealthResponse
from web_interface.services import ScreenServices, build_services


logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _error_response(status_code: int, message: str, error_type: str) -> JSONResponse:
    body = ErrorResponse(message=message, error_type=error_type)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def create_app(
    config: Optional[AppConfig] = None,
    services: Optional[ScreenServices] = None,
) -> FastAPI:
    """
    Create the screen interface application.

    Args:
        config: Application configuration (defaults when omitted)
        services: Pre-built services, mainly for tests

    Returns:
        Configured FastAPI app
    """
    services = services or build_services(config)
    config = services.config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.simulation.enabled:
            services.simulator.start()
        logger.info("Trading screen interface started")
        try:
            yield
        finally:
            await services.simulator.stop()
            logger.info("Trading screen interface stopped")

    app = FastAPI(
        title="Trading Screen Interface API",
        description="Screen fields, position rows, console and live push updates for the trading screen.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS (browser clients are served from other origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ScreenInterfaceError)
    async def screen_error_handler(request: Request, exc: ScreenInterfaceError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return _error_response(exc.status_code, exc.message, type(exc).__name__)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(400, message, "InvalidArgumentError")

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed")
        return _error_response(500, str(exc) or type(exc).__name__, type(exc).__name__)

    # Include Routers
    app.include_router(trading.router)
    app.include_router(hub.router)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc),
            version=VERSION,
            subscribers=len(services.hub),
        )

    return app


__all__ = ["VERSION", "create_app"]
