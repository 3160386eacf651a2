"""Routers of the screen interface (REST and push hub)."""

from . import hub, trading

__all__ = ["hub", "trading"]
