"""
Broadcast - UI Bus.

Minimal surface for a trading engine that only wants to push a
plain state snapshot and react to named client events:

    bus.subscribe(on_event)
    await bus.publish_state(UiState(fields={"status": "Ready"}))
    await bus.emit(UiEvent(name="PlaceOrder", args={"symbol": "ES"}))

Handlers run one after another in registration order; an
exception in a handler propagates to the emitter.
"""

import logging
import threading
from typing import Awaitable, Callable, List

from screen_state.field_store import ScreenFieldStore
from screen_state.models import UiEvent, UiState
from .hub import SubscriberHub
from .notifications import Messages


logger = logging.getLogger(__name__)


UiEventHandler = Callable[[UiEvent], Awaitable[None]]


class UiBus:
    """Field access plus state publishing and event dispatch."""

    def __init__(self, hub: SubscriberHub, fields: ScreenFieldStore):
        self._hub = hub
        self._fields = fields
        self._lock = threading.Lock()
        self._handlers: List[UiEventHandler] = []

    async def publish_state(self, state: UiState) -> int:
        return await self._hub.publish(Messages.UI_STATE, state)

    def get_field(self, key: str) -> str:
        return self._fields.get(key)

    def set_field(self, key: str, value: str) -> bool:
        return self._fields.set(key, value)

    def subscribe(self, handler: UiEventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: UiEventHandler) -> bool:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)
                return True
        return False

    async def emit(self, event: UiEvent) -> int:
        """
        Dispatch an event to every handler.

        Returns:
            Number of handlers invoked
        """
        with self._lock:
            handlers = list(self._handlers)

        logger.info(f"UI event {event.name} -> {len(handlers)} handlers")
        for handler in handlers:
            await handler(event)
        return len(handlers)


__all__ = ["UiBus", "UiEventHandler"]
