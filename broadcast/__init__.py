"""
Broadcast Package.

Push-on-change layer.

Components:
- hub: subscriber registry and fan-out with per-subscriber failure isolation
- notifications: named push messages (PositionsUpdate, ConsoleUpdate, ...)
- ui_bus: UiState publishing and UiEvent dispatch
- encoding: JSON encoding shared by push and HTTP payloads
"""

from .encoding import ScreenEncoder, dumps, to_jsonable
from .hub import Subscriber, SubscriberHub, make_envelope
from .notifications import Messages, NotificationService
from .ui_bus import UiBus, UiEventHandler


__all__ = [
    "ScreenEncoder",
    "dumps",
    "to_jsonable",
    "Subscriber",
    "SubscriberHub",
    "make_envelope",
    "Messages",
    "NotificationService",
    "UiBus",
    "UiEventHandler",
]
