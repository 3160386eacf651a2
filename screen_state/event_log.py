"""
Screen State - Console and Event Log.

Two bounded, append-only logs:

ConsoleLog  timestamped text lines shown in the screen's console box
EventLog    structured UI events (EventData)

Both drop their oldest entry once the cap is reached.
"""

import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from core.clock import ClockProtocol, SystemClock
from .models import EventData


logger = logging.getLogger(__name__)


DEFAULT_MAX_MESSAGES = 1000
DEFAULT_MAX_EVENTS = 100
DEFAULT_RECENT_COUNT = 50


# ============================================================
# CONSOLE
# ============================================================

class ConsoleLog:
    """
    Console message buffer.

    Lines are rendered as "[HH:MM:SS] text" in local time.
    """

    def __init__(
        self,
        clock: Optional[ClockProtocol] = None,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        startup_banner: bool = True,
    ):
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._messages: Deque[str] = deque(maxlen=max_messages)

        if startup_banner:
            started = self._clock.local_now().strftime("%Y-%m-%d %H:%M:%S")
            self.append("=== Trading System Console Started ===")
            self.append(f"Console initialized at {started}")
            self.append("Ready for trading operations...")

    def append(self, message: Optional[str]) -> bool:
        """
        Add a timestamped line.

        Returns:
            False when the message was empty and nothing was added
        """
        if not message:
            return False

        line = f"[{self._clock.format_hms()}] {message}"
        with self._lock:
            self._messages.append(line)
        return True

    def get_all(self) -> List[str]:
        with self._lock:
            return list(self._messages)

    def get_recent(self, count: int = DEFAULT_RECENT_COUNT) -> List[str]:
        """Newest ``count`` lines, oldest first."""
        if count <= 0:
            return []
        with self._lock:
            return list(self._messages)[-count:]

    def clear(self) -> None:
        """Drop every line, then note the clear itself."""
        with self._lock:
            self._messages.clear()
        self.append("Console cleared")
        logger.info("Console cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


# ============================================================
# EVENT LOG
# ============================================================

class EventLog:
    """Structured event buffer."""

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        self._lock = threading.Lock()
        self._events: Deque[EventData] = deque(maxlen=max_events)

    def append(self, event: EventData) -> None:
        with self._lock:
            self._events.append(event)

    def get_all(self) -> List[EventData]:
        with self._lock:
            return list(self._events)

    def get_recent(self, count: int) -> List[EventData]:
        if count <= 0:
            return []
        with self._lock:
            return list(self._events)[-count:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


__all__ = [
    "ConsoleLog",
    "EventLog",
    "DEFAULT_MAX_MESSAGES",
    "DEFAULT_MAX_EVENTS",
    "DEFAULT_RECENT_COUNT",
]
