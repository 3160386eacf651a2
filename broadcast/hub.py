"""
Broadcast - Subscriber Hub.

============================================================
PURPOSE
============================================================
Fan-out of push messages to every connected subscriber.

Messages use the envelope {"type": <method>, "args": [...]}.

Sends to all subscribers run concurrently, each bounded by the
hub's send timeout. A failed or timed-out send is logged and
skipped: it never delays or aborts delivery to the remaining
subscribers and never undoes the state change that triggered
the message.

============================================================
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from .encoding import to_jsonable


logger = logging.getLogger(__name__)


class Subscriber:
    """
    Push channel endpoint.

    Implementations override send(); the hub calls it with an
    already JSON-safe envelope.
    """

    def __init__(self, subscriber_id: str):
        self.subscriber_id = subscriber_id

    async def send(self, message: Dict[str, Any]) -> None:
        raise NotImplementedError


def make_envelope(method: str, *args: Any) -> Dict[str, Any]:
    return {"type": method, "args": to_jsonable(list(args))}


class SubscriberHub:
    """Registry of live subscribers."""

    def __init__(self, send_timeout_seconds: float = 5.0):
        self._send_timeout = send_timeout_seconds
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Subscriber] = {}

    # --------------------------------------------------------
    # REGISTRY
    # --------------------------------------------------------

    def register(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers[subscriber.subscriber_id] = subscriber
        logger.info(f"Subscriber registered: {subscriber.subscriber_id}")

    def unregister(self, subscriber_id: str) -> bool:
        with self._lock:
            removed = self._subscribers.pop(subscriber_id, None)
        if removed is not None:
            logger.info(f"Subscriber unregistered: {subscriber_id}")
        return removed is not None

    def subscriber_ids(self) -> List[str]:
        with self._lock:
            return list(self._subscribers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # --------------------------------------------------------
    # DELIVERY
    # --------------------------------------------------------

    async def publish(self, method: str, *args: Any) -> int:
        """
        Send a message to every subscriber.

        Returns:
            Number of subscribers the message reached
        """
        envelope = make_envelope(method, *args)
        with self._lock:
            targets = list(self._subscribers.values())

        results = await asyncio.gather(*(self._deliver(s, envelope) for s in targets))
        delivered = sum(1 for ok in results if ok)

        logger.debug(f"Published {method} to {delivered}/{len(targets)} subscribers")
        return delivered

    async def send_to(self, subscriber_id: str, method: str, *args: Any) -> bool:
        """Send a message to one subscriber; False when absent or failed."""
        with self._lock:
            subscriber: Optional[Subscriber] = self._subscribers.get(subscriber_id)
        if subscriber is None:
            return False
        return await self._deliver(subscriber, make_envelope(method, *args))

    async def _deliver(self, subscriber: Subscriber, envelope: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(subscriber.send(envelope), timeout=self._send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                f"Timed out delivering {envelope['type']} to {subscriber.subscriber_id} "
                f"after {self._send_timeout}s"
            )
            return False
        except Exception as e:
            logger.warning(
                f"Failed to deliver {envelope['type']} to {subscriber.subscriber_id}: {e}"
            )
            return False


__all__ = ["Subscriber", "SubscriberHub", "make_envelope"]
