"""
Trading Backend - Price Simulator.

Background asyncio task that walks the mock book's prices.

The loop is supervised: an exception in a tick is logged with its
traceback and the loop is restarted after an exponential backoff
(initial delay doubling up to the configured maximum). A successful
tick resets the backoff.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional

from .mock import MockTradingSystem


logger = logging.getLogger(__name__)


TickCallback = Callable[[List[str]], Awaitable[None]]


class PriceSimulator:
    """
    Supervised random-walk price task.

    Usage:
        simulator = PriceSimulator(backend, interval_seconds=2.0, on_tick=broadcast)
        simulator.start()
        ...
        await simulator.stop()
    """

    def __init__(
        self,
        backend: MockTradingSystem,
        interval_seconds: float = 2.0,
        on_tick: Optional[TickCallback] = None,
        initial_backoff_seconds: float = 1.0,
        max_backoff_seconds: float = 30.0,
        rng: Optional[random.Random] = None,
    ):
        self._backend = backend
        self._interval = interval_seconds
        self._on_tick = on_tick
        self._initial_backoff = initial_backoff_seconds
        self._max_backoff = max_backoff_seconds
        self._rng = rng

        self._task: Optional[asyncio.Task] = None
        self._consecutive_failures = 0
        self._restart_count = 0
        self._tick_count = 0

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def restart_count(self) -> int:
        """Number of times the loop was restarted after a failure."""
        return self._restart_count

    @property
    def tick_count(self) -> int:
        """Number of completed ticks."""
        return self._tick_count

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    def start(self) -> None:
        """Start the background task (must be called inside a running loop)."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._supervise(), name="price-simulator")
        logger.info(f"Price simulator started (interval={self._interval}s)")

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Price simulator stopped")

    # --------------------------------------------------------
    # LOOP
    # --------------------------------------------------------

    def backoff_delay(self, failures: int) -> float:
        """Delay before the restart following the given failure count."""
        if failures <= 0:
            return 0.0
        return min(self._initial_backoff * (2 ** (failures - 1)), self._max_backoff)

    async def tick(self) -> List[str]:
        """Run one price step and the tick callback."""
        moved = self._backend.nudge_prices(self._rng)
        if self._on_tick is not None:
            await self._on_tick(moved)
        self._tick_count += 1
        self._consecutive_failures = 0
        return moved

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()

    async def _supervise(self) -> None:
        while True:
            try:
                await self._run()
            except asyncio.CancelledError:
                raise
            except Exception:
                self._consecutive_failures += 1
                self._restart_count += 1
                delay = self.backoff_delay(self._consecutive_failures)
                logger.exception(
                    f"Price simulator failed, restarting in {delay:.1f}s "
                    f"(attempt {self._restart_count})"
                )
                await asyncio.sleep(delay)


__all__ = ["PriceSimulator", "TickCallback"]
