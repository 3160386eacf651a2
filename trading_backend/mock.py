"""
Trading Backend - Mock Trading System.

============================================================
PURPOSE
============================================================
In-memory position book standing in for a real trading
system behind the screen interface.

FEATURES:
- Order fills with average price recomputation
- Position add / update / delete / toggle
- Configurable latency to emulate asynchronous I/O
- Random-walk price nudging used by the price simulator

============================================================
"""

import asyncio
import logging
import random
import threading
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict, Iterable, List, Optional

from core.config import SimulationConfig
from core.exceptions import (
    DuplicateSymbolError,
    InvalidArgumentError,
    NotFoundError,
)
from .models import (
    AccountSummary,
    OrderRequest,
    OrderResult,
    OrderSide,
    Position,
    money,
)


logger = logging.getLogger(__name__)

PRICE_FLOOR = Decimal("0.01")
CENT = Decimal("0.01")


def default_positions() -> Dict[str, Position]:
    """Demo book the service starts with."""
    return {
        "AAPL": Position("AAPL", 100, Decimal("150.25"), Decimal("155.30")),
        "GOOGL": Position("GOOGL", -50, Decimal("2800.00"), Decimal("2795.50")),
        "MSFT": Position("MSFT", 200, Decimal("380.75"), Decimal("385.20")),
    }


# ============================================================
# MOCK TRADING SYSTEM
# ============================================================

class MockTradingSystem:
    """
    Mock trading system.

    Simulates a trading engine including:
    - Order fills against a single position per symbol
    - Manual position maintenance from the screen
    - Live price drift
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        positions: Optional[Dict[str, Position]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize mock trading system.

        Args:
            config: Simulation configuration
            positions: Initial book (defaults to the demo book when seeding is on)
            rng: Random source for prices
        """
        self._config = config or SimulationConfig()
        self._lock = threading.RLock()
        self._rng = rng or random.Random()
        self._account_balance = self._config.account_balance

        if positions is not None:
            self._positions = {s: p.copy() for s, p in positions.items()}
        elif self._config.seed_positions:
            self._positions = default_positions()
        else:
            self._positions = {}

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    async def _simulate_latency(self) -> None:
        if self._config.latency_ms > 0:
            await asyncio.sleep(self._config.latency_ms / 1000.0)

    @staticmethod
    def _require_symbol(symbol: Optional[str]) -> str:
        if not symbol or not symbol.strip():
            raise InvalidArgumentError("Symbol is required", field="symbol")
        return symbol

    @staticmethod
    def _validate_position_values(position: Position) -> None:
        if position.quantity == 0:
            raise InvalidArgumentError("Quantity cannot be zero", field="quantity")
        if position.avg_price <= 0:
            raise InvalidArgumentError(
                "Average price must be greater than zero",
                field="avgPrice",
                value=position.avg_price,
            )

    # --------------------------------------------------------
    # QUERIES
    # --------------------------------------------------------

    async def get_account_summary(self) -> AccountSummary:
        await self._simulate_latency()
        with self._lock:
            positions = {s: p.copy() for s, p in self._positions.items()}
            balance = self._account_balance
        return AccountSummary(
            account_balance=balance,
            total_pnl=sum((p.pnl for p in positions.values()), Decimal("0")),
            positions=positions,
            last_update=datetime.now(timezone.utc),
        )

    async def get_positions(self) -> Dict[str, Position]:
        await self._simulate_latency()
        with self._lock:
            return {s: p.copy() for s, p in self._positions.items()}

    def get_position(self, symbol: str) -> Optional[Position]:
        with self._lock:
            position = self._positions.get(symbol)
            return position.copy() if position else None

    async def get_current_price(self, symbol: str) -> Decimal:
        await self._simulate_latency()
        with self._lock:
            if symbol in self._positions:
                return self._positions[symbol].current_price
        mock = Decimal("100.00") + Decimal(str(self._rng.random() * 100))
        return mock.quantize(CENT, rounding=ROUND_HALF_EVEN)

    async def is_connected(self) -> bool:
        await self._simulate_latency()
        return True

    async def get_system_status(self) -> str:
        connected = await self.is_connected()
        return "Connected and Ready" if connected else "Disconnected"

    # --------------------------------------------------------
    # ORDERS
    # --------------------------------------------------------

    async def place_order(self, order: OrderRequest) -> OrderResult:
        """
        Fill an order against the book.

        Validation failures come back as an unsuccessful result,
        not as an exception.
        """
        await self._simulate_latency()

        side = (order.order_type or "").upper()
        if not order.symbol:
            return OrderResult.failed("Order failed: Symbol is required")
        if order.quantity <= 0:
            return OrderResult.failed("Order failed: Quantity must be greater than 0")
        if order.price <= 0:
            return OrderResult.failed("Order failed: Price must be greater than 0")
        if side not in (OrderSide.BUY.value, OrderSide.SELL.value):
            return OrderResult.failed("Order failed: Order type must be BUY or SELL")

        signed = -order.quantity if side == OrderSide.SELL.value else order.quantity

        with self._lock:
            existing = self._positions.get(order.symbol)
            if existing is not None:
                new_quantity = existing.quantity + signed
                if new_quantity == 0:
                    del self._positions[order.symbol]
                    logger.info(f"Position closed: {order.symbol}")
                else:
                    total_cost = existing.quantity * existing.avg_price + signed * order.price
                    self._positions[order.symbol] = Position(
                        symbol=order.symbol,
                        quantity=new_quantity,
                        avg_price=abs(total_cost / new_quantity),
                        current_price=order.price,
                        live=existing.live,
                        flatten=existing.flatten,
                    )
            else:
                self._positions[order.symbol] = Position(
                    symbol=order.symbol,
                    quantity=signed,
                    avg_price=order.price,
                    current_price=order.price,
                )

        return OrderResult.ok(
            f"Order executed: {side} {order.quantity} {order.symbol} @ ${money(order.price)}"
        )

    # --------------------------------------------------------
    # POSITION MAINTENANCE
    # --------------------------------------------------------

    async def add_position(self, position: Position) -> OrderResult:
        await self._simulate_latency()

        self._require_symbol(position.symbol)
        self._validate_position_values(position)

        with self._lock:
            if position.symbol in self._positions:
                raise DuplicateSymbolError(position.symbol)

            current = position.current_price if position.current_price > 0 else position.avg_price
            self._positions[position.symbol] = Position(
                symbol=position.symbol,
                quantity=position.quantity,
                avg_price=position.avg_price,
                current_price=current,
                live=position.live,
                flatten=position.flatten,
            )

        return OrderResult.ok(
            f"Position added successfully: {position.symbol} "
            f"({position.quantity} shares @ ${money(position.avg_price)})"
        )

    async def delete_position(self, symbol: str) -> OrderResult:
        await self._simulate_latency()

        self._require_symbol(symbol)

        with self._lock:
            removed = self._positions.pop(symbol, None)

        if removed is None:
            raise NotFoundError("Position", symbol, f"Position for {symbol} not found")

        return OrderResult.ok(
            f"Position deleted successfully: {symbol} ({removed.quantity} shares)"
        )

    async def update_position(self, symbol: str, position: Optional[Position]) -> OrderResult:
        await self._simulate_latency()

        self._require_symbol(symbol)
        if position is None:
            raise InvalidArgumentError("Position data is required")
        self._validate_position_values(position)

        with self._lock:
            existing = self._positions.get(symbol)
            if existing is None:
                raise NotFoundError(
                    "Position", symbol, f"Position for {symbol} not found. Use AddRow to create it."
                )

            current = position.current_price if position.current_price > 0 else existing.current_price
            self._positions[symbol] = Position(
                symbol=symbol,
                quantity=position.quantity,
                avg_price=position.avg_price,
                current_price=current,
                live=position.live,
                flatten=position.flatten,
            )

        return OrderResult.ok(
            f"Position updated successfully: {symbol} "
            f"({position.quantity} shares @ ${money(position.avg_price)})"
        )

    async def toggle_live(self, symbol: str) -> OrderResult:
        await self._simulate_latency()

        self._require_symbol(symbol)
        with self._lock:
            position = self._positions.get(symbol)
            if position is None:
                raise NotFoundError("Position", symbol, f"Position for {symbol} not found")
            position.live = position.live.toggled()
            new_value = position.live.value

        return OrderResult.ok(f"LIVE set to {new_value} for {symbol}")

    async def toggle_flatten(self, symbol: str) -> OrderResult:
        await self._simulate_latency()

        self._require_symbol(symbol)
        with self._lock:
            position = self._positions.get(symbol)
            if position is None:
                raise NotFoundError("Position", symbol, f"Position for {symbol} not found")
            position.flatten = not position.flatten
            new_value = position.flatten

        return OrderResult.ok(f"FLATTEN set to {str(new_value).upper()} for {symbol}")

    async def replace_positions(self, positions: Iterable[Position]) -> int:
        """
        Replace the whole book (external refresh).

        Entries without a symbol are skipped; a later entry for the
        same symbol wins. Every entry must hold a non-zero quantity and
        a positive average price; otherwise nothing is replaced.

        Raises:
            InvalidArgumentError: An entry fails position validation
        """
        await self._simulate_latency()

        book: Dict[str, Position] = {}
        for position in positions:
            if not position.symbol:
                continue
            try:
                self._validate_position_values(position)
            except InvalidArgumentError as e:
                raise InvalidArgumentError(
                    f"Invalid position {position.symbol}: {e.message}",
                    field=e.context.get("field"),
                    value=position.symbol,
                ) from e
            book[position.symbol] = position.copy()

        with self._lock:
            self._positions = book

        logger.info(f"Position book replaced with {len(book)} positions")
        return len(book)

    # --------------------------------------------------------
    # PRICE SIMULATION
    # --------------------------------------------------------

    def nudge_prices(self, rng: Optional[random.Random] = None) -> List[str]:
        """
        Move every held price by a random step.

        The step lies in [-max_price_step, +max_price_step]; prices
        are floored at 0.01 and rounded to cents.

        Returns:
            Symbols whose price was moved
        """
        rng = rng or self._rng
        step = self._config.max_price_step
        moved = []

        with self._lock:
            for position in self._positions.values():
                change = Decimal(str((rng.random() - 0.5) * 2 * step))
                price = max(PRICE_FLOOR, position.current_price + change)
                position.current_price = price.quantize(CENT, rounding=ROUND_HALF_EVEN)
                moved.append(position.symbol)

        return moved


__all__ = [
    "MockTradingSystem",
    "default_positions",
    "PRICE_FLOOR",
]
