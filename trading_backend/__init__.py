"""
Trading Backend.

============================================================
PURPOSE
============================================================
Mock trading system behind the screen interface.

- In-memory position book (one position per symbol)
- Order fills, manual position maintenance, LIVE/FLATTEN toggles
- Supervised background price random walk

============================================================
"""

from .models import (
    LiveState,
    OrderSide,
    Position,
    AccountSummary,
    OrderRequest,
    OrderResult,
    money,
    new_order_id,
    position_from_dict,
)
from .mock import MockTradingSystem, default_positions
from .price_simulator import PriceSimulator


__all__ = [
    "LiveState",
    "OrderSide",
    "Position",
    "AccountSummary",
    "OrderRequest",
    "OrderResult",
    "money",
    "new_order_id",
    "position_from_dict",
    "MockTradingSystem",
    "default_positions",
    "PriceSimulator",
]
