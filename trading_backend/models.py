"""
Trading Backend - Models.

============================================================
POSITION BOOK ENTITIES
============================================================

Position          one symbol's holding, keyed by symbol
AccountSummary    computed view over the whole book
OrderRequest      order as read from the screen fields
OrderResult       outcome of any backend command

Wire dictionaries use camelCase keys, matching what the screen
client renders.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import uuid


class LiveState(str, Enum):
    """LIVE toggle of a position row."""
    ON = "ON"
    OFF = "OFF"

    def toggled(self) -> "LiveState":
        return LiveState.OFF if self == LiveState.ON else LiveState.ON


class OrderSide(str, Enum):
    """Order side."""
    BUY = "BUY"
    SELL = "SELL"


def new_order_id() -> str:
    """Generate an 8 character upper-case hex order id."""
    return uuid.uuid4().hex[:8].upper()


def money(value: Decimal) -> str:
    """Format a decimal amount with two places."""
    return f"{value:.2f}"


@dataclass
class Position:
    """
    Trading position for one symbol.

    Quantity is signed: negative means short.
    """
    symbol: str
    quantity: int
    avg_price: Decimal
    current_price: Decimal = Decimal("0")
    live: LiveState = LiveState.OFF
    flatten: bool = False

    @property
    def pnl(self) -> Decimal:
        return (self.current_price - self.avg_price) * self.quantity

    @property
    def pnl_percent(self) -> Decimal:
        if self.avg_price == 0 or self.quantity == 0:
            return Decimal("0")
        return self.pnl / (self.avg_price * abs(self.quantity))

    def copy(self) -> "Position":
        return Position(
            symbol=self.symbol,
            quantity=self.quantity,
            avg_price=self.avg_price,
            current_price=self.current_price,
            live=self.live,
            flatten=self.flatten,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "avgPrice": float(self.avg_price),
            "currentPrice": float(self.current_price),
            "pnl": float(round(self.pnl, 2)),
            "pnlPercent": float(round(self.pnl_percent, 6)),
            "live": self.live.value,
            "flatten": self.flatten,
        }


@dataclass
class AccountSummary:
    """
    Aggregate account view.

    Recomputed on demand; never stored.
    """
    account_balance: Decimal
    total_pnl: Decimal
    positions: Dict[str, Position] = field(default_factory=dict)
    last_update: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountBalance": float(self.account_balance),
            "totalPnL": float(round(self.total_pnl, 2)),
            "positions": {s: p.to_dict() for s, p in self.positions.items()},
            "lastUpdate": self.last_update.isoformat(),
        }


@dataclass
class OrderRequest:
    """Order request built from screen fields or a push call."""
    symbol: str
    quantity: int
    price: Decimal
    order_type: str = OrderSide.BUY.value


@dataclass
class OrderResult:
    """Result of a backend command."""
    success: bool
    message: str
    order_id: str = ""

    @classmethod
    def ok(cls, message: str) -> "OrderResult":
        return cls(success=True, message=message, order_id=new_order_id())

    @classmethod
    def failed(cls, message: str) -> "OrderResult":
        return cls(success=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "orderId": self.order_id,
        }


def position_from_dict(data: Dict[str, Any]) -> Position:
    """Build a Position from a camelCase wire dictionary."""
    live = data.get("live", LiveState.OFF.value)
    if isinstance(live, bool):
        live = LiveState.ON if live else LiveState.OFF
    else:
        live = LiveState(str(live).upper() or LiveState.OFF.value)

    current: Optional[Any] = data.get("currentPrice")
    return Position(
        symbol=str(data.get("symbol") or ""),
        quantity=int(data.get("quantity") or 0),
        avg_price=Decimal(str(data.get("avgPrice") or 0)),
        current_price=Decimal(str(current)) if current is not None else Decimal("0"),
        live=live,
        flatten=bool(data.get("flatten", False)),
    )


__all__ = [
    "LiveState",
    "OrderSide",
    "Position",
    "AccountSummary",
    "OrderRequest",
    "OrderResult",
    "new_order_id",
    "money",
    "position_from_dict",
]
