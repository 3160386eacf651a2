"""
Screen State - Position <-> Table Conversion.

The positions table shows one row per position with the six core
position fields, derived market columns, and free-form "enhanced"
columns (strategy, account, notes, ...). Columns the table knows
nothing about survive as custom fields.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import InvalidArgumentError
from trading_backend.models import LiveState, Position
from .models import ColumnDefinition, Row, TableData, TableSettings, new_row_id


POSITIONS_TABLE_ID = "positions_table"
POSITIONS_TABLE_NAME = "Trading Positions"

STANDARD_FIELDS = frozenset({
    "symbol", "quantity", "avgPrice", "currentPrice", "marketValue",
    "unrealizedPL", "unrealizedPLPercent", "live", "flatten", "strategy",
    "account", "lastUpdate", "notes", "stopLoss", "takeProfit", "orderType",
})


# ============================================================
# TABLE LAYOUT
# ============================================================

def positions_table_columns() -> List[ColumnDefinition]:
    """The sixteen fixed columns of the positions table."""
    return [
        ColumnDefinition("symbol", "Symbol", "string", editable=False),
        ColumnDefinition("quantity", "Quantity", "number"),
        ColumnDefinition("avgPrice", "Avg Price", "currency", format="C2"),
        ColumnDefinition("currentPrice", "Current Price", "currency", editable=False, format="C2"),
        ColumnDefinition("marketValue", "Market Value", "currency", editable=False, format="C2"),
        ColumnDefinition("unrealizedPL", "Unrealized P&L", "currency", editable=False, format="C2"),
        ColumnDefinition("unrealizedPLPercent", "Unrealized P&L %", "number", editable=False, format="P2"),
        ColumnDefinition("live", "Live", "boolean"),
        ColumnDefinition("flatten", "Flatten", "boolean"),
        ColumnDefinition("strategy", "Strategy", "string"),
        ColumnDefinition("account", "Account", "string"),
        ColumnDefinition("notes", "Notes", "string"),
        ColumnDefinition("stopLoss", "Stop Loss", "currency", format="C2"),
        ColumnDefinition("takeProfit", "Take Profit", "currency", format="C2"),
        ColumnDefinition("orderType", "Order Type", "string"),
        ColumnDefinition("lastUpdate", "Last Update", "date", editable=False, format="HH:mm:ss"),
    ]


def default_positions_table() -> TableData:
    return TableData(
        table_id=POSITIONS_TABLE_ID,
        table_name=POSITIONS_TABLE_NAME,
        columns=positions_table_columns(),
        settings=TableSettings(theme="trading"),
    )


# ============================================================
# CELL READERS
# ============================================================

def _as_int(value: Any, column: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(f"Invalid number in column {column}", field=column, value=value)


def _as_decimal(value: Any, column: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise InvalidArgumentError(f"Invalid number in column {column}", field=column, value=value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().upper() in ("TRUE", "ON", "YES", "1")
    return bool(value)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


# ============================================================
# ENHANCED POSITION
# ============================================================

@dataclass
class EnhancedPosition:
    """Position row with display columns and custom fields."""
    symbol: str = ""
    quantity: int = 0
    avg_price: Decimal = Decimal("0")
    current_price: Decimal = Decimal("0")
    live: bool = False
    flatten: bool = False
    strategy: str = ""
    account: str = ""
    last_update: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""
    stop_loss: Decimal = Decimal("0")
    take_profit: Decimal = Decimal("0")
    order_type: str = ""
    custom_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def market_value(self) -> Decimal:
        return self.current_price * self.quantity

    @property
    def unrealized_pl(self) -> Decimal:
        return (self.current_price - self.avg_price) * self.quantity

    @property
    def unrealized_pl_percent(self) -> Decimal:
        if self.avg_price == 0:
            return Decimal("0")
        return (self.current_price - self.avg_price) / self.avg_price

    @classmethod
    def from_position(cls, position: Position, now: Optional[datetime] = None) -> "EnhancedPosition":
        return cls(
            symbol=position.symbol,
            quantity=position.quantity,
            avg_price=position.avg_price,
            current_price=position.current_price,
            live=position.live == LiveState.ON,
            flatten=position.flatten,
            last_update=now or datetime.now(timezone.utc),
        )

    def to_position(self) -> Position:
        return Position(
            symbol=self.symbol,
            quantity=self.quantity,
            avg_price=self.avg_price,
            current_price=self.current_price,
            live=LiveState.ON if self.live else LiveState.OFF,
            flatten=self.flatten,
        )

    def to_row(self) -> Row:
        row: Row = {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "avgPrice": self.avg_price,
            "currentPrice": self.current_price,
            "marketValue": self.market_value,
            "unrealizedPL": self.unrealized_pl,
            "unrealizedPLPercent": self.unrealized_pl_percent,
            "live": self.live,
            "flatten": self.flatten,
            "strategy": self.strategy,
            "account": self.account,
            "lastUpdate": self.last_update,
            "notes": self.notes,
            "stopLoss": self.stop_loss,
            "takeProfit": self.take_profit,
            "orderType": self.order_type,
        }
        row.update(self.custom_fields)
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "EnhancedPosition":
        """
        Read a table row.

        Absent numerics read as 0 and absent strings as "";
        columns outside the standard set become custom fields.
        """
        position = cls(
            symbol=_as_str(row.get("symbol")),
            quantity=_as_int(row.get("quantity"), "quantity"),
            avg_price=_as_decimal(row.get("avgPrice"), "avgPrice"),
            current_price=_as_decimal(row.get("currentPrice"), "currentPrice"),
            live=_as_bool(row.get("live", False)),
            flatten=_as_bool(row.get("flatten", False)),
            strategy=_as_str(row.get("strategy")),
            account=_as_str(row.get("account")),
            notes=_as_str(row.get("notes")),
            stop_loss=_as_decimal(row.get("stopLoss"), "stopLoss"),
            take_profit=_as_decimal(row.get("takeProfit"), "takeProfit"),
            order_type=_as_str(row.get("orderType")),
        )
        if isinstance(row.get("lastUpdate"), datetime):
            position.last_update = row["lastUpdate"]
        position.custom_fields = {k: v for k, v in row.items() if k not in STANDARD_FIELDS}
        return position


# ============================================================
# CONVERSION
# ============================================================

def positions_to_table(
    positions: Iterable[Position],
    base: Optional[TableData] = None,
    now: Optional[datetime] = None,
) -> TableData:
    """
    Render positions into a table.

    The layout (name, columns, settings) comes from ``base`` when
    given, otherwise from the default positions table. Rows are
    rebuilt from scratch.
    """
    table = base.copy() if base is not None else default_positions_table()
    now = now or datetime.now(timezone.utc)
    table.rows = [EnhancedPosition.from_position(p, now).to_row() for p in positions]
    table.row_ids = [new_row_id() for _ in table.rows]
    table.last_modified = now
    return table


def table_to_positions(table: TableData) -> Dict[str, Position]:
    """Read positions back out of a table, keyed by symbol."""
    positions: Dict[str, Position] = {}
    for row in table.rows:
        position = EnhancedPosition.from_row(row).to_position()
        positions[position.symbol] = position
    return positions


def table_to_enhanced_positions(table: TableData) -> List[EnhancedPosition]:
    return [EnhancedPosition.from_row(row) for row in table.rows]


__all__ = [
    "POSITIONS_TABLE_ID",
    "POSITIONS_TABLE_NAME",
    "STANDARD_FIELDS",
    "EnhancedPosition",
    "positions_table_columns",
    "default_positions_table",
    "positions_to_table",
    "table_to_positions",
    "table_to_enhanced_positions",
]
