"""
Screen State - Field Store.

============================================================
PURPOSE
============================================================
Named string fields of the trading screen (inputs, status line,
account figures). A field is created on first write and never
destroyed; clearing sets it to "".

Also holds the rich page fields (FieldData) exchanged on the push
channel.

============================================================
"""

import logging
import threading
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from core.exceptions import InvalidArgumentError
from trading_backend.models import OrderRequest, OrderSide
from .models import FieldData


logger = logging.getLogger(__name__)


# ============================================================
# FIELD NAMES
# ============================================================

class ScreenFields:
    """Well-known screen field names."""

    SYMBOL_INPUT = "symbol_input"
    QUANTITY_INPUT = "quantity_input"
    PRICE_INPUT = "price_input"
    ORDER_TYPE = "order_type"
    STATUS_DISPLAY = "status_display"
    LAST_COMMAND = "last_command"
    LAST_UPDATED = "last_updated"
    ACCOUNT_BALANCE = "account_balance"
    TOTAL_PNL = "total_pnl"
    CONNECTION_STATUS = "connection_status"

    ORDER_INPUTS = (SYMBOL_INPUT, QUANTITY_INPUT, PRICE_INPUT)


# ============================================================
# SCREEN FIELD STORE
# ============================================================

class ScreenFieldStore:
    """
    Thread-safe name -> string value store.

    Last writer wins; there are no cross-field transactions.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None, seed_defaults: bool = True):
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._fields: Dict[str, str] = {}

        if seed_defaults:
            self._seed_defaults()

    def _seed_defaults(self) -> None:
        self._fields.update({
            ScreenFields.SYMBOL_INPUT: "",
            ScreenFields.QUANTITY_INPUT: "",
            ScreenFields.PRICE_INPUT: "",
            ScreenFields.ORDER_TYPE: OrderSide.BUY.value,
            ScreenFields.STATUS_DISPLAY: "System Ready",
            ScreenFields.LAST_COMMAND: "None",
            ScreenFields.LAST_UPDATED: self._clock.format_hms(),
            ScreenFields.ACCOUNT_BALANCE: "0.00",
            ScreenFields.TOTAL_PNL: "0.00",
            ScreenFields.CONNECTION_STATUS: "Connected",
        })

    # --------------------------------------------------------
    # BASIC ACCESS
    # --------------------------------------------------------

    def get(self, name: str) -> str:
        """Read a field; never-written fields read as ""."""
        with self._lock:
            return self._fields.get(name, "")

    def set(self, name: str, value: Optional[str]) -> bool:
        """
        Write a field, creating it when missing.

        Returns:
            False when the value could not be stored
        """
        if not isinstance(name, str) or not name:
            logger.warning(f"Rejected field write with invalid name: {name!r}")
            return False

        with self._lock:
            self._fields[name] = "" if value is None else str(value)

        logger.debug(f"Field {name} set")
        return True

    def clear(self, name: str) -> None:
        self.set(name, "")

    def clear_many(self, *names: str) -> None:
        with self._lock:
            for name in names:
                self._fields[name] = ""

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._fields

    def get_all(self) -> Dict[str, str]:
        """Snapshot copy of every field."""
        with self._lock:
            return dict(self._fields)

    # --------------------------------------------------------
    # STATUS HELPERS
    # --------------------------------------------------------

    def update_status(self, message: str) -> None:
        """Set the status line and stamp last_updated."""
        with self._lock:
            self._fields[ScreenFields.STATUS_DISPLAY] = message
            self._fields[ScreenFields.LAST_UPDATED] = self._clock.format_hms()

    def update_last_command(self, command: str) -> None:
        self.set(ScreenFields.LAST_COMMAND, command)

    # --------------------------------------------------------
    # ORDER ENTRY
    # --------------------------------------------------------

    def get_order_from_fields(self) -> OrderRequest:
        """
        Build an order from the entry fields.

        Raises:
            InvalidArgumentError: When an entry field is missing or malformed
        """
        fields = self.get_all()

        symbol = fields.get(ScreenFields.SYMBOL_INPUT, "").strip().upper()
        if not symbol:
            raise InvalidArgumentError("Symbol is required", field=ScreenFields.SYMBOL_INPUT)

        raw_quantity = fields.get(ScreenFields.QUANTITY_INPUT, "").strip()
        try:
            quantity = int(raw_quantity)
        except ValueError:
            quantity = 0
        if quantity <= 0:
            raise InvalidArgumentError(
                "Valid quantity is required",
                field=ScreenFields.QUANTITY_INPUT,
                value=raw_quantity,
            )

        raw_price = fields.get(ScreenFields.PRICE_INPUT, "").strip()
        try:
            price = Decimal(raw_price)
        except InvalidOperation:
            price = Decimal("0")
        if not price.is_finite() or price <= 0:
            raise InvalidArgumentError(
                "Valid price is required",
                field=ScreenFields.PRICE_INPUT,
                value=raw_price,
            )

        order_type = fields.get(ScreenFields.ORDER_TYPE, "").strip().upper()
        if order_type not in (OrderSide.BUY.value, OrderSide.SELL.value):
            raise InvalidArgumentError(
                "Order type must be BUY or SELL",
                field=ScreenFields.ORDER_TYPE,
                value=order_type,
            )

        return OrderRequest(symbol=symbol, quantity=quantity, price=price, order_type=order_type)


# ============================================================
# RICH PAGE FIELDS
# ============================================================

def default_page_fields() -> List[FieldData]:
    return [
        FieldData(
            field_id="account_balance",
            field_name="Account Balance",
            value=Decimal("50000.00"),
            data_type="currency",
            format="C2",
        ),
        FieldData(
            field_id="total_pl",
            field_name="Total P&L",
            value=Decimal("0.00"),
            data_type="currency",
            format="C2",
        ),
    ]


class PageFieldRegistry:
    """Thread-safe field_id -> FieldData registry."""

    def __init__(self, clock: Optional[ClockProtocol] = None, seed_defaults: bool = True):
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._fields: Dict[str, FieldData] = {}

        if seed_defaults:
            for page_field in default_page_fields():
                self._fields[page_field.field_id] = page_field

    def get(self, field_id: str) -> Optional[FieldData]:
        with self._lock:
            return self._fields.get(field_id)

    def put(self, field_id: str, page_field: FieldData) -> FieldData:
        """Insert or replace a field, stamping last_modified."""
        page_field.field_id = field_id
        page_field.last_modified = self._clock.now()
        with self._lock:
            self._fields[field_id] = page_field
        return page_field

    def snapshot(self) -> Dict[str, FieldData]:
        with self._lock:
            return dict(self._fields)


__all__ = [
    "ScreenFields",
    "ScreenFieldStore",
    "PageFieldRegistry",
    "default_page_fields",
]
