"""
Pydantic schemas for the screen interface HTTP API.

Wire names are camelCase; Python attributes are snake_case with
aliases. Responses are serialized by alias.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trading_backend.models import LiveState, Position


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =======================
# COMMON
# =======================

class CommandResponse(CamelModel):
    success: bool
    message: str = ""
    data: Optional[Any] = None


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    error_type: str = Field(default="", alias="errorType")


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    version: str = "1.0.0"
    subscribers: int = 0


# =======================
# 1. SCREEN FIELDS
# =======================

class FieldWriteRequest(CamelModel):
    value: Optional[str] = None


class FieldReadResponse(CamelModel):
    field_name: str = Field(alias="fieldName")
    value: str = ""
    success: bool = True
    error: Optional[str] = None


class FieldWriteResponse(CamelModel):
    field_name: str = Field(alias="fieldName")
    value: str = ""
    success: bool = True
    error: Optional[str] = None


class AllFieldsResponse(CamelModel):
    fields: Dict[str, str]
    success: bool = True
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =======================
# 2. POSITIONS
# =======================

class PositionRequest(CamelModel):
    """Position body of the row endpoints."""
    symbol: str = ""
    quantity: int = 0
    avg_price: Decimal = Field(default=Decimal("0"), alias="avgPrice")
    current_price: Decimal = Field(default=Decimal("0"), alias="currentPrice")
    live: Union[bool, str] = LiveState.OFF.value
    flatten: bool = False

    @field_validator("live")
    @classmethod
    def normalize_live(cls, value: Union[bool, str]) -> str:
        if isinstance(value, bool):
            return LiveState.ON.value if value else LiveState.OFF.value
        normalized = value.strip().upper() or LiveState.OFF.value
        if normalized not in (LiveState.ON.value, LiveState.OFF.value):
            raise ValueError("live must be ON or OFF")
        return normalized

    def to_position(self) -> Position:
        return Position(
            symbol=self.symbol.strip(),
            quantity=self.quantity,
            avg_price=self.avg_price,
            current_price=self.current_price,
            live=LiveState(self.live),
            flatten=self.flatten,
        )


class StatusResponse(CamelModel):
    is_connected: bool = Field(alias="isConnected")
    status: str
    timestamp: datetime


# =======================
# 3. CONSOLE
# =======================

class AddCommentRequest(CamelModel):
    message: Optional[str] = None


class ConsoleResponse(CamelModel):
    success: bool = True
    messages: List[str]
    count: int


# =======================
# 4. TABLES & EVENTS
# =======================

class TableOperationBody(CamelModel):
    operation: str
    row_index: Optional[int] = Field(default=None, alias="rowIndex")
    column_id: Optional[str] = Field(default=None, alias="columnId")
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TableOperationResponse(CamelModel):
    success: bool
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
