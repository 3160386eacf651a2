"""
Screen State Package.

In-memory state behind the trading screen.

Components:
- field_store: named string fields plus rich page fields
- table_store: flexible tables with positional rows and stable row ids
- event_log: bounded console and UI event logs
- conversion: Position <-> positions table mapping
- page_service: page model service synced with the trading backend
"""

from .models import (
    CellValue,
    Row,
    coerce_cell,
    coerce_row,
    ColumnDefinition,
    TableSettings,
    TableData,
    FieldData,
    EventTypes,
    EventData,
    WebPageData,
    TableOperationRequest,
    TableOperationResult,
    UiState,
    UiEvent,
)
from .field_store import ScreenFields, ScreenFieldStore, PageFieldRegistry
from .table_store import TableStore
from .event_log import ConsoleLog, EventLog
from .conversion import (
    POSITIONS_TABLE_ID,
    EnhancedPosition,
    default_positions_table,
    positions_table_columns,
    positions_to_table,
    table_to_positions,
)
from .page_service import WebPageInterfaceService


__all__ = [
    "CellValue",
    "Row",
    "coerce_cell",
    "coerce_row",
    "ColumnDefinition",
    "TableSettings",
    "TableData",
    "FieldData",
    "EventTypes",
    "EventData",
    "WebPageData",
    "TableOperationRequest",
    "TableOperationResult",
    "UiState",
    "UiEvent",
    "ScreenFields",
    "ScreenFieldStore",
    "PageFieldRegistry",
    "TableStore",
    "ConsoleLog",
    "EventLog",
    "POSITIONS_TABLE_ID",
    "EnhancedPosition",
    "default_positions_table",
    "positions_table_columns",
    "positions_to_table",
    "table_to_positions",
    "WebPageInterfaceService",
]
