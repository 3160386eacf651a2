"""
Screen State - Page Models.

============================================================
ENTITIES
============================================================

ColumnDefinition       one column of a flexible table
TableSettings          what the client may do with a table
TableData              columns + positional rows (+ stable row ids)
FieldData              rich page field (typed value, format)
EventData              user-originated UI event
WebPageData            aggregate of the whole page
TableOperationRequest  add / update / delete / select on a table
TableOperationResult   outcome of a table operation
UiState / UiEvent      plain state snapshot and named UI event

Cells hold only: str, int, float, Decimal, bool, datetime or None.
Wire dictionaries use camelCase keys.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
import uuid

from core.exceptions import InvalidArgumentError


# ============================================================
# CELL VALUES
# ============================================================

CellValue = Union[str, int, float, Decimal, bool, datetime, None]
Row = Dict[str, CellValue]

CELL_TYPES = (str, int, float, Decimal, bool, datetime)

COLUMN_TYPES = ("string", "number", "boolean", "date", "currency")


def coerce_cell(value: Any, column_id: Optional[str] = None) -> CellValue:
    """
    Validate a cell value against the allowed union.

    Raises:
        InvalidArgumentError: For any other value type
    """
    if value is None or isinstance(value, CELL_TYPES):
        return value
    raise InvalidArgumentError(
        f"Unsupported cell value type: {type(value).__name__}",
        field=column_id,
        value=value,
    )


def coerce_row(data: Dict[str, Any]) -> Row:
    """Validate every key and cell of a row mapping."""
    if not isinstance(data, dict):
        raise InvalidArgumentError("Row data must be a mapping")
    row: Row = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise InvalidArgumentError("Column ids must be strings", value=key)
        row[key] = coerce_cell(value, key)
    return row


def new_row_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidArgumentError("Invalid timestamp", value=value)
    return _utcnow()


def _mapping(value: Any, name: str, default_empty: bool = True) -> Dict[str, Any]:
    if value is None and default_empty:
        return {}
    if not isinstance(value, dict):
        raise InvalidArgumentError(f"{name} must be an object", field=name, value=value)
    return value


def _sequence(value: Any, name: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidArgumentError(f"{name} must be a list", field=name, value=value)
    return value


# ============================================================
# TABLES
# ============================================================

@dataclass
class ColumnDefinition:
    """Column of a flexible table."""
    id: str
    name: str
    data_type: str = "string"
    editable: bool = True
    visible: bool = True
    format: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.data_type not in COLUMN_TYPES:
            raise InvalidArgumentError(
                f"Unknown column data type: {self.data_type}",
                field="dataType",
                value=self.data_type,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dataType": self.data_type,
            "editable": self.editable,
            "visible": self.visible,
            "format": self.format,
            "properties": dict(self.properties),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnDefinition":
        data = _mapping(data, "column", default_empty=False)
        if not data.get("id"):
            raise InvalidArgumentError("Column id is required", field="id")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            data_type=str(data.get("dataType", "string")),
            editable=bool(data.get("editable", True)),
            visible=bool(data.get("visible", True)),
            format=str(data.get("format") or ""),
            properties=dict(_mapping(data.get("properties"), "properties")),
        )


@dataclass
class TableSettings:
    """Client capabilities for a table."""
    allow_add: bool = True
    allow_edit: bool = True
    allow_delete: bool = True
    allow_sort: bool = True
    allow_filter: bool = True
    theme: str = "default"
    custom_settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowAdd": self.allow_add,
            "allowEdit": self.allow_edit,
            "allowDelete": self.allow_delete,
            "allowSort": self.allow_sort,
            "allowFilter": self.allow_filter,
            "theme": self.theme,
            "customSettings": dict(self.custom_settings),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TableSettings":
        data = _mapping(data, "settings")
        return cls(
            allow_add=bool(data.get("allowAdd", True)),
            allow_edit=bool(data.get("allowEdit", True)),
            allow_delete=bool(data.get("allowDelete", True)),
            allow_sort=bool(data.get("allowSort", True)),
            allow_filter=bool(data.get("allowFilter", True)),
            theme=str(data.get("theme") or "default"),
            custom_settings=dict(_mapping(data.get("customSettings"), "customSettings")),
        )


@dataclass
class TableData:
    """
    Flexible table.

    Rows are positionally indexed. Each row also carries a stable
    row id (``row_ids[i]`` belongs to ``rows[i]``) that survives
    deletes of other rows.
    """
    table_id: str
    table_name: str = ""
    columns: List[ColumnDefinition] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    settings: TableSettings = field(default_factory=TableSettings)
    last_modified: datetime = field(default_factory=_utcnow)
    row_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.rows = [coerce_row(r) for r in self.rows]
        if len(self.row_ids) != len(self.rows):
            self.row_ids = [new_row_id() for _ in self.rows]

    def copy(self) -> "TableData":
        return TableData(
            table_id=self.table_id,
            table_name=self.table_name,
            columns=[ColumnDefinition.from_dict(c.to_dict()) for c in self.columns],
            rows=[dict(r) for r in self.rows],
            settings=TableSettings.from_dict(self.settings.to_dict()),
            last_modified=self.last_modified,
            row_ids=list(self.row_ids),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tableId": self.table_id,
            "tableName": self.table_name,
            "columns": [c.to_dict() for c in self.columns],
            "rows": [dict(r) for r in self.rows],
            "rowIds": list(self.row_ids),
            "settings": self.settings.to_dict(),
            "lastModified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], table_id: Optional[str] = None) -> "TableData":
        data = _mapping(data, "table", default_empty=False)
        table_id = table_id or data.get("tableId")
        if not table_id:
            raise InvalidArgumentError("Table id is required", field="tableId")
        return cls(
            table_id=str(table_id),
            table_name=str(data.get("tableName") or ""),
            columns=[ColumnDefinition.from_dict(c) for c in _sequence(data.get("columns"), "columns")],
            rows=list(_sequence(data.get("rows"), "rows")),
            settings=TableSettings.from_dict(data.get("settings")),
            last_modified=_parse_datetime(data.get("lastModified")),
            row_ids=[str(r) for r in _sequence(data.get("rowIds"), "rowIds")],
        )


# ============================================================
# FIELDS
# ============================================================

@dataclass
class FieldData:
    """Rich page field with a typed value and a display format."""
    field_id: str
    field_name: str = ""
    value: CellValue = None
    data_type: str = "string"
    read_only: bool = False
    format: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.value = coerce_cell(self.value, self.field_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "fieldName": self.field_name,
            "value": self.value,
            "dataType": self.data_type,
            "readOnly": self.read_only,
            "format": self.format,
            "properties": dict(self.properties),
            "lastModified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], field_id: Optional[str] = None) -> "FieldData":
        data = _mapping(data, "field", default_empty=False)
        field_id = field_id or data.get("fieldId")
        if not field_id:
            raise InvalidArgumentError("Field id is required", field="fieldId")
        return cls(
            field_id=str(field_id),
            field_name=str(data.get("fieldName") or ""),
            value=data.get("value"),
            data_type=str(data.get("dataType") or "string"),
            read_only=bool(data.get("readOnly", False)),
            format=str(data.get("format") or ""),
            properties=dict(_mapping(data.get("properties"), "properties")),
            last_modified=_parse_datetime(data.get("lastModified")),
        )


# ============================================================
# EVENTS
# ============================================================

class EventTypes:
    """Well-known event type tags."""

    TABLE_ROW_ADDED = "table.row.added"
    TABLE_ROW_UPDATED = "table.row.updated"
    TABLE_ROW_DELETED = "table.row.deleted"
    TABLE_ROW_SELECTED = "table.row.selected"
    TABLE_CELL_CHANGED = "table.cell.changed"
    TABLE_SORTED = "table.sorted"
    TABLE_FILTERED = "table.filtered"

    FIELD_CHANGED = "field.changed"
    FIELD_FOCUSED = "field.focused"
    FIELD_BLURRED = "field.blurred"

    BUTTON_CLICKED = "button.clicked"
    TOGGLE_CHANGED = "toggle.changed"

    PAGE_LOADED = "page.loaded"
    PAGE_UNLOADED = "page.unloaded"
    PAGE_RESIZED = "page.resized"

    CUSTOM_ACTION = "custom.action"


@dataclass
class EventData:
    """User-originated UI event."""
    event_type: str
    source: str = ""
    source_id: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)
    user_id: str = ""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventId": self.event_id,
            "eventType": self.event_type,
            "source": self.source,
            "sourceId": self.source_id,
            "data": dict(self.data),
            "timestamp": self.timestamp,
            "userId": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventData":
        data = _mapping(data, "event", default_empty=False)
        if not data.get("eventType"):
            raise InvalidArgumentError("Event type is required", field="eventType")
        event = cls(
            event_type=str(data["eventType"]),
            source=str(data.get("source") or ""),
            source_id=str(data.get("sourceId") or ""),
            data=dict(_mapping(data.get("data"), "data")),
            timestamp=_parse_datetime(data.get("timestamp")),
            user_id=str(data.get("userId") or ""),
        )
        if data.get("eventId"):
            event.event_id = str(data["eventId"])
        return event


# ============================================================
# PAGE
# ============================================================

@dataclass
class WebPageData:
    """The whole page: tables, rich fields, recent events."""
    page_id: str = "trading_page"
    last_updated: datetime = field(default_factory=_utcnow)
    tables: Dict[str, TableData] = field(default_factory=dict)
    fields: Dict[str, FieldData] = field(default_factory=dict)
    events: List[EventData] = field(default_factory=list)
    custom_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageId": self.page_id,
            "lastUpdated": self.last_updated,
            "tables": {k: t.to_dict() for k, t in self.tables.items()},
            "fields": {k: f.to_dict() for k, f in self.fields.items()},
            "events": [e.to_dict() for e in self.events],
            "customData": dict(self.custom_data),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebPageData":
        data = _mapping(data, "page", default_empty=False)
        return cls(
            page_id=str(data.get("pageId") or "trading_page"),
            last_updated=_parse_datetime(data.get("lastUpdated")),
            tables={k: TableData.from_dict(v, table_id=k) for k, v in _mapping(data.get("tables"), "tables").items()},
            fields={k: FieldData.from_dict(v, field_id=k) for k, v in _mapping(data.get("fields"), "fields").items()},
            events=[EventData.from_dict(e) for e in _sequence(data.get("events"), "events")],
            custom_data=dict(_mapping(data.get("customData"), "customData")),
        )


@dataclass
class TableOperationRequest:
    """Row operation on a table: add, update, delete or select."""
    table_id: str
    operation: str
    row_index: Optional[int] = None
    column_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], table_id: Optional[str] = None) -> "TableOperationRequest":
        data = _mapping(data, "operation", default_empty=False)
        row_index = data.get("rowIndex")
        if row_index is not None and (isinstance(row_index, bool) or not isinstance(row_index, int)):
            raise InvalidArgumentError("rowIndex must be an integer", field="rowIndex", value=row_index)
        return cls(
            table_id=str(table_id or data.get("tableId") or ""),
            operation=str(data.get("operation") or ""),
            row_index=row_index,
            column_id=data.get("columnId") or None,
            data=dict(_mapping(data.get("data"), "data")),
            metadata=dict(_mapping(data.get("metadata"), "metadata")),
        )


@dataclass
class TableOperationResult:
    """Outcome of a table operation."""
    success: bool = False
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": dict(self.data),
            "errors": list(self.errors),
        }


# ============================================================
# UI BUS PAYLOADS
# ============================================================

@dataclass
class UiState:
    """Plain snapshot of the screen published to every subscriber."""
    fields: Dict[str, str] = field(default_factory=dict)
    tables: Dict[str, List[Row]] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": dict(self.fields),
            "tables": {k: [dict(r) for r in rows] for k, rows in self.tables.items()},
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UiState":
        data = _mapping(data, "state", default_empty=False)
        return cls(
            fields={str(k): str(v) for k, v in _mapping(data.get("fields"), "fields").items()},
            tables={
                str(k): [coerce_row(r) for r in _sequence(rows, k)]
                for k, rows in _mapping(data.get("tables"), "tables").items()
            },
            meta=dict(_mapping(data.get("meta"), "meta")),
        )


@dataclass
class UiEvent:
    """Named event raised by a client (button, toggle, ...)."""
    name: str
    args: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": dict(self.args)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UiEvent":
        data = _mapping(data, "event", default_empty=False)
        if not data.get("name"):
            raise InvalidArgumentError("Event name is required", field="name")
        return cls(
            name=str(data["name"]),
            args={str(k): str(v) for k, v in _mapping(data.get("args"), "args").items()},
        )


__all__ = [
    "CellValue",
    "Row",
    "COLUMN_TYPES",
    "coerce_cell",
    "coerce_row",
    "new_row_id",
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
]
