"""
Screen State - Web Page Interface Service.

============================================================
PURPOSE
============================================================
Serves the flexible page model (tables, rich fields, events) and
keeps the positions table in step with the trading backend:

- reading positions_table re-renders it from the backend book
- writing positions_table (or operating on its rows) pushes the
  table contents back into the backend

============================================================
"""

import logging
import threading
from typing import List, Optional

from core.clock import ClockProtocol, SystemClock
from core.exceptions import InvalidArgumentError, NotFoundError
from trading_backend.mock import MockTradingSystem
from .conversion import (
    POSITIONS_TABLE_ID,
    EnhancedPosition,
    default_positions_table,
    positions_to_table,
    table_to_positions,
)
from .event_log import ConsoleLog, EventLog
from .field_store import PageFieldRegistry
from .models import (
    ColumnDefinition,
    EventData,
    FieldData,
    TableData,
    TableOperationRequest,
    TableOperationResult,
    WebPageData,
)
from .table_store import TableStore


logger = logging.getLogger(__name__)


TABLE_OPERATIONS = ("add", "update", "delete", "select")


class WebPageInterfaceService:
    """
    Page model service.

    Owns no state itself; every store is injected.
    """

    def __init__(
        self,
        backend: MockTradingSystem,
        console: ConsoleLog,
        tables: Optional[TableStore] = None,
        page_fields: Optional[PageFieldRegistry] = None,
        events: Optional[EventLog] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._backend = backend
        self._console = console
        self._clock = clock or SystemClock()
        self._tables = tables or TableStore(self._clock)
        self._page_fields = page_fields or PageFieldRegistry(self._clock)
        self._events = events or EventLog()
        self._enhanced_lock = threading.Lock()
        self._enhanced_positions: List[EnhancedPosition] = []

        if not self._tables.exists(POSITIONS_TABLE_ID):
            self._tables.put(POSITIONS_TABLE_ID, default_positions_table())

    @property
    def tables(self) -> TableStore:
        return self._tables

    @property
    def events(self) -> EventLog:
        return self._events

    # --------------------------------------------------------
    # POSITIONS TABLE SYNC
    # --------------------------------------------------------

    async def refresh_positions_table(self) -> TableData:
        """Re-render positions_table from the backend book."""
        summary = await self._backend.get_account_summary()
        base = self._tables.get(POSITIONS_TABLE_ID)
        table = positions_to_table(summary.positions.values(), base=base, now=self._clock.now())
        return self._tables.put(POSITIONS_TABLE_ID, table)

    async def _sync_backend_from_table(self, table: TableData) -> None:
        positions = table_to_positions(table)
        try:
            count = await self._backend.replace_positions(positions.values())
        except InvalidArgumentError:
            # Book unchanged; drop the rejected rows from the table too
            await self.refresh_positions_table()
            raise
        logger.info(f"Trading system synced from {table.table_id} ({count} positions)")

    # --------------------------------------------------------
    # PAGE
    # --------------------------------------------------------

    async def get_web_page_data(self) -> WebPageData:
        await self.refresh_positions_table()
        return WebPageData(
            page_id="trading_page",
            last_updated=self._clock.now(),
            tables=self._tables.snapshot(),
            fields=self._page_fields.snapshot(),
            events=self._events.get_all(),
        )

    async def update_web_page_data(self, data: WebPageData) -> None:
        """Merge a client page: tables and fields replaced by key, events processed."""
        for table_id, table in data.tables.items():
            await self.update_table_data(table_id, table)

        for field_id, page_field in data.fields.items():
            self.update_field_data(field_id, page_field)

        for event in data.events:
            self.process_event(event)

        logger.info("Webpage data updated successfully")

    # --------------------------------------------------------
    # TABLES
    # --------------------------------------------------------

    async def get_table_data(self, table_id: str) -> Optional[TableData]:
        if table_id == POSITIONS_TABLE_ID:
            return await self.refresh_positions_table()
        return self._tables.get(table_id)

    async def update_table_data(self, table_id: str, table: TableData) -> TableData:
        stored = self._tables.put(table_id, table)
        if table_id == POSITIONS_TABLE_ID:
            await self._sync_backend_from_table(stored)
        logger.info(f"Table data updated for {table_id}")
        return stored

    async def get_table_columns(self, table_id: str) -> List[ColumnDefinition]:
        table = await self.get_table_data(table_id)
        return table.columns if table else []

    async def update_table_columns(self, table_id: str, columns: List[ColumnDefinition]) -> None:
        self._tables.set_columns(table_id, columns)
        logger.info(f"Columns updated for {table_id} ({len(columns)} columns)")

    async def handle_table_operation(self, request: TableOperationRequest) -> TableOperationResult:
        """
        Apply a row operation.

        Operations on positions_table run against a fresh render of
        the backend book.

        Raises:
            NotFoundError: Unknown table
            InvalidArgumentError: Unknown operation, or a positions_table
                row that is not a valid position
            InvalidIndexError: Row index out of bounds (update/delete)
        """
        if request.table_id == POSITIONS_TABLE_ID:
            await self.refresh_positions_table()

        table = self._tables.get(request.table_id)
        if table is None:
            raise NotFoundError("Table", request.table_id)

        operation = request.operation.lower()
        if operation not in TABLE_OPERATIONS:
            raise InvalidArgumentError(
                f"Unknown operation: {request.operation}",
                field="operation",
                value=request.operation,
            )

        if operation == "add":
            index = self._tables.add_row(request.table_id, request.data)
            self._console.append(f"Row added to {table.table_name}")
            result = TableOperationResult(
                success=True,
                message="Row added successfully",
                data={
                    "rowIndex": index,
                    "rowId": self._tables.row_id_at(request.table_id, index),
                },
            )

        elif operation == "update":
            column_id = request.column_id if "value" in request.data else None
            self._tables.update_row(request.table_id, request.row_index, column_id, request.data)
            self._console.append(f"Row {request.row_index} updated in {table.table_name}")
            result = TableOperationResult(
                success=True,
                message="Row updated successfully",
                data={"rowIndex": request.row_index},
            )

        elif operation == "delete":
            self._tables.delete_row(request.table_id, request.row_index)
            self._console.append(f"Row {request.row_index} deleted from {table.table_name}")
            result = TableOperationResult(success=True, message="Row deleted successfully")

        else:
            self._console.append(f"Row {request.row_index} selected in {table.table_name}")
            return TableOperationResult(success=True, message="Row selected", data=dict(request.data))

        if request.table_id == POSITIONS_TABLE_ID:
            await self._sync_backend_from_table(self._tables.get(POSITIONS_TABLE_ID))

        return result

    # --------------------------------------------------------
    # FIELDS
    # --------------------------------------------------------

    def get_field_data(self, field_id: str) -> Optional[FieldData]:
        return self._page_fields.get(field_id)

    def update_field_data(self, field_id: str, page_field: FieldData) -> FieldData:
        stored = self._page_fields.put(field_id, page_field)
        logger.info(f"Field data updated for {field_id}")
        return stored

    # --------------------------------------------------------
    # EVENTS
    # --------------------------------------------------------

    def process_event(self, event: EventData) -> None:
        self._events.append(event)
        self._console.append(f"Event processed: {event.event_type} from {event.source}")
        logger.info(f"Event processed: {event.event_type} from {event.source}")

    # --------------------------------------------------------
    # ENHANCED POSITIONS
    # --------------------------------------------------------

    def get_enhanced_positions(self) -> List[EnhancedPosition]:
        with self._enhanced_lock:
            return list(self._enhanced_positions)

    async def update_enhanced_positions(self, positions: List[EnhancedPosition]) -> TableData:
        """Replace the enhanced list and re-render positions_table from it."""
        with self._enhanced_lock:
            self._enhanced_positions = list(positions)

        base = self._tables.get(POSITIONS_TABLE_ID) or default_positions_table()
        table = TableData(
            table_id=POSITIONS_TABLE_ID,
            table_name=base.table_name,
            columns=base.columns,
            rows=[p.to_row() for p in positions],
            settings=base.settings,
        )
        return await self.update_table_data(POSITIONS_TABLE_ID, table)


__all__ = ["WebPageInterfaceService", "TABLE_OPERATIONS"]
