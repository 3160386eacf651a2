"""
Screen State - Table Store.

============================================================
PURPOSE
============================================================
Thread-safe registry of flexible tables keyed by table id.

Row operations are available two ways:
- by position (row_index), checked against the current bounds
  at access time
- by stable row id, which stays valid when other rows are
  deleted

============================================================
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from core.exceptions import InvalidArgumentError, InvalidIndexError, NotFoundError
from .models import ColumnDefinition, Row, TableData, coerce_cell, coerce_row, new_row_id


logger = logging.getLogger(__name__)


class TableStore:
    """
    Tables keyed by id.

    Readers always get copies; writers go through the store so the
    lock and last_modified stamping stay in one place.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None):
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._tables: Dict[str, TableData] = {}

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    def _require(self, table_id: str) -> TableData:
        table = self._tables.get(table_id)
        if table is None:
            raise NotFoundError("Table", table_id)
        return table

    @staticmethod
    def _check_index(table: TableData, row_index: Any) -> int:
        if isinstance(row_index, bool) or not isinstance(row_index, int):
            raise InvalidIndexError(table.table_id, row_index, len(table.rows))
        if not 0 <= row_index < len(table.rows):
            raise InvalidIndexError(table.table_id, row_index, len(table.rows))
        return row_index

    def _index_of(self, table: TableData, row_id: str) -> int:
        try:
            return table.row_ids.index(row_id)
        except ValueError:
            raise NotFoundError("Row", row_id)

    def _touch(self, table: TableData) -> None:
        table.last_modified = self._clock.now()

    # --------------------------------------------------------
    # TABLES
    # --------------------------------------------------------

    def get(self, table_id: str) -> Optional[TableData]:
        with self._lock:
            table = self._tables.get(table_id)
            return table.copy() if table else None

    def put(self, table_id: str, table: TableData) -> TableData:
        """Insert or fully replace a table."""
        stored = table.copy()
        stored.table_id = table_id
        self._touch(stored)
        with self._lock:
            self._tables[table_id] = stored
        logger.debug(f"Table {table_id} replaced ({len(stored.rows)} rows)")
        return stored.copy()

    def exists(self, table_id: str) -> bool:
        with self._lock:
            return table_id in self._tables

    def table_ids(self) -> List[str]:
        with self._lock:
            return list(self._tables)

    def snapshot(self) -> Dict[str, TableData]:
        with self._lock:
            return {k: t.copy() for k, t in self._tables.items()}

    # --------------------------------------------------------
    # ROWS BY INDEX
    # --------------------------------------------------------

    def add_row(self, table_id: str, row_data: Dict[str, Any]) -> int:
        """Append a row and return its index."""
        row = coerce_row(row_data)
        with self._lock:
            table = self._require(table_id)
            table.rows.append(row)
            table.row_ids.append(new_row_id())
            self._touch(table)
            return len(table.rows) - 1

    def update_row(
        self,
        table_id: str,
        row_index: int,
        column_id: Optional[str],
        new_data: Dict[str, Any],
    ) -> Row:
        """
        Update one row.

        With a column id only that cell is replaced, from
        ``new_data["value"]``; otherwise every key of new_data is
        merged into the row.
        """
        with self._lock:
            table = self._require(table_id)
            index = self._check_index(table, row_index)
            return self._apply_update(table, index, column_id, new_data)

    def delete_row(self, table_id: str, row_index: int) -> Row:
        """Remove a row; the table is left untouched on a bad index."""
        with self._lock:
            table = self._require(table_id)
            index = self._check_index(table, row_index)
            table.row_ids.pop(index)
            removed = table.rows.pop(index)
            self._touch(table)
            return removed

    def _apply_update(
        self,
        table: TableData,
        index: int,
        column_id: Optional[str],
        new_data: Dict[str, Any],
    ) -> Row:
        if column_id:
            if "value" not in new_data:
                raise InvalidArgumentError("Cell update requires a value", field=column_id)
            value = coerce_cell(new_data["value"], column_id)
            table.rows[index][column_id] = value
        else:
            table.rows[index].update(coerce_row(new_data))
        self._touch(table)
        return dict(table.rows[index])

    # --------------------------------------------------------
    # ROWS BY ID
    # --------------------------------------------------------

    def row_id_at(self, table_id: str, row_index: int) -> str:
        with self._lock:
            table = self._require(table_id)
            return table.row_ids[self._check_index(table, row_index)]

    def update_row_by_id(
        self,
        table_id: str,
        row_id: str,
        column_id: Optional[str],
        new_data: Dict[str, Any],
    ) -> Row:
        with self._lock:
            table = self._require(table_id)
            return self._apply_update(table, self._index_of(table, row_id), column_id, new_data)

    def delete_row_by_id(self, table_id: str, row_id: str) -> Row:
        with self._lock:
            table = self._require(table_id)
            index = self._index_of(table, row_id)
            table.row_ids.pop(index)
            removed = table.rows.pop(index)
            self._touch(table)
            return removed

    # --------------------------------------------------------
    # COLUMNS
    # --------------------------------------------------------

    def get_columns(self, table_id: str) -> List[ColumnDefinition]:
        """Column definitions, or an empty list for an unknown table."""
        with self._lock:
            table = self._tables.get(table_id)
            if table is None:
                return []
            return [ColumnDefinition.from_dict(c.to_dict()) for c in table.columns]

    def set_columns(self, table_id: str, columns: List[ColumnDefinition]) -> None:
        with self._lock:
            table = self._require(table_id)
            table.columns = list(columns)
            self._touch(table)


__all__ = ["TableStore"]
