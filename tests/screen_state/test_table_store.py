"""
Tests for the flexible table store.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.exceptions import InvalidArgumentError, InvalidIndexError, NotFoundError
from screen_state.models import ColumnDefinition, TableData
from screen_state.table_store import TableStore


@pytest.fixture
def store(clock):
    table_store = TableStore(clock)
    table_store.put("orders", TableData(
        table_id="orders",
        table_name="Orders",
        columns=[ColumnDefinition("symbol", "Symbol"), ColumnDefinition("qty", "Qty", "number")],
        rows=[{"symbol": "AAPL", "qty": 10}, {"symbol": "MSFT", "qty": 20}],
    ))
    return table_store


class TestTables:

    def test_get_returns_copy(self, store):
        table = store.get("orders")
        table.rows.append({"symbol": "X"})
        assert len(store.get("orders").rows) == 2

    def test_put_stamps_last_modified(self, store, clock):
        clock.advance(minutes=1)
        stored = store.put("blank", TableData(table_id="other"))

        assert stored.table_id == "blank"
        assert stored.last_modified == clock.now()

    def test_unknown_table(self, store):
        assert store.get("nope") is None
        assert not store.exists("nope")
        with pytest.raises(NotFoundError):
            store.add_row("nope", {"a": 1})

    def test_table_ids(self, store):
        assert store.table_ids() == ["orders"]


class TestRowsByIndex:

    def test_add_row_returns_index(self, store):
        index = store.add_row("orders", {"symbol": "TSLA", "qty": 5})
        assert index == 2
        assert store.get("orders").rows[2]["symbol"] == "TSLA"

    def test_add_row_rejects_unsupported_cell(self, store):
        with pytest.raises(InvalidArgumentError):
            store.add_row("orders", {"symbol": ["not", "a", "cell"]})
        assert len(store.get("orders").rows) == 2

    def test_update_whole_row_merges(self, store):
        row = store.update_row("orders", 0, None, {"qty": 15, "note": "resized"})
        assert row == {"symbol": "AAPL", "qty": 15, "note": "resized"}

    def test_update_single_cell(self, store):
        store.update_row("orders", 1, "qty", {"value": Decimal("22.5")})
        assert store.get("orders").rows[1]["qty"] == Decimal("22.5")

    def test_cell_update_requires_value(self, store):
        with pytest.raises(InvalidArgumentError):
            store.update_row("orders", 1, "qty", {})

    def test_delete_row(self, store):
        removed = store.delete_row("orders", 0)
        assert removed["symbol"] == "AAPL"
        assert [r["symbol"] for r in store.get("orders").rows] == ["MSFT"]

    @pytest.mark.parametrize("index", [2, 10, -1, None, "0", True])
    def test_delete_bad_index_leaves_table_unchanged(self, store, index):
        before = store.get("orders")

        with pytest.raises(InvalidIndexError):
            store.delete_row("orders", index)

        after = store.get("orders")
        assert after.rows == before.rows
        assert after.row_ids == before.row_ids

    def test_update_bad_index(self, store):
        with pytest.raises(InvalidIndexError):
            store.update_row("orders", 5, None, {"qty": 1})


class TestRowsById:

    def test_row_id_survives_other_deletes(self, store):
        msft_id = store.row_id_at("orders", 1)

        store.delete_row("orders", 0)
        store.update_row_by_id("orders", msft_id, "qty", {"value": 99})

        assert store.get("orders").rows[0] == {"symbol": "MSFT", "qty": 99}

    def test_delete_by_id(self, store):
        aapl_id = store.row_id_at("orders", 0)

        removed = store.delete_row_by_id("orders", aapl_id)

        assert removed["symbol"] == "AAPL"
        assert aapl_id not in store.get("orders").row_ids

    def test_unknown_row_id(self, store):
        with pytest.raises(NotFoundError):
            store.delete_row_by_id("orders", "missing")

    def test_new_rows_get_ids(self, store):
        store.add_row("orders", {"symbol": "IBM"})
        table = store.get("orders")
        assert len(set(table.row_ids)) == 3


class TestColumns:

    def test_get_columns(self, store):
        assert [c.id for c in store.get_columns("orders")] == ["symbol", "qty"]

    def test_unknown_table_has_no_columns(self, store):
        assert store.get_columns("nope") == []

    def test_set_columns(self, store):
        store.set_columns("orders", [ColumnDefinition("when", "When", "date")])
        assert store.get_columns("orders")[0].data_type == "date"

    def test_set_columns_unknown_table(self, store):
        with pytest.raises(NotFoundError):
            store.set_columns("nope", [])

    def test_invalid_column_type(self):
        with pytest.raises(InvalidArgumentError):
            ColumnDefinition("x", "X", "blob")


class TestCellValues:

    def test_datetime_cells_allowed(self, store):
        stamp = datetime(2025, 1, 1, tzinfo=timezone.utc)
        index = store.add_row("orders", {"symbol": "IBM", "filledAt": stamp, "note": None})
        assert store.get("orders").rows[index]["filledAt"] == stamp
