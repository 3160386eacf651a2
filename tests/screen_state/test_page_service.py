"""
Tests for the web page interface service.

============================================================
PURPOSE
============================================================
Verify the page model and the positions table <-> backend sync.

============================================================
"""

from decimal import Decimal

import pytest

from core.exceptions import InvalidArgumentError, InvalidIndexError, NotFoundError
from screen_state.conversion import POSITIONS_TABLE_ID, EnhancedPosition
from screen_state.event_log import ConsoleLog
from screen_state.models import (
    ColumnDefinition,
    EventData,
    EventTypes,
    FieldData,
    TableData,
    TableOperationRequest,
    WebPageData,
)
from screen_state.page_service import WebPageInterfaceService


@pytest.fixture
def console(clock):
    return ConsoleLog(clock, startup_banner=False)


@pytest.fixture
def page(backend, console, clock):
    service = WebPageInterfaceService(backend=backend, console=console, clock=clock)
    service.tables.put("orders", TableData(
        table_id="orders",
        table_name="Orders",
        rows=[{"symbol": "AAPL"}, {"symbol": "MSFT"}],
    ))
    return service


def _messages(console):
    return [line.split("] ", 1)[1] for line in console.get_all()]


class TestPositionsTable:

    @pytest.mark.asyncio
    async def test_seeded_and_rendered_from_backend(self, page):
        table = await page.get_table_data(POSITIONS_TABLE_ID)
        assert [r["symbol"] for r in table.rows] == ["AAPL", "GOOGL", "MSFT"]

    @pytest.mark.asyncio
    async def test_replacing_table_replaces_book(self, page, backend):
        table = await page.get_table_data(POSITIONS_TABLE_ID)
        table.rows = [r for r in table.rows if r["symbol"] != "GOOGL"]

        await page.update_table_data(POSITIONS_TABLE_ID, table)

        assert set(await backend.get_positions()) == {"AAPL", "MSFT"}

    @pytest.mark.asyncio
    async def test_row_delete_syncs_backend(self, page, backend):
        await page.get_table_data(POSITIONS_TABLE_ID)

        await page.handle_table_operation(
            TableOperationRequest(table_id=POSITIONS_TABLE_ID, operation="delete", row_index=0)
        )

        assert backend.get_position("AAPL") is None

    @pytest.mark.asyncio
    async def test_cell_change_syncs_backend(self, page, backend):
        await page.get_table_data(POSITIONS_TABLE_ID)

        await page.handle_table_operation(TableOperationRequest(
            table_id=POSITIONS_TABLE_ID,
            operation="update",
            row_index=2,
            column_id="quantity",
            data={"value": 250},
        ))

        assert backend.get_position("MSFT").quantity == 250

    @pytest.mark.asyncio
    async def test_enhanced_positions(self, page, backend):
        await page.update_enhanced_positions([
            EnhancedPosition(symbol="IBM", quantity=5, avg_price=Decimal("120"), strategy="carry"),
        ])

        assert [p.symbol for p in page.get_enhanced_positions()] == ["IBM"]
        assert set(await backend.get_positions()) == {"IBM"}

    @pytest.mark.asyncio
    async def test_row_without_quantity_leaves_book_untouched(self, page, backend):
        with pytest.raises(InvalidArgumentError, match="Invalid position ZERO"):
            await page.handle_table_operation(TableOperationRequest(
                table_id=POSITIONS_TABLE_ID,
                operation="add",
                data={"symbol": "ZERO"},
            ))

        assert backend.get_position("ZERO") is None
        assert set(await backend.get_positions()) == {"AAPL", "GOOGL", "MSFT"}
        assert [r["symbol"] for r in page.tables.get(POSITIONS_TABLE_ID).rows] == ["AAPL", "GOOGL", "MSFT"]

    @pytest.mark.asyncio
    async def test_cell_change_to_zero_quantity_is_rejected(self, page, backend):
        with pytest.raises(InvalidArgumentError):
            await page.handle_table_operation(TableOperationRequest(
                table_id=POSITIONS_TABLE_ID,
                operation="update",
                row_index=0,
                column_id="quantity",
                data={"value": 0},
            ))

        assert backend.get_position("AAPL").quantity == 100


class TestTableOperations:

    @pytest.mark.asyncio
    async def test_add(self, page, console):
        result = await page.handle_table_operation(
            TableOperationRequest(table_id="orders", operation="add", data={"symbol": "IBM"})
        )

        assert result.success
        assert result.data["rowIndex"] == 2
        assert result.data["rowId"] == page.tables.row_id_at("orders", 2)
        assert _messages(console) == ["Row added to Orders"]

    @pytest.mark.asyncio
    async def test_update_without_value_merges_row(self, page):
        await page.handle_table_operation(TableOperationRequest(
            table_id="orders", operation="update", row_index=0, column_id="symbol",
            data={"symbol": "AMZN", "side": "BUY"},
        ))

        assert page.tables.get("orders").rows[0] == {"symbol": "AMZN", "side": "BUY"}

    @pytest.mark.asyncio
    async def test_delete(self, page, console):
        result = await page.handle_table_operation(
            TableOperationRequest(table_id="orders", operation="DELETE", row_index=1)
        )

        assert result.message == "Row deleted successfully"
        assert len(page.tables.get("orders").rows) == 1
        assert _messages(console) == ["Row 1 deleted from Orders"]

    @pytest.mark.asyncio
    async def test_select_changes_nothing(self, page):
        result = await page.handle_table_operation(TableOperationRequest(
            table_id="orders", operation="select", row_index=1, data={"symbol": "MSFT"},
        ))

        assert result.data == {"symbol": "MSFT"}
        assert len(page.tables.get("orders").rows) == 2

    @pytest.mark.asyncio
    async def test_bad_index(self, page):
        with pytest.raises(InvalidIndexError):
            await page.handle_table_operation(
                TableOperationRequest(table_id="orders", operation="delete", row_index=9)
            )
        assert len(page.tables.get("orders").rows) == 2

    @pytest.mark.asyncio
    async def test_unknown_table(self, page):
        with pytest.raises(NotFoundError):
            await page.handle_table_operation(
                TableOperationRequest(table_id="nope", operation="add")
            )

    @pytest.mark.asyncio
    async def test_unknown_operation(self, page):
        with pytest.raises(InvalidArgumentError) as exc_info:
            await page.handle_table_operation(
                TableOperationRequest(table_id="orders", operation="sort")
            )
        assert str(exc_info.value) == "Unknown operation: sort"


class TestPageModel:

    @pytest.mark.asyncio
    async def test_get_web_page_data(self, page):
        data = await page.get_web_page_data()

        assert set(data.tables) == {POSITIONS_TABLE_ID, "orders"}
        assert "account_balance" in data.fields
        assert data.page_id == "trading_page"

    @pytest.mark.asyncio
    async def test_update_web_page_data(self, page):
        incoming = WebPageData(
            tables={"notes": TableData(table_id="notes", rows=[{"text": "hi"}])},
            fields={"risk_limit": FieldData(field_id="risk_limit", value=5000)},
            events=[EventData(event_type=EventTypes.PAGE_LOADED, source="browser")],
        )

        await page.update_web_page_data(incoming)

        assert page.tables.get("notes").rows == [{"text": "hi"}]
        assert page.get_field_data("risk_limit").value == 5000
        assert len(page.events) == 1

    @pytest.mark.asyncio
    async def test_columns(self, page):
        await page.update_table_columns("orders", [ColumnDefinition("symbol", "Ticker")])
        columns = await page.get_table_columns("orders")
        assert columns[0].name == "Ticker"
        assert await page.get_table_columns("nope") == []

    def test_process_event(self, page, console):
        page.process_event(EventData(event_type=EventTypes.BUTTON_CLICKED, source="place_order"))

        assert len(page.events) == 1
        assert _messages(console) == ["Event processed: button.clicked from place_order"]
