"""
Tests for the /api/trading REST surface.
"""

import pytest
from fastapi.testclient import TestClient

from web_interface.main import create_app


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


@pytest.fixture
def lenient_client(services):
    """Client that returns 500 responses instead of re-raising server errors."""
    with TestClient(create_app(services=services), raise_server_exceptions=False) as test_client:
        yield test_client


API = "/api/trading"


# ============================================================
# FIELDS
# ============================================================

class TestFieldEndpoints:

    def test_read_unwritten_field(self, client):
        response = client.get(f"{API}/screen/read/never_written")

        assert response.status_code == 200
        assert response.json()["value"] == ""
        assert response.json()["fieldName"] == "never_written"

    def test_write_then_read(self, client):
        write = client.post(f"{API}/screen/write/symbol_input", json={"value": "AAPL"})
        read = client.get(f"{API}/screen/read/symbol_input")

        assert write.json()["success"] is True
        assert read.json()["value"] == "AAPL"

    def test_read_all(self, client):
        fields = client.get(f"{API}/screen/read_all").json()["fields"]
        assert fields["order_type"] == "BUY"


# ============================================================
# COMMANDS
# ============================================================

class TestCommandEndpoints:

    def test_place_order_closes_position(self, client, services):
        for name, value in (
            ("symbol_input", "AAPL"),
            ("quantity_input", "100"),
            ("price_input", "160"),
            ("order_type", "SELL"),
        ):
            client.post(f"{API}/screen/write/{name}", json={"value": value})

        response = client.post(f"{API}/command/place_order")
        positions = client.get(f"{API}/positions").json()["positions"]

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert len(response.json()["data"]["orderId"]) == 8
        assert "AAPL" not in positions

    def test_place_order_with_empty_fields(self, client):
        response = client.post(f"{API}/command/place_order")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Symbol is required",
            "errorType": "InvalidArgumentError",
        }
        last = client.get(f"{API}/screen/read/last_command").json()["value"]
        assert last == "PLACE_ORDER_FAILED"

    def test_unknown_command(self, client):
        response = client.post(f"{API}/command/launch")

        assert response.status_code == 404
        assert response.json()["message"] == "Unknown command: launch"

    def test_refresh_positions(self, client):
        response = client.post(f"{API}/command/refresh_positions")
        assert response.json()["data"]["positionCount"] == 3


# ============================================================
# ROWS
# ============================================================

class TestRowEndpoints:

    def test_add_row(self, client):
        response = client.post(f"{API}/rows/add", json={"symbol": "TSLA", "quantity": 10, "avgPrice": 250})

        assert response.status_code == 200
        assert response.json()["message"] == "Position added successfully: TSLA (10 shares @ $250.00)"

    def test_add_zero_quantity(self, client):
        response = client.post(f"{API}/rows/add", json={"symbol": "TSLA", "quantity": 0, "avgPrice": 250})

        assert response.status_code == 400
        messages = client.get(f"{API}/console/messages").json()["messages"]
        assert messages[-1].endswith("Failed to add position: Quantity cannot be zero")

    def test_add_without_symbol(self, client):
        response = client.post(f"{API}/rows/add", json={"quantity": 1, "avgPrice": 1})
        assert response.status_code == 400

    def test_add_duplicate(self, client):
        response = client.post(f"{API}/rows/add", json={"symbol": "AAPL", "quantity": 1, "avgPrice": 1})

        assert response.status_code == 409
        assert response.json()["errorType"] == "DuplicateSymbolError"

    def test_malformed_body(self, client):
        response = client.post(f"{API}/rows/add", json={"symbol": "TSLA", "quantity": "many"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_update_and_delete(self, client, services):
        update = client.put(f"{API}/rows/update/AAPL", json={"quantity": 5, "avgPrice": 151, "live": True})
        delete = client.delete(f"{API}/rows/delete/GOOGL")

        assert update.status_code == 200
        assert services.backend.get_position("AAPL").quantity == 5
        assert services.backend.get_position("AAPL").live.value == "ON"
        assert delete.status_code == 200
        assert services.backend.get_position("GOOGL") is None

    def test_delete_unknown(self, client):
        response = client.delete(f"{API}/rows/delete/ZZZZ")

        assert response.status_code == 404
        assert response.json()["message"] == "Position for ZZZZ not found"

    def test_toggle_live_twice(self, client):
        first = client.post(f"{API}/rows/toggle-live/MSFT").json()
        second = client.post(f"{API}/rows/toggle-live/MSFT").json()

        assert first["message"] == "LIVE set to ON for MSFT"
        assert second["message"] == "LIVE set to OFF for MSFT"

    def test_toggle_flatten(self, client, recorder):
        response = client.post(f"{API}/rows/toggle-flatten/AAPL")

        assert response.json()["message"] == "FLATTEN set to TRUE for AAPL"
        assert recorder.of_type("PositionToggled")[0]["args"][0]["newValue"] == "TRUE"


# ============================================================
# DATA
# ============================================================

class TestDataEndpoints:

    def test_positions_refreshes_fields(self, client):
        summary = client.get(f"{API}/positions").json()

        assert summary["accountBalance"] == 50000.0
        assert set(summary["positions"]) == {"AAPL", "GOOGL", "MSFT"}
        balance = client.get(f"{API}/screen/read/account_balance").json()["value"]
        assert balance == "50000.00"

    def test_status(self, client):
        status = client.get(f"{API}/status").json()

        assert status["isConnected"] is True
        assert status["status"] == "Connected and Ready"

    def test_unexpected_error_is_500(self, client, services, monkeypatch):
        async def broken():
            raise RuntimeError("book locked")

        monkeypatch.setattr(services.backend, "get_account_summary", broken)

        response = client.get(f"{API}/positions")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Get positions error: book locked",
            "errorType": "InternalServiceError",
        }

    def test_uncaught_error_carries_text(self, lenient_client, services, monkeypatch):
        def broken(event):
            raise TypeError("event sink closed")

        monkeypatch.setattr(services.page, "process_event", broken)

        response = lenient_client.post(f"{API}/events", json={"eventType": "button.clicked"})

        assert response.status_code == 500
        assert response.json()["message"] == "event sink closed"
        assert response.json()["errorType"] == "TypeError"


# ============================================================
# CONSOLE
# ============================================================

class TestConsoleEndpoints:

    def test_add_and_recent(self, client, clock):
        client.post(f"{API}/console/add", json={"message": "hello"})

        recent = client.get(f"{API}/console/recent", params={"count": 1}).json()

        assert recent["messages"] == [f"[{clock.format_hms()}] hello"]
        assert recent["count"] == 1

    def test_add_empty(self, client):
        response = client.post(f"{API}/console/add", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "Message is required"

    def test_clear(self, client):
        client.post(f"{API}/console/add", json={"message": "hello"})
        client.post(f"{API}/console/clear")

        messages = client.get(f"{API}/console/messages").json()["messages"]
        assert len(messages) == 1
        assert messages[0].endswith("Console cleared")


# ============================================================
# TABLES & EVENTS
# ============================================================

class TestTableEndpoints:

    def test_positions_table(self, client):
        table = client.get(f"{API}/tables/positions_table").json()

        assert table["tableId"] == "positions_table"
        assert [r["symbol"] for r in table["rows"]] == ["AAPL", "GOOGL", "MSFT"]

    def test_unknown_table(self, client):
        assert client.get(f"{API}/tables/nope").status_code == 404

    def test_put_then_operate(self, client):
        put = client.put(f"{API}/tables/orders", json={"tableName": "Orders", "rows": [{"symbol": "AAPL"}]})
        add = client.post(f"{API}/tables/orders/operation", json={"operation": "add", "data": {"symbol": "IBM"}})
        bad = client.post(f"{API}/tables/orders/operation", json={"operation": "delete", "rowIndex": 7})

        assert put.json()["tableId"] == "orders"
        assert add.json()["success"] is True
        assert add.json()["data"]["rowIndex"] == 1
        assert bad.status_code == 400
        assert bad.json()["errorType"] == "InvalidIndexError"
        assert len(client.get(f"{API}/tables/orders").json()["rows"]) == 2

    def test_unknown_operation(self, client):
        client.put(f"{API}/tables/orders", json={"rows": []})
        response = client.post(f"{API}/tables/orders/operation", json={"operation": "sort"})
        assert response.status_code == 400

    def test_columns(self, client):
        columns = client.get(f"{API}/tables/positions_table/columns").json()
        assert len(columns) == 16

        client.put(f"{API}/tables/orders", json={"rows": []})
        updated = client.put(
            f"{API}/tables/orders/columns",
            json=[{"id": "symbol", "name": "Ticker", "dataType": "string"}],
        )
        assert updated.json()[0]["name"] == "Ticker"

    def test_columns_of_unknown_table(self, client):
        assert client.get(f"{API}/tables/nope/columns").status_code == 404

    @pytest.mark.parametrize("body", [
        {"columns": "ab"},
        {"columns": ["symbol"]},
        {"rows": {"symbol": "AAPL"}},
        {"rows": [1, 2]},
        {"settings": "dark"},
    ])
    def test_malformed_table_is_400(self, client, body):
        response = client.put(f"{API}/tables/t1", json=body)

        assert response.status_code == 400
        assert response.json()["errorType"] == "InvalidArgumentError"
        assert client.get(f"{API}/tables/t1").status_code == 404

    def test_malformed_columns_are_400(self, client):
        client.put(f"{API}/tables/orders", json={"rows": []})

        response = client.put(f"{API}/tables/orders/columns", json=[{"id": "symbol", "properties": [1]}])

        assert response.status_code == 400
        assert response.json()["message"] == "properties must be an object"

    def test_positions_row_without_quantity_is_rejected(self, client, services):
        response = client.post(
            f"{API}/tables/positions_table/operation",
            json={"operation": "add", "data": {"symbol": "ZERO"}},
        )

        assert response.status_code == 400
        assert services.backend.get_position("ZERO") is None
        assert [r["symbol"] for r in client.get(f"{API}/tables/positions_table").json()["rows"]] == [
            "AAPL", "GOOGL", "MSFT",
        ]


class TestEventEndpoints:

    def test_post_and_list(self, client):
        posted = client.post(f"{API}/events", json={"eventType": "button.clicked", "source": "place_order"})
        events = client.get(f"{API}/events").json()

        assert posted.json()["eventType"] == "button.clicked"
        assert [e["eventId"] for e in events] == [posted.json()["eventId"]]

    def test_event_type_required(self, client):
        response = client.post(f"{API}/events", json={"source": "x"})
        assert response.status_code == 400

    def test_event_data_must_be_object(self, client):
        response = client.post(f"{API}/events", json={"eventType": "x", "data": [1, 2]})

        assert response.status_code == 400
        assert response.json()["message"] == "data must be an object"
        assert client.get(f"{API}/events").json() == []


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["subscribers"] == 0
