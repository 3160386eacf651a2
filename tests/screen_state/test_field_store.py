"""
Tests for the screen field store and the rich page field registry.
"""

from decimal import Decimal

import pytest

from core.exceptions import InvalidArgumentError
from screen_state.field_store import PageFieldRegistry, ScreenFields, ScreenFieldStore
from screen_state.models import FieldData


@pytest.fixture
def store(clock):
    return ScreenFieldStore(clock)


class TestBasicAccess:

    def test_never_written_field_reads_empty(self, store):
        assert store.get("no_such_field") == ""
        assert not store.exists("no_such_field")

    def test_set_then_get(self, store):
        assert store.set("symbol_input", "AAPL") is True
        assert store.get("symbol_input") == "AAPL"

    def test_set_creates_field(self, store):
        store.set("custom_note", "hello")
        assert store.exists("custom_note")

    def test_none_stored_as_empty(self, store):
        store.set("symbol_input", None)
        assert store.get("symbol_input") == ""

    def test_invalid_name_rejected(self, store):
        assert store.set("", "x") is False

    def test_clear_keeps_field(self, store):
        store.set("symbol_input", "AAPL")
        store.clear("symbol_input")
        assert store.exists("symbol_input")
        assert store.get("symbol_input") == ""

    def test_get_all_is_a_copy(self, store):
        snapshot = store.get_all()
        snapshot["symbol_input"] = "CHANGED"
        assert store.get("symbol_input") == ""

    def test_defaults(self, store):
        fields = store.get_all()
        assert fields[ScreenFields.ORDER_TYPE] == "BUY"
        assert fields[ScreenFields.STATUS_DISPLAY] == "System Ready"
        assert fields[ScreenFields.LAST_COMMAND] == "None"
        assert fields[ScreenFields.CONNECTION_STATUS] == "Connected"

    def test_unseeded_store_is_empty(self, clock):
        assert ScreenFieldStore(clock, seed_defaults=False).get_all() == {}


class TestStatusHelpers:

    def test_update_status_stamps_time(self, store, clock):
        clock.advance(seconds=5)
        store.update_status("Working")

        assert store.get(ScreenFields.STATUS_DISPLAY) == "Working"
        assert store.get(ScreenFields.LAST_UPDATED) == clock.format_hms()

    def test_update_last_command(self, store):
        store.update_last_command("CLEAR_FIELDS")
        assert store.get(ScreenFields.LAST_COMMAND) == "CLEAR_FIELDS"


class TestOrderFromFields:

    def _fill(self, store, symbol="aapl", quantity="10", price="150.50", order_type="buy"):
        store.set(ScreenFields.SYMBOL_INPUT, symbol)
        store.set(ScreenFields.QUANTITY_INPUT, quantity)
        store.set(ScreenFields.PRICE_INPUT, price)
        store.set(ScreenFields.ORDER_TYPE, order_type)

    def test_builds_order(self, store):
        self._fill(store)

        order = store.get_order_from_fields()

        assert order.symbol == "AAPL"
        assert order.quantity == 10
        assert order.price == Decimal("150.50")
        assert order.order_type == "BUY"

    @pytest.mark.parametrize("kwargs, message", [
        ({"symbol": " "}, "Symbol is required"),
        ({"quantity": "abc"}, "Valid quantity is required"),
        ({"quantity": "-3"}, "Valid quantity is required"),
        ({"price": "free"}, "Valid price is required"),
        ({"price": "0"}, "Valid price is required"),
        ({"order_type": "HOLD"}, "Order type must be BUY or SELL"),
    ])
    def test_validation_messages(self, store, kwargs, message):
        self._fill(store, **kwargs)

        with pytest.raises(InvalidArgumentError) as exc_info:
            store.get_order_from_fields()

        assert str(exc_info.value) == message


class TestPageFieldRegistry:

    def test_seeded_fields(self, clock):
        registry = PageFieldRegistry(clock)
        assert registry.get("account_balance").value == Decimal("50000.00")
        assert registry.get("total_pl").format == "C2"

    def test_put_stamps_and_rekeys(self, clock):
        registry = PageFieldRegistry(clock)

        stored = registry.put("risk_limit", FieldData(field_id="ignored", value=1000))

        assert stored.field_id == "risk_limit"
        assert stored.last_modified == clock.now()
        assert "risk_limit" in registry.snapshot()

    def test_unknown_field(self, clock):
        assert PageFieldRegistry(clock).get("nope") is None
