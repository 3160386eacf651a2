"""
WebSocket push hub for the trading screen.

============================================================
PROTOCOL
============================================================
Client -> server frames:
    {"invocationId": "1", "target": "ToggleLive", "arguments": ["MSFT"]}

Server -> caller completion:
    {"type": "Completion", "invocationId": "1", "result": ...}
    {"type": "Completion", "invocationId": "1", "error": "..."}

Server -> subscribers (push messages):
    {"type": "PositionsUpdate", "args": [...]}

A failed invocation also sends the caller an "Error" push message
("Failed to <action>: <text>").

============================================================
"""

import inspect
import json
import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from broadcast.encoding import to_jsonable
from broadcast.hub import Subscriber
from broadcast.notifications import Messages
from core.exceptions import InvalidArgumentError
from screen_state.models import (
    ColumnDefinition,
    EventData,
    FieldData,
    TableData,
    TableOperationRequest,
    UiEvent,
    UiState,
    WebPageData,
)
from trading_backend.models import OrderRequest, OrderResult, Position, position_from_dict
from web_interface.services import ScreenServices, get_ws_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Trading Hub"])

COMPLETION = "Completion"

# Verb phrase used in "Failed to <action>: <text>"
ERROR_ACTIONS = {
    "GetPositions": "get positions",
    "PlaceOrder": "place order",
    "ToggleLive": "toggle Live",
    "ToggleFlatten": "toggle Flatten",
    "AddPosition": "add position",
    "DeletePosition": "delete position",
    "UpdatePosition": "update position",
    "AddConsoleComment": "add console comment",
    "ClearConsole": "clear console",
    "RefreshWebPage": "refresh webpage",
    "GetWebPage": "get webpage",
    "GetWebPageData": "get webpage data",
    "ReceiveWebPageData": "update webpage data",
    "GetTableData": "get table data",
    "ReceiveTableUpdate": "update table",
    "GetFieldData": "get field data",
    "ReceiveFieldUpdate": "update field",
    "ReceiveEvent": "process event",
    "HandleTableOperation": "handle table operation",
    "HandleTableRowAdd": "handle table operation",
    "HandleTableRowUpdate": "handle table operation",
    "HandleTableRowDelete": "handle table operation",
    "HandleTableCellChange": "handle table operation",
    "GetTableColumns": "get table columns",
    "UpdateTableColumns": "update table columns",
    "GetGUIField": "get field",
    "PutGUIField": "put field",
    "GetAllGUIFields": "get fields",
    "ExecuteCommand": "execute command",
    "EmitUiEvent": "emit UI event",
    "PublishUiState": "publish UI state",
}


# =============================================================
# PAYLOAD PARSING
# =============================================================

def _require_mapping(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidArgumentError(f"{name} must be an object")
    return value


def order_from_dict(data: Any) -> OrderRequest:
    data = _require_mapping(data, "Order")
    try:
        quantity = int(data.get("quantity") or 0)
        price = Decimal(str(data.get("price") or 0))
    except (ValueError, TypeError, InvalidOperation):
        raise InvalidArgumentError("Invalid order quantity or price")
    return OrderRequest(
        symbol=str(data.get("symbol") or "").strip(),
        quantity=quantity,
        price=price,
        order_type=str(data.get("orderType") or "BUY").upper(),
    )


def position_from_payload(data: Any) -> Position:
    data = _require_mapping(data, "Position")
    try:
        return position_from_dict(data)
    except (ValueError, TypeError, InvalidOperation) as e:
        raise InvalidArgumentError(f"Invalid position: {e}")


# =============================================================
# SUBSCRIBER
# =============================================================

class WebSocketSubscriber(Subscriber):
    """Subscriber backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, subscriber_id: str):
        super().__init__(subscriber_id)
        self._websocket = websocket

    async def send(self, message: Dict[str, Any]) -> None:
        await self._websocket.send_json(message)


# =============================================================
# DISPATCHER
# =============================================================

class TradingHub:
    """Invocation targets of one connection."""

    def __init__(self, services: ScreenServices, connection_id: str):
        self._services = services
        self._connection_id = connection_id

        self._targets: Dict[str, Callable[..., Awaitable[Any]]] = {
            "GetPositions": self.get_positions,
            "PlaceOrder": self.place_order,
            "ToggleLive": self.toggle_live,
            "ToggleFlatten": self.toggle_flatten,
            "AddPosition": self.add_position,
            "DeletePosition": self.delete_position,
            "UpdatePosition": self.update_position,
            "AddConsoleComment": self.add_console_comment,
            "ClearConsole": self.clear_console,
            "RefreshWebPage": self.refresh_web_page,
            "GetWebPage": self.get_web_page,
            "GetWebPageData": self.get_web_page_data,
            "ReceiveWebPageData": self.receive_web_page_data,
            "GetTableData": self.get_table_data,
            "ReceiveTableUpdate": self.receive_table_update,
            "GetFieldData": self.get_field_data,
            "ReceiveFieldUpdate": self.receive_field_update,
            "ReceiveEvent": self.receive_event,
            "HandleTableOperation": self.handle_table_operation,
            "HandleTableRowAdd": self.handle_table_row_add,
            "HandleTableRowUpdate": self.handle_table_row_update,
            "HandleTableRowDelete": self.handle_table_row_delete,
            "HandleTableCellChange": self.handle_table_cell_change,
            "GetTableColumns": self.get_table_columns,
            "UpdateTableColumns": self.update_table_columns,
            "GetGUIField": self.get_gui_field,
            "PutGUIField": self.put_gui_field,
            "GetAllGUIFields": self.get_all_gui_fields,
            "ExecuteCommand": self.execute_command,
            "EmitUiEvent": self.emit_ui_event,
            "PublishUiState": self.publish_ui_state,
        }

    @property
    def targets(self) -> List[str]:
        return list(self._targets)

    # ---------------------------------------------------------
    # CONNECTION LIFECYCLE
    # ---------------------------------------------------------

    async def on_connected(self) -> None:
        logger.info(f"Client connected: {self._connection_id}")
        self._services.console.append(f"Client connected: {self._connection_id}")
        await self._services.commands.broadcast_positions()
        await self._services.commands.broadcast_console()

    async def on_disconnected(self) -> None:
        logger.info(f"Client disconnected: {self._connection_id}")
        self._services.console.append(f"Client disconnected: {self._connection_id}")
        await self._services.commands.broadcast_console()

    # ---------------------------------------------------------
    # DISPATCH
    # ---------------------------------------------------------

    async def dispatch(self, frame: Any) -> Dict[str, Any]:
        """Run one invocation frame and build its completion."""
        if not isinstance(frame, dict):
            return {"type": COMPLETION, "invocationId": None, "error": "Invalid invocation frame"}

        invocation_id = frame.get("invocationId")
        target = frame.get("target")
        arguments = frame.get("arguments") or []

        handler = self._targets.get(target) if isinstance(target, str) else None
        if handler is None:
            return {"type": COMPLETION, "invocationId": invocation_id, "error": f"Unknown target: {target}"}

        try:
            if not isinstance(arguments, list):
                raise InvalidArgumentError("arguments must be a list")
            try:
                inspect.signature(handler).bind(*arguments)
            except TypeError:
                raise InvalidArgumentError(f"Invalid arguments for {target}")
            result = await handler(*arguments)
        except Exception as e:
            logger.error(f"Hub invocation {target} failed: {e}")
            message = f"Failed to {ERROR_ACTIONS.get(target, target)}: {e}"
            if target == "RefreshWebPage":
                await self._services.hub.publish(Messages.ERROR, message)
            else:
                await self._services.hub.send_to(self._connection_id, Messages.ERROR, message)
            return {"type": COMPLETION, "invocationId": invocation_id, "error": str(e)}

        return {"type": COMPLETION, "invocationId": invocation_id, "result": to_jsonable(result)}

    async def _reply(self, method: str, *args: Any) -> None:
        await self._services.hub.send_to(self._connection_id, method, *args)

    async def _note(self, message: str) -> None:
        self._services.console.append(message)
        await self._services.commands.broadcast_console()

    # ---------------------------------------------------------
    # POSITIONS
    # ---------------------------------------------------------

    async def get_positions(self) -> None:
        await self._services.commands.broadcast_positions()

    async def place_order(self, order: Any) -> OrderResult:
        request = order_from_dict(order)
        result = await self._services.commands.submit_order(request)
        await self._reply("OrderResult", result)
        return result

    async def toggle_live(self, symbol: str) -> OrderResult:
        logger.info(f"Toggling Live for {symbol}")
        result = await self._services.backend.toggle_live(symbol)
        await self._reply("ToggleResult", result)
        await self._services.commands.broadcast_positions()
        await self._note(f"Live toggled for {symbol}: {result.message}")
        return result

    async def toggle_flatten(self, symbol: str) -> OrderResult:
        logger.info(f"Toggling Flatten for {symbol}")
        result = await self._services.backend.toggle_flatten(symbol)
        await self._reply("ToggleResult", result)
        await self._services.commands.broadcast_positions()
        await self._note(f"Flatten toggled for {symbol}: {result.message}")
        return result

    async def add_position(self, position: Any) -> OrderResult:
        parsed = position_from_payload(position)
        result = await self._services.backend.add_position(parsed)
        await self._reply("AddPositionResult", result)
        await self._services.commands.broadcast_positions()
        await self._note(f"Position added: {parsed.symbol} - {result.message}")
        return result

    async def delete_position(self, symbol: str) -> OrderResult:
        result = await self._services.backend.delete_position(symbol)
        await self._reply("DeletePositionResult", result)
        await self._services.commands.broadcast_positions()
        await self._note(f"Position deleted: {symbol} - {result.message}")
        return result

    async def update_position(self, symbol: str, position: Any) -> OrderResult:
        parsed = position_from_payload(position)
        parsed.symbol = symbol
        result = await self._services.backend.update_position(symbol, parsed)
        await self._reply("UpdatePositionResult", result)
        await self._services.commands.broadcast_positions()
        await self._note(f"Position updated: {symbol} - {result.message}")
        return result

    async def refresh_web_page(self, positions: Any) -> int:
        if not isinstance(positions, list):
            raise InvalidArgumentError("positions must be a list")
        parsed = [position_from_payload(p) for p in positions]
        logger.info(f"RefreshWebPage called with {len(parsed)} positions")
        await self._services.backend.replace_positions(parsed)
        await self._services.commands.broadcast_positions()
        await self._note(f"Webpage refreshed with {len(parsed)} positions")
        return len(parsed)

    async def get_web_page(self) -> List[Position]:
        positions = await self._services.backend.get_positions()
        return list(positions.values())

    # ---------------------------------------------------------
    # CONSOLE
    # ---------------------------------------------------------

    async def add_console_comment(self, message: str) -> None:
        self._services.console.append(message)
        await self._services.commands.broadcast_console()

    async def clear_console(self) -> None:
        await self._services.commands.clear_console()

    # ---------------------------------------------------------
    # PAGE MODEL
    # ---------------------------------------------------------

    async def get_web_page_data(self) -> WebPageData:
        return await self._services.page.get_web_page_data()

    async def receive_web_page_data(self, data: Any) -> None:
        page = WebPageData.from_dict(_require_mapping(data, "Page data"))
        await self._services.page.update_web_page_data(page)
        await self._services.notifications.notify_web_page_data(page)
        await self._note("Webpage data updated from client")

    async def get_table_data(self, table_id: str) -> Optional[TableData]:
        return await self._services.page.get_table_data(table_id)

    async def receive_table_update(self, table_id: str, table: Any) -> None:
        parsed = TableData.from_dict(_require_mapping(table, "Table data"), table_id=table_id)
        stored = await self._services.page.update_table_data(table_id, parsed)
        await self._services.notifications.notify_table_updated(table_id, stored)
        await self._note(f"Table {table_id} updated from client")

    async def get_field_data(self, field_id: str) -> Optional[FieldData]:
        return self._services.page.get_field_data(field_id)

    async def receive_field_update(self, field_id: str, page_field: Any) -> None:
        parsed = FieldData.from_dict(_require_mapping(page_field, "Field data"), field_id=field_id)
        stored = self._services.page.update_field_data(field_id, parsed)
        await self._services.notifications.notify_field_updated(field_id, stored)
        await self._note(f"Field {field_id} updated from client")

    async def receive_event(self, event: Any) -> None:
        parsed = EventData.from_dict(_require_mapping(event, "Event"))
        self._services.page.process_event(parsed)
        await self._services.notifications.notify_event(parsed)
        await self._note(f"Event received: {parsed.event_type} from {parsed.source}")

    # ---------------------------------------------------------
    # TABLE OPERATIONS
    # ---------------------------------------------------------

    async def handle_table_operation(self, request: Any) -> Dict[str, Any]:
        if isinstance(request, TableOperationRequest):
            parsed = request
        else:
            parsed = TableOperationRequest.from_dict(_require_mapping(request, "Table operation"))

        result = await self._services.page.handle_table_operation(parsed)
        await self._reply("TableOperationResult", result)

        table = await self._services.page.get_table_data(parsed.table_id)
        if table is not None:
            await self._services.notifications.notify_table_updated(parsed.table_id, table)
        await self._services.commands.broadcast_console()
        return result.to_dict()

    async def handle_table_row_add(self, table_id: str, row_data: Any) -> Dict[str, Any]:
        return await self.handle_table_operation(TableOperationRequest(
            table_id=table_id,
            operation="add",
            data=_require_mapping(row_data, "Row data"),
        ))

    async def handle_table_row_update(self, table_id: str, row_index: int, row_data: Any) -> Dict[str, Any]:
        return await self.handle_table_operation(TableOperationRequest(
            table_id=table_id,
            operation="update",
            row_index=row_index,
            data=_require_mapping(row_data, "Row data"),
        ))

    async def handle_table_row_delete(self, table_id: str, row_index: int) -> Dict[str, Any]:
        return await self.handle_table_operation(TableOperationRequest(
            table_id=table_id,
            operation="delete",
            row_index=row_index,
        ))

    async def handle_table_cell_change(
        self, table_id: str, row_index: int, column_id: str, new_value: Any
    ) -> Dict[str, Any]:
        return await self.handle_table_operation(TableOperationRequest(
            table_id=table_id,
            operation="update",
            row_index=row_index,
            column_id=column_id,
            data={"value": new_value},
        ))

    async def get_table_columns(self, table_id: str) -> List[ColumnDefinition]:
        return await self._services.page.get_table_columns(table_id)

    async def update_table_columns(self, table_id: str, columns: Any) -> None:
        if not isinstance(columns, list):
            raise InvalidArgumentError("columns must be a list")
        parsed = [ColumnDefinition.from_dict(_require_mapping(c, "Column")) for c in columns]
        await self._services.page.update_table_columns(table_id, parsed)
        await self._services.notifications.notify_columns_updated(table_id, parsed)
        await self._note(f"Table columns updated for {table_id}")

    # ---------------------------------------------------------
    # SCREEN FIELDS & COMMANDS
    # ---------------------------------------------------------

    async def get_gui_field(self, name: str) -> str:
        return self._services.commands.read_field(name)

    async def put_gui_field(self, name: str, value: Optional[str]) -> bool:
        return await self._services.commands.write_field(name, value)

    async def get_all_gui_fields(self) -> Dict[str, str]:
        return self._services.commands.read_all_fields()

    async def execute_command(self, action: str) -> Dict[str, Any]:
        result = await self._services.commands.execute(action)
        return {"success": result.success, "message": result.message, "data": result.data}

    # ---------------------------------------------------------
    # UI BUS
    # ---------------------------------------------------------

    async def emit_ui_event(self, event: Any) -> int:
        return await self._services.ui_bus.emit(UiEvent.from_dict(_require_mapping(event, "UI event")))

    async def publish_ui_state(self, state: Any) -> int:
        return await self._services.ui_bus.publish_state(UiState.from_dict(_require_mapping(state, "UI state")))


# =============================================================
# ENDPOINT
# =============================================================

@router.websocket("/hub/trading")
async def trading_hub(websocket: WebSocket, services: ScreenServices = Depends(get_ws_services)):
    await websocket.accept()

    connection_id = uuid.uuid4().hex
    hub = TradingHub(services, connection_id)
    services.hub.register(WebSocketSubscriber(websocket, connection_id))

    try:
        await hub.on_connected()
        while True:
            text = await websocket.receive_text()
            try:
                frame = json.loads(text)
            except json.JSONDecodeError:
                await websocket.send_json({"type": COMPLETION, "invocationId": None, "error": "Invalid JSON"})
                continue
            await websocket.send_json(await hub.dispatch(frame))
    except WebSocketDisconnect:
        pass
    finally:
        services.hub.unregister(connection_id)
        await hub.on_disconnected()


__all__ = [
    "ERROR_ACTIONS",
    "TradingHub",
    "WebSocketSubscriber",
    "order_from_dict",
    "position_from_payload",
    "router",
]
