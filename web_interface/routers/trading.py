"""
FastAPI Router for the trading screen.

Provides the REST surface of the screen interface:
- Read / write screen fields
- Button callbacks (place order, clear fields, refresh positions)
- Position row commands
- Console messages
- Flexible tables and UI events

Domain errors (ScreenInterfaceError) propagate to the application's
exception handler, which answers with the mapped status code.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query

from broadcast.encoding import to_jsonable
from core.exceptions import (
    InternalServiceError,
    InvalidArgumentError,
    NotFoundError,
    ScreenInterfaceError,
)
from screen_state.models import ColumnDefinition, EventData, TableData, TableOperationRequest
from web_interface.commands import CommandResult
from web_interface.schemas import (
    AddCommentRequest,
    AllFieldsResponse,
    CommandResponse,
    ConsoleResponse,
    FieldReadResponse,
    FieldWriteRequest,
    FieldWriteResponse,
    PositionRequest,
    StatusResponse,
    TableOperationBody,
    TableOperationResponse,
)
from web_interface.services import ScreenServices, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trading", tags=["Trading Screen"])


def command_response(result: CommandResult) -> CommandResponse:
    return CommandResponse(
        success=result.success,
        message=result.message,
        data=to_jsonable(result.data),
    )


def internal_error(context: str, error: Exception) -> InternalServiceError:
    logger.exception(f"Error in {context}")
    return InternalServiceError(context, error)


# =============================================================
# SCREEN FIELD ENDPOINTS
# =============================================================

@router.get("/screen/read/{field_name}", response_model=FieldReadResponse)
def read_field(field_name: str, services: ScreenServices = Depends(get_services)):
    """Read a screen field (never-written fields read as "")."""
    value = services.commands.read_field(field_name)
    return FieldReadResponse(field_name=field_name, value=value, success=True)


@router.post("/screen/write/{field_name}", response_model=FieldWriteResponse)
async def write_field(
    field_name: str,
    request: FieldWriteRequest,
    services: ScreenServices = Depends(get_services),
):
    """Write a screen field, creating it when missing."""
    value = request.value or ""
    success = await services.commands.write_field(field_name, value)
    return FieldWriteResponse(field_name=field_name, value=value, success=success)


@router.get("/screen/read_all", response_model=AllFieldsResponse)
def read_all_fields(services: ScreenServices = Depends(get_services)):
    return AllFieldsResponse(fields=services.commands.read_all_fields(), success=True)


# =============================================================
# BUTTON CALLBACK ENDPOINTS
# =============================================================

@router.post("/command/{action}", response_model=CommandResponse)
async def execute_command(action: str, services: ScreenServices = Depends(get_services)):
    """
    Run a button callback.

    Actions: place_order, clear_fields, refresh_positions.
    """
    try:
        result = await services.commands.execute(action)
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error(f"Command {action}", e) from e
    return command_response(result)


# =============================================================
# ROW ENDPOINTS
# =============================================================

@router.post("/rows/add", response_model=CommandResponse)
async def add_row(body: PositionRequest, services: ScreenServices = Depends(get_services)):
    position = body.to_position()
    if not position.symbol:
        raise InvalidArgumentError("Symbol is required", field="symbol")
    try:
        result = await services.commands.add_row(position)
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error("Add row", e) from e
    return command_response(result)


@router.delete("/rows/delete/{symbol}", response_model=CommandResponse)
async def delete_row(symbol: str, services: ScreenServices = Depends(get_services)):
    try:
        result = await services.commands.delete_row(symbol)
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error("Delete row", e) from e
    return command_response(result)


@router.put("/rows/update/{symbol}", response_model=CommandResponse)
async def update_row(
    symbol: str,
    body: PositionRequest,
    services: ScreenServices = Depends(get_services),
):
    try:
        result = await services.commands.update_row(symbol, body.to_position())
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error("Update row", e) from e
    return command_response(result)


@router.post("/rows/toggle-live/{symbol}", response_model=CommandResponse)
async def toggle_live(symbol: str, services: ScreenServices = Depends(get_services)):
    try:
        result = await services.commands.toggle_live(symbol)
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error("Toggle LIVE", e) from e
    return command_response(result)


@router.post("/rows/toggle-flatten/{symbol}", response_model=CommandResponse)
async def toggle_flatten(symbol: str, services: ScreenServices = Depends(get_services)):
    try:
        result = await services.commands.toggle_flatten(symbol)
    except ScreenInterfaceError:
        raise
    except Exception as e:
        raise internal_error("Toggle FLATTEN", e) from e
    return command_response(result)


# =============================================================
# TRADING DATA ENDPOINTS
# =============================================================

@router.get("/positions")
async def get_positions(services: ScreenServices = Depends(get_services)) -> Dict[str, Any]:
    """Account summary; refreshes the account_balance / total_pnl fields."""
    try:
        summary = await services.commands.get_positions()
    except Exception as e:
        raise internal_error("Get positions", e) from e
    return to_jsonable(summary)


@router.get("/status", response_model=StatusResponse)
async def get_status(services: ScreenServices = Depends(get_services)):
    try:
        status = await services.commands.get_status()
    except Exception as e:
        raise internal_error("Get system status", e) from e
    return StatusResponse(
        is_connected=status["isConnected"],
        status=status["status"],
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================
# CONSOLE ENDPOINTS
# =============================================================

@router.post("/console/add", response_model=CommandResponse)
async def add_comment(request: AddCommentRequest, services: ScreenServices = Depends(get_services)):
    result = await services.commands.add_comment(request.message)
    return command_response(result)


@router.get("/console/messages", response_model=ConsoleResponse)
def get_console_messages(services: ScreenServices = Depends(get_services)):
    messages = services.commands.console_messages()
    return ConsoleResponse(success=True, messages=messages, count=len(messages))


@router.get("/console/recent", response_model=ConsoleResponse)
def get_recent_console_messages(
    count: int = Query(50, ge=0),
    services: ScreenServices = Depends(get_services),
):
    messages = services.commands.console_recent(count)
    return ConsoleResponse(success=True, messages=messages, count=len(messages))


@router.post("/console/clear", response_model=CommandResponse)
async def clear_console(services: ScreenServices = Depends(get_services)):
    result = await services.commands.clear_console()
    return command_response(result)


# =============================================================
# TABLE ENDPOINTS
# =============================================================

@router.get("/tables/{table_id}")
async def get_table(table_id: str, services: ScreenServices = Depends(get_services)) -> Dict[str, Any]:
    table = await services.page.get_table_data(table_id)
    if table is None:
        raise NotFoundError("Table", table_id)
    return to_jsonable(table)


@router.put("/tables/{table_id}")
async def put_table(
    table_id: str,
    body: Dict[str, Any] = Body(...),
    services: ScreenServices = Depends(get_services),
) -> Dict[str, Any]:
    """Replace a table; replacing positions_table also replaces the position book."""
    table = TableData.from_dict(body, table_id=table_id)
    stored = await services.page.update_table_data(table_id, table)
    services.console.append(f"Table {table_id} updated from client")
    await services.notifications.notify_table_updated(table_id, stored)
    await services.commands.broadcast_console()
    return to_jsonable(stored)


@router.post("/tables/{table_id}/operation", response_model=TableOperationResponse)
async def table_operation(
    table_id: str,
    body: TableOperationBody,
    services: ScreenServices = Depends(get_services),
):
    request = TableOperationRequest(
        table_id=table_id,
        operation=body.operation,
        row_index=body.row_index,
        column_id=body.column_id,
        data=body.data,
        metadata=body.metadata,
    )
    result = await services.page.handle_table_operation(request)
    await services.notifications.notify_table_updated(
        table_id, await services.page.get_table_data(table_id)
    )
    await services.commands.broadcast_console()
    return TableOperationResponse(**to_jsonable(result))


@router.get("/tables/{table_id}/columns")
async def get_columns(table_id: str, services: ScreenServices = Depends(get_services)) -> List[Dict[str, Any]]:
    if not services.tables.exists(table_id):
        raise NotFoundError("Table", table_id)
    return to_jsonable(await services.page.get_table_columns(table_id))


@router.put("/tables/{table_id}/columns")
async def put_columns(
    table_id: str,
    body: List[Dict[str, Any]] = Body(...),
    services: ScreenServices = Depends(get_services),
) -> List[Dict[str, Any]]:
    columns = [ColumnDefinition.from_dict(c) for c in body]
    await services.page.update_table_columns(table_id, columns)
    services.console.append(f"Table columns updated for {table_id}")
    await services.notifications.notify_columns_updated(table_id, columns)
    await services.commands.broadcast_console()
    return to_jsonable(columns)


# =============================================================
# EVENT ENDPOINTS
# =============================================================

@router.get("/events")
def list_events(
    count: int = Query(100, ge=0),
    services: ScreenServices = Depends(get_services),
) -> List[Dict[str, Any]]:
    return to_jsonable(services.events.get_recent(count))


@router.post("/events")
async def post_event(
    body: Dict[str, Any] = Body(...),
    services: ScreenServices = Depends(get_services),
) -> Dict[str, Any]:
    event = EventData.from_dict(body)
    services.page.process_event(event)
    await services.notifications.notify_event(event)
    await services.commands.broadcast_console()
    return to_jsonable(event)
