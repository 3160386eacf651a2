"""
Web Interface - Command Service.

============================================================
PURPOSE
============================================================
Button callbacks and row commands of the trading screen. Shared
by the HTTP routes and the push hub so both surfaces leave the
same trail:

- the backend call itself
- a console line
- last_command / status_display on the screen
- PositionsUpdate / ConsoleUpdate / FieldsUpdate broadcasts

============================================================
ERROR TRAIL
============================================================
Domain errors (ScreenInterfaceError) set last_command to
<COMMAND>_FAILED and are re-raised for the boundary to map.
Anything else sets status_display to "<Label> error: <text>",
last_command to <COMMAND>_ERROR, is logged with its traceback
and re-raised.

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from broadcast.notifications import NotificationService
from core.exceptions import InvalidArgumentError, NotFoundError, ScreenInterfaceError
from screen_state.event_log import ConsoleLog, DEFAULT_RECENT_COUNT
from screen_state.field_store import ScreenFields, ScreenFieldStore
from trading_backend.mock import MockTradingSystem
from trading_backend.models import (
    AccountSummary,
    OrderRequest,
    OrderResult,
    OrderSide,
    Position,
    money,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CommandResult:
    """Outcome of a screen command."""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = field(default=None)


class CommandService:
    """Screen commands over the field store, console and backend."""

    def __init__(
        self,
        fields: ScreenFieldStore,
        console: ConsoleLog,
        backend: MockTradingSystem,
        notifications: NotificationService,
    ):
        self._fields = fields
        self._console = console
        self._backend = backend
        self._notifications = notifications

        self._actions: Dict[str, Callable[[], Awaitable[CommandResult]]] = {
            "place_order": self.place_order,
            "clear_fields": self.clear_fields,
            "refresh_positions": self.refresh_positions,
        }

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    async def _guarded(
        self,
        command: str,
        label: str,
        operation: Callable[[], Awaitable[T]],
        failure_note: Optional[str] = None,
    ) -> T:
        try:
            return await operation()
        except ScreenInterfaceError as e:
            logger.warning(f"{label} failed: {e}")
            if failure_note:
                self._console.append(f"{failure_note}: {e}")
            self._fields.update_last_command(f"{command}_FAILED")
            await self._notifications.notify_console_updated()
            raise
        except Exception as e:
            logger.exception(f"Error in {label.lower()}")
            self._fields.update_status(f"{label} error: {e}")
            self._fields.update_last_command(f"{command}_ERROR")
            raise

    async def broadcast_positions(self) -> AccountSummary:
        summary = await self._backend.get_account_summary()
        await self._notifications.notify_positions_updated(summary)
        return summary

    async def broadcast_console(self) -> None:
        await self._notifications.notify_console_updated()

    async def broadcast_fields(self) -> None:
        await self._notifications.notify_fields_updated(self._fields.get_all())

    def _store_account_fields(self, summary: AccountSummary) -> None:
        self._fields.set(ScreenFields.ACCOUNT_BALANCE, money(summary.account_balance))
        self._fields.set(ScreenFields.TOTAL_PNL, money(summary.total_pnl))

    # --------------------------------------------------------
    # FIELDS
    # --------------------------------------------------------

    def read_field(self, name: str) -> str:
        value = self._fields.get(name)
        logger.info(f"GetGUIField: {name} = '{value}'")
        return value

    async def write_field(self, name: str, value: Optional[str]) -> bool:
        success = self._fields.set(name, value or "")
        logger.info(f"PutGUIField: {name} = '{value}' (Success: {success})")
        if success:
            await self.broadcast_fields()
        return success

    def read_all_fields(self) -> Dict[str, str]:
        fields = self._fields.get_all()
        logger.info(f"GetAllGUIFields: Retrieved {len(fields)} fields")
        return fields

    # --------------------------------------------------------
    # BUTTON CALLBACKS
    # --------------------------------------------------------

    def available_actions(self) -> List[str]:
        return list(self._actions)

    async def execute(self, action: str) -> CommandResult:
        """Run a button callback by name."""
        handler = self._actions.get(action)
        if handler is None:
            raise NotFoundError("Command", action, f"Unknown command: {action}")
        return await handler()

    async def place_order(self) -> CommandResult:
        """Place the order described by the entry fields."""
        logger.info("Place order button callback triggered")

        try:
            order = self._fields.get_order_from_fields()
        except InvalidArgumentError as e:
            self._fields.update_status(f"Order validation failed: {e}")
            self._fields.update_last_command("PLACE_ORDER_FAILED")
            await self.broadcast_fields()
            raise

        result = await self._guarded(
            "PLACE_ORDER", "Order placement", lambda: self._backend.place_order(order)
        )

        if result.success:
            self._fields.clear_many(*ScreenFields.ORDER_INPUTS)
            self._console.append(f"Order placed successfully: {result.message}")
            logger.info(f"Order placed successfully: {result.message}")
            self._fields.update_last_command(f"PLACE_ORDER_SUCCESS_{order.symbol}")
            await self._notifications.notify_order_placed(result)
            await self.broadcast_positions()
        else:
            self._console.append(result.message)
            logger.warning(result.message)
            self._fields.update_last_command("PLACE_ORDER_FAILED")

        await self.broadcast_console()
        await self.broadcast_fields()
        return CommandResult(result.success, result.message, {"orderId": result.order_id})

    async def submit_order(self, order: OrderRequest) -> OrderResult:
        """Place an order received directly (not from the entry fields)."""
        logger.info(f"Placing order: {order.symbol} {order.quantity} @ {order.price}")
        result = await self._backend.place_order(order)
        await self.broadcast_positions()
        self._console.append(
            f"Order placed: {order.symbol} {order.quantity} @ {order.price} - {result.message}"
        )
        await self.broadcast_console()
        return result

    async def clear_fields(self) -> CommandResult:
        logger.info("Clear fields button callback triggered")

        self._fields.clear_many(*ScreenFields.ORDER_INPUTS)
        self._fields.set(ScreenFields.ORDER_TYPE, OrderSide.BUY.value)
        self._console.append("All fields cleared")
        self._fields.update_last_command("CLEAR_FIELDS")

        await self.broadcast_console()
        await self.broadcast_fields()
        return CommandResult(True, "All fields cleared successfully")

    async def refresh_positions(self) -> CommandResult:
        logger.info("Refresh positions button callback triggered")

        summary = await self._guarded(
            "REFRESH_POSITIONS", "Refresh positions", self._backend.get_account_summary
        )
        self._store_account_fields(summary)
        self._console.append(f"Positions refreshed - Total P&L: ${money(summary.total_pnl)}")
        logger.info(f"Positions refreshed - Total P&L: ${money(summary.total_pnl)}")
        self._fields.update_last_command("REFRESH_POSITIONS")

        await self._notifications.notify_positions_updated(summary)
        await self.broadcast_console()
        await self.broadcast_fields()
        return CommandResult(
            True,
            "Positions refreshed successfully",
            {
                "accountBalance": summary.account_balance,
                "totalPnL": summary.total_pnl,
                "positionCount": len(summary.positions),
            },
        )

    # --------------------------------------------------------
    # ROWS
    # --------------------------------------------------------

    async def add_row(self, position: Position) -> CommandResult:
        logger.info(f"AddRow called for symbol: {position.symbol}")

        result = await self._guarded(
            "ADD_ROW", "Add row",
            lambda: self._backend.add_position(position),
            failure_note="Failed to add position",
        )
        self._console.append(
            f"Position added: {position.symbol} "
            f"({position.quantity} shares @ ${money(position.avg_price)})"
        )
        self._fields.update_last_command(f"ADD_ROW_{position.symbol}")

        await self.broadcast_positions()
        await self.broadcast_console()
        return CommandResult(
            result.success,
            result.message,
            {"symbol": position.symbol, "quantity": position.quantity},
        )

    async def delete_row(self, symbol: str) -> CommandResult:
        logger.info(f"DeleteRow called for symbol: {symbol}")

        result = await self._guarded(
            "DELETE_ROW", "Delete row",
            lambda: self._backend.delete_position(symbol),
            failure_note="Failed to delete position",
        )
        self._console.append(f"Position deleted: {symbol}")
        self._fields.update_last_command(f"DELETE_ROW_{symbol}")

        await self.broadcast_positions()
        await self.broadcast_console()
        return CommandResult(result.success, result.message, {"symbol": symbol})

    async def update_row(self, symbol: str, position: Position) -> CommandResult:
        logger.info(f"UpdateRow called for symbol: {symbol}")

        position.symbol = symbol
        result = await self._guarded(
            "UPDATE_ROW", "Update row",
            lambda: self._backend.update_position(symbol, position),
            failure_note="Failed to update position",
        )
        self._console.append(
            f"Position updated: {symbol} ({position.quantity} shares @ ${money(position.avg_price)})"
        )
        self._fields.update_last_command(f"UPDATE_ROW_{symbol}")

        await self.broadcast_positions()
        await self.broadcast_console()
        return CommandResult(
            result.success,
            result.message,
            {"symbol": symbol, "quantity": position.quantity, "avgPrice": position.avg_price},
        )

    async def toggle_live(self, symbol: str) -> CommandResult:
        logger.info(f"ToggleLive called for symbol: {symbol}")

        result = await self._guarded(
            "TOGGLE_LIVE", "Toggle LIVE", lambda: self._backend.toggle_live(symbol)
        )
        self._fields.update_last_command(f"TOGGLE_LIVE_{symbol}")

        position = self._backend.get_position(symbol)
        if position is not None:
            await self._notifications.notify_position_toggled(symbol, "live", position.live.value)
        await self.broadcast_positions()
        return CommandResult(result.success, result.message, {"symbol": symbol})

    async def toggle_flatten(self, symbol: str) -> CommandResult:
        logger.info(f"ToggleFlatten called for symbol: {symbol}")

        result = await self._guarded(
            "TOGGLE_FLATTEN", "Toggle FLATTEN", lambda: self._backend.toggle_flatten(symbol)
        )
        self._fields.update_last_command(f"TOGGLE_FLATTEN_{symbol}")

        position = self._backend.get_position(symbol)
        if position is not None:
            await self._notifications.notify_position_toggled(
                symbol, "flatten", str(position.flatten).upper()
            )
        await self.broadcast_positions()
        return CommandResult(result.success, result.message, {"symbol": symbol})

    # --------------------------------------------------------
    # TRADING DATA
    # --------------------------------------------------------

    async def get_positions(self) -> AccountSummary:
        """Account summary; also refreshes the balance and P&L fields."""
        summary = await self._backend.get_account_summary()
        self._store_account_fields(summary)
        return summary

    async def get_status(self) -> Dict[str, Any]:
        is_connected = await self._backend.is_connected()
        status = await self._backend.get_system_status()
        self._fields.set(
            ScreenFields.CONNECTION_STATUS,
            "Connected" if is_connected else "Disconnected",
        )
        return {"isConnected": is_connected, "status": status}

    # --------------------------------------------------------
    # CONSOLE
    # --------------------------------------------------------

    async def add_comment(self, message: Optional[str]) -> CommandResult:
        if not message:
            raise InvalidArgumentError("Message is required", field="message")

        self._console.append(message)
        logger.info("Comment added to console successfully")
        await self.broadcast_console()
        return CommandResult(True, "Comment added to console", {"message": message})

    def console_messages(self) -> List[str]:
        return self._console.get_all()

    def console_recent(self, count: int = DEFAULT_RECENT_COUNT) -> List[str]:
        return self._console.get_recent(count)

    async def clear_console(self) -> CommandResult:
        logger.info("ClearConsole called")
        self._console.clear()
        await self.broadcast_console()
        return CommandResult(True, "Console cleared")


__all__ = ["CommandResult", "CommandService"]
