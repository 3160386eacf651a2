"""
Broadcast - Notification Service.

Named push messages sent to every subscriber after a state
change. Each method returns the number of subscribers reached.
"""

import logging
from typing import Any, Dict, List, Optional

from screen_state.event_log import ConsoleLog
from screen_state.models import ColumnDefinition, EventData, FieldData, TableData, WebPageData
from trading_backend.models import AccountSummary, OrderResult
from .hub import SubscriberHub


logger = logging.getLogger(__name__)


class Messages:
    """Push message names."""

    POSITIONS_UPDATE = "PositionsUpdate"
    CONSOLE_UPDATE = "ConsoleUpdate"
    ORDER_PLACED = "OrderPlaced"
    POSITION_TOGGLED = "PositionToggled"
    TABLE_DATA_UPDATE = "TableDataUpdate"
    FIELD_DATA_UPDATE = "FieldDataUpdate"
    EVENT_NOTIFICATION = "EventNotification"
    TABLE_COLUMNS_UPDATE = "TableColumnsUpdate"
    WEB_PAGE_DATA_UPDATE = "WebPageDataUpdate"
    FIELDS_UPDATE = "FieldsUpdate"
    UI_STATE = "UiState"
    ERROR = "Error"


class NotificationService:
    """Typed wrappers over SubscriberHub.publish."""

    def __init__(self, hub: SubscriberHub, console: ConsoleLog):
        self._hub = hub
        self._console = console

    @property
    def hub(self) -> SubscriberHub:
        return self._hub

    async def notify_positions_updated(self, summary: AccountSummary) -> int:
        delivered = await self._hub.publish(Messages.POSITIONS_UPDATE, summary)
        logger.debug("Positions update sent to all clients")
        return delivered

    async def notify_console_updated(self) -> int:
        return await self._hub.publish(Messages.CONSOLE_UPDATE, self._console.get_all())

    async def notify_order_placed(self, result: OrderResult) -> int:
        delivered = await self._hub.publish(Messages.ORDER_PLACED, result)
        logger.info(f"Order placed notification sent: {result.message}")
        return delivered

    async def notify_position_toggled(self, symbol: str, field: str, new_value: str) -> int:
        delivered = await self._hub.publish(
            Messages.POSITION_TOGGLED,
            {"symbol": symbol, "field": field, "newValue": new_value},
        )
        logger.info(f"Position toggle notification sent: {symbol} {field} = {new_value}")
        return delivered

    async def notify_table_updated(self, table_id: str, table: Optional[TableData]) -> int:
        return await self._hub.publish(Messages.TABLE_DATA_UPDATE, table_id, table)

    async def notify_field_updated(self, field_id: str, page_field: Optional[FieldData]) -> int:
        return await self._hub.publish(Messages.FIELD_DATA_UPDATE, field_id, page_field)

    async def notify_event(self, event: EventData) -> int:
        return await self._hub.publish(Messages.EVENT_NOTIFICATION, event)

    async def notify_columns_updated(self, table_id: str, columns: List[ColumnDefinition]) -> int:
        return await self._hub.publish(Messages.TABLE_COLUMNS_UPDATE, table_id, columns)

    async def notify_web_page_data(self, page: WebPageData) -> int:
        return await self._hub.publish(Messages.WEB_PAGE_DATA_UPDATE, page)

    async def notify_fields_updated(self, fields: Dict[str, Any]) -> int:
        return await self._hub.publish(Messages.FIELDS_UPDATE, fields)


__all__ = ["Messages", "NotificationService"]
