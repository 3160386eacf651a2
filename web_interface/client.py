"""
Web Interface - HTTP Client.

============================================================
PURPOSE
============================================================
Async client for the /api/trading REST surface, for scripts
and external tools driving the trading screen.

Every call returns the parsed response envelope. HTTP error
statuses and network failures do not raise; they come back as
{"success": False, "message": ..., "status": <code>}.

============================================================
USAGE
============================================================
    async with TradingInterfaceClient("http://localhost:5000") as client:
        await client.put_field("symbol_input", "AAPL")
        result = await client.execute_command("place_order")

============================================================
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Union

import aiohttp

from trading_backend.models import Position


logger = logging.getLogger(__name__)

API_PREFIX = "/api/trading"


class TradingInterfaceClient:
    """Async REST client for the trading screen."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "TradingInterfaceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    # --------------------------------------------------------
    # REQUEST
    # --------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Any] = None,
    ) -> Dict[str, Any]:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        url = f"{self._base_url}{API_PREFIX}{path}"

        try:
            async with self._session.request(method, url, json=json_body) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = {"message": await response.text()}

                if response.status >= 400:
                    logger.warning(f"{method} {path} returned {response.status}")
                    return self._failure(data, response.status)

                if isinstance(data, dict):
                    return data
                return {"success": True, "data": data}

        except aiohttp.ClientError as e:
            logger.error(f"{method} {path} failed: {e}")
            return {"success": False, "message": f"Network error: {e}", "status": None}
        except asyncio.TimeoutError:
            logger.error(f"{method} {path} timed out")
            return {"success": False, "message": "Request timeout", "status": None}

    @staticmethod
    def _failure(data: Any, status: int) -> Dict[str, Any]:
        if not isinstance(data, dict):
            data = {"message": str(data)}
        message = data.get("message") or data.get("detail") or f"HTTP {status}"
        return {**data, "success": False, "message": str(message), "status": status}

    @staticmethod
    def _position_body(position: Union[Position, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(position, Position):
            body = position.to_dict()
        else:
            body = dict(position)
        return {k: float(v) if isinstance(v, Decimal) else v for k, v in body.items()}

    # --------------------------------------------------------
    # SCREEN FIELDS
    # --------------------------------------------------------

    async def get_field(self, field_name: str) -> Dict[str, Any]:
        return await self._request("GET", f"/screen/read/{field_name}")

    async def put_field(self, field_name: str, value: str) -> Dict[str, Any]:
        return await self._request("POST", f"/screen/write/{field_name}", {"value": value})

    async def get_all_fields(self) -> Dict[str, Any]:
        return await self._request("GET", "/screen/read_all")

    async def execute_command(self, action: str) -> Dict[str, Any]:
        """Run a button callback (place_order, clear_fields, refresh_positions)."""
        return await self._request("POST", f"/command/{action}")

    # --------------------------------------------------------
    # ROWS
    # --------------------------------------------------------

    async def add_row(self, position: Union[Position, Dict[str, Any]]) -> Dict[str, Any]:
        return await self._request("POST", "/rows/add", self._position_body(position))

    async def delete_row(self, symbol: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/rows/delete/{symbol}")

    async def update_row(self, symbol: str, position: Union[Position, Dict[str, Any]]) -> Dict[str, Any]:
        return await self._request("PUT", f"/rows/update/{symbol}", self._position_body(position))

    async def toggle_live(self, symbol: str) -> Dict[str, Any]:
        return await self._request("POST", f"/rows/toggle-live/{symbol}")

    async def toggle_flatten(self, symbol: str) -> Dict[str, Any]:
        return await self._request("POST", f"/rows/toggle-flatten/{symbol}")

    # --------------------------------------------------------
    # CONSOLE & DATA
    # --------------------------------------------------------

    async def add_comment(self, message: str) -> Dict[str, Any]:
        return await self._request("POST", "/console/add", {"message": message})

    async def get_positions(self) -> Dict[str, Any]:
        """Account summary (balance, P&L, positions by symbol)."""
        return await self._request("GET", "/positions")


__all__ = ["TradingInterfaceClient"]
