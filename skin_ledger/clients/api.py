"""Portfolio REST API client: transaction writes and portfolio reads."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import ApiConfig
from ..errors import ApiError, RowSubmissionError
from ..models import HoldingRow, Transaction

logger = logging.getLogger(__name__)


class PortfolioApiClient:
    """Talk to the portfolio API with bearer-token auth."""

    def __init__(self, config: ApiConfig) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.token = config.token
        self.timeout = config.timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> tuple[int, Any]:
        """Perform one request; returns the status and decoded JSON body."""
        url = f"{self.base_url}{path}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status == 204:
                    return response.status, None
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None
                return response.status, data

    @staticmethod
    def _reason(status: int, data: Any) -> str:
        if isinstance(data, dict):
            reason = data.get("error") or data.get("message")
            if reason:
                return str(reason)
        return f"HTTP {status}"

    async def _read(self, method: str, path: str) -> Any:
        try:
            status, data = await self._request(method, path)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        if status >= 400:
            raise ApiError(f"{method} {path} failed: {self._reason(status, data)}")
        return data

    # ------------------------------------------------------------------
    # TransactionWriter
    # ------------------------------------------------------------------

    async def create_transaction(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a transaction; raises RowSubmissionError when rejected."""
        try:
            status, data = await self._request("POST", "/transactions", payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RowSubmissionError(f"Request failed: {e}") from e

        if status >= 400:
            raise RowSubmissionError(self._reason(status, data), status=status)

        logger.debug("Created transaction %s", (data or {}).get("id"))
        return data or {}

    async def delete_transaction(self, transaction_id: str) -> None:
        await self._read("DELETE", f"/transactions/{transaction_id}")
        logger.info("Deleted transaction %s", transaction_id)

    # ------------------------------------------------------------------
    # PortfolioReader
    # ------------------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        data = await self._read("GET", "/transactions")
        items = (data or {}).get("items", [])
        logger.info("Fetched %d transactions", len(items))
        return [Transaction.from_record(item) for item in items]

    async def list_holdings(self) -> list[HoldingRow]:
        data = await self._read("GET", "/portfolio")
        items = (data or {}).get("items", [])
        logger.info("Fetched %d holdings", len(items))
        return [HoldingRow.from_record(item) for item in items]
