"""Portfolio reader protocol: authoritative transaction and holdings lists."""
from typing import Protocol

from ..models import HoldingRow, Transaction


class PortfolioReader(Protocol):
    """Abstract interface for reading the current portfolio state."""

    async def list_transactions(self) -> list[Transaction]: ...

    async def list_holdings(self) -> list[HoldingRow]: ...
