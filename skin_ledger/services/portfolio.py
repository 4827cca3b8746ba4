"""Portfolio orchestration over the reader, writer, pipeline and views."""
from __future__ import annotations

import logging
from typing import Any

from ..clients import PortfolioApiClient
from ..config import AppConfig
from ..importing import ImportPipeline, validate_entry
from ..interfaces.portfolio_reader import PortfolioReader
from ..interfaces.transaction_writer import TransactionWriter
from ..ledger import compute_ledger, compute_positions
from ..models import (
    HoldingRow,
    ImportSummary,
    LedgerSnapshot,
    PagedResult,
    Transaction,
)
from ..views import ViewState

logger = logging.getLogger(__name__)


class PortfolioService:
    """Import, accounting and paged views over one user's portfolio.

    Collections fetched from the reader are kept only until the next
    ``refresh``.
    """

    def __init__(
        self,
        config: AppConfig,
        reader: PortfolioReader | None = None,
        writer: TransactionWriter | None = None,
    ) -> None:
        self._config = config
        client = None
        if reader is None or writer is None:
            client = PortfolioApiClient(config.api)
        self._reader: PortfolioReader = reader or client
        self._writer: TransactionWriter = writer or client
        self._transactions: list[Transaction] = []
        self._holdings: list[HoldingRow] = []

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def holdings(self) -> list[HoldingRow]:
        return list(self._holdings)

    def new_view(self) -> ViewState:
        return ViewState.from_config(self._config.views)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Reload transactions and holdings from the reader."""
        self._transactions = await self._reader.list_transactions()
        self._holdings = await self._reader.list_holdings()
        logger.info(
            "Refreshed portfolio: %d transactions, %d holdings",
            len(self._transactions),
            len(self._holdings),
        )

    async def refresh_transactions(self) -> None:
        self._transactions = await self._reader.list_transactions()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def import_text(self, text: str) -> ImportSummary | None:
        """Run a bulk import, then refresh once."""
        pipeline = ImportPipeline(
            self._writer, self._config.importing, on_complete=self.refresh
        )
        return await pipeline.run(text)

    async def add_transaction(
        self,
        skin_id: Any,
        kind: Any,
        quantity: Any,
        unit_price: Any,
        commission_percent: Any = None,
        executed_at: Any = None,
    ) -> dict[str, Any]:
        """Validate and submit a single manually entered transaction."""
        if commission_percent is None:
            commission_percent = self._config.importing.default_commission_percent
        payload = validate_entry(
            skin_id,
            kind,
            quantity,
            unit_price,
            commission_percent,
            executed_at=executed_at,
            currency=self._config.importing.currency,
        )
        created = await self._writer.create_transaction(payload)
        await self.refresh_transactions()
        return created

    async def delete_transaction(self, transaction_id: str) -> None:
        await self._writer.delete_transaction(transaction_id)
        await self.refresh_transactions()

    # ------------------------------------------------------------------
    # Accounting and views
    # ------------------------------------------------------------------

    def ledger(self, skin_id: int) -> LedgerSnapshot:
        txs = [tx for tx in self._transactions if tx.skin_id == skin_id]
        return compute_ledger(txs, skin_id=skin_id)

    def positions(self) -> dict[int, LedgerSnapshot]:
        return compute_positions(self._transactions)

    def holdings_page(self, view: ViewState) -> PagedResult[HoldingRow]:
        return view.apply(self._holdings)

    def transactions_page(self, view: ViewState) -> PagedResult[Transaction]:
        return view.apply(self._transactions)

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def format_summary(summary: ImportSummary) -> str:
        lines = [f"Imported {summary.imported} of {summary.total} rows"]
        for failure in summary.failed:
            lines.append(f"  line {failure.line_no}: {failure.message}")
        return "\n".join(lines)

    @staticmethod
    def format_ledger(snapshot: LedgerSnapshot, current_price: float | None = None) -> str:
        avg = (
            f"{snapshot.avg_entry_price:,.2f}"
            if snapshot.avg_entry_price is not None
            else "-"
        )
        lines = [
            f"Skin {snapshot.skin_id}",
            f"  Open quantity:  {snapshot.open_quantity}",
            f"  Avg entry:      {avg}",
            f"  Realized P&L:   {snapshot.realized_pnl:,.2f}",
        ]
        if current_price is not None:
            lines.append(
                f"  Unrealized P&L: {snapshot.unrealized_pnl(current_price):,.2f}"
            )
        if snapshot.timeline:
            lines.append("  History:")
        for entry in snapshot.timeline:
            lines.append(
                f"    {entry.date:%Y-%m-%d %H:%M}  {entry.kind:<4} "
                f"{entry.quantity:>5} @ {entry.unit_price:,.2f}  = {entry.net_total:,.2f}"
            )
        return "\n".join(lines)

    @staticmethod
    def format_holdings_page(page: PagedResult[HoldingRow]) -> str:
        lines = [
            f"{row.skin_id:>8}  {row.name[:40]:<40} {row.quantity:>5}  "
            f"{row.line_value:>12,.2f}  {row.status}"
            for row in page.items
        ]
        lines.append(
            f"Page {page.page}/{page.page_count} | {page.total_count} holdings"
        )
        return "\n".join(lines)

    @staticmethod
    def format_transactions_page(page: PagedResult[Transaction]) -> str:
        lines = [
            f"{tx.id:>8}  {tx.executed_at:%Y-%m-%d}  {tx.kind:<4} skin {tx.skin_id:<8} "
            f"{tx.quantity:>5} @ {tx.unit_price:,.2f}  = {tx.resolved_net_total:,.2f}"
            for tx in page.items
        ]
        lines.append(
            f"Page {page.page}/{page.page_count} | {page.total_count} transactions"
        )
        return "\n".join(lines)
