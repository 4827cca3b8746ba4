"""Bulk transaction import with per-row partial-failure reporting."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from ..config import ImportConfig
from ..errors import LedgerError
from ..interfaces.transaction_writer import TransactionWriter
from ..models import ImportFailure, ImportSummary
from .parser import DEFAULT_SCHEMA, ImportSchema, parse_table
from .validation import build_payload

logger = logging.getLogger(__name__)

# Guards against overlapping imports within the process.
_running = False


def is_running() -> bool:
    return _running


class ImportPipeline:
    """Parse import text and submit each row to the transaction writer.

    Rows are submitted one at a time in file order. A rejected row is
    recorded in the summary and the import moves on; only a FormatError in
    the header stops the whole run, before anything is submitted.
    """

    def __init__(
        self,
        writer: TransactionWriter,
        defaults: ImportConfig | None = None,
        on_complete: Callable[[], Awaitable[None]] | None = None,
        schema: ImportSchema = DEFAULT_SCHEMA,
    ) -> None:
        self._writer = writer
        self._defaults = defaults or ImportConfig()
        self._on_complete = on_complete
        self._schema = schema

    async def run(self, text: str) -> ImportSummary | None:
        """Import ``text``; returns None if another import is in flight."""
        global _running
        if _running:
            logger.warning("Import already in progress, ignoring new request")
            return None

        _running = True
        try:
            return await self._run(text)
        finally:
            _running = False

    async def _run(self, text: str) -> ImportSummary:
        rows = parse_table(
            text,
            schema=self._schema,
            default_commission_percent=self._defaults.default_commission_percent,
            delimiter=self._defaults.delimiter,
        )
        logger.info("Importing %d rows", len(rows))

        imported = 0
        failed: list[ImportFailure] = []

        for row in rows:
            try:
                payload = build_payload(row, self._defaults)
                await self._writer.create_transaction(payload)
            except LedgerError as e:
                failed.append(ImportFailure(line_no=row.line_no, message=str(e)))
                logger.warning("Line %d rejected: %s", row.line_no, e)
                continue
            except Exception as e:
                message = str(e) or type(e).__name__
                failed.append(ImportFailure(line_no=row.line_no, message=message))
                logger.error("Line %d failed unexpectedly: %s", row.line_no, e)
                continue
            imported += 1

        summary = ImportSummary(total=len(rows), imported=imported, failed=tuple(failed))
        logger.info(
            "Import finished: %d/%d imported, %d failed",
            summary.imported,
            summary.total,
            len(summary.failed),
        )

        # The summary is returned even when the refresh fails.
        if self._on_complete is not None:
            try:
                await self._on_complete()
            except Exception as e:
                logger.error("Refresh after import failed: %s", e)

        return summary
