"""Integration tests for the bulk import pipeline feeding the ledger."""
from __future__ import annotations

import asyncio
import logging

import pytest

from skin_ledger.config import ImportConfig
from skin_ledger.errors import ApiError, FormatError
from skin_ledger.importing import ImportPipeline
from skin_ledger.importing import pipeline as pipeline_module
from skin_ledger.ledger import compute_ledger
from skin_ledger.models import Transaction, parse_timestamp


def _transactions_from(payloads: list[dict], tx_factory) -> list[Transaction]:
    return [
        tx_factory(
            str(i),
            p["type"],
            p["quantity"],
            p["unitPrice"],
            minutes=i,
            skin_id=p["skinId"],
            commission_percent=p["commissionPercent"],
        )
        for i, p in enumerate(payloads)
    ]


class TestImportPipeline:
    @pytest.mark.asyncio
    async def test_import_then_ledger(self, writer_factory, tx_factory) -> None:
        writer = writer_factory()
        summary = await ImportPipeline(writer).run(
            "skinId,type,quantity,unitPrice\n1,buy,2,10\n1,sell,1,15\n"
        )

        assert summary.total == 2
        assert summary.imported == 2
        assert summary.failed == ()
        assert [p["commissionPercent"] for p in writer.payloads] == [13.0, 13.0]

        snap = compute_ledger(_transactions_from(writer.payloads, tx_factory))
        assert snap.open_quantity == 1
        assert snap.avg_entry_price == pytest.approx(10.0)
        assert snap.realized_pnl == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_malformed_row_is_reported(self, writer_factory) -> None:
        writer = writer_factory()
        summary = await ImportPipeline(writer).run(
            "skinId,type,quantity,unitPrice\n1,buy,2,10\n1,hold,x,10\n"
        )

        assert summary.total == 2
        assert summary.imported == 1
        assert len(summary.failed) == 1
        assert summary.failed[0].line_no == 3
        assert summary.failed[0].message == 'type must be "buy" or "sell"'
        assert len(writer.payloads) == 1

    @pytest.mark.asyncio
    async def test_server_rejection_does_not_stop_import(self, writer_factory) -> None:
        writer = writer_factory(reject={2: "Skin not found"})
        summary = await ImportPipeline(writer).run(
            "skinId,type,quantity,unitPrice\n1,buy,1,1\n2,buy,1,1\n\n3,buy,1,1\n"
        )

        assert summary.imported == 2
        assert [(f.line_no, f.message) for f in summary.failed] == [(3, "Skin not found")]
        assert [p["skinId"] for p in writer.payloads] == [1, 3]

    @pytest.mark.asyncio
    async def test_unexpected_writer_error_recorded(self) -> None:
        class ExplodingWriter:
            async def create_transaction(self, payload):
                raise ConnectionResetError()

            async def delete_transaction(self, transaction_id):
                return None

        summary = await ImportPipeline(ExplodingWriter()).run(
            "skinId,type,quantity,unitPrice\n1,buy,1,1\n"
        )
        assert summary.imported == 0
        assert summary.failed[0].message == "ConnectionResetError"

    @pytest.mark.asyncio
    async def test_rows_submitted_in_file_order(self, writer_factory) -> None:
        writer = writer_factory()
        await ImportPipeline(writer).run(
            "skinId,type,quantity,unitPrice,executedAt\n"
            "3,buy,1,1,2026-01-03\n1,buy,1,1,2026-01-01\n2,buy,1,1,\n"
        )
        assert [p["skinId"] for p in writer.payloads] == [3, 1, 2]
        assert parse_timestamp(writer.payloads[0]["executedAt"]).day == 3
        assert "executedAt" not in writer.payloads[2]

    @pytest.mark.asyncio
    async def test_uses_import_defaults(self, writer_factory) -> None:
        writer = writer_factory()
        defaults = ImportConfig(default_commission_percent=2.5, currency="EUR", delimiter=";")
        await ImportPipeline(writer, defaults).run(
            "skinId;type;quantity;unitPrice\n1;buy;1;\"1,5\"\n1;buy;1;2\n"
        )
        assert len(writer.payloads) == 1
        assert writer.payloads[0]["commissionPercent"] == 2.5
        assert writer.payloads[0]["currency"] == "EUR"

    @pytest.mark.asyncio
    async def test_format_error_submits_nothing(self, writer_factory) -> None:
        writer = writer_factory()
        refreshes: list[int] = []

        async def _refresh() -> None:
            refreshes.append(1)

        with pytest.raises(FormatError, match="Missing required column: quantity"):
            await ImportPipeline(writer, on_complete=_refresh).run(
                "skinId,type,unitPrice\n1,buy,1\n"
            )
        assert writer.payloads == []
        assert refreshes == []
        assert not pipeline_module.is_running()

    @pytest.mark.asyncio
    async def test_refresh_called_once(self, writer_factory) -> None:
        writer = writer_factory(reject={2: "nope"})
        refreshes: list[int] = []

        async def _refresh() -> None:
            refreshes.append(1)

        await ImportPipeline(writer, on_complete=_refresh).run(
            "skinId,type,quantity,unitPrice\n1,buy,1,1\n2,buy,1,1\n1,sell,1,2\n"
        )
        assert refreshes == [1]

    @pytest.mark.asyncio
    async def test_failed_refresh_still_returns_summary(
        self, writer_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        writer = writer_factory()

        async def _refresh() -> None:
            raise ApiError("GET /transactions failed: HTTP 503")

        with caplog.at_level(logging.ERROR):
            summary = await ImportPipeline(writer, on_complete=_refresh).run(
                "skinId,type,quantity,unitPrice\n1,buy,2,10\n1,sell,1,15\n"
            )

        assert summary is not None
        assert summary.total == 2
        assert summary.imported == 2
        assert len(writer.payloads) == 2
        assert "Refresh after import failed" in caplog.text
        assert not pipeline_module.is_running()

    @pytest.mark.asyncio
    async def test_concurrent_import_is_ignored(self, writer_factory) -> None:
        release = asyncio.Event()

        class SlowWriter:
            def __init__(self) -> None:
                self.payloads: list[dict] = []

            async def create_transaction(self, payload):
                await release.wait()
                self.payloads.append(payload)
                return payload

            async def delete_transaction(self, transaction_id):
                return None

        text = "skinId,type,quantity,unitPrice\n1,buy,1,1\n"
        first = asyncio.ensure_future(ImportPipeline(SlowWriter()).run(text))
        await asyncio.sleep(0)
        assert pipeline_module.is_running()

        second = await ImportPipeline(writer_factory()).run(text)
        assert second is None

        release.set()
        summary = await first
        assert summary.imported == 1
        assert not pipeline_module.is_running()
