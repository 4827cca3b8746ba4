"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from skin_ledger.config import ApiConfig, AppConfig, ImportConfig, ViewConfig
from skin_ledger.errors import RowSubmissionError
from skin_ledger.models import HoldingRow, Transaction

T0 = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def make_tx(
    tx_id: str,
    kind: str,
    quantity: int,
    unit_price: float,
    minutes: int = 0,
    skin_id: int = 1,
    net_total: float | None = None,
    commission_percent: float = 0.0,
    name: str = "",
) -> Transaction:
    """Build a transaction executed ``minutes`` after T0."""
    return Transaction(
        id=tx_id,
        skin_id=skin_id,
        kind=kind,
        quantity=quantity,
        unit_price=unit_price,
        executed_at=T0 + timedelta(minutes=minutes),
        commission_percent=commission_percent,
        net_total=net_total,
        name=name,
    )


class FakeWriter:
    """In-memory transaction writer that rejects configured skin ids."""

    def __init__(self, reject: dict[int, str] | None = None) -> None:
        self.reject = reject or {}
        self.payloads: list[dict[str, Any]] = []
        self.deleted: list[str] = []

    async def create_transaction(self, payload: dict[str, Any]) -> dict[str, Any]:
        reason = self.reject.get(payload["skinId"])
        if reason:
            raise RowSubmissionError(reason, status=400)
        self.payloads.append(payload)
        return {"id": len(self.payloads), **payload}

    async def delete_transaction(self, transaction_id: str) -> None:
        self.deleted.append(transaction_id)


class FakeReader:
    def __init__(
        self,
        transactions: list[Transaction] | None = None,
        holdings: list[HoldingRow] | None = None,
    ) -> None:
        self.transactions = transactions or []
        self.holdings = holdings or []
        self.calls = 0

    async def list_transactions(self) -> list[Transaction]:
        self.calls += 1
        return list(self.transactions)

    async def list_holdings(self) -> list[HoldingRow]:
        return list(self.holdings)


@pytest.fixture()
def tx_factory():
    return make_tx


@pytest.fixture()
def writer_factory():
    return FakeWriter


@pytest.fixture()
def reader_factory():
    return FakeReader


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        api=ApiConfig(base_url="https://api.example.com/api", token="tok", timeout=5),
        importing=ImportConfig(default_commission_percent=13.0, currency="USD"),
        views=ViewConfig(page_size=2, default_sort="value-desc", search_debounce_ms=10),
    )


SAMPLE_YAML = textwrap.dedent("""\
    api:
      base_url: "https://api.example.com/api/"
      token: "${SKIN_LEDGER_TEST_TOKEN}"
      timeout: 10
    import:
      default_commission_percent: 5
      currency: eur
    views:
      page_size: 50
      default_sort: name-asc
      search_debounce_ms: 300
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_holdings() -> list[HoldingRow]:
    return [
        HoldingRow(
            skin_id=101,
            name="AK-47 | Redline (Field-Tested)",
            quantity=3,
            current_price=12.5,
            line_value=37.5,
            seven_day_change_percent=4.2,
            status="real",
            clue_action="hold",
            clue_confidence=70,
        ),
        HoldingRow(
            skin_id=202,
            name="AWP | Asiimov (Battle-Scarred)",
            quantity=1,
            current_price=80.0,
            line_value=80.0,
            seven_day_change_percent=-6.1,
            status="stale",
            clue_action="sell",
            clue_confidence=60,
        ),
        HoldingRow(
            skin_id=303,
            name="Glock-18 | Water Elemental",
            quantity=10,
            current_price=3.75,
            line_value=37.5,
            seven_day_change_percent=None,
            status="real",
        ),
        HoldingRow(
            skin_id=404,
            name="M4A1-S | Hyper Beast",
            quantity=2,
            current_price=9.0,
            line_value=18.0,
            seven_day_change_percent=1.0,
            status="real",
            clue_action="watch",
            clue_confidence=50,
        ),
        HoldingRow(
            skin_id=505,
            name="Desert Eagle | Blaze",
            quantity=1,
            current_price=250.0,
            line_value=250.0,
            seven_day_change_percent=0.5,
            status="mock",
            clue_action="sell",
            clue_confidence=85,
        ),
    ]


@pytest.fixture()
def sample_transaction_record() -> dict[str, Any]:
    return {
        "id": 17,
        "skin_id": 101,
        "type": "sell",
        "quantity": 2,
        "unit_price": "15.50",
        "commission_percent": 13,
        "gross_total": None,
        "net_total": None,
        "currency": "USD",
        "executed_at": "2026-02-03T10:15:00Z",
        "created_at": "2026-02-03T10:16:00Z",
        "skins": {"market_hash_name": "AK-47 | Redline (Field-Tested)"},
    }


@pytest.fixture()
def sample_holding_record() -> dict[str, Any]:
    return {
        "skinId": 101,
        "marketHashName": "AK-47 | Redline (Field-Tested)",
        "quantity": 3,
        "purchasePrice": 10,
        "currentPrice": 12.5,
        "lineValue": 37.5,
        "sevenDayChangePercent": 4.2,
        "priceStatus": "real",
        "managementClue": {"action": "hold", "confidence": 71},
    }
