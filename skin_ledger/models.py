"""Data models. All frozen."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")

BUY = "buy"
SELL = "sell"
TRANSACTION_KINDS = (BUY, SELL)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Returns None for empty or unparseable input.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Transaction:
    """A single executed buy or sell of one skin."""

    id: str
    skin_id: int
    kind: str
    quantity: int
    unit_price: float
    executed_at: datetime
    commission_percent: float = 0.0
    net_total: float | None = None
    currency: str = "USD"
    name: str = ""

    @property
    def gross_total(self) -> float:
        return self.quantity * self.unit_price

    @property
    def resolved_net_total(self) -> float:
        """Stored net total, falling back to quantity x unit price."""
        if self.net_total is not None:
            return self.net_total
        return self.gross_total

    @property
    def commission_net_total(self) -> float:
        """Net total with the commission taken off sells."""
        if self.net_total is not None:
            return self.net_total
        if self.kind == SELL:
            return self.gross_total * (1 - self.commission_percent / 100)
        return self.gross_total

    # Accessors used by the view-model query engine.

    @property
    def identifier(self) -> str:
        return str(self.skin_id)

    @property
    def status(self) -> str:
        return self.kind

    @property
    def value(self) -> float:
        return self.resolved_net_total

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Transaction:
        """Build from a transaction record as returned by the portfolio API."""
        skins = record.get("skins") or {}
        name = record.get("market_hash_name") or skins.get("market_hash_name") or ""
        executed_at = (
            parse_timestamp(record.get("executed_at"))
            or parse_timestamp(record.get("created_at"))
            or _EPOCH
        )
        return cls(
            id=str(record.get("id", "")),
            skin_id=int(record.get("skin_id", 0)),
            kind=str(record.get("type", "")).lower(),
            quantity=int(float(record.get("quantity", 0) or 0)),
            unit_price=float(record.get("unit_price", 0) or 0),
            executed_at=executed_at,
            commission_percent=float(record.get("commission_percent", 0) or 0),
            net_total=_optional_float(record.get("net_total")),
            currency=str(record.get("currency") or "USD"),
            name=str(name),
        )


@dataclass(frozen=True)
class HoldingRow:
    """One holdings line as served by the portfolio API."""

    skin_id: int
    name: str
    quantity: int
    current_price: float
    line_value: float
    seven_day_change_percent: float | None = None
    status: str = ""
    clue_action: str | None = None
    clue_confidence: float | None = None

    @property
    def identifier(self) -> str:
        return str(self.skin_id)

    @property
    def value(self) -> float:
        return self.line_value

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> HoldingRow:
        clue = record.get("managementClue") or {}
        quantity = int(record.get("quantity", 0) or 0)
        current_price = float(record.get("currentPrice", 0) or 0)
        line_value = _optional_float(record.get("lineValue"))
        return cls(
            skin_id=int(record.get("skinId", 0)),
            name=str(record.get("marketHashName") or ""),
            quantity=quantity,
            current_price=current_price,
            line_value=line_value if line_value is not None else quantity * current_price,
            seven_day_change_percent=_optional_float(record.get("sevenDayChangePercent")),
            status=str(record.get("priceStatus") or ""),
            clue_action=clue.get("action"),
            clue_confidence=_optional_float(clue.get("confidence")),
        )


@dataclass(frozen=True)
class TimelineEntry:
    """One ledger event, as displayed in a position's history."""

    id: str
    date: datetime
    kind: str
    quantity: int
    unit_price: float
    net_total: float


@dataclass(frozen=True)
class LedgerSnapshot:
    """Average-cost accounting state of one position."""

    skin_id: int | None
    open_quantity: int
    cost_basis: float
    avg_entry_price: float | None
    realized_pnl: float
    timeline: tuple[TimelineEntry, ...] = ()

    def unrealized_pnl(self, current_price: float) -> float:
        """Mark-to-market profit of the open quantity at ``current_price``."""
        if self.open_quantity <= 0:
            return 0.0
        return self.open_quantity * current_price - self.cost_basis


@dataclass(frozen=True)
class ImportRow:
    """Candidate transaction parsed from one line of import text.

    Numeric fields are NaN when the cell could not be read as a number.
    """

    line_no: int
    skin_id: float
    kind: str
    quantity: float
    unit_price: float
    commission_percent: float
    executed_at: str | None = None


@dataclass(frozen=True)
class ImportFailure:
    line_no: int
    message: str


@dataclass(frozen=True)
class ImportSummary:
    total: int
    imported: int
    failed: tuple[ImportFailure, ...] = ()


@dataclass(frozen=True)
class ViewQuery:
    search_text: str = ""
    status_filter: str = "all"
    sort_key: str = "value-desc"
    page: int = 1
    page_size: int = 20


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    items: tuple[T, ...] = field(default_factory=tuple)
    page: int = 1
    page_count: int = 1
    total_count: int = 0
