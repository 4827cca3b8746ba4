"""Transaction entry validation and coercion to the write schema."""
from __future__ import annotations

import math
from typing import Any

from ..config import ImportConfig
from ..errors import ValidationError
from ..models import TRANSACTION_KINDS, ImportRow, parse_timestamp


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _positive_int(value: Any, message: str) -> int:
    number = _as_number(value)
    if not math.isfinite(number) or number <= 0 or number != int(number):
        raise ValidationError(message)
    return int(number)


def validate_entry(
    skin_id: Any,
    kind: Any,
    quantity: Any,
    unit_price: Any,
    commission_percent: Any,
    executed_at: Any = None,
    currency: str = "USD",
) -> dict[str, Any]:
    """Validate one transaction and return its write payload.

    Raises ValidationError on the first invalid field; nothing is submitted
    or recorded in that case.
    """
    if skin_id is None or skin_id == "":
        raise ValidationError("Select a skin first")
    skin = _positive_int(skin_id, "skinId must be a positive integer")

    kind_text = str(kind or "").strip().lower()
    if kind_text not in TRANSACTION_KINDS:
        raise ValidationError('type must be "buy" or "sell"')

    qty = _positive_int(quantity, "quantity must be a positive integer")

    price = _as_number(unit_price)
    if not math.isfinite(price) or price < 0:
        raise ValidationError("unitPrice must be a number >= 0")

    commission = _as_number(commission_percent)
    if not math.isfinite(commission) or not 0 <= commission < 100:
        raise ValidationError("commissionPercent must be in range [0, 100)")

    if not isinstance(currency, str) or len(currency.strip()) < 3:
        raise ValidationError("currency must be a valid code")

    payload: dict[str, Any] = {
        "skinId": skin,
        "type": kind_text,
        "quantity": qty,
        "unitPrice": price,
        "commissionPercent": commission,
        "currency": currency.strip().upper(),
    }

    if executed_at not in (None, ""):
        parsed = parse_timestamp(executed_at)
        if parsed is None:
            raise ValidationError("executedAt must be a valid ISO date")
        payload["executedAt"] = parsed.isoformat()

    return payload


def build_payload(row: ImportRow, defaults: ImportConfig) -> dict[str, Any]:
    """Coerce a parsed import row into the write schema."""
    return validate_entry(
        skin_id=row.skin_id,
        kind=row.kind,
        quantity=row.quantity,
        unit_price=row.unit_price,
        commission_percent=row.commission_percent,
        executed_at=row.executed_at,
        currency=defaults.currency,
    )
