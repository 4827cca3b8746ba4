"""Filter, sort and paginate holdings or transactions for display.

Rows are plain objects read through attributes: ``name``, ``identifier``,
``status``, ``value``, ``quantity`` and, where the row has them,
``seven_day_change_percent``, ``executed_at``, ``clue_action`` and
``clue_confidence``.
"""
from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from typing import Any, Callable, TypeVar

from ..models import PagedResult, ViewQuery

T = TypeVar("T")

ALL = "all"
DEFAULT_SORT = "value-desc"

# Management clue actions, most urgent first.
_CLUE_PRIORITY = {"sell": 0, "watch": 1, "hold": 2}


def clamp_int(raw: Any, lo: int, hi: int) -> int:
    """Floor ``raw`` into ``[lo, hi]``; non-numeric or non-finite gives ``lo``."""
    # ints beyond float range are finite and must not go through float()
    if isinstance(raw, int):
        return max(lo, min(hi, raw))
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return lo
    if not math.isfinite(number):
        return lo
    return max(lo, min(hi, math.floor(number)))


# ---------------------------------------------------------------------------
# Sort keys
# ---------------------------------------------------------------------------


def _value(row: Any) -> Any:
    return getattr(row, "value", None)


def _name(row: Any) -> Any:
    return (getattr(row, "name", "") or "").casefold()


def _quantity(row: Any) -> Any:
    return getattr(row, "quantity", None)


def _change_7d(row: Any) -> Any:
    return getattr(row, "seven_day_change_percent", None)


def _executed_at(row: Any) -> Any:
    return getattr(row, "executed_at", None)


def _clue(row: Any) -> Any:
    action = (getattr(row, "clue_action", None) or "").lower()
    confidence = getattr(row, "clue_confidence", None) or 0.0
    return (_CLUE_PRIORITY.get(action, len(_CLUE_PRIORITY)), -confidence)


# sort key name -> (key function, descending)
SORT_KEYS: dict[str, tuple[Callable[[Any], Any], bool]] = {
    "value-desc": (_value, True),
    "value-asc": (_value, False),
    "name-asc": (_name, False),
    "name-desc": (_name, True),
    "quantity-desc": (_quantity, True),
    "quantity-asc": (_quantity, False),
    "change7d-desc": (_change_7d, True),
    "change7d-asc": (_change_7d, False),
    "management-clue": (_clue, False),
    "date-desc": (_executed_at, True),
    "date-asc": (_executed_at, False),
}


def sort_rows(rows: Sequence[T], sort_key: str = DEFAULT_SORT) -> list[T]:
    """Stable sort by a named key; unknown keys fall back to value-desc.

    Rows without a value for the key go last in either direction, in their
    original relative order.
    """
    key, descending = SORT_KEYS.get(sort_key, SORT_KEYS[DEFAULT_SORT])

    present: list[T] = []
    missing: list[T] = []
    for row in rows:
        k = key(row)
        if k is None or (isinstance(k, float) and math.isnan(k)):
            missing.append(row)
        else:
            present.append(row)

    return sorted(present, key=key, reverse=descending) + missing


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def matches(row: Any, search_text: str = "", status_filter: str = ALL) -> bool:
    """Search text (in name or identifier) AND status/type filter."""
    needle = (search_text or "").strip().casefold()
    if needle:
        name = (getattr(row, "name", "") or "").casefold()
        identifier = str(getattr(row, "identifier", "") or "").casefold()
        if needle not in name and needle not in identifier:
            return False

    wanted = (status_filter or ALL).strip().casefold()
    if wanted == ALL:
        return True
    return (getattr(row, "status", "") or "").casefold() == wanted


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def filter_sort_page(collection: Sequence[T], query: ViewQuery) -> PagedResult[T]:
    """Filter, sort and slice ``collection`` for display.

    A page number past the last page snaps to the last page.
    """
    rows = [
        row for row in collection
        if matches(row, query.search_text, query.status_filter)
    ]
    rows = sort_rows(rows, query.sort_key)

    page_size = clamp_int(query.page_size, 1, sys.maxsize)
    total = len(rows)
    page_count = max(math.ceil(total / page_size), 1)
    page = clamp_int(query.page, 1, page_count)

    start = (page - 1) * page_size
    return PagedResult(
        items=tuple(rows[start:start + page_size]),
        page=page,
        page_count=page_count,
        total_count=total,
    )
