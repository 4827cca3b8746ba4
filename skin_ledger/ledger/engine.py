"""Average-cost ledger: pure functions, no I/O.

Positions are valued at their blended average purchase price. A sell removes
open quantity at that average cost and realizes the difference between its
proceeds and the removed cost.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models import BUY, SELL, LedgerSnapshot, TimelineEntry, Transaction

logger = logging.getLogger(__name__)


def net_total_of(tx: Transaction, apply_commission: bool = False) -> float:
    """Net total of a transaction.

    A stored net total always wins. Otherwise it is quantity x unit price,
    less the commission on sells when ``apply_commission`` is set.
    """
    if apply_commission:
        return tx.commission_net_total
    return tx.resolved_net_total


def chronological(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort ascending by execution time; equal timestamps keep arrival order."""
    return sorted(transactions, key=lambda tx: tx.executed_at)


def compute_ledger(
    transactions: Iterable[Transaction],
    skin_id: int | None = None,
    apply_commission: bool = False,
) -> LedgerSnapshot:
    """Replay one position's transactions into a ledger snapshot.

    Args:
        transactions: Every transaction of the position, in any order.
        skin_id: Position identifier recorded on the snapshot. Defaults to
            the skin id of the first transaction.
        apply_commission: Derive missing sell net totals net of commission.
    """
    ordered = chronological(transactions)
    if skin_id is None and ordered:
        skin_id = ordered[0].skin_id

    open_quantity = 0
    cost_basis = 0.0
    realized_pnl = 0.0
    timeline: list[TimelineEntry] = []

    for tx in ordered:
        net_total = net_total_of(tx, apply_commission)
        timeline.append(
            TimelineEntry(
                id=tx.id,
                date=tx.executed_at,
                kind=tx.kind,
                quantity=tx.quantity,
                unit_price=tx.unit_price,
                net_total=net_total,
            )
        )

        if tx.quantity <= 0:
            continue

        if tx.kind == BUY:
            open_quantity += tx.quantity
            cost_basis += net_total
            continue

        if tx.kind != SELL or open_quantity <= 0:
            continue

        sell_qty = min(tx.quantity, open_quantity)
        if sell_qty < tx.quantity:
            # TODO: confirm with product whether oversells mean missing buy
            # history; the uncovered part is currently dropped.
            logger.debug(
                "Sell %s of %d exceeds open quantity %d; allocating proceeds pro rata",
                tx.id, tx.quantity, open_quantity,
            )

        avg_cost = cost_basis / open_quantity
        proceeds = net_total * (sell_qty / tx.quantity)
        removed_cost = avg_cost * sell_qty

        realized_pnl += proceeds - removed_cost
        open_quantity -= sell_qty
        cost_basis -= removed_cost

        if open_quantity <= 0:
            open_quantity = 0
            cost_basis = 0.0

    avg_entry_price = cost_basis / open_quantity if open_quantity > 0 else None

    return LedgerSnapshot(
        skin_id=skin_id,
        open_quantity=open_quantity,
        cost_basis=cost_basis,
        avg_entry_price=avg_entry_price,
        realized_pnl=realized_pnl,
        timeline=tuple(reversed(timeline)),
    )


def compute_positions(
    transactions: Iterable[Transaction], apply_commission: bool = False
) -> dict[int, LedgerSnapshot]:
    """Group a portfolio's transactions by skin and compute each ledger."""
    by_skin: dict[int, list[Transaction]] = {}
    for tx in transactions:
        by_skin.setdefault(tx.skin_id, []).append(tx)
    return {
        skin_id: compute_ledger(txs, skin_id=skin_id, apply_commission=apply_commission)
        for skin_id, txs in by_skin.items()
    }
