"""Command-line interface for the skin ledger."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import LedgerError
from .logging_setup import configure_logging
from .services import PortfolioService
from .views import SORT_KEYS, ViewState

logger = logging.getLogger(__name__)


def _add_view_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--search", default="", help="Filter by name or skin id")
    parser.add_argument(
        "--filter",
        dest="status_filter",
        default="all",
        help="Status or transaction type to show (default: all)",
    )
    parser.add_argument(
        "--sort", choices=sorted(SORT_KEYS), default=None, help="Sort order"
    )
    parser.add_argument("--page", type=int, default=1, help="Page number")
    parser.add_argument("--page-size", type=int, default=None, help="Rows per page")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="skin-ledger",
        description="Transaction ledger and portfolio views for skin portfolios",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    import_parser = sub.add_parser("import", help="Import transactions from a CSV file")
    import_parser.add_argument("file", type=Path, help="CSV file to import")

    ledger_parser = sub.add_parser("ledger", help="Show the ledger of one position")
    ledger_parser.add_argument("skin_id", type=int)
    ledger_parser.add_argument(
        "--price", type=float, default=None, help="Current unit price for unrealized P&L"
    )

    sub.add_parser("positions", help="Show open positions from transaction history")

    holdings_parser = sub.add_parser("holdings", help="List holdings")
    _add_view_arguments(holdings_parser)

    tx_parser = sub.add_parser("transactions", help="List transactions")
    _add_view_arguments(tx_parser)

    add_parser = sub.add_parser("add", help="Add a single transaction")
    add_parser.add_argument("skin_id")
    add_parser.add_argument("type", choices=["buy", "sell"])
    add_parser.add_argument("quantity")
    add_parser.add_argument("unit_price")
    add_parser.add_argument("--commission", default=None, help="Commission percent")
    add_parser.add_argument("--executed-at", default=None, help="ISO timestamp")

    delete_parser = sub.add_parser("delete", help="Delete a transaction")
    delete_parser.add_argument("transaction_id")

    return parser


def _view_for(service: PortfolioService, args: argparse.Namespace) -> ViewState:
    view = service.new_view()
    view.set_search(args.search)
    view.set_filter(args.status_filter)
    if args.sort:
        view.set_sort(args.sort)
    if args.page_size is not None:
        view.set_page_size(args.page_size)
    view.set_page(args.page)
    return view


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    service = PortfolioService(config)

    if args.command == "import":
        text = args.file.read_text(encoding="utf-8-sig")
        summary = await service.import_text(text)
        if summary is None:
            return 1
        print(service.format_summary(summary))
        return 0 if not summary.failed else 2

    if args.command == "add":
        created = await service.add_transaction(
            args.skin_id,
            args.type,
            args.quantity,
            args.unit_price,
            commission_percent=args.commission,
            executed_at=args.executed_at,
        )
        print(f"Created transaction {created.get('id', '')}")
        return 0

    if args.command == "delete":
        await service.delete_transaction(args.transaction_id)
        print(f"Deleted transaction {args.transaction_id}")
        return 0

    await service.refresh()

    if args.command == "ledger":
        print(service.format_ledger(service.ledger(args.skin_id), args.price))
    elif args.command == "positions":
        for snapshot in service.positions().values():
            if snapshot.open_quantity > 0:
                print(service.format_ledger(snapshot))
    elif args.command == "holdings":
        page = service.holdings_page(_view_for(service, args))
        print(service.format_holdings_page(page))
    elif args.command == "transactions":
        page = service.transactions_page(_view_for(service, args))
        print(service.format_transactions_page(page))
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        code = asyncio.run(_run(args))
    except LedgerError as e:
        logger.error("%s", e)
        sys.exit(1)
    sys.exit(code)
