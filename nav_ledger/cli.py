"""Command-line entrypoint for NAV, ownership and snapshot reporting."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from datetime import date
from decimal import Decimal, InvalidOperation

import pandas as pd

from nav_ledger.application.context import LedgerContext
from nav_ledger.application.records import FundQueries
from nav_ledger.application.snapshots import SnapshotBuilder
from nav_ledger.config import SETTINGS
from nav_ledger.domain.errors import LedgerError
from nav_ledger.domain.models import PeriodSnapshot
from nav_ledger.infrastructure.database.session import create_schema, create_session_factory
from nav_ledger.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a decimal number: {value}") from exc


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO date (YYYY-MM-DD): {value}") from exc


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fund NAV, ownership and snapshot reporting")
    parser.add_argument("--database-url", type=str, default=SETTINGS.database_url, help="SQLAlchemy database URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database schema")
    subparsers.add_parser("nav", help="Show the current NAV and its breakdowns")
    subparsers.add_parser("ownership", help="Show every investor's capital and ownership")
    subparsers.add_parser("balance-check", help="Compare NAV with total investor capital")

    snapshot = subparsers.add_parser("snapshot", help="Create a NAV snapshot")
    snapshot.add_argument("--date", type=_date, help="Snapshot date (YYYY-MM-DD), defaults to today")
    snapshot.add_argument("--fee-rate", type=_decimal, help="Performance fee rate in percent")

    history = subparsers.add_parser("snapshots", help="List stored snapshots")
    history.add_argument("--from", dest="date_from", type=_date, help="Earliest snapshot date")
    history.add_argument("--to", dest="date_to", type=_date, help="Latest snapshot date")
    return parser.parse_args(argv)


def _print_table(title: str, frame: pd.DataFrame) -> None:
    print(title)
    print("=" * len(title))
    print("(none)" if frame.empty else frame.to_string(index=False))
    print()


def _print_snapshot(snapshot: PeriodSnapshot) -> None:
    print(f"Snapshot {snapshot.id} on {snapshot.date}")
    print(f"Total asset value: {snapshot.total_asset_value}")
    print(f"Total bank balance: {snapshot.total_bank_balance}")
    print(f"Total liabilities: {snapshot.total_liabilities}")
    print(f"NAV: {snapshot.nav}")
    print(f"Performance fee: {snapshot.total_performance_fee if snapshot.total_performance_fee is not None else '-'}")
    print()
    _print_table(
        "Investors",
        pd.DataFrame(
            [
                {
                    "investor_id": item.investor_id,
                    "capital": item.capital_amount,
                    "ownership_%": item.ownership_percent,
                    "fee": item.performance_fee,
                }
                for item in snapshot.investor_snapshots
            ]
        ),
    )


def run(args: argparse.Namespace) -> int:
    session_factory = create_session_factory(args.database_url)
    if args.command == "init-db":
        create_schema(session_factory)
        print(f"Schema created at {args.database_url}")
        return 0

    context = LedgerContext(unit_of_work=SqlAlchemyUnitOfWork(session_factory))
    queries = FundQueries(context)
    builder = SnapshotBuilder(context)

    if args.command == "nav":
        nav = queries.calculate_current_nav()
        print(f"Total asset value: {nav.total_asset_value}")
        print(f"Total bank balance: {nav.total_bank_balance}")
        print(f"Total liabilities: {nav.total_liabilities}")
        print(f"NAV: {nav.nav}")
        print()
        _print_table("Assets by type", pd.DataFrame([asdict(item) for item in nav.asset_breakdown]))
        _print_table("Bank by currency", pd.DataFrame([asdict(item) for item in nav.bank_breakdown]))
        _print_table("Liabilities", pd.DataFrame([asdict(item) for item in nav.liability_breakdown]))
    elif args.command == "ownership":
        _print_table(
            "Investor ownership",
            pd.DataFrame([asdict(item) for item in queries.calculate_investor_ownership()]),
        )
    elif args.command == "balance-check":
        analysis = queries.analyze_nav_balance()
        print(f"NAV: {analysis.nav}")
        print(f"Total investor capital: {analysis.total_investor_capital}")
        print(f"Difference: {analysis.difference} ({analysis.difference_percent:.2f}%)")
        print("Balanced" if analysis.is_balanced else "Not balanced")
    elif args.command == "snapshot":
        _print_snapshot(builder.create_snapshot(args.date, args.fee_rate))
    elif args.command == "snapshots":
        snapshots = builder.list_snapshots(args.date_from, args.date_to)
        _print_table(
            "Snapshots",
            pd.DataFrame(
                [
                    {
                        "id": item.id,
                        "date": item.date,
                        "nav": item.nav,
                        "fee_rate": item.performance_fee_rate,
                        "total_fee": item.total_performance_fee,
                        "investors": len(item.investor_snapshots),
                    }
                    for item in snapshots
                ]
            ),
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=SETTINGS.log_level, format=LOG_FORMAT)
    try:
        return run(args)
    except LedgerError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
