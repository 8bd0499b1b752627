"""Maintenance commands for the fund snapshot store."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
from collections.abc import Sequence

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore
from core.settings import get_settings
from toolkits.snapshots import SnapshotEngine, summarize_changes
from toolkits.snapshots.io import load_holdings_csv, write_changes_csv

from .backfill import backfill_day

logger = logging.getLogger(__name__)


def _parse_day(value: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Snapshot fund holdings, detect changes, and maintain history.")
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL setting).")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import-holdings", help="Replace a fund's current holdings from a CSV file.")
    importer.add_argument("csv_path", help="Holdings CSV with symbol, name, weight, sector and market value columns.")
    importer.add_argument("--fund", help="Fund id for every row (required when the CSV has no fund column).")

    snapshot = subparsers.add_parser("snapshot", help="Snapshot current holdings for today.")
    snapshot.add_argument("--fund", action="append", dest="funds", help="Fund id; repeat for several (default: all).")

    detect = subparsers.add_parser("detect", help="Detect and record changes between yesterday and today.")
    detect.add_argument("--fund", action="append", dest="funds", help="Fund id; repeat for several (default: all).")

    compare = subparsers.add_parser("compare", help="Print changes between two days without recording them.")
    compare.add_argument("fund", help="Fund id.")
    compare.add_argument("--from", dest="from_date", type=_parse_day, help="Base day (YYYY-MM-DD).")
    compare.add_argument("--to", dest="to_date", type=_parse_day, help="Target day (YYYY-MM-DD).")
    compare.add_argument("--top", type=int, default=10, help="Top N buys and sells shown.")
    compare.add_argument("--output", help="Optional CSV path for the full change list.")

    backfill = subparsers.add_parser("backfill", help="Copy a day's snapshots onto another day.")
    backfill.add_argument("--target", type=_parse_day, help="Day to write (default: yesterday).")
    backfill.add_argument("--source", type=_parse_day, help="Day to copy (default: today or latest available).")
    backfill.add_argument("--fund", help="Only backfill this fund.")

    export = subparsers.add_parser("export-changes", help="Write recorded changes to CSV.")
    export.add_argument("output", help="CSV path to write.")
    scope = export.add_mutually_exclusive_group(required=True)
    scope.add_argument("--fund", help="Export the change history of one fund.")
    scope.add_argument("--significant", action="store_true", help="Export MEDIUM and HIGH changes of all funds.")
    export.add_argument("--days", type=int, help="Trailing window in days (default: 30, or 7 with --significant).")

    return parser


def _format_change(change) -> str:
    return (
        f"  {change.change_type.value:<8} {change.stock_symbol:<8} {change.change_amount:+.2f}pp "
        f"({change.significance.value}) {change.stock_name}"
    )


def run_command(args: argparse.Namespace, store: SqlAlchemySnapshotStore, engine: SnapshotEngine) -> int:
    if args.command == "import-holdings":
        holdings = load_holdings_csv(args.csv_path, fund_id=args.fund)
        by_fund: dict[str, list] = {}
        for holding in holdings:
            by_fund.setdefault(holding.fund_id, []).append(holding)
        for fund_id, rows in by_fund.items():
            store.replace_holdings(fund_id, rows)
        print(f"Imported {len(holdings)} holdings for {len(by_fund)} fund(s)")
        return 0

    if args.command == "snapshot":
        missing = 0
        for fund_id in args.funds or store.list_fund_ids():
            snapshot = engine.builder.build_snapshot(fund_id)
            if snapshot is None:
                missing += 1
                print(f"{fund_id}: no holdings")
                continue
            print(f"{fund_id}: snapshot {snapshot.date.isoformat()} ({snapshot.total_holdings} holdings)")
        return 1 if missing else 0

    if args.command == "detect":
        for fund_id in args.funds or store.list_fund_ids():
            changes = engine.detector.detect_and_persist_changes(fund_id)
            print(f"{fund_id}: {len(changes)} changes")
        return 0

    if args.command == "compare":
        changes = engine.detector.compare_snapshots(args.fund, args.from_date, args.to_date)
        summary = summarize_changes(changes, top_n=args.top)
        print(f"{args.fund}: {len(changes)} changes")
        for label in ("buys", "sells"):
            if summary[label]:
                print(f"{label.title()}:")
                for change in summary[label]:
                    print(_format_change(change))
        if args.output:
            write_changes_csv(changes, args.output)
        return 0

    if args.command == "backfill":
        result = backfill_day(store, target=args.target, source=args.source, fund_id=args.fund)
        print(
            f"Backfilled {result.target.isoformat()}: {result.portfolio_snapshots_created} portfolio snapshots, "
            f"{result.holding_snapshots_created} holding snapshots"
        )
        return 0

    if args.command == "export-changes":
        if args.significant:
            changes = engine.history.significant_changes(args.days or 7)
        else:
            changes = engine.history.change_history(args.fund, args.days or 30)
        write_changes_csv(changes, args.output)
        print(f"Wrote {len(changes)} changes to {args.output}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    settings = get_settings()
    store = SqlAlchemySnapshotStore(args.database_url or settings.database_url)
    engine = SnapshotEngine.from_settings(store, store, settings)
    try:
        return run_command(args, store, engine)
    finally:
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
