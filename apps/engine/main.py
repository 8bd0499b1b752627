from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore
from core.settings import Settings, get_settings
from toolkits.snapshots import SnapshotEngine
from toolkits.snapshots.dates import utc_today

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FundRunResult:
    fund_id: str
    snapshot_created: bool = False
    changes_detected: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DailyRunReport:
    day: date
    results: list[FundRunResult] = field(default_factory=list)

    @property
    def funds_processed(self) -> int:
        return len(self.results)

    @property
    def snapshots_created(self) -> int:
        return sum(1 for result in self.results if result.snapshot_created)

    @property
    def changes_detected(self) -> int:
        return sum(result.changes_detected for result in self.results)

    @property
    def failures(self) -> list[FundRunResult]:
        return [result for result in self.results if not result.ok]


def _configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _analyze_fund(engine: SnapshotEngine, fund_id: str) -> FundRunResult:
    snapshot, created = engine.builder.build(fund_id)
    if snapshot is None:
        return FundRunResult(fund_id=fund_id)
    changes = engine.detector.detect_and_persist_changes(fund_id)
    return FundRunResult(fund_id=fund_id, snapshot_created=created, changes_detected=len(changes))


async def _run_fund(engine: SnapshotEngine, fund_id: str, semaphore: asyncio.Semaphore) -> FundRunResult:
    async with semaphore:
        try:
            return await asyncio.to_thread(_analyze_fund, engine, fund_id)
        except Exception as exc:
            logger.exception("Daily analysis failed for fund %s", fund_id)
            return FundRunResult(fund_id=fund_id, error=str(exc) or type(exc).__name__)


async def run_daily_analysis(
    store: SqlAlchemySnapshotStore,
    *,
    fund_ids: Sequence[str] | None = None,
    max_concurrency: int = 4,
    today: date | None = None,
    settings: Settings | None = None,
) -> DailyRunReport:
    """Snapshot every fund and record its changes against the previous day.

    A failure in one fund is logged and reported without stopping the others.
    """

    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")
    settings = settings or get_settings()
    day = today or utc_today()
    engine = SnapshotEngine.from_settings(store, store, settings, clock=lambda: day)

    targets = list(fund_ids) if fund_ids is not None else store.list_fund_ids()
    report = DailyRunReport(day=day)
    if not targets:
        logger.info("No funds to analyze")
        return report

    logger.info("Daily analysis starting funds=%d max_concurrency=%d", len(targets), max_concurrency)
    semaphore = asyncio.Semaphore(max_concurrency)
    report.results = list(await asyncio.gather(*(_run_fund(engine, fund_id, semaphore) for fund_id in targets)))
    logger.info(
        "Daily analysis finished funds=%d snapshots=%d changes=%d failures=%d",
        report.funds_processed,
        report.snapshots_created,
        report.changes_detected,
        len(report.failures),
    )
    return report


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Snapshot fund holdings and record daily portfolio changes.")
    parser.add_argument(
        "--fund",
        action="append",
        dest="funds",
        help="Fund id to analyze; repeat for several (default: every fund with holdings).",
    )
    parser.add_argument("--max-concurrency", type=int, help="Funds processed in parallel (default: from settings).")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (default: from settings).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    _configure_logging(args.log_level or settings.log_level)

    store = SqlAlchemySnapshotStore(settings.database_url)
    try:
        report = asyncio.run(
            run_daily_analysis(
                store,
                fund_ids=args.funds,
                max_concurrency=args.max_concurrency or settings.engine_max_concurrency,
                settings=settings,
            )
        )
    finally:
        store.close()
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
