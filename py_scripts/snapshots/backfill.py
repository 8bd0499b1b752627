"""Copy one day's stored snapshots onto another day so the detector has a baseline."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field

from adapters.storage.sqlalchemy_snapshot_store import SqlAlchemySnapshotStore
from toolkits.snapshots.dates import Clock, utc_today

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    target: dt.date
    sources: dict[str, dt.date] = field(default_factory=dict)
    portfolio_snapshots_created: int = 0
    holding_snapshots_created: int = 0
    skipped_funds: list[str] = field(default_factory=list)


def resolve_source_day(
    store: SqlAlchemySnapshotStore, fund_id: str, *, today: dt.date, source: dt.date | None = None
) -> dt.date | None:
    """The day to copy from: ``source`` if given, else today, else the latest stored day."""
    if source is not None:
        return source
    if store.get_portfolio_snapshot(fund_id, today) or store.list_holding_snapshots(fund_id, today):
        return today

    latest = store.list_portfolio_snapshots(fund_id, limit=1)
    if latest:
        return latest[0].date
    days = store.latest_holding_snapshot_days(fund_id, limit=1)
    return days[0] if days else None


def backfill_day(
    store: SqlAlchemySnapshotStore,
    *,
    target: dt.date | None = None,
    source: dt.date | None = None,
    fund_id: str | None = None,
    clock: Clock = utc_today,
) -> BackfillResult:
    """Duplicate snapshots of ``source`` as if they had been taken on ``target``.

    ``target`` defaults to yesterday. Records that already exist on the target day are
    left untouched.
    """

    today = clock()
    target = target or today - dt.timedelta(days=1)
    result = BackfillResult(target=target)
    fund_ids = [fund_id] if fund_id is not None else store.list_fund_ids()

    for fund in fund_ids:
        source_day = resolve_source_day(store, fund, today=today, source=source)
        if source_day is None or source_day == target:
            logger.info("Nothing to backfill for fund %s (source=%s, target=%s)", fund, source_day, target)
            result.skipped_funds.append(fund)
            continue
        result.sources[fund] = source_day

        snapshot = store.get_portfolio_snapshot(fund, source_day)
        if snapshot is not None:
            created_at = dt.datetime.combine(target, dt.time.min, tzinfo=dt.UTC)
            _, created = store.save_portfolio_snapshot(
                snapshot.model_copy(update={"date": target, "created_at": created_at})
            )
            result.portfolio_snapshots_created += int(created)

        if store.list_holding_snapshots(fund, target):
            logger.info("Holding snapshots already exist for fund %s on %s", fund, target)
        else:
            rows = [row.model_copy(update={"date": target}) for row in store.list_holding_snapshots(fund, source_day)]
            if rows:
                result.holding_snapshots_created += store.save_holding_snapshots(rows)

        logger.info("Backfilled fund %s from %s -> %s", fund, source_day.isoformat(), target.isoformat())

    logger.info(
        "Backfill to %s done: portfolio_snapshots=%d holding_snapshots=%d skipped=%d",
        target.isoformat(),
        result.portfolio_snapshots_created,
        result.holding_snapshots_created,
        len(result.skipped_funds),
    )
    return result
