"""Read-only projections over stored snapshots and the change log."""

from __future__ import annotations

from datetime import date, datetime

from core.domain.change import PortfolioChange, Significance
from core.domain.holding import HoldingSnapshot
from core.domain.snapshot import PortfolioSnapshot
from core.ports.snapshot_store import SnapshotStore

from .dates import Clock, as_day, trailing_start, utc_today

SIGNIFICANT_LEVELS = (Significance.HIGH, Significance.MEDIUM)


class HistoryQuery:
    def __init__(self, snapshots: SnapshotStore, *, clock: Clock = utc_today) -> None:
        self._snapshots = snapshots
        self._clock = clock

    def change_history(self, fund_id: str, days: int = 30) -> list[PortfolioChange]:
        """Changes of one fund within the trailing window, newest first."""
        return self._snapshots.list_changes(fund_id, since=trailing_start(self._clock(), days))

    def significant_changes(self, days: int = 7) -> list[PortfolioChange]:
        """MEDIUM and HIGH changes of every fund, newest and largest first."""
        return self._snapshots.list_changes_by_significance(
            since=trailing_start(self._clock(), days), significances=SIGNIFICANT_LEVELS
        )

    def holdings_as_of(self, fund_id: str, day: date | datetime) -> list[HoldingSnapshot]:
        return self._snapshots.list_holding_snapshots(fund_id, as_day(day))

    def snapshot_history(self, fund_id: str, days: int = 30) -> list[PortfolioSnapshot]:
        return self._snapshots.list_portfolio_snapshots(fund_id, since=trailing_start(self._clock(), days))

    def holdings_history(self, fund_id: str, days: int = 30) -> list[HoldingSnapshot]:
        return self._snapshots.list_holding_snapshot_history(fund_id, since=trailing_start(self._clock(), days))
