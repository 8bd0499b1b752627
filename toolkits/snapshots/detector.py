"""Change detector: resolves two dated states of a fund and diffs them."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from core.domain.change import PortfolioChange
from core.ports.snapshot_store import SnapshotStore

from .dates import Clock, as_day, utc_today
from .diff import DEFAULT_THRESHOLDS, NOISE_THRESHOLD, PortfolioState, SignificanceThresholds, diff_states

logger = logging.getLogger(__name__)


class ChangeDetector:
    def __init__(
        self,
        snapshots: SnapshotStore,
        *,
        noise_threshold: float = NOISE_THRESHOLD,
        thresholds: SignificanceThresholds = DEFAULT_THRESHOLDS,
        clock: Clock = utc_today,
    ) -> None:
        self._snapshots = snapshots
        self._noise_threshold = noise_threshold
        self._thresholds = thresholds
        self._clock = clock

    def compare_snapshots(
        self,
        fund_id: str,
        from_date: date | datetime | None = None,
        to_date: date | datetime | None = None,
    ) -> list[PortfolioChange]:
        """Diff two days of a fund without persisting anything.

        With both dates the given calendar days are compared; otherwise the two most
        recent snapshot days are used. Missing data on either side yields an empty list.
        """

        if from_date is not None and to_date is not None:
            base_day, target_day = as_day(from_date), as_day(to_date)
        else:
            latest = self._latest_two_days(fund_id)
            if latest is None:
                logger.info("Fewer than two snapshot days for fund %s; nothing to compare", fund_id)
                return []
            base_day, target_day = latest

        base = self.resolve_state(fund_id, base_day)
        target = self.resolve_state(fund_id, target_day)
        if base is None or target is None:
            logger.info(
                "Missing snapshots for fund %s (base %s=%s, target %s=%s)",
                fund_id,
                base_day,
                "found" if base else "missing",
                target_day,
                "found" if target else "missing",
            )
            return []

        changes = diff_states(base, target, noise_threshold=self._noise_threshold, thresholds=self._thresholds)
        logger.debug(
            "Compared fund %s %s(%s) -> %s(%s): %d changes",
            fund_id,
            base_day,
            base.source,
            target_day,
            target.source,
            len(changes),
        )
        return changes

    def detect_and_persist_changes(self, fund_id: str) -> list[PortfolioChange]:
        """Diff yesterday against today and append the result to the change log."""
        today = self._clock()
        yesterday = today - timedelta(days=1)
        changes = self.compare_snapshots(fund_id, yesterday, today)
        if changes:
            inserted = self._snapshots.append_changes(changes)
            logger.info(
                "Detected %d portfolio changes for fund %s (%d newly recorded)", len(changes), fund_id, inserted
            )
        return changes

    def resolve_state(self, fund_id: str, day: date) -> PortfolioState | None:
        """Weights of the fund on ``day``; full holding snapshots win over the top-holdings copy."""
        state = self._state_from_holding_snapshots(fund_id, day)
        if state is None:
            state = self._state_from_portfolio_snapshot(fund_id, day)
        return state

    def _state_from_holding_snapshots(self, fund_id: str, day: date) -> PortfolioState | None:
        rows = self._snapshots.list_holding_snapshots(fund_id, day)
        if not rows:
            return None
        return PortfolioState.from_holding_snapshots(fund_id, day, rows)

    def _state_from_portfolio_snapshot(self, fund_id: str, day: date) -> PortfolioState | None:
        snapshot = self._snapshots.get_portfolio_snapshot(fund_id, day)
        if snapshot is None:
            return None
        logger.warning(
            "Using top-%d holdings of the portfolio snapshot for fund %s on %s; holding snapshots missing",
            len(snapshot.top_holdings),
            fund_id,
            day,
        )
        return PortfolioState.from_portfolio_snapshot(snapshot)

    def _latest_two_days(self, fund_id: str) -> tuple[date, date] | None:
        days = [snapshot.date for snapshot in self._snapshots.list_portfolio_snapshots(fund_id, limit=2)]
        if len(days) < 2:
            days = self._snapshots.latest_holding_snapshot_days(fund_id, limit=2)
        if len(days) < 2:
            return None
        return days[1], days[0]
