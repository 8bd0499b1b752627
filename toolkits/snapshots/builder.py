"""Snapshot builder: freezes a fund's current holdings into dated records."""

from __future__ import annotations

import logging

from core.domain.holding import HoldingSnapshot
from core.domain.snapshot import PortfolioSnapshot
from core.ports.holding_store import HoldingStore
from core.ports.snapshot_store import SnapshotStore

from .aggregation import compute_portfolio_snapshot, sort_by_weight
from .dates import Clock, utc_today

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """Writes one portfolio snapshot and one holding-snapshot set per fund per day.

    A second build on the same day leaves the stored records untouched and returns the
    snapshot written first.
    """

    def __init__(
        self,
        holdings: HoldingStore,
        snapshots: SnapshotStore,
        *,
        top_holdings_limit: int = 10,
        clock: Clock = utc_today,
    ) -> None:
        self._holdings = holdings
        self._snapshots = snapshots
        self._top_holdings_limit = top_holdings_limit
        self._clock = clock

    def build_snapshot(self, fund_id: str) -> PortfolioSnapshot | None:
        snapshot, _ = self.build(fund_id)
        return snapshot

    def build(self, fund_id: str) -> tuple[PortfolioSnapshot | None, bool]:
        """Same as ``build_snapshot``, also reporting whether this call wrote the portfolio snapshot."""
        holdings = sort_by_weight(self._holdings.list_holdings(fund_id))
        if not holdings:
            logger.info("No holdings found for fund %s", fund_id)
            return None, False

        today = self._clock()
        candidate = compute_portfolio_snapshot(fund_id, holdings, today, top_n=self._top_holdings_limit)
        stored, created = self._snapshots.save_portfolio_snapshot(candidate)

        if self._snapshots.list_holding_snapshots(fund_id, today):
            logger.info("Holding snapshots already exist for fund %s on %s", fund_id, today)
        else:
            rows = [HoldingSnapshot.from_holding(holding, today) for holding in holdings]
            inserted = self._snapshots.save_holding_snapshots(rows)
            logger.info("Created %d holding snapshots for fund %s on %s", inserted, fund_id, today)

        if created:
            logger.info(
                "Created portfolio snapshot for fund %s on %s (holdings=%d, hhi=%.2f)",
                fund_id,
                today,
                stored.total_holdings,
                stored.portfolio_metrics.diversification_score,
            )
        return stored, created
