from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Protocol

from core.domain.change import PortfolioChange, Significance
from core.domain.holding import HoldingSnapshot
from core.domain.snapshot import PortfolioSnapshot


class SnapshotStore(Protocol):
    """Persistence interface for dated snapshots and the change log."""

    def save_portfolio_snapshot(self, snapshot: PortfolioSnapshot) -> tuple[PortfolioSnapshot, bool]:
        """Insert a snapshot unless one exists for the day; return the stored one and whether it was created."""

    def save_holding_snapshots(self, snapshots: Sequence[HoldingSnapshot]) -> int:
        """Insert holding snapshots, skipping rows already stored for the day. Return rows inserted."""

    def get_portfolio_snapshot(self, fund_id: str, day: date) -> PortfolioSnapshot | None:
        """Return the fund's portfolio snapshot for a calendar day."""

    def list_portfolio_snapshots(
        self, fund_id: str, *, since: date | None = None, limit: int | None = None
    ) -> list[PortfolioSnapshot]:
        """Return portfolio snapshots newest first."""

    def list_holding_snapshots(self, fund_id: str, day: date) -> list[HoldingSnapshot]:
        """Return the fund's holding snapshots for a calendar day, weight descending."""

    def list_holding_snapshot_history(self, fund_id: str, *, since: date) -> list[HoldingSnapshot]:
        """Return holding snapshots dated on or after ``since``, newest day first."""

    def latest_holding_snapshot_days(self, fund_id: str, *, limit: int = 2) -> list[date]:
        """Return the most recent distinct days having holding snapshots, newest first."""

    def append_changes(self, changes: Sequence[PortfolioChange]) -> int:
        """Append changes to the log, skipping ones already recorded. Return rows inserted."""

    def list_changes(self, fund_id: str, *, since: date) -> list[PortfolioChange]:
        """Return the fund's changes dated on or after ``since``, newest first."""

    def list_changes_by_significance(
        self, *, since: date, significances: Iterable[Significance]
    ) -> list[PortfolioChange]:
        """Return changes across all funds with one of the given significance levels."""
