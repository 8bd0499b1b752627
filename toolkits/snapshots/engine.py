"""Wiring of the snapshot services from application settings."""

from __future__ import annotations

from dataclasses import dataclass

from core.ports.holding_store import HoldingStore
from core.ports.snapshot_store import SnapshotStore
from core.settings import Settings

from .builder import SnapshotBuilder
from .dates import Clock, utc_today
from .detector import ChangeDetector
from .diff import SignificanceThresholds
from .history import HistoryQuery


@dataclass(frozen=True)
class SnapshotEngine:
    builder: SnapshotBuilder
    detector: ChangeDetector
    history: HistoryQuery

    @classmethod
    def from_settings(
        cls,
        holdings: HoldingStore,
        snapshots: SnapshotStore,
        settings: Settings,
        *,
        clock: Clock = utc_today,
    ) -> SnapshotEngine:
        thresholds = SignificanceThresholds(
            high=settings.high_significance_threshold,
            medium=settings.medium_significance_threshold,
        )
        return cls(
            builder=SnapshotBuilder(
                holdings, snapshots, top_holdings_limit=settings.top_holdings_limit, clock=clock
            ),
            detector=ChangeDetector(
                snapshots, noise_threshold=settings.noise_threshold, thresholds=thresholds, clock=clock
            ),
            history=HistoryQuery(snapshots, clock=clock),
        )
