"""Snapshot and change-detection engine for fund portfolios."""

from .aggregation import compute_portfolio_snapshot, diversification_score, sector_allocation
from .builder import SnapshotBuilder
from .detector import ChangeDetector
from .diff import (
    PortfolioState,
    SignificanceThresholds,
    WeightedPosition,
    classify_significance,
    diff_states,
    summarize_changes,
)
from .engine import SnapshotEngine
from .history import HistoryQuery

__all__ = [
    "ChangeDetector",
    "HistoryQuery",
    "PortfolioState",
    "SignificanceThresholds",
    "SnapshotBuilder",
    "SnapshotEngine",
    "WeightedPosition",
    "classify_significance",
    "compute_portfolio_snapshot",
    "diff_states",
    "diversification_score",
    "sector_allocation",
    "summarize_changes",
]
