"""Diff utilities to compare two dated portfolio states of one fund."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from core.domain.change import ChangeType, PortfolioChange, Significance
from core.domain.holding import HoldingSnapshot
from core.domain.snapshot import PortfolioSnapshot

NOISE_THRESHOLD = 0.1
_DELTA_PRECISION = 6


@dataclass(frozen=True)
class WeightedPosition:
    stock_name: str
    percentage: float
    sector: str


@dataclass(frozen=True)
class SignificanceThresholds:
    high: float = 2.0
    medium: float = 0.5


DEFAULT_THRESHOLDS = SignificanceThresholds()


@dataclass(frozen=True)
class PortfolioState:
    """Symbol-keyed weights of a fund on one day, whatever record type they were read from."""

    fund_id: str
    date: date
    positions: Dict[str, WeightedPosition] = field(default_factory=dict)
    source: str = "holding_snapshots"

    @classmethod
    def from_holding_snapshots(cls, fund_id: str, day: date, rows: Sequence[HoldingSnapshot]) -> PortfolioState:
        positions = {
            row.stock_symbol: WeightedPosition(row.stock_name, row.percentage, row.sector) for row in rows
        }
        return cls(fund_id=fund_id, date=day, positions=positions, source="holding_snapshots")

    @classmethod
    def from_portfolio_snapshot(cls, snapshot: PortfolioSnapshot) -> PortfolioState:
        positions = {
            item.stock_symbol: WeightedPosition(item.stock_name, item.percentage, item.sector)
            for item in snapshot.top_holdings
        }
        return cls(fund_id=snapshot.fund_id, date=snapshot.date, positions=positions, source="portfolio_snapshot")


def classify_significance(
    magnitude: float, thresholds: SignificanceThresholds = DEFAULT_THRESHOLDS
) -> Significance:
    """Map the absolute size of a weight move to a significance tier."""
    magnitude = abs(magnitude)
    if magnitude >= thresholds.high:
        return Significance.HIGH
    if magnitude >= thresholds.medium:
        return Significance.MEDIUM
    return Significance.LOW


def diff_states(
    base: PortfolioState,
    target: PortfolioState,
    *,
    noise_threshold: float = NOISE_THRESHOLD,
    thresholds: SignificanceThresholds = DEFAULT_THRESHOLDS,
) -> List[PortfolioChange]:
    """Compare two states and return classified changes, largest move first.

    Args:
        base: Earlier state.
        target: Later state; its date is stamped on every change.
        noise_threshold: Weight moves (percentage points) at or below this are ignored.
        thresholds: Significance cut-offs.
    """

    if base.fund_id != target.fund_id:
        raise ValueError(f"Cannot compare fund {base.fund_id} against fund {target.fund_id}")

    changes: List[PortfolioChange] = []

    for symbol, current in target.positions.items():
        if symbol in base.positions:
            continue
        changes.append(
            PortfolioChange(
                fund_id=target.fund_id,
                date=target.date,
                change_type=ChangeType.ADDITION,
                stock_symbol=symbol,
                stock_name=current.stock_name,
                sector=current.sector,
                new_percentage=current.percentage,
                change_amount=current.percentage,
                significance=classify_significance(current.percentage, thresholds),
            )
        )

    for symbol, previous in base.positions.items():
        if symbol in target.positions:
            continue
        changes.append(
            PortfolioChange(
                fund_id=target.fund_id,
                date=target.date,
                change_type=ChangeType.EXIT,
                stock_symbol=symbol,
                stock_name=previous.stock_name,
                sector=previous.sector,
                old_percentage=previous.percentage,
                change_amount=-previous.percentage,
                significance=classify_significance(previous.percentage, thresholds),
            )
        )

    for symbol, current in target.positions.items():
        previous = base.positions.get(symbol)
        if previous is None:
            continue
        delta = round(current.percentage - previous.percentage, _DELTA_PRECISION)
        if abs(delta) <= noise_threshold:
            continue
        changes.append(
            PortfolioChange(
                fund_id=target.fund_id,
                date=target.date,
                change_type=ChangeType.INCREASE if delta > 0 else ChangeType.DECREASE,
                stock_symbol=symbol,
                stock_name=current.stock_name,
                sector=current.sector,
                old_percentage=previous.percentage,
                new_percentage=current.percentage,
                change_amount=delta,
                significance=classify_significance(delta, thresholds),
            )
        )

    changes.sort(key=_amount_abs, reverse=True)
    return changes


def summarize_changes(
    changes: Iterable[PortfolioChange], *, top_n: int = 10
) -> Dict[str, List[PortfolioChange]]:
    """Split changes into buys and sells sorted by absolute weight change."""

    buys: List[PortfolioChange] = []
    sells: List[PortfolioChange] = []
    for change in changes:
        if change.change_type in {ChangeType.ADDITION, ChangeType.INCREASE}:
            buys.append(change)
        else:
            sells.append(change)

    return {
        "buys": sorted(buys, key=_amount_abs, reverse=True)[:top_n],
        "sells": sorted(sells, key=_amount_abs, reverse=True)[:top_n],
    }


def _amount_abs(change: PortfolioChange) -> float:
    return abs(change.change_amount)
