"""Portfolio-level aggregates computed from a fund's current holdings."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from core.domain.holding import Holding
from core.domain.snapshot import PortfolioMetrics, PortfolioSnapshot, SectorAllocation, TopHolding

TOP_SECTOR_COUNT = 3


def sort_by_weight(holdings: Sequence[Holding]) -> list[Holding]:
    """Order holdings by weight, largest first. Symbol breaks ties so output is deterministic."""
    return sorted(holdings, key=lambda holding: (-holding.percentage, holding.stock_symbol))


def sector_allocation(holdings: Sequence[Holding]) -> list[SectorAllocation]:
    """Sum weights and count holdings per sector, largest sector first."""
    totals: dict[str, list[float]] = {}
    for holding in holdings:
        bucket = totals.setdefault(holding.sector, [0.0, 0])
        bucket[0] += holding.percentage
        bucket[1] += 1
    allocation = [
        SectorAllocation(sector=sector, percentage=weight, holdings_count=int(count))
        for sector, (weight, count) in totals.items()
    ]
    allocation.sort(key=lambda item: item.percentage, reverse=True)
    return allocation


def diversification_score(holdings: Sequence[Holding]) -> float:
    """Herfindahl index on percentage points over every holding."""
    return sum(holding.percentage**2 for holding in holdings)


def compute_portfolio_snapshot(
    fund_id: str,
    holdings: Sequence[Holding],
    as_of: date,
    *,
    top_n: int = 10,
) -> PortfolioSnapshot:
    """Build the aggregate snapshot of ``holdings`` without persisting it.

    Args:
        fund_id: Fund the holdings belong to.
        holdings: Current holdings in any order.
        as_of: Calendar day the snapshot represents.
        top_n: Number of holdings kept in the denormalised ``top_holdings`` list.
    """

    if not holdings:
        raise ValueError(f"Cannot snapshot fund {fund_id} without holdings")

    ranked = sort_by_weight(holdings)
    sectors = sector_allocation(ranked)
    metrics = PortfolioMetrics(
        top5_weight=sum(holding.percentage for holding in ranked[:5]),
        top10_weight=sum(holding.percentage for holding in ranked[:10]),
        top3_sector_weight=sum(sector.percentage for sector in sectors[:TOP_SECTOR_COUNT]),
        diversification_score=diversification_score(ranked),
    )
    return PortfolioSnapshot(
        fund_id=fund_id,
        date=as_of,
        total_holdings=len(ranked),
        total_market_value=sum(holding.market_value for holding in ranked),
        top_holdings=[
            TopHolding(
                stock_symbol=holding.stock_symbol,
                stock_name=holding.stock_name,
                percentage=holding.percentage,
                sector=holding.sector,
                market_value=holding.market_value,
            )
            for holding in ranked[:top_n]
        ],
        sector_allocation=sectors,
        portfolio_metrics=metrics,
    )
