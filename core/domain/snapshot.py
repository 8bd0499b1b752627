from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class TopHolding(BaseModel):
    """Denormalised copy of a holding kept inside a portfolio snapshot for display."""

    stock_symbol: str
    stock_name: str
    percentage: float
    sector: str
    market_value: float

    model_config = ConfigDict(frozen=True)


class SectorAllocation(BaseModel):
    sector: str
    percentage: float
    holdings_count: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)


class PortfolioMetrics(BaseModel):
    """Concentration figures derived from the holding weights."""

    top5_weight: float
    top10_weight: float
    top3_sector_weight: float
    diversification_score: float = Field(
        description="Sum of squared weights (Herfindahl index on percentage points); lower is more diversified."
    )

    model_config = ConfigDict(frozen=True)


class PortfolioSnapshot(BaseModel):
    """Aggregate view of a fund on one calendar day."""

    fund_id: str
    date: dt.date
    total_holdings: int = Field(ge=0)
    total_market_value: float
    top_holdings: list[TopHolding] = Field(default_factory=list)
    sector_allocation: list[SectorAllocation] = Field(default_factory=list)
    portfolio_metrics: PortfolioMetrics
    created_at: dt.datetime | None = None

    model_config = ConfigDict(frozen=True)


__all__ = ["PortfolioMetrics", "PortfolioSnapshot", "SectorAllocation", "TopHolding"]
