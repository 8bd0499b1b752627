"""Domain models."""

from core.domain.change import ChangeType, PortfolioChange, Significance
from core.domain.holding import Holding, HoldingSnapshot
from core.domain.snapshot import PortfolioMetrics, PortfolioSnapshot, SectorAllocation, TopHolding

__all__ = [
    "ChangeType",
    "Holding",
    "HoldingSnapshot",
    "PortfolioChange",
    "PortfolioMetrics",
    "PortfolioSnapshot",
    "SectorAllocation",
    "Significance",
    "TopHolding",
]
