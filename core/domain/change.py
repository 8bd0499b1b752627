from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class ChangeType(str, Enum):
    ADDITION = "ADDITION"
    EXIT = "EXIT"
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class Significance(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PortfolioChange(BaseModel):
    """One classified weight movement between two snapshots of a fund."""

    fund_id: str
    date: dt.date
    change_type: ChangeType
    stock_symbol: str
    stock_name: str
    sector: str
    old_percentage: float | None = None
    new_percentage: float | None = None
    change_amount: float
    significance: Significance

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_sign(self) -> PortfolioChange:
        if self.change_type in (ChangeType.ADDITION, ChangeType.INCREASE) and self.change_amount < 0:
            raise ValueError(f"{self.change_type.value} requires a non-negative change_amount")
        if self.change_type in (ChangeType.EXIT, ChangeType.DECREASE) and self.change_amount > 0:
            raise ValueError(f"{self.change_type.value} requires a non-positive change_amount")
        if self.change_type is ChangeType.ADDITION and self.new_percentage is None:
            raise ValueError("ADDITION requires new_percentage")
        if self.change_type is ChangeType.EXIT and self.old_percentage is None:
            raise ValueError("EXIT requires old_percentage")
        return self

    @property
    def magnitude(self) -> float:
        return abs(self.change_amount)


__all__ = ["ChangeType", "PortfolioChange", "Significance"]
