from __future__ import annotations

import datetime as dt

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Holding(BaseModel):
    """Current position of a fund, as last written by the ingestion pipeline."""

    fund_id: str = Field(validation_alias=AliasChoices("fund_id", "fundId"))
    stock_symbol: str = Field(validation_alias=AliasChoices("stock_symbol", "stockSymbol", "symbol"))
    stock_name: str = Field(validation_alias=AliasChoices("stock_name", "stockName", "name"))
    percentage: float = Field(ge=0, le=100, description="Portfolio weight in percentage points.")
    sector: str
    market_value: float = Field(validation_alias=AliasChoices("market_value", "marketValue"))
    quantity: float | None = None
    one_month_change: float | None = Field(
        default=None, validation_alias=AliasChoices("one_month_change", "oneMonthChange")
    )

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=False)

    @field_validator("fund_id", "stock_symbol", mode="before")
    @classmethod
    def _ensure_str(cls, value: object) -> str:
        if value is None:
            raise ValueError("identifier is required")
        return str(value).strip()


class HoldingSnapshot(BaseModel):
    """Immutable copy of a single holding as of one calendar day."""

    fund_id: str
    date: dt.date
    stock_symbol: str
    stock_name: str
    percentage: float = Field(ge=0, le=100)
    sector: str
    market_value: float
    quantity: float | None = None
    one_month_change: float | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_holding(cls, holding: Holding, as_of: dt.date) -> HoldingSnapshot:
        return cls(
            fund_id=holding.fund_id,
            date=as_of,
            stock_symbol=holding.stock_symbol,
            stock_name=holding.stock_name,
            percentage=holding.percentage,
            sector=holding.sector,
            market_value=holding.market_value,
            quantity=holding.quantity,
            one_month_change=holding.one_month_change,
        )


__all__ = ["Holding", "HoldingSnapshot"]
