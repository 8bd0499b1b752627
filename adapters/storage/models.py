from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class HoldingRecord(Base):
    __tablename__ = "holdings"
    __table_args__ = (UniqueConstraint("fund_id", "stock_symbol", name="uq_holdings_fund_symbol"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fund_id: Mapped[str] = mapped_column(String(64), index=True)
    stock_symbol: Mapped[str] = mapped_column(String(64))
    stock_name: Mapped[str] = mapped_column(String(255))
    percentage: Mapped[float] = mapped_column(Float)
    sector: Mapped[str] = mapped_column(String(128), index=True)
    market_value: Mapped[float] = mapped_column(Float)
    quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    one_month_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: dt.datetime.now(dt.UTC)
    )


class PortfolioSnapshotRecord(Base):
    __tablename__ = "portfolio_snapshots"
    __table_args__ = (UniqueConstraint("fund_id", "date", name="uq_portfolio_snapshots_fund_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fund_id: Mapped[str] = mapped_column(String(64), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    total_holdings: Mapped[int] = mapped_column(Integer)
    total_market_value: Mapped[float] = mapped_column(Float)
    top_holdings: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    sector_allocation: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    top5_weight: Mapped[float] = mapped_column(Float)
    top10_weight: Mapped[float] = mapped_column(Float)
    top3_sector_weight: Mapped[float] = mapped_column(Float)
    diversification_score: Mapped[float] = mapped_column(Float)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: dt.datetime.now(dt.UTC)
    )


class HoldingSnapshotRecord(Base):
    __tablename__ = "holding_snapshots"
    __table_args__ = (
        UniqueConstraint("fund_id", "stock_symbol", "date", name="uq_holding_snapshots_fund_symbol_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fund_id: Mapped[str] = mapped_column(String(64), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    stock_symbol: Mapped[str] = mapped_column(String(64), index=True)
    stock_name: Mapped[str] = mapped_column(String(255))
    percentage: Mapped[float] = mapped_column(Float)
    sector: Mapped[str] = mapped_column(String(128))
    market_value: Mapped[float] = mapped_column(Float)
    quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    one_month_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: dt.datetime.now(dt.UTC)
    )


class PortfolioChangeRecord(Base):
    __tablename__ = "portfolio_changes"
    __table_args__ = (
        UniqueConstraint(
            "fund_id",
            "date",
            "stock_symbol",
            "change_type",
            name="uq_portfolio_changes_fund_date_symbol_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fund_id: Mapped[str] = mapped_column(String(64), index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    change_type: Mapped[str] = mapped_column(String(16), index=True)
    stock_symbol: Mapped[str] = mapped_column(String(64))
    stock_name: Mapped[str] = mapped_column(String(255))
    sector: Mapped[str] = mapped_column(String(128))
    old_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    new_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    change_amount: Mapped[float] = mapped_column(Float)
    significance: Mapped[str] = mapped_column(String(8), index=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: dt.datetime.now(dt.UTC)
    )
