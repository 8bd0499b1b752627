"""holdings and snapshot tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "holdings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_id", sa.String(length=64), nullable=False),
        sa.Column("stock_symbol", sa.String(length=64), nullable=False),
        sa.Column("stock_name", sa.String(length=255), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("sector", sa.String(length=128), nullable=False),
        sa.Column("market_value", sa.Float(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("one_month_change", sa.Float(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("fund_id", "stock_symbol", name="uq_holdings_fund_symbol"),
    )
    op.create_index("ix_holdings_fund_id", "holdings", ["fund_id"])
    op.create_index("ix_holdings_sector", "holdings", ["sector"])

    op.create_table(
        "portfolio_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_holdings", sa.Integer(), nullable=False),
        sa.Column("total_market_value", sa.Float(), nullable=False),
        sa.Column("top_holdings", sa.JSON(), nullable=False),
        sa.Column("sector_allocation", sa.JSON(), nullable=False),
        sa.Column("top5_weight", sa.Float(), nullable=False),
        sa.Column("top10_weight", sa.Float(), nullable=False),
        sa.Column("top3_sector_weight", sa.Float(), nullable=False),
        sa.Column("diversification_score", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("fund_id", "date", name="uq_portfolio_snapshots_fund_date"),
    )
    op.create_index("ix_portfolio_snapshots_fund_id", "portfolio_snapshots", ["fund_id"])
    op.create_index("ix_portfolio_snapshots_date", "portfolio_snapshots", ["date"])

    op.create_table(
        "holding_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("stock_symbol", sa.String(length=64), nullable=False),
        sa.Column("stock_name", sa.String(length=255), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("sector", sa.String(length=128), nullable=False),
        sa.Column("market_value", sa.Float(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=True),
        sa.Column("one_month_change", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("fund_id", "stock_symbol", "date", name="uq_holding_snapshots_fund_symbol_date"),
    )
    op.create_index("ix_holding_snapshots_fund_id", "holding_snapshots", ["fund_id"])
    op.create_index("ix_holding_snapshots_date", "holding_snapshots", ["date"])
    op.create_index("ix_holding_snapshots_stock_symbol", "holding_snapshots", ["stock_symbol"])


def downgrade() -> None:
    op.drop_index("ix_holding_snapshots_stock_symbol", table_name="holding_snapshots")
    op.drop_index("ix_holding_snapshots_date", table_name="holding_snapshots")
    op.drop_index("ix_holding_snapshots_fund_id", table_name="holding_snapshots")
    op.drop_table("holding_snapshots")
    op.drop_index("ix_portfolio_snapshots_date", table_name="portfolio_snapshots")
    op.drop_index("ix_portfolio_snapshots_fund_id", table_name="portfolio_snapshots")
    op.drop_table("portfolio_snapshots")
    op.drop_index("ix_holdings_sector", table_name="holdings")
    op.drop_index("ix_holdings_fund_id", table_name="holdings")
    op.drop_table("holdings")
