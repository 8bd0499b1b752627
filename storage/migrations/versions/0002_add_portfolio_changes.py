"""add portfolio change log

Revision ID: 0002_add_portfolio_changes
Revises: 0001_initial
Create Date: 2026-10-08 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_portfolio_changes"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "portfolio_changes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("change_type", sa.String(length=16), nullable=False),
        sa.Column("stock_symbol", sa.String(length=64), nullable=False),
        sa.Column("stock_name", sa.String(length=255), nullable=False),
        sa.Column("sector", sa.String(length=128), nullable=False),
        sa.Column("old_percentage", sa.Float(), nullable=True),
        sa.Column("new_percentage", sa.Float(), nullable=True),
        sa.Column("change_amount", sa.Float(), nullable=False),
        sa.Column("significance", sa.String(length=8), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "fund_id",
            "date",
            "stock_symbol",
            "change_type",
            name="uq_portfolio_changes_fund_date_symbol_type",
        ),
    )
    op.create_index("ix_portfolio_changes_fund_id", "portfolio_changes", ["fund_id"])
    op.create_index("ix_portfolio_changes_date", "portfolio_changes", ["date"])
    op.create_index("ix_portfolio_changes_change_type", "portfolio_changes", ["change_type"])
    op.create_index("ix_portfolio_changes_significance", "portfolio_changes", ["significance"])


def downgrade() -> None:
    op.drop_index("ix_portfolio_changes_significance", table_name="portfolio_changes")
    op.drop_index("ix_portfolio_changes_change_type", table_name="portfolio_changes")
    op.drop_index("ix_portfolio_changes_date", table_name="portfolio_changes")
    op.drop_index("ix_portfolio_changes_fund_id", table_name="portfolio_changes")
    op.drop_table("portfolio_changes")
