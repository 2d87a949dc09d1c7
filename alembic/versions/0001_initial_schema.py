"""Initial schema: towns, budget line items, town financials.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Towns --
    op.create_table(
        "towns",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("state", sa.String(2), nullable=False),
        sa.Column("county", sa.String(255), nullable=True),
        sa.Column("population", sa.Integer, server_default="0"),
        sa.Column("road_miles", sa.Float, server_default="0"),
        sa.Column("grand_list_valuation", sa.Float, server_default="0"),
        sa.Column("fiscal_year", sa.Integer, nullable=False),
        sa.Column("population_year", sa.Integer, nullable=True),
        sa.Column("road_miles_year", sa.Integer, nullable=True),
        sa.Column("valuation_year", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_towns_state_name", "towns", ["state", "name"])

    # -- Budget line items --
    op.create_table(
        "budget_line_items",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "town_id",
            sa.String(64),
            sa.ForeignKey("towns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("document_id", sa.String(64), nullable=True),
        sa.Column("fiscal_year", sa.Integer, nullable=False),
        sa.Column("category", sa.String(128), nullable=False),
        sa.Column("subcategory", sa.String(128), nullable=False),
        sa.Column("line_item", sa.Text, nullable=False),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_budget_line_items_town_id", "budget_line_items", ["town_id"])
    op.create_index(
        "ix_budget_line_items_town_category", "budget_line_items", ["town_id", "category"]
    )

    # -- Town financials --
    op.create_table(
        "town_financials",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "town_id",
            sa.String(64),
            sa.ForeignKey("towns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("fiscal_year", sa.Integer, nullable=False),
        sa.Column("metric_key", sa.String(128), nullable=False),
        sa.Column("metric_value", sa.Float, nullable=False),
        sa.Column("source_name", sa.String(255), nullable=True),
    )
    op.create_index("ix_town_financials_town_id", "town_financials", ["town_id"])


def downgrade() -> None:
    op.drop_table("town_financials")
    op.drop_table("budget_line_items")
    op.drop_table("towns")
