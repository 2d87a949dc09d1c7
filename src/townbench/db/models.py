"""SQLAlchemy ORM models for all persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from townbench.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Towns
# ---------------------------------------------------------------------------


class TownRow(Base):
    __tablename__ = "towns"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    state: Mapped[str] = mapped_column(String(2))
    county: Mapped[str | None] = mapped_column(String(255), nullable=True)
    population: Mapped[int] = mapped_column(Integer, default=0)
    road_miles: Mapped[float] = mapped_column(Float, default=0.0)
    grand_list_valuation: Mapped[float] = mapped_column(Float, default=0.0)
    fiscal_year: Mapped[int] = mapped_column(Integer)
    population_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    road_miles_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    valuation_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_towns_state_name", "state", "name"),
    )


# ---------------------------------------------------------------------------
# Budget line items
# ---------------------------------------------------------------------------


class BudgetLineItemRow(Base):
    __tablename__ = "budget_line_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    town_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("towns.id", ondelete="CASCADE")
    )
    document_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fiscal_year: Mapped[int] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(String(128))
    subcategory: Mapped[str] = mapped_column(String(128))
    line_item: Mapped[str] = mapped_column(Text)
    amount: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_budget_line_items_town_id", "town_id"),
        Index("ix_budget_line_items_town_category", "town_id", "category"),
    )


# ---------------------------------------------------------------------------
# Town financial indicators
# ---------------------------------------------------------------------------


class TownFinancialRow(Base):
    __tablename__ = "town_financials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    town_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("towns.id", ondelete="CASCADE")
    )
    fiscal_year: Mapped[int] = mapped_column(Integer)
    metric_key: Mapped[str] = mapped_column(String(128))
    metric_value: Mapped[float] = mapped_column(Float)
    source_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_town_financials_town_id", "town_id"),
    )
