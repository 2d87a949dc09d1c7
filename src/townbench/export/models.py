"""Export data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from townbench.budget.metrics import metric_value
from townbench.budget.models import (
    BudgetLineItem,
    CategoryGroup,
    ComparisonTable,
    RankingsResult,
    Town,
)
from townbench.core.types import MetricType


class ExportRow(BaseModel):
    """One line item with its town and per-unit values."""

    town: str = ""
    state: str = ""
    fiscal_year: int
    category: str
    subcategory: str
    line_item: str
    amount: float
    per_capita: float = 0.0
    per_road_mile: float = 0.0
    per_valuation: float = 0.0

    @classmethod
    def from_item(cls, item: BudgetLineItem, town: Town | None) -> ExportRow:
        row = cls(
            town=town.name if town else "",
            state=town.state if town else "",
            fiscal_year=item.fiscal_year,
            category=item.category,
            subcategory=item.subcategory,
            line_item=item.line_item,
            amount=item.amount,
        )
        if town is not None:
            row.per_capita = metric_value(item.amount, MetricType.PER_CAPITA, town)
            row.per_road_mile = metric_value(item.amount, MetricType.PER_ROAD_MILE, town)
            row.per_valuation = metric_value(item.amount, MetricType.PER_VALUATION, town)
        return row


class ComprehensiveReport(BaseModel):
    """Inputs of the detailed multi-section export."""

    towns: list[Town]
    primary: Town
    metric: MetricType
    rankings: RankingsResult
    breakdown: list[CategoryGroup] = Field(default_factory=list)
    category_averages: dict[str, float] = Field(default_factory=dict)
    comparison: ComparisonTable | None = None
    generated_at: datetime
