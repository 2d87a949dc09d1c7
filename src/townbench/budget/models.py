"""Budget data models: towns, line items, and derived ranking/grouping views."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from townbench.core.types import MetricType


class Town(BaseModel):
    """A municipality tracked by the system.

    Zero population, road miles or valuation means the figure is unknown
    and the town is skipped for any metric that divides by it.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    state: str
    county: str | None = None
    population: int = 0
    road_miles: float = 0.0
    grand_list_valuation: float = 0.0
    fiscal_year: int = Field(default_factory=lambda: datetime.now(timezone.utc).year)
    population_year: int | None = None
    road_miles_year: int | None = None
    valuation_year: int | None = None


class BudgetLineItem(BaseModel):
    """One categorized expenditure entry for a town in a fiscal year."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    town_id: str
    category: str
    subcategory: str
    line_item: str
    amount: float
    fiscal_year: int
    document_id: str | None = None


class TownFinancial(BaseModel):
    """A published financial indicator for a town (e.g. tax rate)."""

    town_id: str
    fiscal_year: int
    metric_key: str
    metric_value: float
    source_name: str | None = None


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


class Ranking(BaseModel):
    """Rank of one value within a peer set."""

    rank: int
    total: int
    average: float
    percentile: float


class RankingEntry(BaseModel):
    """A labeled ranking row for one metric of one town."""

    metric: str
    value: float
    rank: int
    total: int
    average: float
    percentile: float


class RankingsResult(BaseModel):
    """All state rankings for a single town."""

    town_id: str
    state: str
    metadata_rankings: list[RankingEntry] = Field(default_factory=list)
    budget_rankings: list[RankingEntry] = Field(default_factory=list)
    category_rankings: list[RankingEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Explorer tree
# ---------------------------------------------------------------------------


class SubcategoryGroup(BaseModel):
    subcategory: str
    total: float = 0.0
    items: list[BudgetLineItem] = Field(default_factory=list)
    value: float | None = None
    vs_state_pct: float | None = None


class CategoryGroup(BaseModel):
    category: str
    total: float = 0.0
    subcategories: list[SubcategoryGroup] = Field(default_factory=list)
    value: float | None = None
    vs_state_pct: float | None = None


class ExplorerView(BaseModel):
    """Grouped budget of one town with metric-adjusted values."""

    town_id: str
    metric: MetricType
    total: float
    value: float
    categories: list[CategoryGroup] = Field(default_factory=list)


class FlatRow(BaseModel):
    """One row of a flattened explorer tree.

    ``level`` tells which of category/subcategory/line_item the row
    describes; the outer labels are repeated on inner rows.
    """

    level: Literal["category", "subcategory", "line_item"]
    category: str
    subcategory: str = ""
    line_item: str = ""
    amount: float


# ---------------------------------------------------------------------------
# Comparison table
# ---------------------------------------------------------------------------


class ComparisonCell(BaseModel):
    town_id: str
    value: float
    rank: int | None = None


class ComparisonRow(BaseModel):
    category: str
    cells: list[ComparisonCell] = Field(default_factory=list)


class ComparisonTable(BaseModel):
    """Per-category metric values and local ranks across selected towns."""

    metric: MetricType
    town_ids: list[str]
    rows: list[ComparisonRow] = Field(default_factory=list)
    total_row: ComparisonRow | None = None
