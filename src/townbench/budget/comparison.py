"""Side-by-side comparison of a handful of selected towns."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from townbench.budget.aggregation import town_category_totals
from townbench.budget.metrics import metric_value
from townbench.budget.models import (
    BudgetLineItem,
    ComparisonCell,
    ComparisonRow,
    ComparisonTable,
    Town,
)
from townbench.budget.ranking import compute_ranking
from townbench.core.types import MetricType, SortDirection


def compare_towns(
    towns: Sequence[Town],
    items: Iterable[BudgetLineItem],
    metric: MetricType | str = MetricType.PER_CAPITA,
) -> ComparisonTable:
    """Build the per-category comparison table for ``towns``.

    Ranks are local to the selected towns and ascending: rank 1 is the
    lowest metric-adjusted spend. Categories are every category any selected
    town reports, alphabetically. The total row carries no ranks.
    """
    metric = MetricType(metric)
    town_ids = {t.id for t in towns}
    category_totals = town_category_totals(i for i in items if i.town_id in town_ids)

    categories = sorted({cat for cats in category_totals.values() for cat in cats})

    rows: list[ComparisonRow] = []
    for category in categories:
        values = [
            metric_value(category_totals.get(t.id, {}).get(category, 0.0), metric, t)
            for t in towns
        ]
        cells = [
            ComparisonCell(
                town_id=t.id,
                value=value,
                rank=compute_ranking(value, values, SortDirection.ASCENDING).rank,
            )
            for t, value in zip(towns, values)
        ]
        rows.append(ComparisonRow(category=category, cells=cells))

    total_row = ComparisonRow(
        category="Total",
        cells=[
            ComparisonCell(
                town_id=t.id,
                value=metric_value(sum(category_totals.get(t.id, {}).values()), metric, t),
            )
            for t in towns
        ],
    )

    return ComparisonTable(
        metric=metric,
        town_ids=[t.id for t in towns],
        rows=rows,
        total_row=total_row,
    )
