"""Peer ranking of towns against their state.

``compute_ranking`` is the one ranking primitive; every view (state
rankings, category fan-out, selected-town comparison) goes through it with
an explicit sort direction.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from townbench.budget.aggregation import (
    town_category_totals,
    town_subcategory_totals,
    town_totals,
)
from townbench.budget.metrics import metric_denominator, metric_value
from townbench.budget.models import (
    BudgetLineItem,
    Ranking,
    RankingEntry,
    RankingsResult,
    Town,
)
from townbench.budget.taxonomy import Taxonomy
from townbench.core.types import MetricType, SortDirection


_METADATA_METRICS: tuple[tuple[str, str], ...] = (
    ("Population", "population"),
    ("Road Miles", "road_miles"),
    ("Valuation", "grand_list_valuation"),
)

_BUDGET_METRICS: tuple[tuple[str, MetricType], ...] = (
    ("Total Budget", MetricType.ABSOLUTE),
    ("Budget Per Capita", MetricType.PER_CAPITA),
    ("Budget Per Road Mile", MetricType.PER_ROAD_MILE),
    ("Budget Per $1K Valuation", MetricType.PER_VALUATION),
)


def compute_ranking(
    target: float,
    values: Sequence[float],
    direction: SortDirection = SortDirection.DESCENDING,
) -> Ranking:
    """Rank ``target`` within ``values``.

    The rank is one plus the index of the first sorted value at or past the
    target (``<=`` when descending, ``>=`` when ascending), so a cluster of
    ties all share the rank of the cluster's first position. A target beyond
    every value ranks last. An empty peer set gives rank 0, average 0 and
    the 50th percentile, as does a singleton.
    """
    total = len(values)
    if total == 0:
        return Ranking(rank=0, total=0, average=0.0, percentile=50.0)

    if direction is SortDirection.DESCENDING:
        ordered = sorted(values, reverse=True)
        rank = next((i + 1 for i, v in enumerate(ordered) if v <= target), total)
    else:
        ordered = sorted(values)
        rank = next((i + 1 for i, v in enumerate(ordered) if v >= target), total)

    average = sum(values) / total
    percentile = (total - rank) / (total - 1) * 100 if total > 1 else 50.0
    return Ranking(rank=rank, total=total, average=average, percentile=percentile)


def ranking_entry(
    metric: str,
    target: float,
    values: Sequence[float],
    direction: SortDirection = SortDirection.DESCENDING,
) -> RankingEntry:
    ranking = compute_ranking(target, values, direction)
    return RankingEntry(metric=metric, value=target, **ranking.model_dump())


def _has_denominator(metric: MetricType, town: Town) -> bool:
    denominator = metric_denominator(metric, town)
    return denominator is None or denominator > 0


def _with_target(town: Town, state_towns: Iterable[Town]) -> list[Town]:
    peers = list(state_towns)
    if all(t.id != town.id for t in peers):
        peers.append(town)
    return peers


def metadata_rankings(town: Town, state_towns: Iterable[Town]) -> list[RankingEntry]:
    """Rank population, road miles and valuation across every state town.

    Towns with a zero figure are left out of that figure's peer set, and
    no entry is produced when the target's own figure is zero.
    """
    peers = _with_target(town, state_towns)
    entries: list[RankingEntry] = []
    for label, attr in _METADATA_METRICS:
        target = getattr(town, attr)
        if target <= 0:
            continue
        values = [getattr(t, attr) for t in peers if getattr(t, attr) > 0]
        entries.append(ranking_entry(label, target, values))
    return entries


def budget_rankings(
    town: Town,
    towns_with_budget: Sequence[Town],
    totals: dict[str, float],
) -> list[RankingEntry]:
    """Rank total budget and its per-unit views among towns with budget."""
    if town.id not in totals or not towns_with_budget:
        return []

    target_total = totals[town.id]
    entries: list[RankingEntry] = []
    for label, metric in _BUDGET_METRICS:
        if not _has_denominator(metric, town):
            continue
        values = [
            metric_value(totals[t.id], metric, t)
            for t in towns_with_budget
            if _has_denominator(metric, t)
        ]
        entries.append(ranking_entry(label, metric_value(target_total, metric, town), values))
    return entries


def _category_per_capita_values(
    category: str,
    towns_with_budget: Sequence[Town],
    category_totals: dict[str, dict[str, float]],
) -> list[float]:
    return [
        category_totals[t.id][category] / t.population
        for t in towns_with_budget
        if t.population > 0 and category in category_totals.get(t.id, {})
    ]


def category_rankings(
    town: Town,
    towns_with_budget: Sequence[Town],
    category_totals: dict[str, dict[str, float]],
    taxonomy: Taxonomy,
) -> list[RankingEntry]:
    """Per-capita ranking for each taxonomy category the town spends on.

    Categories where the town's own total is zero are skipped. Peers must
    have a population and at least one line item in the category.
    """
    if town.id not in category_totals or town.population <= 0:
        return []

    own = category_totals[town.id]
    entries: list[RankingEntry] = []
    for category in taxonomy.categories:
        target_total = own.get(category, 0.0)
        if target_total == 0:
            continue
        values = _category_per_capita_values(category, towns_with_budget, category_totals)
        entries.append(ranking_entry(category, target_total / town.population, values))
    return entries


def compute_state_rankings(
    town: Town,
    state_towns: Iterable[Town],
    items: Iterable[BudgetLineItem],
    taxonomy: Taxonomy,
) -> RankingsResult:
    """Rank ``town`` against its state peers on every supported metric."""
    items = list(items)
    peers = _with_target(town, state_towns)
    totals = town_totals(items)
    category_totals = town_category_totals(items)
    towns_with_budget = [t for t in peers if t.id in totals]

    return RankingsResult(
        town_id=town.id,
        state=town.state,
        metadata_rankings=metadata_rankings(town, peers),
        budget_rankings=budget_rankings(town, towns_with_budget, totals),
        category_rankings=category_rankings(town, towns_with_budget, category_totals, taxonomy),
    )


def category_state_averages(
    state_towns: Iterable[Town],
    items: Iterable[BudgetLineItem],
    taxonomy: Taxonomy,
) -> dict[str, float]:
    """Average per-capita spend per category over reporting peers."""
    items = list(items)
    category_totals = town_category_totals(items)
    towns_with_budget = [t for t in state_towns if t.id in category_totals]

    averages: dict[str, float] = {}
    for category in taxonomy.categories:
        values = _category_per_capita_values(category, towns_with_budget, category_totals)
        if values:
            averages[category] = sum(values) / len(values)
    return averages


def subcategory_state_averages(
    state_towns: Iterable[Town],
    items: Iterable[BudgetLineItem],
) -> dict[str, float]:
    """Average per-capita spend keyed by ``"category|subcategory"``."""
    sub_totals = town_subcategory_totals(items)
    sums: dict[tuple[str, str], float] = {}
    counts: dict[tuple[str, str], int] = {}
    for t in state_towns:
        if t.population <= 0 or t.id not in sub_totals:
            continue
        for key, amount in sub_totals[t.id].items():
            sums[key] = sums.get(key, 0.0) + amount / t.population
            counts[key] = counts.get(key, 0) + 1
    return {f"{cat}|{sub}": sums[(cat, sub)] / counts[(cat, sub)] for cat, sub in sums}
