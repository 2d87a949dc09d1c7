"""Tests for BenchmarkService with in-memory stores."""

from __future__ import annotations

import pytest

from townbench.budget.service import BenchmarkService, TownNotFoundError
from townbench.budget.store import BudgetStore, TownStore
from townbench.core.config import RankingConfig
from townbench.core.types import MetricType
from tests.conftest import make_item, make_town, sample_items, sample_towns


class CountingBudgetStore(BudgetStore):
    """BudgetStore that records each list_items call."""

    def __init__(self, items=()) -> None:
        super().__init__(items)
        self.calls: list[dict] = []

    def list_items(self, town_ids=None, fiscal_year=None, limit=None):
        self.calls.append({
            "town_ids": list(town_ids) if town_ids is not None else None,
            "limit": limit,
        })
        return super().list_items(town_ids=town_ids, fiscal_year=fiscal_year, limit=limit)


class TestTownQueries:
    async def test_get_town(self, service):
        town = await service.get_town("town-a")
        assert town.name == "Town A"

    async def test_get_missing_town(self, service):
        with pytest.raises(TownNotFoundError):
            await service.get_town("nowhere")

    async def test_list_towns_by_state(self, service):
        towns, total = await service.list_towns(state="vt")
        assert total == 5
        assert [t.name for t in towns] == ["Town A", "Town B", "Town C", "Town D", "Town E"]

    async def test_list_towns_paginates(self, service):
        towns, total = await service.list_towns(page=2, limit=2)
        assert total == 6
        # NH sorts before VT
        assert [t.id for t in towns] == ["town-b", "town-c"]

    async def test_list_towns_with_budget(self, service):
        towns, total = await service.list_towns(has_budget=True)
        assert total == 5
        assert "town-e" not in {t.id for t in towns}

    async def test_list_towns_with_budget_when_none(self, taxonomy):
        service = BenchmarkService(TownStore(sample_towns()), BudgetStore(), taxonomy)
        towns, total = await service.list_towns(has_budget=True)
        assert (towns, total) == ([], 0)

    async def test_list_towns_by_county(self, service):
        towns, total = await service.list_towns(county="addison")
        assert {t.id for t in towns} == {"town-c", "town-d"}


class TestRankings:
    async def test_rankings(self, service):
        result = await service.rankings("town-a")
        per_capita = {e.metric: e for e in result.budget_rankings}["Budget Per Capita"]
        assert (per_capita.rank, per_capita.total, per_capita.percentile) == (2, 3, 50)

    async def test_rankings_missing_town(self, service):
        with pytest.raises(TownNotFoundError):
            await service.rankings("nowhere")

    async def test_peer_rows_fetched_in_batches(self, taxonomy):
        budget = CountingBudgetStore(sample_items())
        service = BenchmarkService(
            TownStore(sample_towns()),
            budget,
            taxonomy,
            config=RankingConfig(batch_size=2, batch_row_limit=500),
        )
        result = await service.rankings("town-a")

        assert [len(c["town_ids"]) for c in budget.calls] == [2, 2, 1]
        assert all(c["limit"] == 500 for c in budget.calls)
        assert {e.metric: e for e in result.budget_rankings}["Total Budget"].total == 4

    async def test_batched_result_matches_unbatched(self, service, taxonomy):
        batched = BenchmarkService(
            TownStore(sample_towns()),
            BudgetStore(sample_items()),
            taxonomy,
            config=RankingConfig(batch_size=1),
        )
        assert await batched.rankings("town-b") == await service.rankings("town-b")


class TestExplorer:
    async def test_groups_and_metric_values(self, service):
        view = await service.explorer("town-a", MetricType.PER_CAPITA)
        assert view.total == 800_000
        assert view.value == 80
        assert [g.category for g in view.categories] == ["Education", "Public Safety"]

        education = view.categories[0]
        assert education.value == 50
        assert education.vs_state_pct == pytest.approx(-100 / 11)

        k12 = education.subcategories[0]
        assert k12.subcategory == "K-12 Education"
        assert k12.value == 35
        assert k12.vs_state_pct == pytest.approx(-30)

    async def test_no_population_no_state_delta(self, service):
        view = await service.explorer("town-d", MetricType.ABSOLUTE)
        assert view.categories[0].value == 40_000
        assert view.categories[0].vs_state_pct is None

    async def test_tree_complete_when_peer_batch_is_capped(self, taxonomy):
        towns = TownStore([
            make_town("a", "Alpha", population=100),
            make_town("b", "Beta", population=100),
        ])
        budget = BudgetStore([
            make_item("a", "Education", 100),
            make_item("a", "Public Works", 50),
            make_item("b", "Education", 80),
            make_item("b", "General Government", 20),
        ])
        capped = BenchmarkService(
            towns=towns,
            budget=budget,
            taxonomy=taxonomy,
            config=RankingConfig(batch_row_limit=3),
        )

        view = await capped.explorer("a")
        assert view.total == 150
        assert [g.category for g in view.categories] == ["Education", "Public Works"]

    async def test_town_without_budget(self, service):
        view = await service.explorer("town-e")
        assert view.categories == []
        assert view.total == 0


class TestCompare:
    async def test_compare_in_request_order(self, service):
        towns, table = await service.compare(["town-c", "town-a", "town-b"])
        assert [t.id for t in towns] == ["town-c", "town-a", "town-b"]
        assert table.town_ids == ["town-c", "town-a", "town-b"]
        assert table.metric == MetricType.PER_CAPITA

    async def test_unknown_comparison_towns_dropped(self, service):
        towns, _ = await service.compare(["town-a", "ghost", "town-a"])
        assert [t.id for t in towns] == ["town-a"]

    async def test_missing_primary(self, service):
        with pytest.raises(TownNotFoundError):
            await service.compare(["ghost", "town-a"])

    async def test_no_ids(self, service):
        with pytest.raises(ValueError):
            await service.compare([])


class TestExports:
    async def test_export_rows(self, service):
        rows = await service.export_rows(["town-a"])
        assert len(rows) == 3
        first = rows[0]
        assert (first.town, first.state, first.category) == ("Town A", "VT", "Education")
        assert first.per_capita == 35
        assert first.per_road_mile == 7_000

    async def test_export_rows_fiscal_year_filter(self, service):
        assert await service.export_rows(fiscal_year=2024) == []

    async def test_export_rows_zero_denominators(self, service):
        rows = await service.export_rows(["town-d"])
        assert rows[0].per_capita == 0
        assert rows[0].per_road_mile == 4_000

    async def test_comprehensive_single_town(self, service):
        report = await service.comprehensive_report(["town-a"])
        assert report.primary.id == "town-a"
        assert report.comparison is None
        assert [g.category for g in report.breakdown] == ["Education", "Public Safety"]
        assert report.category_averages["Education"] == pytest.approx(55)

    async def test_comprehensive_with_comparison(self, service):
        report = await service.comprehensive_report(["town-a", "town-b"], "absolute")
        assert report.comparison is not None
        assert report.comparison.metric == MetricType.ABSOLUTE
        # Breakdown covers only the primary town
        assert sum(g.total for g in report.breakdown) == 800_000
