"""Benchmark service: fetches towns and budgets, then runs the engine.

The service owns all data access. Repositories are passed in explicitly,
so nothing here depends on module-level client state.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from townbench.budget.aggregation import group_for_explorer, total_for_town
from townbench.budget.comparison import compare_towns
from townbench.budget.metrics import metric_value, vs_state_pct
from townbench.budget.models import (
    BudgetLineItem,
    ComparisonTable,
    ExplorerView,
    RankingsResult,
    Town,
    TownFinancial,
)
from townbench.budget.ranking import (
    category_state_averages,
    compute_state_rankings,
    subcategory_state_averages,
)
from townbench.budget.taxonomy import Taxonomy
from townbench.core.config import RankingConfig
from townbench.core.types import MetricType
from townbench.export.models import ComprehensiveReport, ExportRow
from townbench.repositories import resolve
from townbench.repositories.protocols import BudgetRepository, TownRepository

logger = logging.getLogger(__name__)


class TownNotFoundError(LookupError):
    """Raised when a requested town does not exist."""

    def __init__(self, town_id: str) -> None:
        super().__init__(f"Town {town_id!r} not found")
        self.town_id = town_id


class BenchmarkService:
    """Answers rankings, explorer, comparison and export queries."""

    def __init__(
        self,
        towns: TownRepository,
        budget: BudgetRepository,
        taxonomy: Taxonomy,
        config: RankingConfig | None = None,
    ) -> None:
        self._towns = towns
        self._budget = budget
        self._taxonomy = taxonomy
        self._config = config or RankingConfig()

    @property
    def taxonomy(self) -> Taxonomy:
        return self._taxonomy

    # -- Data access --

    async def get_town(self, town_id: str) -> Town:
        town = await resolve(self._towns.get_town(town_id))
        if town is None:
            logger.info("Town %s not found", town_id)
            raise TownNotFoundError(town_id)
        return town

    async def list_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        has_budget: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Town], int]:
        """One page of towns ordered by state then name, plus the match count."""
        town_ids: set[str] | None = None
        if has_budget:
            town_ids = await resolve(self._budget.town_ids_with_budget())
            if not town_ids:
                return [], 0

        offset = (max(page, 1) - 1) * limit
        towns = await resolve(
            self._towns.list_towns(
                state=state, county=county, town_ids=town_ids, limit=limit, offset=offset
            )
        )
        total = await resolve(
            self._towns.count_towns(state=state, county=county, town_ids=town_ids)
        )
        return towns, total

    async def create_town(self, town: Town) -> Town:
        return await resolve(self._towns.add_town(town))

    async def list_financials(self, town_id: str) -> list[TownFinancial]:
        return await resolve(self._towns.list_financials(town_id))

    async def line_items(
        self, town_ids: Sequence[str], fiscal_year: int | None = None
    ) -> list[BudgetLineItem]:
        return await resolve(self._budget.list_items(town_ids=town_ids, fiscal_year=fiscal_year))

    async def _fetch_batched(self, town_ids: Sequence[str]) -> list[BudgetLineItem]:
        """Fetch line items for many towns in sequential, size-capped batches."""
        batch_size = self._config.batch_size
        items: list[BudgetLineItem] = []
        for start in range(0, len(town_ids), batch_size):
            batch = town_ids[start:start + batch_size]
            rows = await resolve(
                self._budget.list_items(town_ids=batch, limit=self._config.batch_row_limit)
            )
            if len(rows) >= self._config.batch_row_limit:
                logger.warning(
                    "Budget batch at offset %d hit the %d row limit; peer totals may be partial",
                    start, self._config.batch_row_limit,
                )
            logger.debug("Fetched %d line items for %d towns", len(rows), len(batch))
            items.extend(rows)
        return items

    async def _state_context(self, town: Town) -> tuple[list[Town], list[BudgetLineItem]]:
        state_towns = await resolve(
            self._towns.list_towns(state=town.state, limit=self._config.state_town_limit)
        )
        items = await self._fetch_batched([t.id for t in state_towns])
        return state_towns, items

    async def _selected_towns(self, town_ids: Sequence[str]) -> list[Town]:
        """Towns for ``town_ids`` in request order; the first must exist."""
        if not town_ids:
            raise ValueError("At least one town id is required")
        found = await resolve(self._towns.list_towns(town_ids=town_ids))
        by_id = {t.id: t for t in found}
        if town_ids[0] not in by_id:
            raise TownNotFoundError(town_ids[0])
        seen: set[str] = set()
        towns: list[Town] = []
        for town_id in town_ids:
            if town_id in by_id and town_id not in seen:
                seen.add(town_id)
                towns.append(by_id[town_id])
        return towns

    # -- Queries --

    async def rankings(self, town_id: str) -> RankingsResult:
        town = await self.get_town(town_id)
        state_towns, items = await self._state_context(town)
        return compute_state_rankings(town, state_towns, items, self._taxonomy)

    async def explorer(
        self, town_id: str, metric: MetricType | str = MetricType.ABSOLUTE
    ) -> ExplorerView:
        """Grouped budget for one town with metric values and state deltas.

        The state delta compares per-capita spend against the state average
        for the same category or subcategory.
        """
        metric = MetricType(metric)
        town = await self.get_town(town_id)
        state_towns, state_items = await self._state_context(town)
        # Peer batches are row-capped; the town's own tree must be complete.
        items = await self.line_items([town.id])

        category_avgs = category_state_averages(state_towns, state_items, self._taxonomy)
        subcategory_avgs = subcategory_state_averages(state_towns, state_items)

        groups = group_for_explorer(items)
        for group in groups:
            group.value = metric_value(group.total, metric, town)
            if town.population > 0:
                group.vs_state_pct = vs_state_pct(
                    group.total / town.population, category_avgs.get(group.category)
                )
            for sub in group.subcategories:
                sub.value = metric_value(sub.total, metric, town)
                if town.population > 0:
                    sub.vs_state_pct = vs_state_pct(
                        sub.total / town.population,
                        subcategory_avgs.get(f"{group.category}|{sub.subcategory}"),
                    )

        total = total_for_town(items, town.id)
        return ExplorerView(
            town_id=town.id,
            metric=metric,
            total=total,
            value=metric_value(total, metric, town),
            categories=groups,
        )

    async def compare(
        self, town_ids: Sequence[str], metric: MetricType | str = MetricType.PER_CAPITA
    ) -> tuple[list[Town], ComparisonTable]:
        towns = await self._selected_towns(town_ids)
        items = await self.line_items([t.id for t in towns])
        return towns, compare_towns(towns, items, metric)

    async def export_rows(
        self, town_ids: Sequence[str] | None = None, fiscal_year: int | None = None
    ) -> list[ExportRow]:
        """Flat per-line-item export rows with per-unit values."""
        items = await resolve(
            self._budget.list_items(
                town_ids=list(town_ids) if town_ids else None, fiscal_year=fiscal_year
            )
        )
        towns = await resolve(
            self._towns.list_towns(town_ids={i.town_id for i in items})
        )
        towns_by_id = {t.id: t for t in towns}
        rows: list[ExportRow] = []
        for item in items:
            town = towns_by_id.get(item.town_id)
            rows.append(ExportRow.from_item(item, town))
        return rows

    async def comprehensive_report(
        self, town_ids: Sequence[str], metric: MetricType | str = MetricType.PER_CAPITA
    ) -> ComprehensiveReport:
        """Everything the detailed export needs, keyed off the first town."""
        metric = MetricType(metric)
        towns = await self._selected_towns(town_ids)
        primary = towns[0]
        state_towns, state_items = await self._state_context(primary)
        selected_items = await self.line_items([t.id for t in towns])

        return ComprehensiveReport(
            towns=towns,
            primary=primary,
            metric=metric,
            rankings=compute_state_rankings(primary, state_towns, state_items, self._taxonomy),
            breakdown=group_for_explorer(i for i in selected_items if i.town_id == primary.id),
            category_averages=category_state_averages(state_towns, state_items, self._taxonomy),
            comparison=compare_towns(towns, selected_items, metric) if len(towns) > 1 else None,
            generated_at=datetime.now(timezone.utc),
        )
