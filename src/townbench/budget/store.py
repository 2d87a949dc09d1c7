"""In-memory stores for towns and budget line items."""

from __future__ import annotations

from collections.abc import Iterable

from townbench.budget.models import BudgetLineItem, Town, TownFinancial


def _line_item_order(item: BudgetLineItem) -> tuple[str, str, str]:
    return (item.category, item.subcategory, item.line_item)


class TownStore:
    """In-memory dict store for towns and their financial indicators.

    Suitable for single-instance deployment and tests.
    """

    def __init__(self, towns: Iterable[Town] = ()) -> None:
        self._towns: dict[str, Town] = {}
        self._financials: list[TownFinancial] = []
        for town in towns:
            self.add_town(town)

    def add_town(self, town: Town) -> Town:
        self._towns[town.id] = town
        return town

    def get_town(self, town_id: str) -> Town | None:
        return self._towns.get(town_id)

    def _filter(
        self,
        state: str | None,
        county: str | None,
        town_ids: Iterable[str] | None,
    ) -> list[Town]:
        towns = list(self._towns.values())
        if state:
            towns = [t for t in towns if t.state == state.upper()]
        if county:
            towns = [t for t in towns if (t.county or "").lower() == county.lower()]
        if town_ids is not None:
            wanted = set(town_ids)
            towns = [t for t in towns if t.id in wanted]
        return sorted(towns, key=lambda t: (t.state, t.name))

    def list_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Town]:
        towns = self._filter(state, county, town_ids)[offset:]
        return towns[:limit] if limit is not None else towns

    def count_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
    ) -> int:
        return len(self._filter(state, county, town_ids))

    def add_financial(self, financial: TownFinancial) -> None:
        self._financials.append(financial)

    def list_financials(self, town_id: str) -> list[TownFinancial]:
        rows = [f for f in self._financials if f.town_id == town_id]
        rows.sort(key=lambda f: f.metric_key)
        rows.sort(key=lambda f: f.fiscal_year, reverse=True)
        return rows


class BudgetStore:
    """In-memory store for budget line items."""

    def __init__(self, items: Iterable[BudgetLineItem] = ()) -> None:
        self._items: list[BudgetLineItem] = []
        self.add_items(items)

    def add_items(self, items: Iterable[BudgetLineItem]) -> None:
        self._items.extend(items)

    def list_items(
        self,
        town_ids: Iterable[str] | None = None,
        fiscal_year: int | None = None,
        limit: int | None = None,
    ) -> list[BudgetLineItem]:
        items = self._items
        if town_ids is not None:
            wanted = set(town_ids)
            items = [i for i in items if i.town_id in wanted]
        if fiscal_year is not None:
            items = [i for i in items if i.fiscal_year == fiscal_year]
        items = sorted(items, key=_line_item_order)
        return items[:limit] if limit is not None else items

    def town_ids_with_budget(self) -> set[str]:
        return {i.town_id for i in self._items}
