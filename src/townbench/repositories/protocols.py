"""Protocol definitions for the repository interfaces.

Each protocol mirrors the public methods of the corresponding in-memory
store exactly, so both sync (in-memory) and async (SQL) implementations
satisfy the same interface.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from townbench.budget.models import BudgetLineItem, Town, TownFinancial


@runtime_checkable
class TownRepository(Protocol):
    """Protocol for town and financial indicator storage."""

    def add_town(self, town: Town) -> Town: ...

    def get_town(self, town_id: str) -> Town | None: ...

    def list_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Town]: ...

    def count_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
    ) -> int: ...

    def add_financial(self, financial: TownFinancial) -> None: ...

    def list_financials(self, town_id: str) -> list[TownFinancial]: ...


@runtime_checkable
class BudgetRepository(Protocol):
    """Protocol for budget line item storage."""

    def add_items(self, items: Iterable[BudgetLineItem]) -> None: ...

    def list_items(
        self,
        town_ids: Iterable[str] | None = None,
        fiscal_year: int | None = None,
        limit: int | None = None,
    ) -> list[BudgetLineItem]: ...

    def town_ids_with_budget(self) -> set[str]: ...
