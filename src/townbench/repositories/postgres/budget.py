"""PostgreSQL budget line item repository."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select

from townbench.budget.models import BudgetLineItem
from townbench.db.engine import DatabaseManager
from townbench.db.models import BudgetLineItemRow


class PostgresBudgetRepository:
    """Postgres-backed budget line item storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def add_items(self, items: Iterable[BudgetLineItem]) -> None:
        async with self._db.session() as db:
            db.add_all(BudgetLineItemRow(**item.model_dump()) for item in items)
            await db.commit()

    async def list_items(
        self,
        town_ids: Iterable[str] | None = None,
        fiscal_year: int | None = None,
        limit: int | None = None,
    ) -> list[BudgetLineItem]:
        async with self._db.session() as db:
            stmt = select(BudgetLineItemRow)
            if town_ids is not None:
                stmt = stmt.where(BudgetLineItemRow.town_id.in_(list(town_ids)))
            if fiscal_year is not None:
                stmt = stmt.where(BudgetLineItemRow.fiscal_year == fiscal_year)
            stmt = stmt.order_by(
                BudgetLineItemRow.category,
                BudgetLineItemRow.subcategory,
                BudgetLineItemRow.line_item,
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await db.execute(stmt)
            return [self._row_to_item(r) for r in result.scalars().all()]

    async def town_ids_with_budget(self) -> set[str]:
        async with self._db.session() as db:
            result = await db.execute(select(BudgetLineItemRow.town_id).distinct())
            return set(result.scalars().all())

    @staticmethod
    def _row_to_item(row: BudgetLineItemRow) -> BudgetLineItem:
        return BudgetLineItem(
            id=row.id,
            town_id=row.town_id,
            document_id=row.document_id,
            fiscal_year=row.fiscal_year,
            category=row.category,
            subcategory=row.subcategory,
            line_item=row.line_item,
            amount=row.amount,
        )
