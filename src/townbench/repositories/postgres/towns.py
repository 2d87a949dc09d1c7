"""PostgreSQL town repository."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, select

from townbench.budget.models import Town, TownFinancial
from townbench.db.engine import DatabaseManager
from townbench.db.models import TownFinancialRow, TownRow


class PostgresTownRepository:
    """Postgres-backed town and financial indicator storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def add_town(self, town: Town) -> Town:
        async with self._db.session() as db:
            existing = await db.get(TownRow, town.id)
            values = town.model_dump()
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
            else:
                db.add(TownRow(**values))
            await db.commit()
        return town

    async def get_town(self, town_id: str) -> Town | None:
        async with self._db.session() as db:
            row = await db.get(TownRow, town_id)
            if row is None:
                return None
            return self._row_to_town(row)

    @staticmethod
    def _apply_filters(
        stmt: Any,
        state: str | None,
        county: str | None,
        town_ids: Iterable[str] | None,
    ) -> Any:
        if state:
            stmt = stmt.where(TownRow.state == state.upper())
        if county:
            stmt = stmt.where(func.lower(TownRow.county) == county.lower())
        if town_ids is not None:
            stmt = stmt.where(TownRow.id.in_(list(town_ids)))
        return stmt

    async def list_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Town]:
        async with self._db.session() as db:
            stmt = self._apply_filters(select(TownRow), state, county, town_ids)
            stmt = stmt.order_by(TownRow.state, TownRow.name).offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await db.execute(stmt)
            return [self._row_to_town(r) for r in result.scalars().all()]

    async def count_towns(
        self,
        state: str | None = None,
        county: str | None = None,
        town_ids: Iterable[str] | None = None,
    ) -> int:
        async with self._db.session() as db:
            stmt = self._apply_filters(
                select(func.count()).select_from(TownRow), state, county, town_ids
            )
            result = await db.execute(stmt)
            return result.scalar_one()

    async def add_financial(self, financial: TownFinancial) -> None:
        async with self._db.session() as db:
            db.add(TownFinancialRow(**financial.model_dump()))
            await db.commit()

    async def list_financials(self, town_id: str) -> list[TownFinancial]:
        async with self._db.session() as db:
            result = await db.execute(
                select(TownFinancialRow)
                .where(TownFinancialRow.town_id == town_id)
                .order_by(TownFinancialRow.fiscal_year.desc(), TownFinancialRow.metric_key)
            )
            return [
                TownFinancial(
                    town_id=r.town_id,
                    fiscal_year=r.fiscal_year,
                    metric_key=r.metric_key,
                    metric_value=r.metric_value,
                    source_name=r.source_name,
                )
                for r in result.scalars().all()
            ]

    @staticmethod
    def _row_to_town(row: TownRow) -> Town:
        return Town(
            id=row.id,
            name=row.name,
            state=row.state,
            county=row.county,
            population=row.population or 0,
            road_miles=row.road_miles or 0.0,
            grand_list_valuation=row.grand_list_valuation or 0.0,
            fiscal_year=row.fiscal_year,
            population_year=row.population_year,
            road_miles_year=row.road_miles_year,
            valuation_year=row.valuation_year,
        )
