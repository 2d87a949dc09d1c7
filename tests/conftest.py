"""Shared test fixtures and helpers.

The sample state has five Vermont towns and one New Hampshire town:

    town-a  pop 10000, 50 road miles, $1B valuation; $800k budget
    town-b  pop  5000, 40 road miles, $500M valuation; $300k budget
    town-c  pop  2000, 20 road miles, no valuation;    $200k budget
    town-d  no population, 10 road miles, $100M;       $40k budget
    town-e  pop  3000, no road miles, no valuation;    no budget
    town-f  (NH) pop 1000;                              $90k budget
"""

from __future__ import annotations

import pytest

from townbench.budget.models import BudgetLineItem, Town
from townbench.budget.service import BenchmarkService
from townbench.budget.store import BudgetStore, TownStore
from townbench.budget.taxonomy import Taxonomy


def make_town(
    town_id: str,
    name: str | None = None,
    state: str = "VT",
    population: int = 0,
    road_miles: float = 0.0,
    grand_list_valuation: float = 0.0,
    **kwargs,
) -> Town:
    return Town(
        id=town_id,
        name=name or town_id,
        state=state,
        population=population,
        road_miles=road_miles,
        grand_list_valuation=grand_list_valuation,
        fiscal_year=kwargs.pop("fiscal_year", 2025),
        **kwargs,
    )


def make_item(
    town_id: str,
    category: str,
    amount: float,
    subcategory: str = "Other",
    line_item: str = "Item",
    fiscal_year: int = 2025,
) -> BudgetLineItem:
    return BudgetLineItem(
        town_id=town_id,
        category=category,
        subcategory=subcategory,
        line_item=line_item,
        amount=amount,
        fiscal_year=fiscal_year,
    )


def sample_towns() -> list[Town]:
    return [
        make_town("town-a", "Town A", population=10_000, road_miles=50,
                  grand_list_valuation=1_000_000_000, county="Washington"),
        make_town("town-b", "Town B", population=5_000, road_miles=40,
                  grand_list_valuation=500_000_000, county="Washington"),
        make_town("town-c", "Town C", population=2_000, road_miles=20,
                  county="Addison"),
        make_town("town-d", "Town D", road_miles=10,
                  grand_list_valuation=100_000_000, county="Addison"),
        make_town("town-e", "Town E", population=3_000, county="Orange"),
        make_town("town-f", "Town F", state="NH", population=1_000, road_miles=15,
                  grand_list_valuation=200_000_000, county="Grafton"),
    ]


def sample_items() -> list[BudgetLineItem]:
    return [
        make_item("town-a", "Education", 350_000, "K-12 Education", "Teacher salaries"),
        make_item("town-a", "Education", 150_000, "Special Education", "IEP services"),
        make_item("town-a", "Public Safety", 300_000, "Police", "Patrol officers"),
        make_item("town-b", "Education", 200_000, "K-12 Education", "Teacher salaries"),
        make_item("town-b", "Public Safety", 100_000, "Fire Department", "Fire district"),
        make_item("town-c", "Education", 150_000, "K-12 Education", "Tuition"),
        make_item("town-c", "Public Works", 50_000, "Highway Department", "Road crew"),
        make_item("town-d", "Public Safety", 40_000, "Police", "Sheriff contract"),
        make_item("town-f", "Education", 90_000, "K-12 Education", "Tuition"),
    ]


@pytest.fixture
def taxonomy() -> Taxonomy:
    return Taxonomy.from_yaml()


@pytest.fixture
def towns() -> list[Town]:
    return sample_towns()


@pytest.fixture
def items() -> list[BudgetLineItem]:
    return sample_items()


@pytest.fixture
def town_store() -> TownStore:
    return TownStore(sample_towns())


@pytest.fixture
def budget_store() -> BudgetStore:
    return BudgetStore(sample_items())


@pytest.fixture
def service(town_store, budget_store, taxonomy) -> BenchmarkService:
    return BenchmarkService(towns=town_store, budget=budget_store, taxonomy=taxonomy)
