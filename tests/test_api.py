"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from townbench.budget.store import BudgetStore, TownStore
from townbench.core.config import Settings
from townbench.web.app import create_app
from tests.conftest import sample_items, sample_towns


@pytest.fixture
def client() -> TestClient:
    app = create_app(
        settings=Settings(),
        town_repository=TownStore(sample_towns()),
        budget_repository=BudgetStore(sample_items()),
    )
    return TestClient(app)


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "townbench"
        assert data["storage"] == "memory"


class TestTowns:
    def test_list_orders_by_state_then_name(self, client):
        resp = client.get("/api/towns")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 6
        assert [t["id"] for t in data["data"]] == [
            "town-f", "town-a", "town-b", "town-c", "town-d", "town-e",
        ]

    def test_list_filters(self, client):
        assert client.get("/api/towns?state=vt").json()["total"] == 5
        addison = client.get("/api/towns?county=addison").json()
        assert {t["id"] for t in addison["data"]} == {"town-c", "town-d"}

    def test_has_budget(self, client):
        data = client.get("/api/towns?has_budget=true").json()
        assert data["total"] == 5
        assert "town-e" not in [t["id"] for t in data["data"]]

    def test_pagination(self, client):
        data = client.get("/api/towns?page=2&limit=2").json()
        assert data["total"] == 6
        assert [t["id"] for t in data["data"]] == ["town-b", "town-c"]

    def test_create_requires_name_and_state(self, client):
        resp = client.post("/api/towns", json={"name": "Nowhere"})
        assert resp.status_code == 400

    def test_create(self, client):
        resp = client.post(
            "/api/towns",
            json={"name": "Stowe", "state": "vt", "population": 5223},
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["state"] == "VT"
        assert created["road_miles"] == 0.0
        assert created["id"]

        fetched = client.get(f"/api/towns/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "Stowe"

    def test_get_unknown_town(self, client):
        assert client.get("/api/towns/nowhere").status_code == 404

    def test_financials_empty(self, client):
        resp = client.get("/api/towns/town-a/financials")
        assert resp.status_code == 200
        assert resp.json() == []


class TestBudget:
    def test_requires_town_id(self, client):
        assert client.get("/api/budget").status_code == 400

    def test_items_ordered(self, client):
        items = client.get("/api/budget?town_id=town-a").json()
        assert [(i["category"], i["subcategory"]) for i in items] == [
            ("Education", "K-12 Education"),
            ("Education", "Special Education"),
            ("Public Safety", "Police"),
        ]

    def test_explorer_bad_metric(self, client):
        resp = client.get("/api/budget/explorer?town_id=town-a&metric=per_acre")
        assert resp.status_code == 400

    def test_explorer_unknown_town(self, client):
        assert client.get("/api/budget/explorer?town_id=nowhere").status_code == 404

    def test_explorer_per_capita(self, client):
        data = client.get("/api/budget/explorer?town_id=town-a&metric=per_capita").json()
        assert data["metric"] == "per_capita"
        assert data["total"] == 800_000
        assert data["value"] == pytest.approx(80.0)
        categories = [c["category"] for c in data["categories"]]
        assert categories == ["Education", "Public Safety"]
        assert data["categories"][0]["value"] == pytest.approx(50.0)

    def test_taxonomy(self, client):
        data = client.get("/api/taxonomy").json()
        assert len(data["categories"]) == 10
        assert "per_capita" in data["metrics"]


class TestRankings:
    def test_requires_town_id(self, client):
        resp = client.get("/api/rankings")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "town_id required"

    def test_unknown_town(self, client):
        resp = client.get("/api/rankings?town_id=nowhere")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Town not found"

    def test_rankings(self, client):
        data = client.get("/api/rankings?town_id=town-a").json()
        budget = {e["metric"]: e for e in data["budget_rankings"]}
        assert budget["Budget Per Capita"]["rank"] == 2
        assert budget["Budget Per Capita"]["total"] == 3


class TestCompare:
    def test_requires_ids(self, client):
        assert client.get("/api/compare").status_code == 400

    def test_unknown_primary(self, client):
        resp = client.get("/api/compare?town_ids=nowhere,town-a")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Primary town not found"

    def test_compare(self, client):
        data = client.get("/api/compare?town_ids=town-a,town-b").json()
        assert [t["id"] for t in data["towns"]] == ["town-a", "town-b"]
        table = data["table"]
        assert [r["category"] for r in table["rows"]] == ["Education", "Public Safety"]
        education = table["rows"][0]["cells"]
        assert [(c["town_id"], c["value"], c["rank"]) for c in education] == [
            ("town-a", 50.0, 2),
            ("town-b", 40.0, 1),
        ]
        totals = [c["value"] for c in table["total_row"]["cells"]]
        assert totals == [80.0, 60.0]


class TestExport:
    def test_line_item_csv(self, client):
        resp = client.get("/api/export?town_ids=town-b")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="townbench-export.csv"' in resp.headers["content-disposition"]
        lines = resp.text.strip().split("\n")
        assert lines[0].startswith('"Town","State","Fiscal Year"')
        assert len(lines) == 3

    def test_comprehensive_requires_ids(self, client):
        assert client.get("/api/export/comprehensive").status_code == 400

    def test_comprehensive_single_town(self, client):
        resp = client.get("/api/export/comprehensive?town_ids=town-a")
        assert resp.status_code == 200
        assert (
            'filename="townbench-town-a-detailed.csv"'
            in resp.headers["content-disposition"]
        )
        assert "=== STATE RANKINGS ===" in resp.text
        assert "=== TOWN COMPARISON ===" not in resp.text

    def test_comprehensive_comparison(self, client):
        resp = client.get("/api/export/comprehensive?town_ids=town-a,town-b&metric=absolute")
        assert resp.status_code == 200
        assert "townbench-comparison-detailed.csv" in resp.headers["content-disposition"]
        assert "=== TOWN COMPARISON ===" in resp.text
        assert "Metric: Absolute Dollars" in resp.text

    def test_comprehensive_unknown_primary(self, client):
        resp = client.get("/api/export/comprehensive?town_ids=nowhere")
        assert resp.status_code == 404
