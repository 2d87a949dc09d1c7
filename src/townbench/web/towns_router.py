"""Towns API router: listing, creation, and financial indicators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from townbench.budget.models import Town
from townbench.budget.service import BenchmarkService, TownNotFoundError


router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response models
# ---------------------------------------------------------------------------


class TownCreateRequest(BaseModel):
    """Request body for creating a town."""

    name: str | None = None
    state: str | None = None
    county: str | None = None
    population: int | None = None
    road_miles: float | None = None
    grand_list_valuation: float | None = None
    fiscal_year: int | None = None


# ---------------------------------------------------------------------------
# Helper to get services from app state
# ---------------------------------------------------------------------------


def _get_service(request: Request) -> BenchmarkService:
    service = getattr(request.app.state, "benchmark_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Benchmark service not available")
    return service


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/api/towns")
async def api_list_towns(
    request: Request,
    state: str | None = None,
    county: str | None = None,
    has_budget: bool = False,
    page: int = 1,
    limit: int | None = None,
) -> dict[str, Any]:
    """List towns ordered by state then name, one page at a time."""
    service = _get_service(request)
    api_config = request.app.state.settings.api
    page_size = min(limit or api_config.default_page_size, api_config.max_page_size)
    towns, total = await service.list_towns(
        state=state,
        county=county,
        has_budget=has_budget,
        page=page,
        limit=max(page_size, 1),
    )
    return {"data": [t.model_dump() for t in towns], "total": total}


@router.post("/api/towns", status_code=201)
async def api_create_town(body: TownCreateRequest, request: Request) -> dict[str, Any]:
    """Create a town. Unknown denominators default to 0."""
    service = _get_service(request)
    if not body.name or not body.state:
        raise HTTPException(status_code=400, detail="name and state are required")

    town = Town(
        name=body.name,
        state=body.state.upper(),
        county=body.county,
        population=body.population or 0,
        road_miles=body.road_miles or 0.0,
        grand_list_valuation=body.grand_list_valuation or 0.0,
        fiscal_year=body.fiscal_year or datetime.now(timezone.utc).year,
    )
    town = await service.create_town(town)
    return town.model_dump()


@router.get("/api/towns/{town_id}")
async def api_get_town(town_id: str, request: Request) -> dict[str, Any]:
    service = _get_service(request)
    try:
        town = await service.get_town(town_id)
    except TownNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return town.model_dump()


@router.get("/api/towns/{town_id}/financials")
async def api_town_financials(town_id: str, request: Request) -> list[dict[str, Any]]:
    """Financial indicators for a town, newest fiscal year first."""
    service = _get_service(request)
    financials = await service.list_financials(town_id)
    return [f.model_dump() for f in financials]
