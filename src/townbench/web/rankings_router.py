"""Rankings and comparison API router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from townbench.budget.service import BenchmarkService, TownNotFoundError
from townbench.core.types import MetricType
from townbench.web.budget_router import parse_metric


router = APIRouter()


def _get_service(request: Request) -> BenchmarkService:
    service = getattr(request.app.state, "benchmark_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Benchmark service not available")
    return service


def parse_town_ids(value: str | None) -> list[str]:
    return [t.strip() for t in (value or "").split(",") if t.strip()]


@router.get("/api/rankings")
async def api_rankings(request: Request, town_id: str | None = None) -> dict[str, Any]:
    """State rankings for one town."""
    service = _get_service(request)
    if not town_id:
        raise HTTPException(status_code=400, detail="town_id required")
    try:
        result = await service.rankings(town_id)
    except TownNotFoundError:
        raise HTTPException(status_code=404, detail="Town not found")
    return result.model_dump()


@router.get("/api/compare")
async def api_compare(
    request: Request, town_ids: str | None = None, metric: str | None = None
) -> dict[str, Any]:
    """Per-category comparison of the selected towns; the first is primary."""
    service = _get_service(request)
    ids = parse_town_ids(town_ids)
    if not ids:
        raise HTTPException(status_code=400, detail="town_ids required")
    parsed = parse_metric(metric, MetricType.PER_CAPITA)
    try:
        towns, table = await service.compare(ids, parsed)
    except TownNotFoundError:
        raise HTTPException(status_code=404, detail="Primary town not found")
    return {
        "towns": [t.model_dump() for t in towns],
        "table": table.model_dump(mode="json"),
    }
