"""Budget API router: raw line items, explorer tree, and taxonomy."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from townbench.budget.service import BenchmarkService, TownNotFoundError
from townbench.core.types import METRIC_LABELS, MetricType


router = APIRouter()


def _get_service(request: Request) -> BenchmarkService:
    service = getattr(request.app.state, "benchmark_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Benchmark service not available")
    return service


def parse_metric(value: str | None, default: MetricType) -> MetricType:
    if value is None:
        return default
    try:
        return MetricType(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid metric {value!r}. Available: {[m.value for m in MetricType]}",
        )


@router.get("/api/budget")
async def api_budget_items(
    request: Request, town_id: str | None = None
) -> list[dict[str, Any]]:
    """Line items for a town ordered by category, subcategory, line item."""
    service = _get_service(request)
    if not town_id:
        raise HTTPException(status_code=400, detail="town_id is required")
    items = await service.line_items([town_id])
    return [i.model_dump() for i in items]


@router.get("/api/budget/explorer")
async def api_budget_explorer(
    request: Request, town_id: str | None = None, metric: str | None = None
) -> dict[str, Any]:
    """Category -> subcategory -> line item tree with metric values."""
    service = _get_service(request)
    if not town_id:
        raise HTTPException(status_code=400, detail="town_id is required")
    parsed = parse_metric(metric, MetricType.ABSOLUTE)
    try:
        view = await service.explorer(town_id, parsed)
    except TownNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return view.model_dump(mode="json")


@router.get("/api/taxonomy")
async def api_taxonomy(request: Request) -> dict[str, Any]:
    service = _get_service(request)
    return {
        "categories": service.taxonomy.as_dict(),
        "metrics": {str(k): v for k, v in METRIC_LABELS.items()},
    }
