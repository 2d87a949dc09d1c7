"""Export API router: CSV downloads."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from townbench.budget.service import BenchmarkService, TownNotFoundError
from townbench.core.types import MetricType
from townbench.export.renderer import CsvRenderer
from townbench.web.budget_router import parse_metric
from townbench.web.rankings_router import parse_town_ids


router = APIRouter()


def _get_service(request: Request) -> BenchmarkService:
    service = getattr(request.app.state, "benchmark_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Benchmark service not available")
    return service


def _get_renderer(request: Request) -> CsvRenderer:
    return getattr(request.app.state, "csv_renderer", None) or CsvRenderer()


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/export")
async def api_export(
    request: Request, town_ids: str | None = None, fiscal_year: int | None = None
) -> Response:
    """Flat CSV of line items with per-unit values."""
    service = _get_service(request)
    renderer = _get_renderer(request)
    rows = await service.export_rows(parse_town_ids(town_ids), fiscal_year)
    return _csv_response(renderer.render_line_items(rows), renderer.line_item_filename)


@router.get("/api/export/comprehensive")
async def api_export_comprehensive(
    request: Request, town_ids: str | None = None, metric: str | None = None
) -> Response:
    """Detailed multi-section CSV report for one or more towns."""
    service = _get_service(request)
    renderer = _get_renderer(request)
    ids = parse_town_ids(town_ids)
    if not ids:
        raise HTTPException(status_code=400, detail="town_ids required")
    parsed = parse_metric(metric, MetricType.PER_CAPITA)
    try:
        report = await service.comprehensive_report(ids, parsed)
    except TownNotFoundError:
        raise HTTPException(status_code=404, detail="Primary town not found")
    return _csv_response(renderer.render_report(report), renderer.report_filename(report))
