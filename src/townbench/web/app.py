"""FastAPI application for TownBench.

Provides REST API endpoints for browsing towns, budget breakdowns, state
rankings, town comparisons and CSV exports.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from townbench.budget.service import BenchmarkService
from townbench.budget.store import BudgetStore, TownStore
from townbench.budget.taxonomy import Taxonomy
from townbench.core.config import Settings
from townbench.export.renderer import CsvRenderer
from townbench.repositories.protocols import BudgetRepository, TownRepository
from townbench.web.budget_router import router as budget_router
from townbench.web.export_router import router as export_router
from townbench.web.rankings_router import router as rankings_router
from townbench.web.towns_router import router as towns_router

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = "0.1.0"
    storage: str = "memory"


# --- Application factory ---


def create_app(
    settings: Settings | None = None,
    town_repository: TownRepository | None = None,
    budget_repository: BudgetRepository | None = None,
    taxonomy: Taxonomy | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own stores.

    Args:
        settings: Application settings. Defaults to Settings().
        town_repository: Optional pre-built town repository.
        budget_repository: Optional pre-built budget repository.
        taxonomy: Optional taxonomy. Defaults to the bundled YAML file.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("townbench").setLevel(settings.log_level.upper())

    db_manager = None
    storage = "memory"
    if settings.db.database_url and (town_repository is None or budget_repository is None):
        from townbench.db.engine import DatabaseManager
        from townbench.repositories.postgres.budget import PostgresBudgetRepository
        from townbench.repositories.postgres.towns import PostgresTownRepository

        db_manager = DatabaseManager.from_config(settings.db)
        town_repository = town_repository or PostgresTownRepository(db_manager)
        budget_repository = budget_repository or PostgresBudgetRepository(db_manager)
        storage = "database"

    if town_repository is None:
        town_repository = TownStore()
    if budget_repository is None:
        budget_repository = BudgetStore()
    if taxonomy is None:
        taxonomy = Taxonomy.from_yaml(settings.taxonomy.config_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="TownBench",
        description="Municipal budget benchmarking",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    benchmark_service = BenchmarkService(
        towns=town_repository,
        budget=budget_repository,
        taxonomy=taxonomy,
        config=settings.ranking,
    )

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.town_repository = town_repository
    app.state.budget_repository = budget_repository
    app.state.benchmark_service = benchmark_service
    app.state.csv_renderer = CsvRenderer()
    if db_manager is not None:
        app.state.db_manager = db_manager

    app.include_router(towns_router)
    app.include_router(budget_router)
    app.include_router(rankings_router)
    app.include_router(export_router)

    logger.info("TownBench app created (storage=%s, environment=%s)", storage, settings.environment)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", service="townbench", storage=storage)

    return app
