"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """Database configuration. Without a URL, in-memory stores are used."""

    model_config = {"env_prefix": "TOWNBENCH_DB_"}

    database_url: str | None = None
    echo: bool = False
    pool_size: int = 5


class RankingConfig(BaseSettings):
    """Limits applied when fetching state peers for rankings."""

    model_config = {"env_prefix": "TOWNBENCH_RANKING_"}

    state_town_limit: int = 2000
    batch_size: int = 100
    batch_row_limit: int = 50_000


class TaxonomyConfig(BaseSettings):
    """Budget category taxonomy configuration."""

    model_config = {"env_prefix": "TOWNBENCH_TAXONOMY_"}

    config_path: str | None = None


class ApiConfig(BaseSettings):
    """HTTP layer configuration."""

    model_config = {"env_prefix": "TOWNBENCH_API_"}

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )
    default_page_size: int = 50
    max_page_size: int = 200


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "TOWNBENCH_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
