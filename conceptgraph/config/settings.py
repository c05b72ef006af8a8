"""
Settings - Engine configuration using Pydantic Settings.

Loads from environment variables (prefix ``CONCEPTGRAPH_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    # Paths
    content_dir: Path = Path("content")
    manual_edges_path: Path | None = Path("content/manual_edges.json")
    cache_dir: Path = Path("data/graph-cache")

    # Build
    strict_validation: bool = False
    extraction_concurrency: int = Field(default=8, ge=1)

    # Queries
    max_traversal_depth: int = Field(default=10, ge=1)
    include_leads_to: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CONCEPTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
