"""
Configuration and settings for the movie backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_title: str = Field(default="CTJ Fase 3 Backend API")
    api_docs_url: str = Field(default="/api-docs")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_origins: List[str] = Field(default=["*"])
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    # Supabase (auth + REST data API)
    supabase_url: Optional[str] = Field(default=None)
    supabase_key: Optional[str] = Field(default=None)

    # Direct Postgres connection; takes precedence over the REST data API
    database_url: Optional[str] = Field(default=None)

    # Google Sheets (movie suggestions)
    sheets_url: Optional[str] = Field(default=None)
    google_credentials_file: str = Field(default="cred.json")

    # Require a bearer session on every /movies route
    auth_required: bool = Field(default=False)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
