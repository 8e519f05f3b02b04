"""
Configuration and settings for the nearby chat backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")

    # Key-value store (Postgres via SQLAlchemy, or Redis)
    database_url: Optional[str] = Field(default=None)
    kv_table_name: str = Field(default="kv_store")
    redis_url: Optional[str] = Field(default=None)
    redis_namespace: str = Field(default="nearby:")

    # Identity provider (Supabase Auth)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "NEARBY_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
