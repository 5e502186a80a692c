"""
Configuration and settings for the keepsake backend.
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

    api_prefix: str = Field(default="/api")

    # Record store (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible photo bucket
    storage_bucket: Optional[str] = Field(default=None)
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "KEEPSAKE_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    # Photo preparation
    image_max_dimension: int = Field(default=1200, ge=1)
    image_quality: int = Field(default=70, ge=1, le=95)

    # Link handed to friends who contribute a memory
    share_base_url: str = Field(default="http://localhost:8000/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
