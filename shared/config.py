"""
Shared configuration management for the Jokes read service.
"""

import os
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="JOKES_ENV")
    log_level: str = Field(default="info", validation_alias="JOKES_LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="JOKES_LOG_FORMAT")

    # Relational store
    postgres_dsn: str = Field(
        default="postgres://localhost:5432/jokes", validation_alias="JOKES_POSTGRES_DSN"
    )
    db_pool_min_size: int = Field(default=0, ge=0, validation_alias="JOKES_DB_POOL_MIN_SIZE")
    db_pool_size: int = Field(default=10, ge=1, validation_alias="JOKES_DB_POOL_SIZE")
    db_command_timeout: float = Field(default=30.0, gt=0, validation_alias="JOKES_DB_COMMAND_TIMEOUT")
    db_acquire_timeout: float = Field(default=10.0, gt=0, validation_alias="JOKES_DB_ACQUIRE_TIMEOUT")
    jokes_table: str = Field(default="jokes", validation_alias="JOKES_TABLE")

    # Read-path cache
    cache_ttl_seconds: float = Field(default=300.0, gt=0, validation_alias="JOKES_CACHE_TTL_SECONDS")
    fresh_max_age_seconds: int = Field(default=300, ge=0, validation_alias="JOKES_FRESH_MAX_AGE_SECONDS")
    stale_max_age_seconds: int = Field(default=60, ge=0, validation_alias="JOKES_STALE_MAX_AGE_SECONDS")
    stale_fallback_ceiling_seconds: Optional[float] = Field(
        default=None, validation_alias="JOKES_STALE_MAX_AGE_CEILING_SECONDS"
    )
    single_flight: bool = Field(default=False, validation_alias="JOKES_SINGLE_FLIGHT")

    # Fetch retries
    fetch_max_attempts: int = Field(default=3, ge=1, validation_alias="JOKES_FETCH_MAX_ATTEMPTS")
    fetch_retry_delay_seconds: float = Field(
        default=1.0, ge=0, validation_alias="JOKES_FETCH_RETRY_DELAY_SECONDS"
    )

    # HTTP surface
    static_dir: str = Field(default="frontend/dist", validation_alias="JOKES_STATIC_DIR")
    cors_origins: List[str] = Field(default=["*"], validation_alias="JOKES_CORS_ORIGINS")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=4000, validation_alias="PORT")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")


def get_config(service_name: str, port: Optional[int] = None, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    ``PORT`` from the environment wins over the ``port`` default passed by the
    service, matching the usual container convention.
    """
    if port is not None and "PORT" not in os.environ:
        overrides.setdefault("port", port)
    config = ServiceConfig(service_name=service_name, **overrides)
    return config
