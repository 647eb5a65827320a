"""
Shared configuration management for the Users Access Layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="USERS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Cache store
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_key: str = Field(default="users", min_length=1)

    # Upstream provider
    upstream_url: str = Field(default="https://randomuser.me/api/")
    upstream_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Aggregation
    total_records: int = Field(default=15000, ge=0)
    per_page: int = Field(default=3750, ge=1)
    concurrency: int = Field(default=4, ge=1)
    bound_concurrency: bool = Field(default=False)
    single_flight: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
