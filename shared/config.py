"""
Shared configuration management for the Realty Access Layer.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="REALTY_ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    json_logs: bool = Field(default=True)

    # Storage
    postgres_dsn: str = Field(default="postgres://localhost:5432/realty_access")
    persistence_enabled: bool = Field(default=True)

    # Catalog
    catalog_version: str = Field(default="2026.1")

    host: str = Field(default="0.0.0.0")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
