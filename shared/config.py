"""
Shared configuration management for the CO2 bridge services.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Electricity Maps
    em_base_url: str = Field(default="https://api.electricitymap.org")
    em_auth_token: str = Field(default="")
    use_latlon: bool = Field(default=False)
    em_zone: str = Field(default="AT")
    em_lat: float = Field(default=48.2)
    em_lon: float = Field(default=16.37)

    # Fetch/cache layer
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    upstream_timeout_seconds: Optional[float] = Field(default=10.0, ge=0)
    single_flight: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
