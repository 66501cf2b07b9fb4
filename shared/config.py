"""
Shared configuration management for the licensing service.
"""

from functools import lru_cache
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="LICENSING_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class LicensingConfig(BaseConfig):
    """Licensing service configuration."""

    service_name: str = "licensing"
    host: str = "0.0.0.0"
    port: int = 8014

    # Persistence
    postgres_dsn: str = Field(default="postgres://localhost:5432/licensing")

    # Upstream entitlement authority
    authority_url: str = Field(default="http://localhost:8090")
    authority_timeout_seconds: float = Field(default=10.0)
    authority_max_attempts: int = Field(default=3)
    authority_api_key_header: str = Field(default="X-Signoz-Cloud-Api-Key")

    # Feature flags
    dot_metrics_enabled: bool = Field(default=False)
    feature_flags: Dict[str, bool] = Field(default_factory=dict)
    organization_feature_flags: Dict[str, Dict[str, bool]] = Field(default_factory=dict)


@lru_cache(maxsize=1)
def get_config() -> LicensingConfig:
    """Get the process-wide licensing configuration."""
    return LicensingConfig()
