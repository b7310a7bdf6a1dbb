"""
Shared configuration management for the compliance gate engine.
"""

from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="COMPLIANCE_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Gate behaviour
    enforce_license_snapshot: bool = Field(default=False)

    # Rate limiting (per external dependency, accepted calls per window)
    sec_max_per_second: int = Field(default=10, gt=0)
    rate_window_ms: int = Field(default=1000, gt=0)
    rate_limits: Dict[str, int] = Field(default_factory=dict)

    # Observability
    metrics_enabled: bool = Field(default=True)

    def rate_limit_table(self) -> Dict[str, int]:
        """Limits per named dependency; explicit ``rate_limits`` entries win."""
        table = {"sec": self.sec_max_per_second}
        table.update(self.rate_limits)
        return table


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name)
