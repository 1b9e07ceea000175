"""
Shared configuration management for the PTAlts client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://api.voxalts.store/api"


class ClientConfig(BaseSettings):
    """Client configuration, read from ``PTALTS_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="PTALTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Credentials
    api_key: Optional[str] = Field(default=None)
    client_name: str = Field(default="ptalts-client")

    # Remote service
    base_url: str = Field(default=DEFAULT_BASE_URL)
    connect_timeout: float = Field(default=180.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)

    # Logging
    log_level: str = Field(default="info")
    log_format: str = Field(default="json")

    @property
    def api_url(self) -> str:
        return self.base_url.rstrip("/")


def get_config(**overrides) -> ClientConfig:
    """Get client configuration, with explicit overrides taking precedence."""
    return ClientConfig(**overrides)
