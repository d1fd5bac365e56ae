"""
Settings — environment-driven configuration.

    settings = Settings()                     # ORDERFLOW_* variables
    settings = Settings(database_url="sqlite+aiosqlite:///./orderflow.db")
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "ORDERFLOW_"


class Settings(BaseSettings):
    """Runtime settings. Immutable once built; explicit arguments beat the environment."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, frozen=True)

    database_url: str = "sqlite+aiosqlite:///:memory:"
    echo_sql: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    http_host: str = "0.0.0.0"
    http_port: int = Field(8000, ge=1, le=65535)
    default_page_limit: int = Field(100, ge=1)


__all__ = ("ENV_PREFIX", "Settings")
