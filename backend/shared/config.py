"""
Central configuration for the AFPB score crawler.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEV = "dev"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Root settings shared by the crawler and its tooling."""

    model_config = SettingsConfigDict(
        env_prefix="CRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"
    instance_id: str = Field(default="", description="Container/host identifier bound to every log line")

    # ── Reference API (Domingo às Dez) ───────────────────────
    api_base_url_production: str = "https://domingoasdez.com/api"
    api_base_url_dev: str = "http://127.0.0.1:8000/api"
    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("CRAWLER_API_KEY", "DOMINGO_AS_DEZ_API_KEY"),
    )

    # ── HTTP ─────────────────────────────────────────────────
    request_timeout_s: float = 10.0

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @field_validator("environment", mode="before")
    @classmethod
    def accept_prod_alias(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == "prod":
            return Environment.PRODUCTION
        return value

    @property
    def api_base_url(self) -> str:
        """Reference API base URL for the selected environment."""
        if self.environment == Environment.PRODUCTION:
            return self.api_base_url_production
        return self.api_base_url_dev


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()
