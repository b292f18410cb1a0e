"""
Crawler service configuration.
Uses CRAWLER_SCRAPE_ prefix for scrape/schedule knobs; the JSON config file carries
the club-name mapping table and, optionally, the reference API key.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.domain import DomainModel
from shared.models.enums import FinishedStrategy
from shared.utils.logging import get_logger

logger = get_logger(__name__)


class CrawlerSettings(BaseSettings):
    """Crawler-specific settings; use get_settings() for API/env selection."""

    model_config = SettingsConfigDict(
        env_prefix="CRAWLER_SCRAPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    site_base_url: str = Field(default="https://afpbarcelos.pt", description="AFPB site root")

    # Scheduling (seconds)
    active_sleep_s: float = Field(default=30.0, description="Sleep between cycles while games are live")
    inactive_sleep_s: float = Field(default=600.0, description="Sleep between cycles with no live games")

    # Politeness towards the scraped site
    request_delay_min_s: float = Field(default=0.5, description="Min pause before each round request")
    request_delay_max_s: float = Field(default=1.0, description="Max pause before each round request (exclusive)")
    max_retries: int = Field(default=1, description="Attempts per scrape request")

    # Extraction
    finished_strategy: FinishedStrategy = FinishedStrategy.DETAIL_PAGE
    timezone: str = Field(default="Europe/Lisbon", description="Civil time zone of the dates on the site")

    # Files
    cache_file: Path = Field(default=Path("sent_results_cache.txt"), description="Sent fingerprints, one per line")
    config_file: Path = Field(default=Path("config.json"), description="Club-name map and API key")

    # Score reports
    report_source: str = "afpb_crawler"
    report_user_agent: str = "httpx, AFPB Score Crawler from Domingo às Dez"

    @model_validator(mode="after")
    def check_delay_window(self) -> "CrawlerSettings":
        if self.request_delay_max_s < self.request_delay_min_s:
            raise ValueError("request_delay_max_s must be >= request_delay_min_s")
        return self


def get_crawler_settings() -> CrawlerSettings:
    """Load crawler settings."""
    return CrawlerSettings()


class ClubNameMapping(DomainModel):
    from_name: str = Field(alias="from")
    to_name: str = Field(alias="to")


class CrawlerFileConfig(DomainModel):
    """Contents of config.json."""
    club_names_map: Optional[list[ClubNameMapping]] = None
    domingo_as_dez_api_key: str = ""


def load_file_config(path: Path) -> CrawlerFileConfig:
    """
    Read config.json. A missing or invalid file is not fatal: the crawler runs
    without a club-name table (every lookup then warns and passes names through).
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("config_file_missing", path=str(path))
        return CrawlerFileConfig()
    except (OSError, ValueError) as exc:
        logger.error("config_file_unreadable", path=str(path), error=str(exc))
        return CrawlerFileConfig()

    try:
        config = CrawlerFileConfig.model_validate(raw)
    except ValidationError as exc:
        logger.error("config_file_invalid", path=str(path), error=str(exc))
        return CrawlerFileConfig()

    logger.info(
        "config_file_loaded",
        path=str(path),
        club_names=len(config.club_names_map or []),
    )
    return config
