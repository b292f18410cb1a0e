"""
HTML game extraction for AFPB round fragments.
Parses each game container into a ScrapedGame with mapped team names, scores,
a finished flag and a Europe/Lisbon kick-off resolved to an absolute instant.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urljoin
from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup, Tag

from shared.models.domain import ScrapedGame
from shared.models.enums import FinishedStrategy
from shared.utils.http_client import CrawlerHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import EXTRACTION_FAILURES, GAMES_EXTRACTED

from crawler.club_names import ClubNameMapper
from crawler.sources.afpb import AFPB_BASE_URL, DEFAULT_SELECTORS, AFPBSelectors

logger = get_logger(__name__)

FINISHED_TOKEN = "terminado"

# "21/09 15:00" (current site) and "21-09-2023 - 15:00" (older markup)
_SHORT_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})\s+(\d{1,2}):(\d{2})$")
_LEGACY_DATE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})\s*-\s*(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class RawGame:
    """Text pulled out of one game container, before any interpretation."""
    home_team: str
    away_team: str
    home_score: str
    away_score: str
    date: str
    detail_url: Optional[str] = None
    has_winner: bool = False


def parse_score(text: str) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_game_date(text: str, tz: ZoneInfo, now: datetime) -> datetime:
    """
    Resolve a site date to an aware datetime in `tz`.

    The short format carries no year, so the current year in `tz` is used.

    Raises:
        ValueError: If the text is not a recognised date or names an impossible day.
    """
    text = " ".join(text.split())
    legacy = _LEGACY_DATE.match(text)
    if legacy:
        day, month, year, hour, minute = (int(p) for p in legacy.groups())
        return datetime(year, month, day, hour, minute, tzinfo=tz)

    short = _SHORT_DATE.match(text)
    if not short:
        raise ValueError(f"unrecognised game date {text!r}")
    day, month, hour, minute = (int(p) for p in short.groups())
    year = now.astimezone(tz).year
    return datetime(year, month, day, hour, minute, tzinfo=tz)


def _text(node: Tag, selector: str) -> str:
    found = node.select_one(selector)
    return found.get_text(strip=True) if found else ""


class GameExtractor:
    """Round fragment HTML -> list[ScrapedGame]."""

    def __init__(
        self,
        http: CrawlerHTTPClient,
        mapper: ClubNameMapper,
        site_base_url: str = AFPB_BASE_URL,
        selectors: AFPBSelectors = DEFAULT_SELECTORS,
        finished_strategy: FinishedStrategy = FinishedStrategy.DETAIL_PAGE,
        tz_name: str = "Europe/Lisbon",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._http = http
        self._mapper = mapper
        self._base_url = site_base_url.rstrip("/") + "/"
        self._selectors = selectors
        self._strategy = finished_strategy
        self._tz = ZoneInfo(tz_name)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def parse(self, html: str) -> list[RawGame]:
        soup = BeautifulSoup(html, "html.parser")
        sel = self._selectors
        games = []
        for container in soup.select(sel.games):
            link = container.select_one(sel.detail_url)
            games.append(
                RawGame(
                    home_team=_text(container, sel.home_team_name),
                    away_team=_text(container, sel.away_team_name),
                    home_score=_text(container, sel.home_score),
                    away_score=_text(container, sel.away_score),
                    date=_text(container, sel.date),
                    detail_url=(link.get("href") or None) if link else None,
                    has_winner=container.select_one(sel.winner) is not None,
                )
            )
        return games

    async def extract(self, html: str, edition: Optional[int] = None) -> list[ScrapedGame]:
        now = self._clock()
        games: list[ScrapedGame] = []
        for raw in self.parse(html):
            try:
                games.append(await self._build_game(raw, now))
            except ValueError as exc:
                EXTRACTION_FAILURES.inc()
                logger.warning(
                    "game_extraction_skipped",
                    home_team=raw.home_team,
                    away_team=raw.away_team,
                    date_text=raw.date,
                    error=str(exc),
                )

        GAMES_EXTRACTED.labels(edition=str(edition) if edition is not None else "unknown").inc(len(games))
        logger.info("games_extracted", edition=edition, count=len(games))
        return games

    async def _build_game(self, raw: RawGame, now: datetime) -> ScrapedGame:
        date = parse_game_date(raw.date, self._tz, now)
        return ScrapedGame(
            home_team=self._mapper.map(raw.home_team),
            away_team=self._mapper.map(raw.away_team),
            home_score=parse_score(raw.home_score),
            away_score=parse_score(raw.away_score),
            finished=await self._resolve_finished(raw),
            date=date,
        )

    async def _resolve_finished(self, raw: RawGame) -> bool:
        if self._strategy == FinishedStrategy.WINNER_MARKER:
            return raw.has_winner
        if not raw.detail_url:
            return False
        return await self.fetch_finished(raw.detail_url)

    async def fetch_finished(self, detail_url: str) -> bool:
        """Whether the match detail page reports the game as over. Fetch errors -> False."""
        try:
            url = urljoin(self._base_url, detail_url)
            logger.debug("match_details_request", url=url)
            resp = await self._http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("match_details_failed", href=detail_url, error=str(exc) or type(exc).__name__)
            return False

        if resp.status_code != 200:
            logger.warning("match_details_failed", url=url, status=resp.status_code)
            return False

        return self.is_finished_status(resp.text)

    def is_finished_status(self, html: str) -> bool:
        soup = BeautifulSoup(html, "html.parser")
        status = " ".join(node.get_text(strip=True) for node in soup.select(self._selectors.match_status))
        return FINISHED_TOKEN in status.lower()
