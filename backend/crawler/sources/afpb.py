"""
AFPB (afpbarcelos.pt) site description and round resolution.

The site serves one HTML fragment per (edition, ordering) pair. Editions are fixed
per competition/division; ordering usually equals the round number, but some
editions are shifted on the site.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping, Optional

import httpx

from shared.models.domain import GameGroup
from shared.utils.http_client import CrawlerHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

AFPB_BASE_URL = "https://afpbarcelos.pt"
ROUND_PATH = "/?partial_load=_constructhtmlbyedition&edition={edition}&ordering={ordering}"

DIV_1_EDITION = 49
DIV_2_A_EDITION = 50
DIV_2_B_EDITION = 51
TACA_EDITION = 48


@dataclass(frozen=True)
class EditionTable:
    """Competition/division -> edition, plus per-edition ordering offsets."""
    editions: Mapping[str, int]
    ordering_offsets: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "editions", MappingProxyType(dict(self.editions)))
        object.__setattr__(self, "ordering_offsets", MappingProxyType(dict(self.ordering_offsets)))

    def resolve(self, key: str) -> Optional[int]:
        return self.editions.get(key.strip())

    def ordering(self, edition: int, round_number: int) -> int:
        return round_number + self.ordering_offsets.get(edition, 0)


DEFAULT_EDITION_TABLE = EditionTable(
    editions={
        "1ª Divisão AGRIBAR Campeonato": DIV_1_EDITION,
        "2ª Divisão AFPB Série A": DIV_2_A_EDITION,
        "2ª Divisão AFPB Série B": DIV_2_B_EDITION,
        "Taça Cidade de Barcelos Eliminatórias": TACA_EDITION,
    },
    # Cup rounds are listed two positions later on the site
    ordering_offsets={TACA_EDITION: 2},
)


@dataclass(frozen=True)
class AFPBSelectors:
    """CSS selectors for round fragments and match detail pages."""
    games: str = "div.games > .overview"
    home_team_name: str = ".teams > .home-team > .team-name"
    away_team_name: str = ".teams > .away-team > .team-name"
    home_score: str = ".score-home"
    away_score: str = ".score-away"
    date: str = "time"
    winner: str = ".teams > .win"
    detail_url: str = "a[href]"
    match_status: str = ".vanues > div.stadium"


DEFAULT_SELECTORS = AFPBSelectors()


@dataclass(frozen=True)
class RoundRequest:
    edition: int
    round: int
    ordering: int
    url: str


@dataclass(frozen=True)
class RoundPage:
    request: RoundRequest
    html: str


class RoundResolver:
    """Turns a reference GameGroup into the AFPB round pages that cover it."""

    def __init__(
        self,
        http: CrawlerHTTPClient,
        site_base_url: str = AFPB_BASE_URL,
        editions: EditionTable = DEFAULT_EDITION_TABLE,
        delay_range_s: tuple[float, float] = (0.5, 1.0),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._http = http
        self._base_url = site_base_url.rstrip("/")
        self._editions = editions
        self._delay_range = delay_range_s
        self._sleep = sleep
        self._rng = rng or random.Random()

    def resolve_edition(self, group: GameGroup) -> Optional[int]:
        return self._editions.resolve(group.edition_key)

    @staticmethod
    def distinct_rounds(group: GameGroup) -> list[int]:
        return sorted({g.round for g in group.games if g.round is not None})

    def next_delay(self) -> float:
        """Pause in [min, max) seconds before the next site request."""
        low, high = self._delay_range
        return low + self._rng.random() * (high - low)

    def round_url(self, edition: int, ordering: int) -> str:
        return self._base_url + ROUND_PATH.format(edition=edition, ordering=ordering)

    def plan(self, group: GameGroup) -> list[RoundRequest]:
        """Requests needed for a group; empty when the competition is not tracked."""
        edition = self.resolve_edition(group)
        if edition is None:
            logger.info("edition_not_found", competition=group.edition_key)
            return []

        requests = []
        for round_number in self.distinct_rounds(group):
            ordering = self._editions.ordering(edition, round_number)
            requests.append(
                RoundRequest(
                    edition=edition,
                    round=round_number,
                    ordering=ordering,
                    url=self.round_url(edition, ordering),
                )
            )
        return requests

    async def fetch(self, group: GameGroup) -> list[RoundPage]:
        """
        Fetch every round page for the group, one at a time with a random pause
        before each request. Failed rounds are logged and left out.
        """
        pages: list[RoundPage] = []
        for request in self.plan(group):
            await self._sleep(self.next_delay())
            logger.info("round_request", edition=request.edition, round=request.round, url=request.url)
            try:
                resp = await self._http.get(request.url)
            except httpx.HTTPError as exc:
                logger.warning(
                    "round_fetch_failed",
                    url=request.url,
                    status=exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None,
                    error=str(exc) or type(exc).__name__,
                )
                continue

            if resp.status_code != 200:
                logger.warning("round_fetch_failed", url=request.url, status=resp.status_code)
                continue

            pages.append(RoundPage(request=request, html=resp.text))
        return pages
