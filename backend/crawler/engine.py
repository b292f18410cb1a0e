"""
Crawler engine and scheduler loop.
One cycle: live groups from Domingo às Dez -> AFPB round pages -> scraped games ->
reconciliation. The loop sleeps briefly while games are live and longer when idle.
"""
from __future__ import annotations

import asyncio
import itertools
from typing import Awaitable, Callable

from shared.models.domain import GameGroup, ScrapedGame
from shared.models.enums import CrawlerState
from shared.utils.logging import cycle_context, get_logger
from shared.utils.metrics import CYCLE_DURATION, CYCLE_ERRORS, LIVE_GAME_GROUPS, atrack_latency

from crawler.extractor import GameExtractor
from crawler.reconciliation import ReconciliationEngine
from crawler.sources.afpb import RoundResolver
from crawler.sources.domingoasdez import DomingoAsDezClient

logger = get_logger(__name__)


class CrawlerEngine:
    """Runs scrape/reconcile cycles."""

    def __init__(
        self,
        reference: DomingoAsDezClient,
        resolver: RoundResolver,
        extractor: GameExtractor,
        reconciler: ReconciliationEngine,
    ) -> None:
        self._reference = reference
        self._resolver = resolver
        self._extractor = extractor
        self._reconciler = reconciler

    async def collect_games(self, groups: list[GameGroup]) -> list[ScrapedGame]:
        games: list[ScrapedGame] = []
        for group in groups:
            logger.info("group_processing", group=group.label, reference_games=len(group.games))
            for page in await self._resolver.fetch(group):
                games.extend(await self._extractor.extract(page.html, edition=page.request.edition))
        logger.info("games_collected", count=len(games))
        return games

    async def run_cycle(self) -> CrawlerState:
        groups = await self._reference.get_live_games()
        LIVE_GAME_GROUPS.set(len(groups))
        if not groups:
            logger.info("no_live_games")
            return CrawlerState.IDLE

        logger.info("live_groups_received", groups=len(groups))
        games = await self.collect_games(groups)
        await self._reconciler.reconcile(games, groups)
        return CrawlerState.ACTIVE


async def run_crawler_loop(
    engine: CrawlerEngine,
    active_sleep_s: float,
    inactive_sleep_s: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Run cycles forever. A failed cycle is logged and keeps the previous state,
    so the next sleep uses the last known interval.
    """
    state = CrawlerState.ACTIVE
    for cycle in itertools.count(1):
        with cycle_context(cycle):
            logger.info("crawler_cycle_start")
            try:
                async with atrack_latency(CYCLE_DURATION):
                    state = await engine.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                CYCLE_ERRORS.inc()
                logger.exception("crawler_cycle_error", error=str(e))

            delay = active_sleep_s if state == CrawlerState.ACTIVE else inactive_sleep_s
            logger.info("crawler_sleeping", state=state.value, seconds=delay)
        await sleep(delay)
