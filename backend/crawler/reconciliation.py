"""
Reconciliation: decide which scraped games become score reports.

A scraped game is forwarded only when it has a full score, has not been sent
before, matches a reference game by (home, away) team names, and that reference
game is still open. Successful forwards are recorded in the sent-results cache.
"""
from __future__ import annotations

import asyncio
from collections import Counter
from typing import Iterable, Optional, Protocol, Union

from shared.models.domain import GameGroup, ReferenceGame, ScrapedGame
from shared.models.enums import ReconcileOutcome
from shared.utils.logging import get_logger
from shared.utils.metrics import RECONCILIATION_DECISIONS, SCORE_FORWARDS

from crawler.cache import ResultCache

logger = get_logger(__name__)


class ScoreReporter(Protocol):
    async def send_score(
        self,
        game_id: Union[int, str],
        home_score: int,
        away_score: int,
        finished: bool,
    ) -> None: ...


def find_reference_game(game: ScrapedGame, groups: Iterable[GameGroup]) -> Optional[ReferenceGame]:
    """
    First reference game, across all groups, with the same home and away team.
    A blank name on either side never matches, so undecided fixtures stay unmatched.
    """
    if not game.home_team or not game.away_team:
        return None
    for group in groups:
        for ref in group.games:
            if ref.home_team == game.home_team and ref.away_team == game.away_team:
                return ref
    return None


class ReconciliationEngine:

    def __init__(self, cache: ResultCache, reporter: ScoreReporter) -> None:
        self._cache = cache
        self._reporter = reporter

    def decide(
        self,
        game: ScrapedGame,
        groups: list[GameGroup],
    ) -> tuple[ReconcileOutcome, Optional[ReferenceGame]]:
        """Run the skip rules. Returns (FORWARDED, ref) when the game should be sent."""
        if not game.has_score:
            logger.debug("game_skipped_no_score", game=game.describe())
            return ReconcileOutcome.NO_SCORE, None

        if self._cache.contains(game.fingerprint):
            logger.debug("game_skipped_already_sent", game=game.describe())
            return ReconcileOutcome.ALREADY_SENT, None

        ref = find_reference_game(game, groups)
        if ref is None:
            logger.info("game_skipped_unmatched", game=game.describe())
            return ReconcileOutcome.UNMATCHED, None

        if ref.finished:
            logger.info("game_skipped_reference_finished", game=game.describe(), game_id=ref.id)
            return ReconcileOutcome.REFERENCE_FINISHED, ref

        return ReconcileOutcome.FORWARDED, ref

    async def forward(self, game: ScrapedGame, ref: ReferenceGame) -> ReconcileOutcome:
        """Send one score report; failures are logged and leave the game uncached."""
        try:
            await self._reporter.send_score(ref.id, game.home_score, game.away_score, game.finished)
        except Exception as exc:
            SCORE_FORWARDS.labels(result="failed").inc()
            logger.error(
                "score_forward_failed",
                game=game.describe(),
                game_id=ref.id,
                error=str(exc) or type(exc).__name__,
            )
            return ReconcileOutcome.FORWARD_FAILED

        SCORE_FORWARDS.labels(result="sent").inc()
        try:
            self._cache.append(game.fingerprint)
        except OSError as exc:
            logger.error("sent_cache_write_failed", path=str(self._cache.path), error=str(exc))
        return ReconcileOutcome.FORWARDED

    async def reconcile(
        self,
        games: Iterable[ScrapedGame],
        groups: list[GameGroup],
    ) -> Counter[ReconcileOutcome]:
        """
        Reconcile a batch of scraped games. Forwards run concurrently and are all
        awaited before returning.
        """
        outcomes: Counter[ReconcileOutcome] = Counter()
        pending: dict[str, tuple[ScrapedGame, ReferenceGame]] = {}

        for game in games:
            if game.has_score and game.fingerprint in pending:
                outcomes[ReconcileOutcome.DUPLICATE_IN_BATCH] += 1
                continue
            outcome, ref = self.decide(game, groups)
            if outcome == ReconcileOutcome.FORWARDED and ref is not None:
                pending[game.fingerprint] = (game, ref)
            else:
                outcomes[outcome] += 1

        if pending:
            tasks = [asyncio.create_task(self.forward(game, ref)) for game, ref in pending.values()]
            for outcome in await asyncio.gather(*tasks):
                outcomes[outcome] += 1

        for outcome, count in outcomes.items():
            RECONCILIATION_DECISIONS.labels(outcome=outcome.value).inc(count)
        logger.info(
            "reconciliation_done",
            skipped=sum(c for o, c in outcomes.items() if o.is_skip),
            **{o.value: c for o, c in outcomes.items()},
        )
        return outcomes
