"""
Domingo às Dez reference API client.
Reads the live game groups and submits score reports on behalf of the crawler.
"""
from __future__ import annotations

import uuid
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from shared.models.domain import GameGroup, ReferenceGame, ScoreReport
from shared.utils.http_client import CrawlerHTTPClient
from shared.utils.logging import get_logger

logger = get_logger(__name__)

LIVE_GAMES_PATH = "/games/live"
SCORE_REPORT_PATH = "/score-reports/{game_id}"


def parse_groups(raw_groups: list[Any]) -> list[GameGroup]:
    """
    Validate live game groups entry by entry. A malformed group or fixture is
    logged and dropped; the rest of the payload is kept.
    """
    groups: list[GameGroup] = []
    for raw in raw_groups:
        if not isinstance(raw, dict):
            logger.warning("live_group_invalid", error=f"expected object, got {type(raw).__name__}")
            continue

        raw_games = raw.get("games")
        games: list[ReferenceGame] = []
        for raw_game in raw_games if isinstance(raw_games, list) else []:
            try:
                games.append(ReferenceGame.model_validate(raw_game))
            except ValidationError as exc:
                logger.warning(
                    "reference_game_invalid",
                    competition=raw.get("competition_name"),
                    error=str(exc),
                )

        try:
            groups.append(GameGroup.model_validate({**raw, "games": games}))
        except ValidationError as exc:
            logger.warning("live_group_invalid", competition=raw.get("competition_name"), error=str(exc))
    return groups


class DomingoAsDezClient:
    """
    Thin wrapper over the reference API.

    A single report uuid identifies this crawler process for every score it sends.
    """

    def __init__(
        self,
        http: CrawlerHTTPClient,
        api_key: str,
        source: str = "afpb_crawler",
        user_agent: str = "AFPB Score Crawler",
        report_uuid: Optional[str] = None,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._source = source
        self._user_agent = user_agent
        self.report_uuid = report_uuid or str(uuid.uuid4())
        if not api_key:
            logger.warning("api_key_missing")

    async def get_live_games(self) -> list[GameGroup]:
        """Live game groups; any non-200 answer means no live games."""
        logger.info("live_games_request", path=LIVE_GAMES_PATH)
        try:
            resp = await self._http.get(LIVE_GAMES_PATH, extra_headers={"Accept": "application/json"})
        except httpx.HTTPStatusError as exc:
            logger.warning("live_games_unavailable", status=exc.response.status_code)
            return []

        if resp.status_code != 200:
            logger.warning("live_games_unavailable", status=resp.status_code)
            return []

        payload = resp.json()
        raw_groups = payload.get("data") if isinstance(payload, dict) else payload
        if not raw_groups:
            return []
        if not isinstance(raw_groups, list):
            logger.error("live_games_invalid", payload_type=type(raw_groups).__name__)
            return []
        return parse_groups(raw_groups)

    async def send_score(
        self,
        game_id: Union[int, str],
        home_score: int,
        away_score: int,
        finished: bool,
    ) -> None:
        """
        Submit one score report.

        Raises:
            httpx.HTTPError: If the report was not accepted (non-2xx or network error).
        """
        path = SCORE_REPORT_PATH.format(game_id=game_id)
        report = ScoreReport(
            source=self._source,
            home_score=home_score,
            away_score=away_score,
            user_agent=self._user_agent,
            uuid=self.report_uuid,
            finished=finished,
        )
        logger.info(
            "score_report_sending",
            game_id=game_id,
            score=f"{home_score}-{away_score}",
            finished=finished,
            path=path,
        )
        await self._http.post(
            path,
            json=report.model_dump(mode="json"),
            extra_headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )
        logger.info(
            "score_report_sent",
            game_id=game_id,
            score=f"{home_score}-{away_score}",
            finished=finished,
        )
