"""
Unit tests for the Domingo às Dez reference API client.

Run: pytest backend/tests/test_domingoasdez.py -v
"""
from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from crawler.sources.domingoasdez import DomingoAsDezClient
from shared.utils.http_client import CrawlerHTTPClient

LIVE_PAYLOAD = {
    "data": [
        {
            "competition_name": "1ª Divisão AGRIBAR",
            "game_group_name": "Campeonato",
            "season_name": "2024/25",
            "games": [
                {"id": 10, "round": "3", "homeTeam": "GD Arcozelo", "awayTeam": "FC Roriz", "finished": False, "stadium": "x"},
                {"id": 11, "round": None, "homeTeam": "A", "awayTeam": "B", "finished": True},
            ],
        }
    ]
}


async def _client(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[DomingoAsDezClient, CrawlerHTTPClient]:
    http = CrawlerHTTPClient(
        "domingoasdez-test",
        base_url="http://127.0.0.1:8000/api",
        max_retries=1,
        transport=httpx.MockTransport(handler),
    )
    await http.start()
    return DomingoAsDezClient(http, api_key="secret", report_uuid="uuid-1234"), http


@pytest.mark.asyncio
async def test_get_live_games_parses_groups() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json=LIVE_PAYLOAD)

    client, http = await _client(handler)
    try:
        groups = await client.get_live_games()
    finally:
        await http.close()

    assert paths == ["/api/games/live"]
    assert len(groups) == 1
    group = groups[0]
    assert group.edition_key == "1ª Divisão AGRIBAR Campeonato"
    assert [g.round for g in group.games] == [3, None]
    assert group.games[0].home_team == "GD Arcozelo"
    assert group.games[1].finished is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 500, 204])
async def test_get_live_games_non_200_means_none(status: int) -> None:
    client, http = await _client(lambda r: httpx.Response(status))
    try:
        assert await client.get_live_games() == []
    finally:
        await http.close()


@pytest.mark.asyncio
async def test_get_live_games_empty_data() -> None:
    client, http = await _client(lambda r: httpx.Response(200, json={"data": []}))
    try:
        assert await client.get_live_games() == []
    finally:
        await http.close()


@pytest.mark.asyncio
async def test_get_live_games_drops_only_invalid_fixtures() -> None:
    payload = {
        "data": [
            {
                "competition_name": "Taça Cidade de Barcelos",
                "game_group_name": "Eliminatórias",
                "games": [
                    {"id": None, "homeTeam": "A", "awayTeam": "B"},
                    {"id": 21, "round": 2, "homeTeam": None, "awayTeam": None},
                    {"id": 22, "round": 2, "homeTeam": "C", "awayTeam": "D"},
                ],
            },
            "not-a-group",
        ]
    }
    client, http = await _client(lambda r: httpx.Response(200, json=payload))
    try:
        groups = await client.get_live_games()
    finally:
        await http.close()

    assert len(groups) == 1
    assert [g.id for g in groups[0].games] == [21, 22]
    assert groups[0].games[0].home_team is None


@pytest.mark.asyncio
async def test_send_score_posts_report() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"ok": True})

    client, http = await _client(handler)
    try:
        await client.send_score(17, 2, 1, True)
    finally:
        await http.close()

    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/api/score-reports/17"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["home_score"] == 2
    assert body["away_score"] == 1
    assert body["finished"] is True
    assert body["uuid"] == "uuid-1234"
    assert body["source"] == "afpb_crawler"
    assert body["user_id"] is None


@pytest.mark.asyncio
async def test_send_score_rejection_raises() -> None:
    client, http = await _client(lambda r: httpx.Response(422, json={"message": "invalid"}))
    try:
        with pytest.raises(httpx.HTTPStatusError):
            await client.send_score(17, 2, 1, False)
    finally:
        await http.close()


@pytest.mark.asyncio
async def test_send_score_network_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client, http = await _client(handler)
    try:
        with pytest.raises(httpx.TransportError):
            await client.send_score(17, 2, 1, False)
    finally:
        await http.close()


def test_report_uuid_generated_once_per_client() -> None:
    http = CrawlerHTTPClient("unused")
    first = DomingoAsDezClient(http, api_key="k")
    second = DomingoAsDezClient(http, api_key="k")
    assert first.report_uuid
    assert first.report_uuid != second.report_uuid
