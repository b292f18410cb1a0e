"""
Unit tests for the shared HTTP client and configuration loading.

Run: pytest backend/tests/test_http_and_config.py -v
"""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from crawler.config import CrawlerSettings, load_file_config
from shared.config import Environment, Settings
from shared.models.enums import FinishedStrategy
from shared.utils.http_client import CrawlerHTTPClient, random_client_identity


# ── random_client_identity ──────────────────────────────────────────────

def test_identity_has_browser_headers() -> None:
    headers = random_client_identity()
    for name in ("User-Agent", "Accept", "Accept-Language", "Cookie"):
        assert headers[name]
    assert headers["Cookie"].startswith("_ga=GA1.2.")


# ── CrawlerHTTPClient ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_retries_server_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(asyncio, "sleep", AsyncMock())
    statuses = iter([503, 200])

    http = CrawlerHTTPClient(
        "retry-test",
        max_retries=2,
        transport=httpx.MockTransport(lambda r: httpx.Response(next(statuses), text="ok")),
    )
    await http.start()
    try:
        resp = await http.get("https://example.test/page")
    finally:
        await http.close()
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_get_does_not_retry_client_errors() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404)

    http = CrawlerHTTPClient("retry-test", max_retries=3, transport=httpx.MockTransport(handler))
    await http.start()
    try:
        with pytest.raises(httpx.HTTPStatusError):
            await http.get("https://example.test/missing")
    finally:
        await http.close()
    assert calls == 1


@pytest.mark.asyncio
async def test_get_requires_start() -> None:
    with pytest.raises(RuntimeError):
        await CrawlerHTTPClient("idle").get("https://example.test")


# ── Settings ────────────────────────────────────────────────────────────

def test_environment_selects_api_base_url() -> None:
    assert Settings(environment="dev").api_base_url == "http://127.0.0.1:8000/api"
    assert Settings(environment="production").api_base_url == "https://domingoasdez.com/api"


def test_prod_alias() -> None:
    assert Settings(environment="prod").environment == Environment.PRODUCTION


def test_crawler_settings_defaults() -> None:
    settings = CrawlerSettings()
    assert settings.active_sleep_s == 30
    assert settings.inactive_sleep_s == 600
    assert settings.finished_strategy == FinishedStrategy.DETAIL_PAGE
    assert settings.timezone == "Europe/Lisbon"


def test_crawler_settings_rejects_inverted_delay_window() -> None:
    with pytest.raises(ValueError):
        CrawlerSettings(request_delay_min_s=2.0, request_delay_max_s=1.0)


# ── config.json ─────────────────────────────────────────────────────────

def test_load_file_config(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "club_names_map": [{"from": "G.D. Arcozelo", "to": "GD Arcozelo"}],
        "domingo_as_dez_api_key": "abc",
    }), encoding="utf-8")

    config = load_file_config(path)

    assert config.domingo_as_dez_api_key == "abc"
    assert config.club_names_map is not None
    assert config.club_names_map[0].from_name == "G.D. Arcozelo"
    assert config.club_names_map[0].to_name == "GD Arcozelo"


def test_load_file_config_missing_file(tmp_path: Path) -> None:
    config = load_file_config(tmp_path / "nope.json")
    assert config.club_names_map is None
    assert config.domingo_as_dez_api_key == ""


@pytest.mark.parametrize("content", ["{not json", '{"club_names_map": [{"from": 1}]}'])
def test_load_file_config_invalid_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    assert load_file_config(path).club_names_map is None
