"""
Unit tests for the club-name mapper and the sent-results cache.

Run: pytest backend/tests/test_club_names_and_cache.py -v
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from crawler.cache import ResultCache
from crawler.club_names import ClubNameMapper
from crawler.config import ClubNameMapping
from shared.models.domain import ScrapedGame


# ── ClubNameMapper ──────────────────────────────────────────────────────

@pytest.fixture
def mapper() -> ClubNameMapper:
    return ClubNameMapper([
        ClubNameMapping.model_validate({"from": "G.D. Arcozelo", "to": "GD Arcozelo"}),
        ClubNameMapping.model_validate({"from": "F.C. Roriz", "to": "FC Roriz"}),
        ClubNameMapping.model_validate({"from": "F.C. Roriz", "to": "Roriz (second entry)"}),
    ])


def test_map_every_configured_pair(mapper: ClubNameMapper) -> None:
    assert mapper.map("G.D. Arcozelo") == "GD Arcozelo"
    assert mapper.map("F.C. Roriz") == "FC Roriz"


def test_map_first_entry_wins(mapper: ClubNameMapper) -> None:
    assert mapper.map("F.C. Roriz") != "Roriz (second entry)"


def test_map_unknown_name_passes_through(mapper: ClubNameMapper) -> None:
    assert mapper.map("Clube Desconhecido") == "Clube Desconhecido"


def test_map_is_not_an_inverse(mapper: ClubNameMapper) -> None:
    assert mapper.map("GD Arcozelo") == "GD Arcozelo"


def test_map_without_table_passes_through() -> None:
    mapper = ClubNameMapper(None)
    assert not mapper.configured
    assert mapper.map("G.D. Arcozelo") == "G.D. Arcozelo"


def test_empty_table_is_configured() -> None:
    mapper = ClubNameMapper([])
    assert mapper.configured
    assert len(mapper) == 0
    assert mapper.map("X") == "X"


# ── Fingerprint ─────────────────────────────────────────────────────────

def _game(**overrides: object) -> ScrapedGame:
    data: dict = {
        "home_team": "A",
        "away_team": "B",
        "home_score": 2,
        "away_score": 1,
        "finished": True,
        "date": datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return ScrapedGame(**data)


def test_fingerprint_layout() -> None:
    assert _game().fingerprint == "2024-01-01T12:00:00.000Z_A_B_2_1_true"


def test_fingerprint_is_reproducible() -> None:
    assert _game().fingerprint == _game().fingerprint


def test_fingerprint_changes_with_score_and_state() -> None:
    base = _game().fingerprint
    assert _game(home_score=3).fingerprint != base
    assert _game(finished=False).fingerprint.endswith("_false")


# ── ResultCache ─────────────────────────────────────────────────────────

def test_cache_missing_file_starts_empty(tmp_path: Path) -> None:
    cache = ResultCache(tmp_path / "missing.txt")
    assert cache.load() == 0
    assert len(cache) == 0
    assert not cache.contains("anything")


def test_cache_append_writes_crlf_lines(tmp_path: Path) -> None:
    path = tmp_path / "sent.txt"
    cache = ResultCache(path)
    cache.load()
    cache.append("k1")
    cache.append("k2")
    assert cache.contains("k1")
    assert "k2" in cache
    assert path.read_bytes() == b"k1\r\nk2\r\n"


def test_cache_append_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "sent.txt"
    cache = ResultCache(path)
    cache.append("k1")
    cache.append("k1")
    assert len(cache) == 1
    assert path.read_bytes() == b"k1\r\n"


def test_cache_reload_restores_entries(tmp_path: Path) -> None:
    path = tmp_path / "sent.txt"
    first = ResultCache(path)
    first.append(_game().fingerprint)

    second = ResultCache(path)
    assert second.load() == 1
    assert second.contains(_game().fingerprint)


def test_cache_ignores_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "sent.txt"
    path.write_bytes(b"a\r\n\r\nb\r\n")
    cache = ResultCache(path)
    assert cache.load() == 2
    assert not cache.contains("")


def test_cache_unreadable_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "sent.txt"
    path.write_bytes(b"\xff\xfe\xfa not utf-8")
    cache = ResultCache(path)
    assert cache.load() == 0
    assert len(cache) == 0
