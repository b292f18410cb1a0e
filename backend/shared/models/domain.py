"""
Pydantic v2 domain models shared across the crawler.
Reference-side models mirror the Domingo às Dez wire format; ScrapedGame is the
crawler's own representation of a game read from the AFPB site.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Reference API (Domingo às Dez) ──────────────────────────────────────
class ReferenceGame(DomainModel):
    """A fixture as known by the reference API, in its own team vocabulary."""
    id: Union[int, str]
    round: Optional[int] = None
    home_team: Optional[str] = Field(default=None, alias="homeTeam")
    away_team: Optional[str] = Field(default=None, alias="awayTeam")
    finished: bool = False

    @field_validator("round", mode="before")
    @classmethod
    def parse_round(cls, value: Any) -> Optional[int]:
        """Rounds arrive as ints or strings like "3"; anything unparsable is no round."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        match = _LEADING_INT.match(str(value))
        return int(match.group(1)) if match else None


class GameGroup(DomainModel):
    """Competition + division + season bundle of reference fixtures."""
    competition_name: str = ""
    game_group_name: Optional[str] = ""
    season_name: Optional[str] = ""
    games: list[ReferenceGame] = Field(default_factory=list)

    @property
    def edition_key(self) -> str:
        """Lookup key for the AFPB edition table."""
        return f"{self.competition_name} {self.game_group_name or ''}".strip()

    @property
    def label(self) -> str:
        return " ".join(p for p in (self.competition_name, self.game_group_name, self.season_name) if p)


class ScoreReport(DomainModel):
    """Body of POST /score-reports/{game_id}."""
    user_id: Optional[int] = None
    source: str
    home_score: int
    away_score: int
    ip_address: Optional[str] = None
    user_agent: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    uuid: str
    finished: bool


# ── Scraped site (AFPB) ─────────────────────────────────────────────────
def format_instant(value: datetime) -> str:
    """Absolute UTC instant with millisecond precision, e.g. 2024-01-01T12:00:00.000Z."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class ScrapedGame(DomainModel):
    """A game extracted from an AFPB round page, team names already mapped."""
    home_team: str
    away_team: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    finished: bool = False
    date: datetime

    @property
    def has_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def date_iso(self) -> str:
        return format_instant(self.date)

    @property
    def fingerprint(self) -> str:
        """Deterministic dedup key; same layout as the historical cache file lines."""
        finished = "true" if self.finished else "false"
        return (
            f"{self.date_iso}_{self.home_team}_{self.away_team}_"
            f"{_score_text(self.home_score)}_{_score_text(self.away_score)}_{finished}"
        )

    def describe(self) -> str:
        state = "finished" if self.finished else "not finished"
        return (
            f"{self.home_team} {_score_text(self.home_score)}-{_score_text(self.away_score)} "
            f"{self.away_team} ({state})"
        )


def _score_text(score: Optional[int]) -> str:
    return "null" if score is None else str(score)
