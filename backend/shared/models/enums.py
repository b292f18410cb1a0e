"""
Enumerations used across the crawler.
"""
from __future__ import annotations

from enum import Enum


class CrawlerState(str, Enum):
    """Scheduler state after a cycle; decides how long to sleep."""
    ACTIVE = "active"
    IDLE = "idle"


class FinishedStrategy(str, Enum):
    """How the extractor decides whether a scraped game is over."""
    DETAIL_PAGE = "detail_page"
    WINNER_MARKER = "winner_marker"


class ReconcileOutcome(str, Enum):
    """What the reconciliation engine did with one scraped game."""
    NO_SCORE = "no_score"
    ALREADY_SENT = "already_sent"
    UNMATCHED = "unmatched"
    REFERENCE_FINISHED = "reference_finished"
    FORWARDED = "forwarded"
    FORWARD_FAILED = "forward_failed"
    DUPLICATE_IN_BATCH = "duplicate_in_batch"

    @property
    def is_skip(self) -> bool:
        return self not in (ReconcileOutcome.FORWARDED, ReconcileOutcome.FORWARD_FAILED)
