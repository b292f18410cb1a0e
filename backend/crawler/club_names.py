"""
Club name mapping: AFPB site spelling -> Domingo às Dez spelling.
Reconciliation matches on exact names, so a missing entry makes that game
unmatchable; lookups warn instead of failing.
"""
from __future__ import annotations

from typing import Iterable, Optional

from shared.utils.logging import get_logger

from crawler.config import ClubNameMapping

logger = get_logger(__name__)


class ClubNameMapper:
    """Ordered {from, to} table; the first entry whose `from` matches wins."""

    def __init__(self, mappings: Optional[Iterable[ClubNameMapping]]) -> None:
        self._pairs: Optional[tuple[tuple[str, str], ...]] = (
            tuple((m.from_name, m.to_name) for m in mappings) if mappings is not None else None
        )

    @property
    def configured(self) -> bool:
        return self._pairs is not None

    def __len__(self) -> int:
        return len(self._pairs or ())

    def map(self, name: str) -> str:
        if self._pairs is None:
            logger.warning("club_names_map_missing", club=name)
            return name

        for source, target in self._pairs:
            if source == name:
                return target

        logger.warning("club_name_unmapped", club=name)
        return name
