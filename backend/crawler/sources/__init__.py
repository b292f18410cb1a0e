from crawler.sources.afpb import (
    DEFAULT_EDITION_TABLE,
    DEFAULT_SELECTORS,
    AFPBSelectors,
    EditionTable,
    RoundPage,
    RoundRequest,
    RoundResolver,
)
from crawler.sources.domingoasdez import DomingoAsDezClient

__all__ = [
    "DEFAULT_EDITION_TABLE",
    "DEFAULT_SELECTORS",
    "AFPBSelectors",
    "EditionTable",
    "RoundPage",
    "RoundRequest",
    "RoundResolver",
    "DomingoAsDezClient",
]
