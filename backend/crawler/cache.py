"""
Sent-results cache.

Append-only set of fingerprints of score updates already forwarded to the
reference API, mirrored to a flat text file (one fingerprint per line, CRLF
terminated). Loaded once at startup; entries are never removed.
"""
from __future__ import annotations

from pathlib import Path

from shared.utils.logging import get_logger
from shared.utils.metrics import CACHE_SIZE

logger = get_logger(__name__)

LINE_TERMINATOR = "\r\n"


class ResultCache:

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._keys: set[str] = set()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def load(self) -> int:
        """Read the cache file into memory. Missing/unreadable file -> empty cache."""
        logger.info("sent_cache_loading", path=str(self._path))
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("sent_cache_file_missing", path=str(self._path))
            return 0
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("sent_cache_load_failed", path=str(self._path), error=str(exc))
            return 0

        loaded = 0
        for line in content.split(LINE_TERMINATOR):
            key = line.strip("\r\n")
            if key and key not in self._keys:
                self._keys.add(key)
                loaded += 1

        CACHE_SIZE.set(len(self._keys))
        logger.info("sent_cache_loaded", path=str(self._path), entries=loaded)
        return loaded

    def contains(self, key: str) -> bool:
        return key in self._keys

    def append(self, key: str) -> None:
        """
        Record a forwarded fingerprint in memory and on disk.

        The in-memory entry is kept even if the disk write raises.
        """
        if key in self._keys:
            return
        self._keys.add(key)
        CACHE_SIZE.set(len(self._keys))
        with open(self._path, "a", encoding="utf-8", newline="") as fh:
            fh.write(key + LINE_TERMINATOR)
