"""Include cache: raw template text keyed by absolute path."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached file content."""

    content: str
    loaded_at: float


class FileCache:
    """Read-through cache for template sources.

    A pure performance layer: ``read`` returns the same text whether the
    cache is enabled or not. With ``ttl_minutes == 0`` entries never expire.
    """

    def __init__(self, name: str = "include", enabled: bool = True, ttl_minutes: float = 0):
        """Initialize cache.

        Args:
            name: Label used in logs and stats
            enabled: When False every read goes to disk
            ttl_minutes: Entry lifetime, 0 for no expiry
        """
        self.name = name
        self.enabled = enabled
        self.ttl_seconds = ttl_minutes * 60
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    async def read(self, path: str | Path) -> str:
        """Return file text, from cache when fresh.

        Raises:
            OSError: If the file cannot be read
        """
        key = str(path)
        if self.enabled:
            entry = self._entries.get(key)
            if entry and not self._expired(entry):
                self._hits += 1
                return entry.content
            self._misses += 1

        content = await asyncio.to_thread(Path(key).read_text, encoding="utf-8")

        if self.enabled:
            self._entries[key] = CacheEntry(content=content, loaded_at=time.monotonic())
        return content

    def get(self, path: str | Path) -> str | None:
        """Cached text without touching disk, None if absent or expired."""
        entry = self._entries.get(str(path))
        if entry is None or self._expired(entry):
            return None
        return entry.content

    def invalidate(self, path: str | Path) -> None:
        """Drop one entry."""
        self._entries.pop(str(path), None)

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        logger.debug(f"Cache '{self.name}' cleared")

    def stats(self) -> dict[str, Any]:
        """Counters for health reporting."""
        return {
            "name": self.name,
            "enabled": self.enabled,
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "ttl_minutes": self.ttl_seconds / 60,
        }

    def _expired(self, entry: CacheEntry) -> bool:
        return self.ttl_seconds > 0 and time.monotonic() - entry.loaded_at > self.ttl_seconds
