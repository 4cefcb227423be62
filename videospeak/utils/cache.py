"""In-memory translation cache with expiration."""

import hashlib
import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from videospeak.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TranslationCache(Generic[T]):
    """
    Process-memory cache for translation results.

    Nothing is persisted; entries expire after ``ttl`` seconds and are lost on
    restart.
    """

    def __init__(
        self,
        ttl: float = 3600.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            ttl: Time-to-live in seconds
            max_entries: Oldest entries are dropped beyond this size
            clock: Time source (injectable for tests)
        """
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, T]] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(text: str, source_lang: str, target_lang: str, method: str) -> str:
        """Generate cache key from parameters."""
        key_str = f"{text}|{source_lang}|{target_lang}|{method}"
        return hashlib.md5(key_str.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return value

    def set(self, key: str, value: T) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]
        self._entries[key] = (self._clock(), value)

    def cleanup(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "type": "memory",
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
        }
