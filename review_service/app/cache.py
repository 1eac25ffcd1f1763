"""
In-memory TTL cache for finished analyses.

Entries are only reclaimed when the same key is read after expiry; there is no
background sweep. The key space is bounded by the number of distinct movies
requested during the process lifetime.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    expires_at: float


class AnalysisCache(Generic[T]):
    def __init__(self, ttl_seconds: float = 30 * 60, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            logger.debug(f"[Cache] Expired {key}")
            return None
        return entry.payload

    def put(self, key: str, payload: T) -> None:
        self._entries[key] = CacheEntry(payload=payload, expires_at=self._clock() + self.ttl_seconds)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
