"""
Cache service
Time-windowed result cache keyed by subject address, over a swappable backend
"""
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from scor.models import CacheEntry, RiskResult

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_key(subject: str) -> str:
    return subject.strip().lower()


class CacheBackend(ABC):
    """Key/value store for cache entries.

    Implementations raise CacheUnavailable when the store cannot be reached.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        ...

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    @abstractmethod
    def clear(self) -> int:
        ...


class InMemoryCacheBackend(CacheBackend):
    """Process-local backend; a lock makes each write atomic per key."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count


class ResultCache:
    """At most one fresh RiskResult per subject per validity window."""

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            backend: Storage for entries (default: in-memory).
            ttl: Validity window; an entry this old or older is stale.
            clock: Returns the current aware datetime.
        """
        self.backend = backend or InMemoryCacheBackend()
        self.ttl = ttl
        self.clock = clock or _utc_now

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.stored_at >= self.ttl

    def get(self, subject: str) -> Optional[RiskResult]:
        key = normalize_key(subject)
        entry = self.backend.get(key)
        if entry is None:
            return None

        now = self.clock()
        if self._is_expired(entry, now):
            self.backend.delete(key)
            logger.info("Cache expired for %s, will fetch fresh data", key)
            return None

        age_minutes = int((now - entry.stored_at).total_seconds() // 60)
        logger.info("Using cached data for %s (%d minutes old)", key, age_minutes)
        return entry.result

    def put(self, subject: str, result: RiskResult) -> None:
        key = normalize_key(subject)
        self.backend.set(key, CacheEntry(subject_key=key, result=result, stored_at=self.clock()))
        logger.info("Cached analysis for %s", key)

    def invalidate_all(self) -> int:
        count = self.backend.clear()
        logger.info("Cleared %d cached analyses", count)
        return count

    def stats(self) -> Dict:
        now = self.clock()
        entries = []
        for key in self.backend.keys():
            entry = self.backend.get(key)
            if entry is None:
                continue
            entries.append({
                "address": key,
                "name": entry.result.name,
                "stored_at": entry.stored_at,
                "age_minutes": int((now - entry.stored_at).total_seconds() // 60),
                "is_expired": self._is_expired(entry, now),
            })
        return {"total_cached": len(entries), "entries": entries}
