"""Per-owner TTL cache for aggregated game pass lookups.

Provides:
    * An in-memory dictionary cache keyed by owner (user) id.
    * Lazy expiry: entries are checked on read and never swept in the
      background, so an expired entry lingers until it is overwritten or
      explicitly cleared.
    * Introspection (age / remaining lifetime per entry) for the
      ``/api/cache/info`` endpoint.

The clock is injectable so tests can move time without sleeping.

Quick example::

    from gamepass_proxy.cache import PassCache
    cache = PassCache(ttl_seconds=300)
    cache.put("42", records)
    cache.get("42")                      # -> records
    cache.get("42", force_refresh=True)  # -> None, caller must refetch
    cache.clear_all()                    # -> 1
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .models import GamePass
from .monitoring import PerformanceMonitor

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    """Records stored for one owner together with their fetch time."""

    key: str
    records: List[GamePass] = field(default_factory=list)
    fetched_at: float = field(default_factory=time.time)

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_expired(self, now: float, ttl: float) -> bool:
        """Check if the entry has reached the end of its lifetime."""
        return self.age(now) >= ttl


class PassCache:
    """Simple in-memory cache of aggregated game passes per owner.

    Notes:
        * No lock is held across get/fetch/put; two concurrent misses for the
          same key both fetch and the last ``put`` wins.
        * ``get`` never mutates the map.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Clock = time.time,
        monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._monitor = monitor
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str, force_refresh: bool = False) -> Optional[List[GamePass]]:
        """Retrieve records for *key* if present, fresh and not bypassed.

        Args:
            key: Owner id.
            force_refresh: Treat any entry as a miss.
        Returns:
            A copy of the cached records, or None when the caller must fetch.
        """
        entry = self._entries.get(key)
        expired = entry is None or entry.is_expired(self._clock(), self.ttl_seconds)
        if expired or force_refresh:
            if self._monitor:
                self._monitor.record_cache_miss()
            return None

        if self._monitor:
            self._monitor.record_cache_hit()
        logger.info(f"Using cached passes for user {key}")
        return list(entry.records)

    def put(self, key: str, records: List[GamePass]) -> None:
        """Insert or replace the entry for *key* stamped with the current time."""
        self._entries[key] = CacheEntry(
            key=key, records=list(records), fetched_at=self._clock()
        )
        logger.info(f"Cached {len(records)} passes for user {key}")

    def clear(self, key: str) -> bool:
        """Remove one entry. Returns True if an entry was removed."""
        return self._entries.pop(key, None) is not None

    def clear_all(self) -> int:
        """Remove every entry and return how many were dropped."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def info(self) -> List[Dict[str, Any]]:
        """Per-entry age and remaining lifetime.

        ``expiresInSeconds`` goes negative for entries that have expired but
        were not yet overwritten or cleared.
        """
        now = self._clock()
        return [
            {
                "key": entry.key,
                "recordCount": len(entry.records),
                "ageSeconds": round(entry.age(now), 3),
                "expiresInSeconds": round(self.ttl_seconds - entry.age(now), 3),
                "isExpired": entry.is_expired(now, self.ttl_seconds),
            }
            for entry in self._entries.values()
        ]

    def stats(self) -> Dict[str, Any]:
        return {"entryCount": len(self._entries), "ttlSeconds": self.ttl_seconds}
