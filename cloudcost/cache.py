"""
In-memory pricing cache with time-based expiry.

One instance is created at application startup and shared by the pricing
clients (reads/writes) and the HTTP layer (status/clear). Nothing is
persisted: a restart simply triggers fresh upstream fetches.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from cloudcost.logger import logger
from cloudcost.models import CacheKey, RateTriple

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    value: RateTriple
    fetched_at: float  # epoch seconds


class PricingCache:
    """
    TTL keyed store of resolved rate triples.

    Concurrent fetches of the same expired key may both miss; the last
    put wins. Entries are only removed by clear() or, when a capacity
    bound is configured, by evicting the oldest entry.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()
        # Bumped by clear(); lets clients drop raw data kept beside the cache
        self.generation = 0

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> float:
        return self._clock()

    def _age_seconds(self, entry: CacheEntry) -> float:
        return max(0.0, self._clock() - entry.fetched_at)

    def get(self, key: CacheKey, force_fresh: bool = False) -> Optional[RateTriple]:
        """Return the cached triple, or None on a miss (absent, expired or forced fresh)."""
        if force_fresh:
            logger.debug(f"Cache bypass for {key} (fresh fetch requested)")
            return None

        with self._lock:
            entry = self._entries.get(key)

        if entry is None:
            logger.debug(f"Cache miss for {key}")
            return None

        age = self._age_seconds(entry)
        if age >= self.ttl_seconds:
            logger.debug(f"Cache entry for {key} is stale ({age:.0f}s old)")
            return None

        logger.debug(f"Cache hit for {key} ({age:.0f}s old)")
        return entry.value

    def put(self, key: CacheKey, value: RateTriple) -> None:
        entry = CacheEntry(key=key, value=value, fetched_at=self._clock())
        with self._lock:
            self._entries[key] = entry
            if self.max_entries and len(self._entries) > self.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.fetched_at)
                del self._entries[oldest.key]
                logger.debug(f"Cache full, evicted {oldest.key}")

    def clear(self) -> int:
        """Remove every entry. Returns the number of removed entries."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self.generation += 1
        logger.info(f"🧹 Pricing cache cleared ({removed} entries removed)")
        return removed

    def status(self) -> List[Dict[str, object]]:
        """
        Describe every entry, stale ones included.

        Returns:
            List of {key, timestamp (epoch ms), age (ms), stale}
        """
        with self._lock:
            entries = list(self._entries.values())

        report = []
        for entry in entries:
            age = self._age_seconds(entry)
            report.append({
                "key": str(entry.key),
                "timestamp": int(entry.fetched_at * 1000),
                "age": int(age * 1000),
                "stale": age >= self.ttl_seconds,
            })
        return report
