"""Read-through cache of last-known-good remote snapshots.

Callers store what they fetched so it can be shown while offline.
The cache never refreshes itself; staleness is decided by the caller
through ``max_age``.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from moneytracker.core.constants import CACHE_MAX_ENTRIES, CACHED_DATA_KEY
from moneytracker.offline.storage import LocalStorage, load_json, save_json

logger = logging.getLogger("moneytracker.cache")


@dataclass(frozen=True)
class CachedEntry:
    key: str
    data: Any
    timestamp: float


class CacheStore:
    """Key -> CachedEntry map persisted under one storage key.

    At most ``max_entries`` keys are kept; writing a new key past the cap
    evicts the entries with the oldest write time.
    """

    def __init__(
        self,
        storage: LocalStorage,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
        key: str = CACHED_DATA_KEY,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.storage = storage
        self.max_entries = max_entries
        self.clock = clock
        self.key = key

    def _load(self) -> dict[str, dict]:
        stored = load_json(self.storage, self.key, {})
        if not isinstance(stored, dict):
            logger.warning(f"Discarding non-dict cache under {self.key}")
            return {}
        return {
            k: v for k, v in stored.items()
            if isinstance(v, dict) and "data" in v and "timestamp" in v
        }

    def cache_data(self, key: str, data: Any) -> CachedEntry:
        """Create or overwrite the entry for ``key`` and persist it.

        Args:
            key: Logical dataset name
            data: JSON-serializable snapshot

        Returns:
            The stored entry
        """
        cached = self._load()
        entry = CachedEntry(key=key, data=data, timestamp=self.clock())
        cached[key] = {"data": data, "timestamp": entry.timestamp}

        overflow = len(cached) - self.max_entries
        if overflow > 0:
            oldest = sorted(
                (k for k in cached if k != key),
                key=lambda k: cached[k]["timestamp"],
            )[:overflow]
            for k in oldest:
                del cached[k]
            logger.debug(f"Evicted {len(oldest)} cache entries")

        save_json(self.storage, self.key, cached)
        return entry

    def get_entry(self, key: str) -> CachedEntry | None:
        item = self._load().get(key)
        if item is None:
            return None
        return CachedEntry(key=key, data=item["data"], timestamp=item["timestamp"])

    def get_from_cache(self, key: str, max_age: float | None = None) -> Any | None:
        """Return the cached value if present and fresh enough.

        Args:
            key: Logical dataset name
            max_age: Maximum age in seconds; None accepts any age. With
                ``max_age=0`` any elapsed time makes the entry unusable.

        Returns:
            Cached data, or None when there is no usable cache
        """
        entry = self.get_entry(key)
        if entry is None:
            return None

        if max_age is not None and self.clock() - entry.timestamp > max_age:
            return None

        return entry.data

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns True if it was cached."""
        cached = self._load()
        if key not in cached:
            return False
        del cached[key]
        if cached:
            save_json(self.storage, self.key, cached)
        else:
            self.storage.remove(self.key)
        return True

    def keys(self) -> list[str]:
        return sorted(self._load())
