"""
In-memory cache for repository star series.

Entries are invalidated by comparing the cached total star count with a
freshly probed count rather than by age: a repository whose count has not
changed is assumed to have an unchanged history curve. Optional size and
age bounds are available for long-running processes.
"""

import threading
import time
import logging
from collections import OrderedDict
from typing import Optional

from ..models import CacheEntry, StarSeries, normalize_repo_key

logger = logging.getLogger(__name__)


class StarDataCache:
    """
    Thread-safe in-memory store of the last fetched series per repository.

    Keys are compared case-insensitively. When ``max_size`` is set, the
    least recently used entry is evicted on insert; when ``max_age`` is set,
    entries older than that many seconds are dropped on lookup. Both default
    to 0, meaning unbounded.
    """

    def __init__(self, name: str = "star-data", max_size: int = 0, max_age: int = 0):
        """
        Initialize cache.

        Args:
            name: Name of the cache (for logging)
            max_size: Maximum number of entries to store (0 for no limit)
            max_age: Maximum age of cache entries in seconds (0 for no limit)
        """
        self.name = name
        self.max_size = max_size
        self.max_age = max_age
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._lock = threading.Lock()
        logger.info(f"Star data cache '{name}' initialized (max_size={max_size or 'unbounded'}, "
                    f"max_age={max_age or 'unbounded'})")

    @classmethod
    def from_config(cls, cache_config) -> 'StarDataCache':
        """Create cache from a CacheConfig."""
        return cls(max_size=cache_config.max_size, max_age=cache_config.max_age)

    def get(self, repo: str) -> Optional[CacheEntry]:
        """
        Get the cached entry for a repository.

        Args:
            repo: Repository in ``owner/name`` form

        Returns:
            Cached entry or None if absent or expired
        """
        key = normalize_repo_key(repo)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss for '{key}' in '{self.name}'")
                return None

            if self.max_age and time.time() - entry.last_fetched_at > self.max_age:
                logger.debug(f"Cache entry '{key}' in '{self.name}' has expired")
                del self._entries[key]
                return None

            self._entries.move_to_end(key)
            logger.debug(f"Cache hit for '{key}' in '{self.name}'")
            return entry

    def put(self, repo: str, series: StarSeries, total_stars: int) -> CacheEntry:
        """
        Store a freshly fetched series, replacing any previous entry.

        Args:
            repo: Repository in ``owner/name`` form
            series: Series to store
            total_stars: Star count at fetch time

        Returns:
            The stored entry
        """
        key = normalize_repo_key(repo)
        entry = CacheEntry(
            repo=repo,
            series=series,
            total_stars=total_stars,
            last_fetched_at=time.time()
        )

        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_size and len(self._entries) > self.max_size:
                oldest_key, _ = self._entries.popitem(last=False)
                logger.debug(f"Oldest entry '{oldest_key}' removed from '{self.name}'")

        logger.debug(f"Series for '{key}' cached in '{self.name}' ({total_stars} stars, {len(series)} points)")
        return entry

    def is_fresh(self, repo: str, current_total: int) -> bool:
        """
        Check whether the cached series is still valid.

        Args:
            repo: Repository in ``owner/name`` form
            current_total: Star count probed from GitHub just now

        Returns:
            True if an entry exists and its total equals ``current_total``
        """
        entry = self.get(repo)
        return entry is not None and entry.total_stars == current_total

    def remove(self, repo: str) -> None:
        """Remove the entry for a repository, if present."""
        key = normalize_repo_key(repo)
        with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Entry '{key}' removed from '{self.name}'")

    def clear(self) -> None:
        """Clear the entire cache."""
        with self._lock:
            self._entries.clear()
        logger.info(f"Cache '{self.name}' cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, repo: str) -> bool:
        return self.get(repo) is not None
