"""TTL-based caching for authenticated-user lookups.

Every GraphQL request carrying a bearer token resolves its user; this cache
keeps recent lookups in process memory so most requests skip the database.
The cache is best-effort: a miss simply falls through to the users
collection.
"""

import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

import structlog

from employee_api.src.models.auth import CurrentUser

logger = structlog.get_logger(__name__)


class UserCacheMetrics:
    """Counters for user cache operations."""

    def __init__(self):
        """Initialize metrics."""
        self.hits = 0
        self.misses = 0
        self.expirations = 0
        self.invalidations = 0
        self.evictions = 0

    def reset(self):
        """Reset all metrics."""
        self.hits = 0
        self.misses = 0
        self.expirations = 0
        self.invalidations = 0
        self.evictions = 0

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        lookups = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "evictions": self.evictions,
            "hit_rate": self.hits / lookups if lookups > 0 else 0.0,
        }


class UserCache:
    """
    TTL cache of users keyed by user id.

    Entries older than the TTL are never returned. When the cache grows
    past ``max_size`` it first sweeps expired entries and then, if still
    over the limit, evicts least recently used entries.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
        prometheus=None,
    ):
        """
        Initialize cache with TTL and size limit.

        Args:
            ttl_seconds: Time-to-live in seconds (default: 5 minutes)
            max_size: Maximum number of cached users (default: 100)
            clock: Monotonic time source, injectable for tests
            prometheus: Optional DirectoryMetrics to report hits/misses to
        """
        self._entries: "OrderedDict[str, Tuple[CurrentUser, float]]" = OrderedDict()
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._prometheus = prometheus
        self.metrics = UserCacheMetrics()

        logger.info("user_cache_initialized", ttl_seconds=ttl_seconds, max_size=max_size)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._entries

    def _is_expired(self, cached_at: float, now: float) -> bool:
        return now - cached_at >= self._ttl

    def _record(self, hit: bool):
        if hit:
            self.metrics.hits += 1
        else:
            self.metrics.misses += 1
        if self._prometheus is not None:
            self._prometheus.record_cache_lookup("user", hit)

    def get(self, user_id: str) -> Optional[CurrentUser]:
        """
        Get cached user if not expired.

        Args:
            user_id: User ID

        Returns:
            Cached user, or None if not found or expired
        """
        entry = self._entries.get(user_id)
        if entry is not None:
            user, cached_at = entry
            if not self._is_expired(cached_at, self._clock()):
                self._entries.move_to_end(user_id)
                self._record(hit=True)
                return user

            del self._entries[user_id]
            self.metrics.expirations += 1
            logger.debug("user_cache_expired", user_id=user_id)

        self._record(hit=False)
        return None

    def set(self, user_id: str, user: CurrentUser) -> None:
        """
        Cache a user with the current timestamp.

        Args:
            user_id: User ID
            user: User to cache
        """
        self._entries[user_id] = (user, self._clock())
        self._entries.move_to_end(user_id)

        if len(self._entries) > self._max_size:
            self._sweep_expired()
        while len(self._entries) > self._max_size:
            self._evict_lru()

    def _sweep_expired(self):
        now = self._clock()
        expired = [uid for uid, (_, cached_at) in self._entries.items() if self._is_expired(cached_at, now)]
        for uid in expired:
            del self._entries[uid]
        if expired:
            self.metrics.expirations += len(expired)
            logger.debug("user_cache_swept", removed=len(expired), cache_size=len(self._entries))

    def _evict_lru(self):
        user_id, _ = self._entries.popitem(last=False)
        self.metrics.evictions += 1
        logger.debug("user_cache_evicted_lru", user_id=user_id, cache_size=len(self._entries))

    def invalidate(self, user_id: str) -> None:
        """
        Drop a cached user.

        Args:
            user_id: User ID
        """
        if self._entries.pop(user_id, None) is not None:
            self.metrics.invalidations += 1
            logger.debug("user_cache_invalidated", user_id=user_id)

    def clear(self):
        """Clear all cached users."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("user_cache_cleared", entries_removed=count)

    def get_statistics(self) -> Dict[str, object]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics including metrics and state
        """
        return {
            "metrics": self.metrics.to_dict(),
            "cache_size": len(self._entries),
            "max_size": self._max_size,
            "ttl_seconds": self._ttl,
        }
