"""
Cache adapters for the CacheInvalidator port

- NullCache: no-op default, so callers never branch on "is there a cache"
- InMemoryCache: TTL entries, glob-pattern invalidation and hit/miss metrics

Key conventions:
- order:{id}, orders:buyer:{buyerId}, orders:seller:{sellerId}
- wholesale:orders:buyer:{buyerId}, wholesale:orders:seller:{sellerId}
- quotation:{id}, quotations:seller:{sellerId}, quotations:buyer:{buyerId}
"""

import fnmatch
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from src.core.ports import Clock, SystemClock

logger = logging.getLogger("settlement.cache")


class NullCache:
    """Accepts every invalidation and does nothing."""

    def invalidate(self, key: str) -> None:
        return None


@dataclass(frozen=True)
class CacheMetrics:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    size: int = 0


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: datetime


class InMemoryCache:
    """
    Process-local TTL cache.

    Expired entries are dropped lazily on read and by cleanup_expired();
    there is no background sweeper.
    """

    def __init__(self, clock: Clock | None = None, default_ttl_seconds: int = 300):
        self.clock = clock or SystemClock()
        self.default_ttl_seconds = default_ttl_seconds
        self._entries: dict[str, _Entry] = {}
        self._metrics = CacheMetrics()

    def _bump(self, **changes: int) -> None:
        updates = {name: getattr(self._metrics, name) + delta for name, delta in changes.items()}
        self._metrics = replace(self._metrics, size=len(self._entries), **updates)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self._bump(misses=1)
            return None
        if self.clock.now() > entry.expires_at:
            del self._entries[key]
            self._bump(misses=1)
            return None
        self._bump(hits=1)
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = _Entry(value=value, expires_at=self.clock.now() + timedelta(seconds=ttl))
        self._bump(sets=1)

    def invalidate(self, key: str) -> None:
        """Delete one key (missing keys are fine)."""
        self._entries.pop(key, None)
        self._bump(deletes=1)

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern such as 'orders:*'."""
        doomed = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        for key in doomed:
            del self._entries[key]
        self._bump(deletes=len(doomed))
        logger.debug("invalidated pattern %s (%d keys)", pattern, len(doomed))
        return len(doomed)

    def cleanup_expired(self) -> int:
        now = self.clock.now()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        self._bump()
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._bump()

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self.clock.now() <= entry.expires_at

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics
