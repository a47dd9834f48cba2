"""
ReferenceCache - TTL cache for static reference data.

Diseases, questions and the summary block change rarely and are cheap to
serve from memory. One instance is created per process and handed to route
handlers through dependency injection; the time source is injectable so
expiry can be tested without sleeping.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger()


@dataclass
class CachedEntry:
    """A cached value and the clock reading when it was stored."""

    key: str
    value: Any
    stored_at: float


class ReferenceCache:
    """
    Key/value cache with a single time-to-live for every entry.

    Thread-safe: FastAPI runs sync handlers in a threadpool.
    """

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize reference cache.

        Args:
            ttl_seconds: Entry lifetime in seconds (0 disables caching)
            clock: Monotonic time source returning seconds
        """
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_fresh(self, entry: CachedEntry) -> bool:
        return self._clock() - entry.stored_at < self._ttl_seconds

    def get(self, key: str) -> Any | None:
        """
        Get a fresh cached value.

        Returns:
            Cached value, or None if missing or expired (expired entries are dropped)
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_fresh(entry):
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        with self._lock:
            self._entries[key] = CachedEntry(key=key, value=value, stored_at=self._clock())

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> tuple[Any, bool]:
        """
        Return the cached value or load and store a fresh one.

        The loader runs outside the lock; exceptions from it propagate and
        nothing is cached.

        Returns:
            Tuple of (value, cached) where cached is True for a cache hit
        """
        value = self.get(key)
        if value is not None:
            logger.debug("reference_cache_hit", key=key)
            return value, True

        value = loader()
        self.put(key, value)
        logger.debug("reference_cache_miss", key=key, ttl_seconds=self._ttl_seconds)
        return value, False

    def invalidate(self, key: str | None = None) -> None:
        """
        Drop one entry, or every entry when key is None.
        """
        with self._lock:
            if key is None:
                self._entries = {}
            else:
                self._entries.pop(key, None)

    def keys(self) -> list[str]:
        """Keys of entries currently stored (fresh or not yet evicted)."""
        with self._lock:
            return list(self._entries.keys())
