"""
In-Memory TTL Cache
Process-wide key/value store with per-entry expiry and a background sweep
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """
    Key/value cache where no read ever returns a value past its TTL.

    Expired entries are evicted lazily on `has`/`get` and proactively by
    `sweep`, which the background loop started with `start()` runs every
    `sweep_interval` seconds.
    """

    def __init__(
        self,
        sweep_interval: float = 300,
        clock: Callable[[], float] = time.time,
    ):
        self._store: Dict[str, _CacheEntry] = {}
        self._clock = clock
        self.sweep_interval = sweep_interval
        self.task: Optional[asyncio.Task] = None
        self.running = False
        self._metrics: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
            "sweeps": 0,
        }

    def get_metrics_snapshot(self) -> Dict[str, int]:
        """Return a shallow copy of the cache counters plus the current size."""
        snapshot = dict(self._metrics)
        snapshot["size"] = len(self._store)
        return snapshot

    def _live_entry(self, key: str) -> Optional[_CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._store[key]
            self._metrics["evictions"] += 1
            return None
        return entry

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None if absent or expired
        """
        entry = self._live_entry(key)
        if entry is None:
            self._metrics["misses"] += 1
            return None
        self._metrics["hits"] += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """
        Store a value for `ttl` seconds

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds; zero or less means do not store
        """
        if ttl <= 0:
            self._store.pop(key, None)
            return
        self._store[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)
        self._metrics["sets"] += 1

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def sweep(self) -> int:
        """Evict every expired entry; returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.expires_at <= now]
        for key in expired:
            del self._store[key]
        self._metrics["evictions"] += len(expired)
        self._metrics["sweeps"] += 1
        if expired:
            logger.debug("Cache sweep evicted %d entries", len(expired))
        return len(expired)

    async def sweep_loop(self):
        """Background loop that sweeps expired entries periodically"""
        self.running = True
        logger.info(f"Cache sweeper started (interval: {self.sweep_interval}s)")

        while self.running:
            try:
                await asyncio.sleep(self.sweep_interval)
                self.sweep()
            except asyncio.CancelledError:
                logger.info("Cache sweeper cancelled")
                break
            except Exception as e:
                logger.error(f"Error in cache sweep loop: {e}", exc_info=True)

    def start(self):
        """Start the sweeper task on the running loop"""
        if self.task is None or self.task.done():
            self.task = asyncio.create_task(self.sweep_loop())

    async def stop(self):
        """Stop the sweeper task"""
        self.running = False
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None
