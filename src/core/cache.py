"""LRU cache with per-entry TTL over a pluggable storage backend.

The cache owns the recency index and the capacity policy; values and
expiry stamps live in the configured CacheStorage. Expired entries are
removed lazily on access and eagerly by a periodic ExpiryScheduler.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, List, Optional, TypeVar, Union

from core.clock import Clock, now_ms
from core.errors import CacheClosedError
from core.interfaces import CacheStorage, KeyEnumerable
from core.models import MISS, CacheConfig, CacheKey, Miss, validate_key
from core.recency import RecencyIndex
from core.scheduler import ExpiryScheduler
from storage.memory_storage import MemoryStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExpiringLRUCache(Generic[T]):
    """Async LRU cache with fixed (non-sliding) TTL expiry.

    Purpose:
      - get(key) -> value or MISS
      - put(key, value): write, then evict least recently used keys over capacity
      - delete(key)
      - stop(): halt the expiry scheduler and stop the backend (idempotent)

    Key behavior:
      - All operations are serialized by one asyncio.Lock, so put + eviction
        is atomic and a sweep cannot drop a concurrently re-inserted value.
      - Reads promote recency but never extend TTL.
      - Expired entries never count toward capacity: they are purged before
        any live entry is evicted.
      - The scheduler starts with the first operation (or start()) and is
        bound to this instance.
    """

    def __init__(
        self,
        *,
        capacity: int,
        ttl_ms: int,
        storage: Optional[CacheStorage] = None,
        expiry_check_interval_ms: int = 1000,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = CacheConfig(
            capacity=capacity,
            ttl_ms=ttl_ms,
            expiry_check_interval_ms=expiry_check_interval_ms,
        )
        self._storage: CacheStorage = storage if storage is not None else MemoryStorage(clock=clock)
        self._clock = clock or now_ms

        self._recency = RecencyIndex()
        self._lock = asyncio.Lock()
        self._seeded = False
        self._stopped = False

        self._scheduler = ExpiryScheduler(sweep=self.sweep, interval_ms=self._config.expiry_check_interval_ms)

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def storage(self) -> CacheStorage:
        return self._storage

    @property
    def scheduler(self) -> ExpiryScheduler:
        return self._scheduler

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def start(self) -> None:
        self._ensure_open()
        await self._ensure_seeded()
        self._scheduler.start()

    async def get(self, key: CacheKey) -> Union[T, Miss]:
        key = validate_key(key)
        await self.start()

        async with self._lock:
            result = await self._storage.get(key)
            if result is MISS:
                self._recency.discard(key)
                logger.debug(f"Cache miss for key {key!r}")
                return MISS

            self._recency.touch(key)
            return result

    async def put(self, key: CacheKey, value: T) -> None:
        key = validate_key(key)
        await self.start()

        async with self._lock:
            # Write first; capacity is enforced only after a successful write
            await self._storage.put(key, value, self._config.ttl_ms)
            # Stamped after the backend's own stamp, so never earlier than it
            self._recency.record_write(key, self._clock() + self._config.ttl_ms)
            await self._evict_overflow()

    async def delete(self, key: CacheKey) -> None:
        key = validate_key(key)
        await self.start()

        async with self._lock:
            await self._storage.delete(key)
            self._recency.discard(key)

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True

        await self._scheduler.stop()
        await self._storage.stop()
        logger.info("Cache stopped")

    async def sweep(self) -> int:
        """Remove expired entries from the backend; return how many were removed.

        Enumerable backends are swept over every key they hold; other
        backends over the keys this cache has written. A failure on one
        key is logged and the sweep moves on.
        """
        if isinstance(self._storage, KeyEnumerable):
            keys = await self._storage.keys()
        else:
            keys = self._recency.keys()

        removed = 0
        for key in keys:
            try:
                async with self._lock:
                    if await self._expire_if_dead(key):
                        removed += 1
            except Exception:
                logger.exception(f"Failed to expire key {key!r} during sweep")

        if removed:
            logger.debug(f"Sweep removed {removed} expired entries")
        return removed

    async def _expire_if_dead(self, key: CacheKey) -> bool:
        # Caller holds self._lock; same liveness check as get()
        if await self._storage.get(key) is not MISS:
            return False
        await self._storage.delete(key)
        self._recency.discard(key)
        return True

    async def _ensure_seeded(self) -> None:
        if self._seeded:
            return
        async with self._lock:
            if self._seeded:
                return
            # Persisted backends may already hold entries; track them oldest first
            if isinstance(self._storage, KeyEnumerable):
                keys: List[CacheKey] = await self._storage.keys()
                for key in keys:
                    self._recency.touch(key)
                # Expired entries must not take the place of live ones in the trim
                for key in keys:
                    try:
                        await self._expire_if_dead(key)
                    except Exception:
                        logger.exception(f"Failed to expire key {key!r} while loading")
                await self._evict_overflow()
            self._seeded = True

    async def _evict_overflow(self) -> None:
        if len(self._recency) <= self._config.capacity:
            return

        for key in self._recency.expired(self._clock()):
            await self._storage.delete(key)
            self._recency.discard(key)
            logger.debug(f"Purged expired key {key!r} before eviction")

        while len(self._recency) > self._config.capacity:
            victim = self._recency.lru_key()
            if victim is None:
                break
            live = await self._storage.get(victim) is not MISS
            await self._storage.delete(victim)
            self._recency.discard(victim)
            if live:
                logger.debug(f"Evicted least recently used key {victim!r}")
            else:
                logger.debug(f"Dropped expired key {victim!r} instead of evicting")

    def _ensure_open(self) -> None:
        if self._stopped:
            raise CacheClosedError("Cache has been stopped")

    async def __aenter__(self) -> "ExpiringLRUCache[T]":
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    def __len__(self) -> int:
        return len(self._recency)
