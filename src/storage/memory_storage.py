"""Reference in-memory CacheStorage implementation.

Keeps entries in an OrderedDict so lookups, writes, deletes and recency
promotion (move_to_end) are all O(1). Expired entries are dropped lazily
when a get observes them.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, List, Optional

from core.clock import Clock, now_ms
from core.models import MISS, CacheEntry, CacheKey

logger = logging.getLogger(__name__)


class MemoryStorage:
    # In-memory implementation of CacheStorage.

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock = clock or now_ms
        self._store: "OrderedDict[CacheKey, CacheEntry[Any]]" = OrderedDict()
        self._stopped = False

    async def get(self, key: CacheKey) -> Any:
        entry = self._store.get(key)
        if entry is None:
            return MISS

        if entry.is_expired(self._clock()):
            self._store.pop(key, None)
            return MISS

        # Move to end to mark as recently used
        self._store.move_to_end(key, last=True)
        return entry.value

    async def put(self, key: CacheKey, value: Any, ttl_ms: int) -> None:
        self._store[key] = CacheEntry(value=value, expires_at=self._clock() + int(ttl_ms))
        self._store.move_to_end(key, last=True)

    async def delete(self, key: CacheKey) -> None:
        self._store.pop(key, None)

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        # Volatile state is discarded on teardown
        self._store.clear()
        logger.debug("Memory storage stopped")

    async def keys(self) -> List[CacheKey]:
        return list(self._store.keys())

    def lru_key(self) -> Optional[CacheKey]:
        return next(iter(self._store), None)

    def __len__(self) -> int:
        return len(self._store)
