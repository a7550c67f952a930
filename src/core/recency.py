from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, List, Optional

from core.models import CacheKey


class RecencyIndex:
    # Least -> most recently used key order, independent of the backend
    def __init__(self, keys: Iterable[CacheKey] = ()) -> None:
        self._order: "OrderedDict[CacheKey, None]" = OrderedDict()
        # Keys by last write; with one fixed TTL their expiries never decrease
        self._expiry: "OrderedDict[CacheKey, int]" = OrderedDict()
        for key in keys:
            self.touch(key)

    def touch(self, key: CacheKey) -> None:
        # Insert or move to the most-recently-used end
        self._order[key] = None
        self._order.move_to_end(key, last=True)

    def record_write(self, key: CacheKey, expires_at: int) -> None:
        self.touch(key)
        self._expiry[key] = expires_at
        self._expiry.move_to_end(key, last=True)

    def discard(self, key: CacheKey) -> None:
        self._order.pop(key, None)
        self._expiry.pop(key, None)

    def expired(self, now: int) -> List[CacheKey]:
        # Oldest writes first; stop at the first entry still alive
        out: List[CacheKey] = []
        for key, expires_at in self._expiry.items():
            if now < expires_at:
                break
            out.append(key)
        return out

    def lru_key(self) -> Optional[CacheKey]:
        return next(iter(self._order), None)

    def keys(self) -> List[CacheKey]:
        return list(self._order)

    def __contains__(self, key: object) -> bool:
        return key in self._order

    def __len__(self) -> int:
        return len(self._order)
