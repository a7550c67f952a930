"""Core protocol and interface definitions.

Defines the CacheStorage protocol every backend (memory, file, Redis,
object store) satisfies, plus the optional KeyEnumerable capability the
expiry sweep and the recency index rely on when a backend offers it.
"""

from __future__ import annotations

from typing import Any, List, Protocol, runtime_checkable

from core.models import CacheKey


class CacheStorage(Protocol):
    """Contract for any cache backend (memory, file, Redis, etc.)."""
    async def get(self, key: CacheKey) -> Any:
        # Returns the value, or MISS when absent or expired
        ...

    async def put(self, key: CacheKey, value: Any, ttl_ms: int) -> None:
        ...

    async def delete(self, key: CacheKey) -> None:
        ...

    async def stop(self) -> None:
        ...


@runtime_checkable
class KeyEnumerable(Protocol):
    """Backends that can list the keys they hold, least recently used first."""
    async def keys(self) -> List[CacheKey]:
        ...
