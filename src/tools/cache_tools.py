"""MCP tools exposing the cache: cache_get, cache_put and cache_delete.

Each tool validates its inputs and delegates to a shared
ExpiringLRUCache instance injected at registration time.
"""

from __future__ import annotations

from typing import Any, Dict, Union

from mcp.server.fastmcp import FastMCP

from core.cache import ExpiringLRUCache
from core.errors import ValidationError
from core.models import CacheKey, is_miss


def _normalize_key(key: Union[str, int]) -> CacheKey:
    # Strings are trimmed; an empty key is rejected
    if isinstance(key, str):
        key = key.strip()
        if not key:
            raise ValidationError("Missing cache key")
    return key


def register(mcp: FastMCP, *, cache: ExpiringLRUCache[Any]) -> None:
    @mcp.tool(name="cache_get")
    async def cache_get(key: Union[str, int]) -> Dict[str, Any]:
        """Look up a key in the cache.

        Parameters:
          - key: string or integer key (required).

        Returns:
          {"hit": true, "value": <value>} when the key is present and not
          expired, otherwise {"hit": false}. Reads do not extend the TTL.
        """
        result = await cache.get(_normalize_key(key))
        if is_miss(result):
            return {"hit": False}
        return {"hit": True, "value": result}

    @mcp.tool(name="cache_put")
    async def cache_put(key: Union[str, int], value: Any) -> Dict[str, Any]:
        """Store a JSON value under a key with the configured TTL.

        Overwrites any previous value and resets its expiry. May evict the
        least recently used entry when the cache is full.
        """
        k = _normalize_key(key)
        await cache.put(k, value)
        return {"stored": True, "key": k, "ttl_ms": cache.config.ttl_ms}

    @mcp.tool(name="cache_delete")
    async def cache_delete(key: Union[str, int]) -> Dict[str, Any]:
        """Remove a key from the cache (no-op if absent)."""
        k = _normalize_key(key)
        await cache.delete(k)
        return {"deleted": True, "key": k}
