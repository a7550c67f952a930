"""Redis CacheStorage implementation.

Stores each entry as a JSON string under ``{key_prefix}{key}`` with a
native millisecond expiry (SET ... PX), so Redis itself purges expired
keys. Keys are stringified, so ``1`` and ``"1"`` address the same entry.
The backend does not enumerate keys; the expiry sweep skips it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from core.errors import StorageError, ValidationError
from core.models import MISS, CacheKey
from storage.codec import encode_value

logger = logging.getLogger(__name__)


class RedisStorage:
    def __init__(
        self,
        *,
        client: Optional[redis.Redis] = None,
        url: Optional[str] = None,
        key_prefix: str = "cache:",
        socket_connect_timeout: float = 5.0,
    ) -> None:
        if client is None:
            if not url or not url.strip():
                raise ValidationError("Missing Redis url")
            client = redis.from_url(
                url.strip(),
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=socket_connect_timeout,
            )
            self._owns_client = True
            logger.info("Redis client initialized")
        else:
            # Caller-provided clients are closed by their owner
            self._owns_client = False

        self._client = client
        self._prefix = key_prefix or ""
        self._stopped = False

    def _name(self, key: CacheKey) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: CacheKey) -> Any:
        try:
            raw = await self._client.get(self._name(key))
        except RedisError as e:
            raise StorageError(f"Redis GET failed for key {key!r}: {e}") from e

        if raw is None:
            return MISS

        try:
            return json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt value stored in Redis for key {key!r}") from e

    async def put(self, key: CacheKey, value: Any, ttl_ms: int) -> None:
        payload = encode_value(value)
        ttl_ms = int(ttl_ms)

        try:
            if ttl_ms <= 0:
                # Already expired at write time; Redis rejects PX 0
                await self._client.delete(self._name(key))
            else:
                await self._client.set(self._name(key), payload, px=ttl_ms)
        except RedisError as e:
            raise StorageError(f"Redis SET failed for key {key!r}: {e}") from e

    async def delete(self, key: CacheKey) -> None:
        try:
            await self._client.delete(self._name(key))
        except RedisError as e:
            raise StorageError(f"Redis DEL failed for key {key!r}: {e}") from e

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True

        if not self._owns_client:
            return

        try:
            await self._client.aclose()
        except RedisError as e:
            raise StorageError(f"Failed to close Redis client: {e}") from e
        logger.info("Redis client closed")
