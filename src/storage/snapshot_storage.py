"""Base class for backends that persist the whole store as one blob.

Entries live in memory (inherited from MemoryStorage) and are written to
a file or object store after each mutation (write-through) or only on
stop(). The blob is loaded lazily on first use; a missing, unreadable or
corrupt blob is reported and replaced by an empty store.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Any, List, Optional

from core.clock import Clock
from core.errors import StorageError
from core.models import MISS, CacheEntry, CacheKey
from storage.codec import decode_entries, encode_entries, encode_value
from storage.memory_storage import MemoryStorage

logger = logging.getLogger(__name__)


class SnapshotStorage(MemoryStorage):
    def __init__(self, *, write_through: bool = True, clock: Optional[Clock] = None) -> None:
        super().__init__(clock=clock)
        self._write_through = bool(write_through)
        self._loaded = False
        # Serializes the initial load and every blob write
        self._io_lock = asyncio.Lock()

    # --- blob I/O, implemented by subclasses ---

    async def _read_blob(self) -> Optional[bytes]:
        raise NotImplementedError

    async def _write_blob(self, data: bytes) -> None:
        raise NotImplementedError

    async def _release(self) -> None:
        pass

    def describe(self) -> str:
        return type(self).__name__

    # --- CacheStorage ---

    async def get(self, key: CacheKey) -> Any:
        await self._ensure_loaded()
        had = key in self._store
        result = await super().get(key)
        if had and result is MISS:
            # Lazy removal of an expired entry changed the store
            await self._persist()
        return result

    async def put(self, key: CacheKey, value: Any, ttl_ms: int) -> None:
        await self._ensure_loaded()
        encode_value(value)
        previous = self._store.copy()
        await super().put(key, value, ttl_ms)
        try:
            await self._persist()
        except StorageError:
            # Keep memory (entries and their order) as last persisted
            self._store = previous
            raise

    async def delete(self, key: CacheKey) -> None:
        await self._ensure_loaded()
        if key not in self._store:
            return
        previous = self._store.copy()
        await super().delete(key)
        try:
            await self._persist()
        except StorageError:
            self._store = previous
            raise

    async def keys(self) -> List[CacheKey]:
        await self._ensure_loaded()
        return await super().keys()

    async def stop(self) -> None:
        if self._stopped:
            return
        try:
            # Never overwrite persisted state with a store that was not loaded
            if self._loaded:
                await self._persist(force=True)
        finally:
            await self._release()
            await super().stop()
            logger.info(f"{self.describe()} stopped")

    # --- internals ---

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._io_lock:
            if self._loaded:
                return
            self._store = await self._load()
            self._loaded = True

    async def _load(self) -> "OrderedDict[CacheKey, CacheEntry[Any]]":
        try:
            data = await self._read_blob()
        except StorageError as e:
            logger.warning(f"Could not read persisted cache from {self.describe()}: {e}. Starting empty.")
            return OrderedDict()

        if data is None:
            logger.debug(f"No persisted cache at {self.describe()}, starting empty")
            return OrderedDict()

        try:
            entries = decode_entries(data)
        except ValueError as e:
            logger.warning(f"Discarding corrupt persisted cache at {self.describe()}: {e}")
            return OrderedDict()

        logger.info(f"Loaded {len(entries)} cache entries from {self.describe()}")
        return entries

    async def _persist(self, *, force: bool = False) -> None:
        if not (self._write_through or force):
            return
        # Encode before awaiting so the blob reflects this exact state
        data = encode_entries(self._store)
        async with self._io_lock:
            await self._write_blob(data)
