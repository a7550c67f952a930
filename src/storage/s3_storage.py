"""S3 CacheStorage implementation.

Keeps the snapshot as a single object (bucket + object key), read once on
first use and rewritten on each mutation. The S3 client is closed when
the storage stops.
"""

from __future__ import annotations

from typing import Optional

from clients.s3_client import S3Client
from core.clock import Clock
from core.errors import ValidationError
from storage.snapshot_storage import SnapshotStorage


class S3Storage(SnapshotStorage):
    def __init__(
        self,
        *,
        client: S3Client,
        object_key: str,
        write_through: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(write_through=write_through, clock=clock)
        key = (object_key or "").strip()
        if not key:
            raise ValidationError("Missing object key for S3 storage")
        self._client = client
        self._object_key = key

    def describe(self) -> str:
        return self._client.object_url(self._object_key)

    async def _read_blob(self) -> Optional[bytes]:
        return await self._client.get_object(self._object_key)

    async def _write_blob(self, data: bytes) -> None:
        await self._client.put_object(self._object_key, data)

    async def _release(self) -> None:
        await self._client.close()
