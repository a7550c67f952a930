"""Factory for selecting the CacheStorage implementation.

Exposes get_storage which returns a MemoryStorage, FileStorage,
RedisStorage or S3Storage based on the requested backend name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from clients.s3_client import S3Client
from core.errors import ValidationError
from core.interfaces import CacheStorage
from storage.file_storage import FileStorage
from storage.memory_storage import MemoryStorage
from storage.redis_storage import RedisStorage
from storage.s3_storage import S3Storage


def get_storage(
    backend: Optional[str] = None,
    *,
    file_path: Optional[Path] = None,
    write_through: bool = True,
    redis_url: Optional[str] = None,
    redis_key_prefix: str = "cache:",
    redis_connect_timeout: float = 5.0,
    s3_bucket: Optional[str] = None,
    s3_object_key: str = "cache.json",
    aws_region: Optional[str] = None,
    aws_endpoint_url: Optional[str] = None,
    s3_client: Optional[S3Client] = None,
) -> CacheStorage:
    """
    Factory that returns the CacheStorage for a backend name.

    - "memory" (default, also for None/empty) -> MemoryStorage
    - "file" -> FileStorage (requires file_path)
    - "redis" -> RedisStorage (requires redis_url)
    - "s3" -> S3Storage (requires a bucket, or an injected client)
    """

    name = (backend or "memory").strip().lower()

    if name == "memory":
        return MemoryStorage()

    if name == "file":
        if file_path is None:
            raise ValidationError("Missing file_path for file backend")
        return FileStorage(path=Path(file_path), write_through=write_through)

    if name == "redis":
        if not redis_url or not redis_url.strip():
            raise ValidationError("Missing redis_url for redis backend")
        return RedisStorage(url=redis_url, key_prefix=redis_key_prefix, socket_connect_timeout=redis_connect_timeout)

    if name == "s3":
        client = s3_client or S3Client(
            bucket=s3_bucket or "",
            region_name=aws_region,
            endpoint_url=aws_endpoint_url,
        )
        return S3Storage(client=client, object_key=s3_object_key, write_through=write_through)

    raise ValidationError(f"Unknown cache backend: {backend!r}")
