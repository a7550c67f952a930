from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Error codes S3 (and S3-compatible stores) use for an absent object
_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3Client:
    """Async S3 client for reading and writing whole objects in one bucket.

    A missing object is reported as None; every other S3 or transport
    failure is raised as StorageError.
    """

    def __init__(
        self,
        *,
        bucket: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        session: Optional[Any] = None,
    ) -> None:
        self.bucket = (bucket or "").strip()
        if not self.bucket:
            raise ValidationError("S3 bucket is empty")
        self.region = (region_name or "").strip() or None
        self.endpoint_url = (endpoint_url or "").strip() or None

        self._session = session
        self._s3 = None

    async def _get_s3_client(self):
        """Get or create the underlying S3 client.

        The client stays open until close() is called.
        """
        if self._s3 is None:
            if self._session is None:
                self._session = aioboto3.Session()
            client_kwargs: Dict[str, Any] = {}
            if self.region:
                client_kwargs["region_name"] = self.region
            if self.endpoint_url:
                client_kwargs["endpoint_url"] = self.endpoint_url
            # __aexit__ is called in close()
            self._s3 = await self._session.client("s3", **client_kwargs).__aenter__()
        return self._s3

    def object_url(self, key: str) -> str:
        name = (key or "").strip().strip("/")
        if not name:
            raise ValidationError("Object key is empty")
        return f"s3://{self.bucket}/{name}"

    async def get_object(self, key: str) -> Optional[bytes]:
        url = self.object_url(key)
        try:
            s3 = await self._get_s3_client()
            response = await s3.get_object(Bucket=self.bucket, Key=key)
            content = await response["Body"].read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StorageError(f"Failed to download {url}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to download {url}: {e}") from e

        logger.debug(f"Downloaded from S3: {url} ({len(content)} bytes)")
        return content

    async def put_object(self, key: str, data: bytes, *, content_type: str = "application/json") -> None:
        url = self.object_url(key)
        try:
            s3 = await self._get_s3_client()
            await s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload {url}: {e}") from e

        logger.debug(f"Uploaded to S3: {url} ({len(data)} bytes)")

    async def close(self) -> None:
        if self._s3 is not None:
            await self._s3.__aexit__(None, None, None)
            self._s3 = None
