from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

from core.clock import Clock
from core.errors import StorageError
from storage.snapshot_storage import SnapshotStorage


"""Local file CacheStorage implementation.

Persists the cache snapshot as JSON in a single file. Writes go to a
temporary sibling first and are moved into place with os.replace.
"""


class FileStorage(SnapshotStorage):
    # Local filesystem implementation of CacheStorage.

    def __init__(
        self,
        *,
        path: Path,
        write_through: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(write_through=write_through, clock=clock)
        self._path = Path(path)

    def describe(self) -> str:
        return f"file {self._path}"

    async def _read_blob(self) -> Optional[bytes]:
        def _do() -> Optional[bytes]:
            try:
                return self._path.read_bytes()
            except FileNotFoundError:
                return None

        # Offload blocking filesystem IO to a thread to keep async loop responsive
        try:
            return await asyncio.to_thread(_do)
        except OSError as e:
            raise StorageError(f"Failed to read cache file {self._path}: {e}") from e

    async def _write_blob(self, data: bytes) -> None:
        def _do() -> None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_name(self._path.name + ".tmp")
            tmp.write_bytes(data)
            os.replace(tmp, self._path)

        try:
            await asyncio.to_thread(_do)
        except OSError as e:
            raise StorageError(f"Failed to write cache file {self._path}: {e}") from e
