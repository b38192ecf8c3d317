"""
Local File Storage Implementation

DESIGN DECISION: Each key is one UTF-8 file in a directory, named after
the key. This mirrors a browser's per-origin key-value storage:
1. No database setup required
2. Users can open and back up their data directly
3. A single blob can be replaced without touching the other

TRADEOFFS:
- A write replaces the whole file (fine: blobs are a personal ledger)
- Concurrent writes to one key each use their own temp file; the last
  rename wins and the file always holds one complete value
- No cross-key transactions (the ledger tolerates this; last write wins)

File I/O is blocking, so it runs in a worker thread to keep the
event loop responsive.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from finance_tracker.services.storage.interface import (
    ConnectionError,
    KeyValueStorageInterface,
    StorageError,
)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(KeyValueStorageInterface):
    """
    Directory-backed key-value store.

    `<directory>/<key>.json` holds the value for `key`.
    """

    def __init__(self, directory: Path, suffix: str = ".json"):
        self._directory = Path(directory)
        self._suffix = suffix

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File that holds a key. Rejects keys that could escape the directory."""
        if not _KEY_PATTERN.match(key) or key in {".", ".."}:
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}{self._suffix}"

    async def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        return await asyncio.to_thread(self._read, path)

    async def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, value)

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def _write(self, path: Path, value: str) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionError(f"Storage directory unavailable: {self._directory}: {e}")

        # One temp file per write: overlapping saves of a key must not share it
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to write {path}: {e}")
