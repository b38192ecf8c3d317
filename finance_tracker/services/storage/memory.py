"""In-memory storage gateway. Nothing survives the process."""

from typing import Optional

from finance_tracker.services.storage.interface import KeyValueStorageInterface


class InMemoryStorage(KeyValueStorageInterface):
    """Dict-backed key-value store, used for tests and the 'memory' backend."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def dump(self) -> dict[str, str]:
        """Copy of everything stored, for inspection."""
        return dict(self._data)
