"""Services package."""

from finance_tracker.services.storage import (
    ConnectionError,
    FileStorage,
    InMemoryStorage,
    KeyValueStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "FileStorage",
    "InMemoryStorage",
    "KeyValueStorageInterface",
    "StorageError",
]
