"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
The ledger persists to a local directory by default, but the backend
is swappable.
"""

from finance_tracker.services.storage.interface import (
    ConnectionError,
    KeyValueStorageInterface,
    StorageError,
)
from finance_tracker.services.storage.file_store import FileStorage
from finance_tracker.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "FileStorage",
    "InMemoryStorage",
]
