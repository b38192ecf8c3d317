"""Core package: shared exceptions."""

from finance_tracker.core.exceptions import (
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "LedgerError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
