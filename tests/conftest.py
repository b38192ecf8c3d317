"""Shared fixtures for the Finance Tracker tests."""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.models.transaction import Transaction, TransactionType
from finance_tracker.persistence import PersistenceAdapter
from finance_tracker.services.storage import (
    InMemoryStorage,
    KeyValueStorageInterface,
    StorageError,
)


class FailingStorage(KeyValueStorageInterface):
    """Storage gateway whose reads and/or writes always fail."""

    def __init__(self, fail_get: bool = True, fail_set: bool = True):
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.set_calls = 0

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise StorageError(f"read failed: {key}")
        return None

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise StorageError(f"write failed: {key}")


@pytest.fixture
def make_transaction():
    """Factory for transactions with compact arguments."""
    def _make(
        id: int,
        type_: str,
        amount: str,
        on: str,
        category: str,
        notes: Optional[str] = None,
    ) -> Transaction:
        return Transaction(
            id=id,
            type=TransactionType(type_),
            amount=Decimal(amount),
            date=date.fromisoformat(on),
            category=category,
            notes=notes,
        )
    return _make


@pytest.fixture
def sample_transactions(make_transaction):
    """A small ledger spanning three months."""
    return [
        make_transaction(1, "income", "3000", "2024-01-01", "Salary"),
        make_transaction(2, "expense", "42.5", "2024-01-15", "Food", "lunch"),
        make_transaction(3, "expense", "120", "2024-02-03", "Bills"),
        make_transaction(4, "income", "450.25", "2024-02-20", "Freelance"),
        make_transaction(5, "expense", "18.75", "2024-03-09", "Food"),
        make_transaction(6, "expense", "60", "2024-03-09", "Transport"),
    ]


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger(history_size=50)


@pytest.fixture
def adapter(storage, audit_logger):
    return PersistenceAdapter(storage, audit_logger=audit_logger)


@pytest.fixture
def failing_storage():
    """Fails every read and write; flip fail_get/fail_set to narrow it."""
    return FailingStorage()
