"""Persistence package."""

from finance_tracker.persistence.adapter import (
    PersistenceAdapter,
    decode_categories,
    decode_transactions,
    encode_categories,
    encode_transactions,
)

__all__ = [
    "PersistenceAdapter",
    "decode_categories",
    "decode_transactions",
    "encode_categories",
    "encode_transactions",
]
