"""Domain store package."""

from finance_tracker.store.ledger import LedgerStore

__all__ = ["LedgerStore"]
