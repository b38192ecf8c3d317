"""Draft validation package."""

from finance_tracker.validation.validator import TransactionDraftValidator

__all__ = ["TransactionDraftValidator"]
