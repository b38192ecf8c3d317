"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.transaction import (
    ALL_CATEGORIES,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryBucket,
    CategorySet,
    CsvExport,
    DashboardSnapshot,
    DraftValidationResult,
    FilterType,
    LedgerState,
    MonthlyBucket,
    SortOrder,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ViewQuery,
    format_amount,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ALL_CATEGORIES",
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "CategoryBucket",
    "CategorySet",
    "CsvExport",
    "DashboardSnapshot",
    "DraftValidationResult",
    "FilterType",
    "LedgerState",
    "MonthlyBucket",
    "SortOrder",
    "Totals",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ViewQuery",
    "format_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
