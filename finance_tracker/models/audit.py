"""
Audit Models for Finance Tracker

Every mutation and every persistence attempt produces an audit event.
This provides:
1. A readable trail of what the user changed in this session
2. Debugging information when a save silently fails
3. A record of rejected submissions, which are otherwise no-ops

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SUBMISSION_REJECTED = "submission_rejected"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_DELETED = "category_deleted"

    # Lookups that matched nothing
    ENTITY_NOT_FOUND = "entity_not_found"

    # Persistence
    STATE_LOADED = "state_loaded"
    LOAD_FALLBACK = "load_fallback"
    STATE_SAVED = "state_saved"
    SAVE_SKIPPED = "save_skipped"
    PERSISTENCE_FAILED = "persistence_failed"

    # Export
    CSV_EXPORTED = "csv_exported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'blob')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Transaction id, category name or storage key"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn_id, "expense", "Food", "42.5")
        event = AuditEventBuilder.persistence_failed("save", "disk full")
    """

    @staticmethod
    def transaction_added(
        transaction_id: int,
        type_: str,
        category: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction added: {type_} {category} {amount}",
            details={
                "type": type_,
                "category": category,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction updated: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=str(transaction_id),
            description=f"Transaction deleted: {transaction_id}",
            is_user_action=True,
        )

    @staticmethod
    def submission_rejected(issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"Submission rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_added(type_: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=name,
            description=f"Category added to {type_}: {name}",
            details={"type": type_},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(type_: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=name,
            description=f"Category deleted from {type_}: {name}",
            details={"type": type_},
            is_user_action=True,
        )

    @staticmethod
    def entity_not_found(entity_type: str, identifier: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_NOT_FOUND,
            severity=AuditSeverity.DEBUG,
            entity_type=entity_type,
            entity_id=identifier,
            description=f"No {entity_type} matched {identifier}",
        )

    @staticmethod
    def state_loaded(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            description=f"Loaded {transaction_count} transactions",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def load_fallback(key: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="blob",
            entity_id=key,
            description=f"Using defaults for '{key}': {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def state_saved(transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            description=f"Saved {transaction_count} transactions",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def save_skipped() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_SKIPPED,
            severity=AuditSeverity.DEBUG,
            description="Save skipped: state is empty",
        )

    @staticmethod
    def persistence_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Persistence {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def csv_exported(filename: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_EXPORTED,
            entity_type="export",
            entity_id=filename,
            description=f"Exported {row_count} rows to {filename}",
            details={"row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
