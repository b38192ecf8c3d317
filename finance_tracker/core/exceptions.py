"""Ledger-level exceptions."""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger errors."""

    def __init__(self, message: str, code: str = "LEDGER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(LedgerError):
    """
    Raised when a transaction draft is incomplete.

    Only raised by a store running in strict mode. The default policy
    rejects incomplete submissions silently.
    """

    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = issues or []
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(LedgerError):
    """Raised when an edit or delete references something that doesn't exist."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}", code="NOT_FOUND")


class PersistenceError(LedgerError):
    """Load or save against the storage gateway failed."""

    def __init__(self, message: str):
        super().__init__(message, code="PERSISTENCE_ERROR")
