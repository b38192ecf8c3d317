"""
Persistence Adapter

Moves the ledger between memory and the key-value storage gateway.

DESIGN DECISION: Persistence is best effort.
- load() never raises. A blob that is absent, malformed or unreadable
  falls back to its default, independently of the other blob.
- save() never raises. Failures are logged and audited, and the
  in-memory state stays authoritative for the rest of the session.
- save() refuses to write an all-empty state, so a blank start can't
  overwrite data saved earlier.

Blob format (JSON text):
    transactions: [{"id", "type", "amount", "date", "category", "notes"}, ...]
    categories:   {"income": [...], "expense": [...]}
"""

from typing import Optional

import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.core.exceptions import PersistenceError
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.transaction import CategorySet, LedgerState, Transaction
from finance_tracker.services.storage import KeyValueStorageInterface

logger = structlog.get_logger(__name__)

_transactions_adapter = TypeAdapter(list[Transaction])


def encode_transactions(transactions: list[Transaction]) -> str:
    return _transactions_adapter.dump_json(transactions).decode("utf-8")


def decode_transactions(text: str) -> list[Transaction]:
    """
    Parse the transactions blob.

    Raises:
        PersistenceError: If the text isn't a valid transaction list
    """
    try:
        transactions = _transactions_adapter.validate_json(text)
    except PydanticValidationError as e:
        raise PersistenceError(f"Malformed transactions blob: {e.error_count()} errors")

    # Ids must be unique; keep the first occurrence
    seen = set()
    unique = []
    for txn in transactions:
        if txn.id in seen:
            logger.warning("duplicate_transaction_id_dropped", transaction_id=txn.id)
            continue
        seen.add(txn.id)
        unique.append(txn)
    return unique


def encode_categories(categories: CategorySet) -> str:
    return categories.model_dump_json()


def decode_categories(text: str) -> CategorySet:
    """
    Parse the categories blob.

    Raises:
        PersistenceError: If the text isn't a valid category set
    """
    try:
        return CategorySet.model_validate_json(text)
    except PydanticValidationError as e:
        raise PersistenceError(f"Malformed categories blob: {e.error_count()} errors")


class PersistenceAdapter:
    """
    Loads and saves the ledger through a storage gateway.

    Stateless apart from its collaborators, so concurrent saves are
    independent; the gateway sees whichever write lands last.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        transactions_key: str = "transactions",
        categories_key: str = "categories",
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._transactions_key = transactions_key
        self._categories_key = categories_key

    async def load(self) -> LedgerState:
        """Read both blobs, falling back to defaults for any that are unusable."""
        transactions: list[Transaction] = []
        categories = CategorySet()

        try:
            text = await self._read_blob(self._transactions_key)
            if text is not None:
                transactions = decode_transactions(text)
        except PersistenceError as e:
            self._fallback(self._transactions_key, e)

        try:
            text = await self._read_blob(self._categories_key)
            if text is not None:
                categories = decode_categories(text)
        except PersistenceError as e:
            self._fallback(self._categories_key, e)

        state = LedgerState(transactions=transactions, categories=categories)
        self._audit(AuditEventBuilder.state_loaded(len(transactions)))
        return state

    async def save(self, state: LedgerState) -> bool:
        """
        Write both blobs.

        Returns:
            True if written; False if skipped (empty state) or failed
        """
        if state.is_empty:
            logger.debug("save_skipped_empty_state")
            self._audit(AuditEventBuilder.save_skipped())
            return False

        try:
            await self._write_blob(
                self._transactions_key,
                encode_transactions(state.transactions),
            )
            await self._write_blob(
                self._categories_key,
                encode_categories(state.categories),
            )
        except PersistenceError as e:
            logger.error("save_failed", error=str(e))
            self._audit(AuditEventBuilder.persistence_failed("save", str(e)))
            return False

        self._audit(AuditEventBuilder.state_saved(len(state.transactions)))
        return True

    async def _read_blob(self, key: str) -> Optional[str]:
        try:
            return await self._storage.get(key)
        except Exception as e:
            raise PersistenceError(f"Failed to read '{key}': {e}")

    async def _write_blob(self, key: str, value: str) -> None:
        try:
            await self._storage.set(key, value)
        except Exception as e:
            raise PersistenceError(f"Failed to write '{key}': {e}")

    def _fallback(self, key: str, error: PersistenceError) -> None:
        logger.warning("load_fallback_to_default", key=key, error=str(error))
        self._audit(AuditEventBuilder.load_fallback(key, str(error)))

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)
