"""
Ledger Store

The single owner of in-memory ledger state: transactions and categories.

DESIGN DECISION: Mutations are synchronous; persistence is not.
Every successful mutation:
1. Updates memory and returns immediately
2. Notifies subscribers (the presentation layer re-renders)
3. Enqueues an asynchronous save of a snapshot taken at that moment

Saves are fire-and-forget. They are not ordered against later mutations,
so when two saves overlap the storage gateway keeps whichever lands last.
Rejected submissions and lookups that match nothing change nothing:
no notification, no save.

POLICY: By default incomplete submissions and unknown ids are silent
no-ops. With strict=True they raise ValidationError / NotFoundError.
"""

import asyncio
import time
from typing import Callable, Optional, Union

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.core.exceptions import NotFoundError, ValidationError
from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.models.transaction import (
    CategorySet,
    DraftValidationResult,
    LedgerState,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from finance_tracker.persistence import PersistenceAdapter
from finance_tracker.validation import TransactionDraftValidator

logger = structlog.get_logger(__name__)

Subscriber = Callable[["LedgerStore"], None]


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class LedgerStore:
    """
    Holds transactions and categories and enforces their invariants.

    Transaction ids come from a millisecond clock, bumped past the
    highest id seen so far, so they are unique and increasing even when
    two transactions are added within the same millisecond.
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        persistence: Optional[PersistenceAdapter] = None,
        validator: Optional[TransactionDraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        strict: bool = False,
        dedupe_categories: bool = False,
        clock: Callable[[], int] = _epoch_millis,
    ):
        """
        Initialize the store.

        Args:
            state: Initial state, usually from PersistenceAdapter.load().
                   If None, starts empty with the default categories.
            persistence: Where snapshots are saved. If None, nothing is saved.
            validator: Draft validator
            audit_logger: Receives one event per mutation
            strict: Raise instead of silently ignoring bad requests
            dedupe_categories: Ignore add_category for names already present
            clock: Source of millisecond timestamps for new ids
        """
        state = state or LedgerState()
        self._transactions: list[Transaction] = list(state.transactions)
        self._categories: CategorySet = state.categories.model_copy(deep=True)

        self._persistence = persistence
        self._validator = validator or TransactionDraftValidator()
        self._audit_logger = audit_logger
        self._strict = strict
        self._dedupe_categories = dedupe_categories
        self._clock = clock

        self._last_id = max((txn.id for txn in self._transactions), default=0)
        self._subscribers: list[Subscriber] = []
        self._pending_saves: set[asyncio.Task] = set()
        self._deferred_snapshot: Optional[LedgerState] = None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> list[Transaction]:
        """All transactions in insertion order (a copy)."""
        return list(self._transactions)

    @property
    def categories(self) -> CategorySet:
        """Current categories (a copy)."""
        return self._categories.model_copy(deep=True)

    @property
    def strict(self) -> bool:
        return self._strict

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        index = self._index_of(transaction_id)
        return None if index is None else self._transactions[index]

    def snapshot(self) -> LedgerState:
        """Point-in-time copy of the whole state."""
        return LedgerState(
            transactions=list(self._transactions),
            categories=self._categories.model_copy(deep=True),
        )

    # -------------------------------------------------------------------------
    # Transaction mutations
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> Optional[Transaction]:
        """
        Append a new transaction built from a draft.

        Returns:
            The new transaction, or None if the draft was rejected

        Raises:
            ValidationError: In strict mode, if the amount is missing or invalid,
                or the category is missing or not in the list for its type
        """
        result = self._check_draft(draft)
        if result is None:
            return None

        transaction = self._build(self._next_id(), draft, result)
        self._transactions.append(transaction)

        self._audit(AuditEventBuilder.transaction_added(
            transaction_id=transaction.id,
            type_=transaction.type.value,
            category=transaction.category,
            amount=str(transaction.amount),
        ))
        self._committed()
        return transaction

    def update_transaction(
        self,
        transaction_id: int,
        draft: TransactionDraft,
    ) -> Optional[Transaction]:
        """
        Replace a transaction with one built from a draft, keeping its id
        and its position in the list.

        Returns:
            The replacement, or None if rejected or not found

        Raises:
            ValidationError: In strict mode, for an incomplete draft
            NotFoundError: In strict mode, for an unknown id
        """
        result = self._check_draft(draft)
        if result is None:
            return None

        index = self._index_of(transaction_id)
        if index is None:
            self._not_found("transaction", str(transaction_id))
            return None

        transaction = self._build(transaction_id, draft, result)
        self._transactions[index] = transaction

        self._audit(AuditEventBuilder.transaction_updated(transaction_id))
        self._committed()
        return transaction

    def delete_transaction(self, transaction_id: int) -> bool:
        """
        Remove a transaction.

        Returns:
            True if removed, False if no transaction had that id

        Raises:
            NotFoundError: In strict mode, for an unknown id
        """
        index = self._index_of(transaction_id)
        if index is None:
            self._not_found("transaction", str(transaction_id))
            return False

        del self._transactions[index]

        self._audit(AuditEventBuilder.transaction_deleted(transaction_id))
        self._committed()
        return True

    # -------------------------------------------------------------------------
    # Category mutations
    # -------------------------------------------------------------------------

    def add_category(self, type_: Union[TransactionType, str], name: str) -> bool:
        """
        Append a category name to a type's list.

        The name is trimmed. Existing transactions are unaffected.

        Returns:
            True if added; False for a blank name, or a duplicate when
            deduplication is enabled

        Raises:
            ValidationError: In strict mode, for a blank name
        """
        type_ = TransactionType(type_)
        name = (name or "").strip()
        if not name:
            logger.info("category_rejected_blank_name", type=type_.value)
            if self._strict:
                raise ValidationError("Category name is required")
            return False

        names = self._categories.for_type(type_)
        if self._dedupe_categories and name in names:
            logger.info("category_duplicate_ignored", type=type_.value, name=name)
            return False

        names.append(name)

        self._audit(AuditEventBuilder.category_added(type_.value, name))
        self._committed()
        return True

    def delete_category(self, type_: Union[TransactionType, str], name: str) -> bool:
        """
        Remove the first matching name from a type's list.

        Transactions that use the category keep it; the reference is
        simply orphaned.

        Returns:
            True if removed, False if the name wasn't in the list

        Raises:
            NotFoundError: In strict mode, for an unknown name
        """
        type_ = TransactionType(type_)
        names = self._categories.for_type(type_)
        if name not in names:
            self._not_found("category", f"{type_.value}/{name}")
            return False

        names.remove(name)

        self._audit(AuditEventBuilder.category_deleted(type_.value, name))
        self._committed()
        return True

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback(store)` after every successful mutation.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @property
    def pending_saves(self) -> int:
        """Saves enqueued but not yet finished."""
        return len(self._pending_saves)

    async def flush(self) -> None:
        """
        Wait until every enqueued save has finished.

        A snapshot deferred because no event loop was running is written
        last, since it is newer than any enqueued save.
        """
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

        if self._deferred_snapshot is not None and self._persistence is not None:
            snapshot, self._deferred_snapshot = self._deferred_snapshot, None
            await self._persistence.save(snapshot)

    def _schedule_save(self) -> None:
        if self._persistence is None:
            return

        snapshot = self.snapshot()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nothing can run a task yet; keep the newest snapshot for flush()
            self._deferred_snapshot = snapshot
            logger.debug("save_deferred_no_event_loop")
            return

        self._deferred_snapshot = None
        task = loop.create_task(self._persistence.save(snapshot))
        self._pending_saves.add(task)
        task.add_done_callback(self._save_finished)

    def _save_finished(self, task: asyncio.Task) -> None:
        self._pending_saves.discard(task)
        if task.cancelled():
            logger.warning("save_cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("save_task_failed", error=str(error))
            self._audit(AuditEventBuilder.system_error("save_task_failed", str(error)))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _committed(self) -> None:
        self._notify()
        self._schedule_save()

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception as e:
                logger.error("subscriber_failed", error=str(e), exc_info=True)
                self._audit(AuditEventBuilder.system_error(
                    "subscriber_failed",
                    str(e),
                    details={"callback": getattr(callback, "__qualname__", repr(callback))},
                ))

    def _check_draft(self, draft: TransactionDraft) -> Optional[DraftValidationResult]:
        """Validate a draft; None means rejected (or raises in strict mode)."""
        result = self._validator.validate(draft, self._categories)

        for warning in result.warnings:
            logger.info("draft_warning", field=warning.field, issue=warning.issue_type)

        if result.has_errors:
            issues = [issue.model_dump() for issue in result.errors]
            self._audit(AuditEventBuilder.submission_rejected(issues))
            if self._strict:
                raise ValidationError(
                    "Incomplete transaction submission",
                    issues=result.errors,
                )
            return None

        return result

    def _build(
        self,
        transaction_id: int,
        draft: TransactionDraft,
        result: DraftValidationResult,
    ) -> Transaction:
        return Transaction(
            id=transaction_id,
            type=draft.type,
            amount=result.amount,
            date=draft.date,
            category=draft.category,
            notes=draft.notes,
        )

    def _next_id(self) -> int:
        candidate = self._clock()
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def _index_of(self, transaction_id: int) -> Optional[int]:
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return index
        return None

    def _not_found(self, entity: str, identifier: str) -> None:
        self._audit(AuditEventBuilder.entity_not_found(entity, identifier))
        if self._strict:
            raise NotFoundError(entity.capitalize(), identifier)

    def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)
