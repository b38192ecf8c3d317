"""
Main Orchestrator for Finance Tracker

This module ties together all the components and exposes the surface
the presentation layer uses:
1. Lifecycle (open -> load from storage, close -> flush pending saves)
2. Mutations (forwarded to the LedgerStore)
3. View state (type filter, category filter, sort order)
4. Derived views (one DashboardSnapshot per render)
5. CSV export of the displayed list

DESIGN DECISION: The orchestrator owns view state, the store owns data.
Filter and sort settings are not persisted and never trigger a save.
"""

from datetime import date
from typing import Callable, Optional, Union

import structlog

from finance_tracker.audit import AuditLogger, configure_logging
from finance_tracker.config import AppSettings, Settings, StorageSettings, get_settings
from finance_tracker.core.exceptions import LedgerError
from finance_tracker.export import build_export
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.transaction import (
    ALL_CATEGORIES,
    CsvExport,
    DashboardSnapshot,
    FilterType,
    SortOrder,
    Transaction,
    TransactionDraft,
    TransactionType,
    ViewQuery,
)
from finance_tracker.persistence import PersistenceAdapter
from finance_tracker.queries import (
    available_categories,
    category_summary,
    compute_totals,
    filter_and_sort,
    format_signed_amount,
    monthly_summary,
)
from finance_tracker.services.storage import (
    FileStorage,
    InMemoryStorage,
    KeyValueStorageInterface,
)
from finance_tracker.store import LedgerStore
from finance_tracker.validation import TransactionDraftValidator

logger = structlog.get_logger(__name__)

DraftInput = Union[TransactionDraft, dict]


class FinanceTracker:
    """
    Application facade over one ledger.

    Usage:
        tracker = create_app_components()
        async with tracker:
            tracker.add_transaction({"amount": "42.5", "category": "Food"})
            view = tracker.snapshot()
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        validator: Optional[TransactionDraftValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._persistence = persistence
        self._validator = validator or TransactionDraftValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings().app
        self._store: Optional[LedgerStore] = None
        self._query = ViewQuery()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> LedgerStore:
        """Load saved state and build the store. Safe to call once per session."""
        if self._store is not None:
            return self._store

        state = await self._persistence.load()
        self._store = LedgerStore(
            state,
            persistence=self._persistence,
            validator=self._validator,
            audit_logger=self._audit_logger,
            strict=self._settings.strict_mutations,
            dedupe_categories=self._settings.dedupe_categories,
        )
        logger.info(
            "ledger_opened",
            transactions=len(state.transactions),
            environment=self._settings.app_environment,
            strict=self._settings.strict_mutations,
        )
        return self._store

    async def close(self) -> None:
        """Wait for outstanding saves."""
        if self._store is not None:
            await self._store.flush()

    async def __aenter__(self) -> "FinanceTracker":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def store(self) -> LedgerStore:
        if self._store is None:
            raise LedgerError("Ledger is not open; await open() first", code="NOT_OPEN")
        return self._store

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def query(self) -> ViewQuery:
        return self._query.model_copy()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: DraftInput) -> Optional[Transaction]:
        return self.store.add_transaction(self._draft(draft))

    def update_transaction(
        self,
        transaction_id: int,
        draft: DraftInput,
    ) -> Optional[Transaction]:
        return self.store.update_transaction(transaction_id, self._draft(draft))

    def delete_transaction(self, transaction_id: int) -> bool:
        return self.store.delete_transaction(transaction_id)

    def add_category(self, type_: Union[TransactionType, str], name: str) -> bool:
        return self.store.add_category(type_, name)

    def delete_category(self, type_: Union[TransactionType, str], name: str) -> bool:
        return self.store.delete_category(type_, name)

    def edit_draft(self, transaction_id: int) -> Optional[TransactionDraft]:
        """Form contents for editing a transaction, or None if it's gone."""
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            return None
        return TransactionDraft.from_transaction(transaction)

    def subscribe(self, callback: Callable[[LedgerStore], None]) -> Callable[[], None]:
        return self.store.subscribe(callback)

    # -------------------------------------------------------------------------
    # View state
    # -------------------------------------------------------------------------

    def set_filter_type(self, filter_type: Union[FilterType, str]) -> ViewQuery:
        """
        Change the type filter.

        A category filter that isn't offered under the new type falls
        back to 'all', so the list never silently shows nothing.
        """
        filter_type = FilterType(filter_type)
        category = self._query.filter_category
        if category != ALL_CATEGORIES:
            choices = available_categories(self.store.categories, filter_type)
            if category not in choices:
                category = ALL_CATEGORIES
        self._query = ViewQuery(
            filter_type=filter_type,
            filter_category=category,
            sort_by=self._query.sort_by,
        )
        return self.query

    def set_filter_category(self, category: str) -> ViewQuery:
        self._query = self._query.model_copy(
            update={"filter_category": category or ALL_CATEGORIES}
        )
        return self.query

    def set_sort(self, sort_by: Union[SortOrder, str]) -> ViewQuery:
        self._query = self._query.model_copy(update={"sort_by": SortOrder(sort_by)})
        return self.query

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def displayed_transactions(self) -> list[Transaction]:
        return filter_and_sort(self.store.transactions, self._query)

    def snapshot(self) -> DashboardSnapshot:
        """Every derived view for one render, from the current state."""
        transactions = self.store.transactions
        return DashboardSnapshot(
            totals=compute_totals(transactions),
            transactions=filter_and_sort(transactions, self._query),
            monthly=monthly_summary(transactions),
            by_category=category_summary(transactions),
            available_categories=available_categories(
                self.store.categories,
                self._query.filter_type,
            ),
            query=self.query,
            has_transactions=bool(transactions),
        )

    def display_amount(self, transaction: Transaction) -> str:
        """Signed amount with the configured currency symbol."""
        return format_signed_amount(transaction, self._settings.currency_symbol)

    def export_csv(self, on: Optional[date] = None) -> CsvExport:
        """CSV of the displayed (filtered and sorted) list."""
        transactions = self.displayed_transactions()
        export = build_export(
            transactions,
            on=on,
            prefix=self._settings.export_filename_prefix,
            escape_quotes=self._settings.csv_escape_quotes,
        )
        self._audit_logger.log(
            AuditEventBuilder.csv_exported(export.filename, len(transactions))
        )
        return export

    @staticmethod
    def _draft(draft: DraftInput) -> TransactionDraft:
        if isinstance(draft, TransactionDraft):
            return draft
        return TransactionDraft.model_validate(draft)


def create_storage(storage_settings: StorageSettings) -> KeyValueStorageInterface:
    """Build the configured storage gateway."""
    if storage_settings.backend == "memory":
        return InMemoryStorage()
    return FileStorage(storage_settings.directory)


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorageInterface] = None,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to get_settings().
        storage: Storage gateway to use instead of the configured one.
                 Pass InMemoryStorage() for tests.

    Returns:
        An unopened FinanceTracker; await open() before use.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    if storage is None:
        storage = create_storage(storage_settings)

    audit_logger = AuditLogger(history_size=app_settings.audit_history_size)
    persistence = PersistenceAdapter(
        storage,
        audit_logger=audit_logger,
        transactions_key=storage_settings.transactions_key,
        categories_key=storage_settings.categories_key,
    )

    return FinanceTracker(
        persistence=persistence,
        validator=TransactionDraftValidator(),
        audit_logger=audit_logger,
        settings=app_settings,
    )
