"""Tests for the LedgerStore."""

import asyncio
import json
import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.core.exceptions import NotFoundError, ValidationError
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.transaction import (
    CategorySet,
    LedgerState,
    TransactionDraft,
    TransactionType,
)
from finance_tracker.persistence import PersistenceAdapter
from finance_tracker.store import LedgerStore


def frozen_clock(value: int = 1_700_000_000_000):
    """A clock that never advances, to force id collisions."""
    return lambda: value


def expense(amount="42.5", category="Food", **kwargs) -> TransactionDraft:
    return TransactionDraft(type="expense", amount=amount, category=category, **kwargs)


@pytest.fixture
def store(audit_logger):
    return LedgerStore(audit_logger=audit_logger)


class TestAddTransaction:
    """Tests for add_transaction."""

    def test_add_appends(self, store):
        """Test that a complete draft becomes a transaction."""
        txn = store.add_transaction(expense(date=date(2024, 1, 15), notes="lunch"))
        assert txn is not None
        assert store.transactions == [txn]
        assert txn.amount == Decimal("42.5")
        assert txn.type == TransactionType.EXPENSE
        assert txn.notes == "lunch"

    def test_empty_amount_is_ignored(self, store, audit_logger):
        """Test that an incomplete submission leaves the ledger unchanged."""
        assert store.add_transaction(expense(amount="")) is None
        assert store.transactions == []

        rejected = audit_logger.recent_events(event_type=AuditEventType.SUBMISSION_REJECTED)
        assert len(rejected) == 1

    def test_empty_category_is_ignored(self, store):
        assert store.add_transaction(expense(category="")) is None
        assert store.transactions == []

    def test_category_of_other_type_is_rejected(self, store, audit_logger):
        """Test that an income draft can't use an expense-only category."""
        draft = TransactionDraft(type="income", amount="5", category="Food")
        assert store.add_transaction(draft) is None
        assert store.transactions == []

        rejected = audit_logger.recent_events(event_type=AuditEventType.SUBMISSION_REJECTED)
        assert rejected[0].details["issues"][0]["issue_type"] == "unknown_category"

    def test_deleted_category_is_rejected_for_new_drafts(self, store):
        store.delete_category("expense", "Food")
        assert store.add_transaction(expense(category="Food")) is None

    def test_long_category_name(self, store):
        """Test that any name accepted as a category can be used."""
        name = "x" * 201
        assert store.add_category("expense", name) is True
        txn = store.add_transaction(expense(category=name))
        assert txn is not None
        assert txn.category == name

    def test_notes_kept_exactly(self, store):
        txn = store.add_transaction(expense(category="  Food ", notes="  two spaces  "))
        assert txn.category == "Food"
        assert txn.notes == "  two spaces  "

    def test_ids_unique_with_frozen_clock(self, audit_logger):
        """Test that ids stay unique and increasing within one millisecond."""
        store = LedgerStore(clock=frozen_clock(), audit_logger=audit_logger)
        ids = [store.add_transaction(expense()).id for _ in range(5)]
        assert len(set(ids)) == 5
        assert ids == sorted(ids)
        assert ids[0] == 1_700_000_000_000

    def test_ids_never_reuse_loaded_ids(self, make_transaction):
        """Test that new ids are above those already in the ledger."""
        existing = make_transaction(2_000_000_000_000, "income", "1", "2024-01-01", "Salary")
        store = LedgerStore(LedgerState(transactions=[existing]), clock=frozen_clock())
        assert store.add_transaction(expense()).id == 2_000_000_000_001

    def test_ids_use_the_clock(self):
        store = LedgerStore(clock=frozen_clock(1234))
        assert store.add_transaction(expense()).id == 1234


class TestUpdateTransaction:
    """Tests for update_transaction."""

    def test_update_replaces_in_place(self, store):
        """Test that the id and list position are kept."""
        first = store.add_transaction(expense(amount="1"))
        second = store.add_transaction(expense(amount="2"))

        updated = store.update_transaction(
            first.id,
            TransactionDraft(type="income", amount="100", category="Salary"),
        )

        assert updated.id == first.id
        assert [txn.id for txn in store.transactions] == [first.id, second.id]
        assert store.get_transaction(first.id).type == TransactionType.INCOME
        assert store.get_transaction(first.id).amount == Decimal("100")

    def test_update_unknown_id_is_noop(self, store, audit_logger):
        store.add_transaction(expense())
        before = store.transactions

        assert store.update_transaction(999, expense(amount="1")) is None
        assert store.transactions == before
        assert audit_logger.recent_events(event_type=AuditEventType.ENTITY_NOT_FOUND)

    def test_incomplete_update_is_noop(self, store):
        txn = store.add_transaction(expense())
        assert store.update_transaction(txn.id, expense(amount="")) is None
        assert store.get_transaction(txn.id) == txn


class TestDeleteTransaction:
    """Tests for delete_transaction."""

    def test_delete(self, store):
        txn = store.add_transaction(expense())
        assert store.delete_transaction(txn.id) is True
        assert store.transactions == []

    def test_delete_unknown_id(self, store):
        store.add_transaction(expense())
        assert store.delete_transaction(12345) is False
        assert len(store.transactions) == 1


class TestCategories:
    """Tests for add_category / delete_category."""

    def test_add_category_trims(self, store):
        assert store.add_category("income", "  Gifts  ") is True
        assert store.categories.income[-1] == "Gifts"

    def test_blank_category_rejected(self, store):
        before = store.categories
        assert store.add_category("expense", "   ") is False
        assert store.categories == before

    def test_duplicates_allowed_by_default(self, store):
        """Test that the same name can be added twice without dedupe."""
        store.add_category("expense", "Food")
        assert store.categories.expense.count("Food") == 2

    def test_dedupe_ignores_duplicates(self):
        store = LedgerStore(dedupe_categories=True)
        assert store.add_category("expense", "Food") is False
        assert store.categories.expense.count("Food") == 1

    def test_delete_category_orphans_transactions(self, store):
        """Test that transactions keep a deleted category."""
        txn = store.add_transaction(expense(category="Food"))
        assert store.delete_category("expense", "Food") is True

        assert "Food" not in store.categories.expense
        assert store.get_transaction(txn.id).category == "Food"

    def test_delete_category_removes_first_match_only(self, store):
        store.add_category("expense", "Food")
        store.delete_category("expense", "Food")
        assert store.categories.expense.count("Food") == 1

    def test_delete_category_only_touches_its_type(self, store):
        """Test that 'Other' under income survives deleting expense 'Other'."""
        store.delete_category(TransactionType.EXPENSE, "Other")
        assert "Other" in store.categories.income
        assert "Other" not in store.categories.expense

    def test_delete_unknown_category(self, store):
        assert store.delete_category("income", "Lottery") is False

    def test_categories_returns_copy(self, store):
        store.categories.income.append("Hacked")
        assert "Hacked" not in store.categories.income


class TestStrictMode:
    """Tests for strict=True."""

    @pytest.fixture
    def strict_store(self):
        return LedgerStore(strict=True)

    def test_incomplete_add_raises(self, strict_store):
        with pytest.raises(ValidationError) as exc_info:
            strict_store.add_transaction(expense(amount="", category=""))
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert {issue.field for issue in exc_info.value.issues} == {"amount", "category"}
        assert strict_store.transactions == []

    def test_category_of_other_type_raises(self, strict_store):
        with pytest.raises(ValidationError) as exc_info:
            strict_store.add_transaction(
                TransactionDraft(type="income", amount="5", category="Food")
            )
        assert [issue.issue_type for issue in exc_info.value.issues] == ["unknown_category"]

    def test_unknown_id_raises(self, strict_store):
        with pytest.raises(NotFoundError):
            strict_store.update_transaction(1, expense())
        with pytest.raises(NotFoundError):
            strict_store.delete_transaction(1)

    def test_incomplete_update_checked_before_lookup(self, strict_store):
        """Test that an incomplete draft is reported even for an unknown id."""
        with pytest.raises(ValidationError):
            strict_store.update_transaction(1, expense(amount=""))

    def test_category_errors_raise(self, strict_store):
        with pytest.raises(ValidationError):
            strict_store.add_category("income", "")
        with pytest.raises(NotFoundError) as exc_info:
            strict_store.delete_category("income", "Lottery")
        assert exc_info.value.identifier == "income/Lottery"


class TestSubscribers:
    """Tests for change notification."""

    def test_notified_on_success_only(self, store):
        calls = []
        store.subscribe(lambda s: calls.append(len(s.transactions)))

        txn = store.add_transaction(expense())
        store.add_transaction(expense(amount=""))
        store.delete_transaction(999)
        store.delete_transaction(txn.id)

        assert calls == [1, 0]

    def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(lambda s: calls.append(1))
        store.add_category("income", "Gifts")
        unsubscribe()
        unsubscribe()
        store.add_category("income", "Prizes")
        assert calls == [1]

    def test_failing_subscriber_does_not_block_mutation(self, store, audit_logger):
        def broken(_):
            raise RuntimeError("render failed")

        seen = []
        store.subscribe(broken)
        store.subscribe(lambda s: seen.append(True))

        assert store.add_transaction(expense()) is not None
        assert seen == [True]

        errors = audit_logger.recent_events(event_type=AuditEventType.SYSTEM_ERROR)
        assert errors[0].error_message == "render failed"
        assert errors[0].details["callback"].endswith("broken")


class TestPersistenceScheduling:
    """Tests for the fire-and-forget saves."""

    def test_mutation_schedules_save(self, storage, adapter):
        """Test that a mutation inside a running loop is saved."""
        async def scenario():
            store = LedgerStore(persistence=adapter)
            store.add_transaction(expense(notes="lunch"))
            assert store.pending_saves == 1
            await store.flush()
            assert store.pending_saves == 0

        asyncio.run(scenario())

        saved = json.loads(storage.dump()["transactions"])
        assert len(saved) == 1
        assert saved[0]["notes"] == "lunch"
        assert saved[0]["amount"] == 42.5
        assert "categories" in storage.dump()

    def test_rejected_mutation_does_not_save(self, storage, adapter):
        async def scenario():
            store = LedgerStore(persistence=adapter)
            store.add_transaction(expense(amount=""))
            store.delete_transaction(1)
            assert store.pending_saves == 0
            await store.flush()

        asyncio.run(scenario())
        assert storage.dump() == {}

    def test_save_without_loop_is_deferred(self, storage, adapter):
        """Test that mutations before any loop runs are written by flush()."""
        store = LedgerStore(persistence=adapter)
        store.add_transaction(expense(amount="1"))
        store.add_transaction(expense(amount="2"))
        assert store.pending_saves == 0
        assert storage.dump() == {}

        asyncio.run(store.flush())

        saved = json.loads(storage.dump()["transactions"])
        assert [entry["amount"] for entry in saved] == [1, 2]

    def test_save_failure_keeps_memory_state(self, failing_storage, audit_logger):
        """Test that a failing gateway doesn't undo the mutation."""
        adapter = PersistenceAdapter(failing_storage, audit_logger=audit_logger)

        async def scenario():
            store = LedgerStore(persistence=adapter, audit_logger=audit_logger)
            store.add_transaction(expense())
            await store.flush()
            return store

        store = asyncio.run(scenario())
        assert len(store.transactions) == 1
        assert failing_storage.set_calls == 1
        assert audit_logger.recent_events(event_type=AuditEventType.PERSISTENCE_FAILED)

    def test_all_empty_state_not_saved(self, storage, adapter):
        """Test that deleting every category from a blank ledger skips the save."""
        async def scenario():
            store = LedgerStore(
                LedgerState(categories=CategorySet(income=["Salary"], expense=[])),
                persistence=adapter,
            )
            store.delete_category("income", "Salary")
            await store.flush()

        asyncio.run(scenario())
        assert storage.dump() == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
