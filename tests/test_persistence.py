"""Tests for the PersistenceAdapter."""

import asyncio
import json
import pytest

from finance_tracker.core.exceptions import PersistenceError
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.transaction import CategorySet, LedgerState
from finance_tracker.persistence import (
    PersistenceAdapter,
    decode_categories,
    decode_transactions,
    encode_transactions,
)
from finance_tracker.services.storage import InMemoryStorage


class TestBlobCodec:
    """Tests for the blob helpers."""

    def test_transactions_blob_is_a_json_array(self, sample_transactions):
        payload = json.loads(encode_transactions(sample_transactions[:2]))
        assert payload[1] == {
            "id": 2,
            "type": "expense",
            "amount": 42.5,
            "date": "2024-01-15",
            "category": "Food",
            "notes": "lunch",
        }

    def test_malformed_transactions(self):
        with pytest.raises(PersistenceError):
            decode_transactions("not json")
        with pytest.raises(PersistenceError):
            decode_transactions('{"id": 1}')
        with pytest.raises(PersistenceError):
            decode_transactions('[{"id": 1, "type": "gift"}]')

    def test_duplicate_ids_keep_first(self, make_transaction):
        first = make_transaction(1, "income", "10", "2024-01-01", "Salary")
        second = make_transaction(1, "expense", "20", "2024-01-02", "Food")
        assert decode_transactions(encode_transactions([first, second])) == [first]

    def test_malformed_categories(self):
        with pytest.raises(PersistenceError):
            decode_categories('{"income": "Salary"}')

    def test_categories_decode(self):
        categories = decode_categories('{"income": ["Salary"], "expense": []}')
        assert categories == CategorySet(income=["Salary"], expense=[])


class TestLoad:
    """Tests for PersistenceAdapter.load."""

    def test_absent_blobs_give_defaults(self, adapter):
        state = asyncio.run(adapter.load())
        assert state.transactions == []
        assert state.categories == CategorySet()

    def test_round_trip(self, adapter, sample_transactions):
        categories = CategorySet(income=["Salary", "Freelance"], expense=["Food"])
        state = LedgerState(transactions=sample_transactions, categories=categories)

        assert asyncio.run(adapter.save(state)) is True
        loaded = asyncio.run(adapter.load())

        assert loaded.transactions == sample_transactions
        assert loaded.categories == categories

    def test_notes_survive_round_trip_unchanged(self, adapter, make_transaction):
        txn = make_transaction(1, "expense", "5", "2024-01-01", "Food", "  padded notes ")
        asyncio.run(adapter.save(LedgerState(transactions=[txn])))
        loaded = asyncio.run(adapter.load())
        assert loaded.transactions[0].notes == "  padded notes "

    def test_blobs_fall_back_independently(self, audit_logger, sample_transactions):
        """Test that a broken transactions blob doesn't discard categories."""
        storage = InMemoryStorage({
            "transactions": "[{broken",
            "categories": '{"income": ["Salary"], "expense": ["Food"]}',
        })
        adapter = PersistenceAdapter(storage, audit_logger=audit_logger)

        state = asyncio.run(adapter.load())

        assert state.transactions == []
        assert state.categories.expense == ["Food"]
        fallbacks = audit_logger.recent_events(event_type=AuditEventType.LOAD_FALLBACK)
        assert [event.entity_id for event in fallbacks] == ["transactions"]

    def test_unreadable_storage_gives_defaults(self, failing_storage, audit_logger):
        adapter = PersistenceAdapter(failing_storage, audit_logger=audit_logger)
        state = asyncio.run(adapter.load())

        assert state == LedgerState()
        assert len(audit_logger.recent_events(event_type=AuditEventType.LOAD_FALLBACK)) == 2

    def test_legacy_blob(self):
        """Test a blob written with plain numbers and empty notes."""
        storage = InMemoryStorage({
            "transactions": json.dumps([{
                "id": 1705312800000,
                "type": "expense",
                "amount": 42.5,
                "date": "2024-01-15",
                "category": "Food",
                "notes": "",
            }]),
        })
        state = asyncio.run(PersistenceAdapter(storage).load())
        assert state.transactions[0].id == 1705312800000
        assert str(state.transactions[0].amount) == "42.5"

    def test_custom_keys(self, sample_transactions):
        storage = InMemoryStorage()
        adapter = PersistenceAdapter(storage, transactions_key="txns", categories_key="cats")
        asyncio.run(adapter.save(LedgerState(transactions=sample_transactions)))
        assert set(storage.dump()) == {"txns", "cats"}


class TestSave:
    """Tests for PersistenceAdapter.save."""

    def test_all_empty_state_is_skipped(self, audit_logger):
        """Test that a blank state never overwrites stored data."""
        storage_before = {"transactions": "[]", "categories": '{"income": ["X"], "expense": []}'}
        storage = InMemoryStorage(storage_before)
        adapter = PersistenceAdapter(storage, audit_logger=audit_logger)

        empty = LedgerState(categories=CategorySet(income=[], expense=[]))
        assert asyncio.run(adapter.save(empty)) is False
        assert storage.dump() == storage_before
        assert audit_logger.recent_events(event_type=AuditEventType.SAVE_SKIPPED)

    def test_default_categories_alone_are_saved(self, storage, adapter):
        assert asyncio.run(adapter.save(LedgerState())) is True
        assert json.loads(storage.dump()["transactions"]) == []

    def test_write_failure_is_swallowed(self, failing_storage, audit_logger, sample_transactions):
        adapter = PersistenceAdapter(failing_storage, audit_logger=audit_logger)
        result = asyncio.run(adapter.save(LedgerState(transactions=sample_transactions)))

        assert result is False
        events = audit_logger.recent_events(event_type=AuditEventType.PERSISTENCE_FAILED)
        assert len(events) == 1
        assert "write failed" in events[0].error_message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
