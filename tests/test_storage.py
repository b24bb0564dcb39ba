"""
Tests for the key-value backends and the audit log slot.
"""

import json
from uuid import uuid4

import pytest

from petty_cash.errors import PersistenceError
from petty_cash.models import AuditEventBuilder, AuditEventType
from petty_cash.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueAuditStorage,
    StorageWriteError,
    create_storage,
)


class TestJsonFileStorage:
    """Tests for the file-backed key-value store."""

    def test_missing_key_returns_none(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")
        assert storage.get("cajachica_expenses") is None

    def test_set_then_get(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")
        storage.set("cajachica_expenses", '[{"id": "1"}]')

        assert storage.get("cajachica_expenses") == '[{"id": "1"}]'
        assert (tmp_path / "data" / "cajachica_expenses.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that the atomic replace cleans up after itself."""
        storage = JsonFileStorage(tmp_path)
        storage.set("k", "[1]")
        storage.set("k", "[1, 2]")

        assert storage.get("k") == "[1, 2]"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_unicode_round_trip(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set("k", json.dumps({"area": "Administración"}, ensure_ascii=False))
        assert json.loads(storage.get("k")) == {"area": "Administración"}

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", "a\\b", ".."])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        storage = JsonFileStorage(tmp_path)
        with pytest.raises(ValueError):
            storage.get(key)

    def test_delete(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set("k", "[]")
        assert storage.delete("k") is True
        assert storage.delete("k") is False
        assert storage.get("k") is None

    def test_write_failure_raises_storage_write_error(self, tmp_path):
        """Test that OS errors surface as a PersistenceError subtype."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        storage = JsonFileStorage(blocker)

        with pytest.raises(StorageWriteError) as exc_info:
            storage.set("k", "[]")
        assert isinstance(exc_info.value, PersistenceError)


class TestInMemoryStorage:
    """Tests for the dict-backed store."""

    def test_initial_values(self):
        storage = InMemoryStorage({"k": "v"})
        assert storage.get("k") == "v"
        assert "k" in storage
        assert storage.get("missing") is None

    def test_delete(self):
        storage = InMemoryStorage({"k": "v"})
        assert storage.delete("k") is True
        assert storage.delete("k") is False


class TestCreateStorage:
    """Tests for the backend factory."""

    def test_builds_named_backend(self, tmp_path):
        assert isinstance(create_storage("memory", tmp_path), InMemoryStorage)
        file_storage = create_storage("file", tmp_path)
        assert isinstance(file_storage, JsonFileStorage)
        assert file_storage.data_dir == tmp_path

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage("sheets", tmp_path)


class TestKeyValueAuditStorage:
    """Tests for the audit log slot."""

    def test_append_and_query_by_entity(self):
        audit = KeyValueAuditStorage(InMemoryStorage())
        assert audit.append_event(AuditEventBuilder.expense_approved("1", "Admin User"))
        assert audit.append_event(AuditEventBuilder.expense_rejected("2", "Admin User"))

        events = audit.get_events_by_entity("expense", "1")
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.EXPENSE_APPROVED

    def test_query_by_correlation_id(self):
        audit = KeyValueAuditStorage(InMemoryStorage())
        correlation_id = uuid4()
        audit.append_event(AuditEventBuilder.expense_approved("1", "A", correlation_id))
        audit.append_event(AuditEventBuilder.expense_approved("2", "A"))

        events = audit.get_events_by_correlation_id(correlation_id)
        assert [e.entity_id for e in events] == ["1"]

    def test_recent_events_newest_first(self):
        audit = KeyValueAuditStorage(InMemoryStorage())
        for expense_id in ("1", "2", "3"):
            audit.append_event(AuditEventBuilder.expense_approved(expense_id, "A"))

        recent = audit.get_recent_events(limit=2)
        assert len(recent) == 2
        assert recent[0].timestamp >= recent[1].timestamp

    def test_max_events_drops_oldest(self):
        audit = KeyValueAuditStorage(InMemoryStorage(), max_events=2)
        for expense_id in ("1", "2", "3"):
            audit.append_event(AuditEventBuilder.expense_approved(expense_id, "A"))

        assert audit.get_events_by_entity("expense", "1") == []
        assert len(audit.get_recent_events()) == 2

    def test_unreadable_slot_does_not_raise_on_append(self):
        """Test that audit failures never break the main flow."""
        audit = KeyValueAuditStorage(InMemoryStorage({"cajachica_audit": "{broken"}))
        assert audit.append_event(AuditEventBuilder.store_seeded(5)) is False

    def test_uses_configured_key(self):
        storage = InMemoryStorage()
        KeyValueAuditStorage(storage, key="other_audit").append_event(
            AuditEventBuilder.store_seeded(5)
        )
        assert "other_audit" in storage
        assert "cajachica_audit" not in storage


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
