"""
Tests for the key-value storage backends and the audit log store.

Every test in TestKeyValueStorage runs against both the in-memory store
and a SQLite file.
"""

import asyncio
import sqlite3

import pytest

from budgetwise.config import StorageSettings
from budgetwise.models import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_CATEGORIES,
    AuditEventBuilder,
)
from budgetwise.services.storage import (
    ACCOUNTS,
    AUDIT_LOG,
    CATEGORIES,
    LIMITS,
    STORE_NAMES,
    TRANSACTIONS,
    DuplicateError,
    InMemoryKeyValueStorage,
    KeyValueAuditStorage,
    SQLiteClient,
    SQLiteKeyValueStorage,
    StorageError,
)
from budgetwise.services.storage.sqlite_store import is_locked


def record(record_id: str, **fields) -> dict:
    return {"id": record_id, "account_id": DEFAULT_ACCOUNT_ID, **fields}


class TestKeyValueStorage:
    """Behaviour shared by every backend."""

    def test_initialize_seeds_defaults_once(self, storage):
        assert asyncio.run(storage.initialize()) is True
        assert asyncio.run(storage.initialize()) is False

        accounts = asyncio.run(storage.get_all(ACCOUNTS))
        categories = asyncio.run(storage.get_all(CATEGORIES))
        assert [a["id"] for a in accounts] == [DEFAULT_ACCOUNT_ID]
        assert len(categories) == len(DEFAULT_CATEGORIES)

    def test_initialize_creates_every_store(self, storage):
        asyncio.run(storage.initialize())
        for store in STORE_NAMES:
            assert isinstance(asyncio.run(storage.get_all(store)), list)

    def test_add_and_get(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(LIMITS, record("l-1", amount="100.00")))

        assert asyncio.run(storage.get(LIMITS, "l-1")) == record("l-1", amount="100.00")

    def test_get_missing_returns_none(self, storage):
        asyncio.run(storage.initialize())
        assert asyncio.run(storage.get(LIMITS, "nope")) is None

    def test_add_duplicate_raises(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(LIMITS, record("l-1")))

        with pytest.raises(DuplicateError):
            asyncio.run(storage.add(LIMITS, record("l-1")))

    def test_get_all_keeps_insertion_order(self, storage):
        asyncio.run(storage.initialize())
        for record_id in ("c", "a", "b"):
            asyncio.run(storage.add(TRANSACTIONS, record(record_id)))

        ids = [r["id"] for r in asyncio.run(storage.get_all(TRANSACTIONS))]
        assert ids == ["c", "a", "b"]

    def test_put_replaces_in_place(self, storage):
        """Last write wins and the record keeps its position."""
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(TRANSACTIONS, record("a", title="old")))
        asyncio.run(storage.add(TRANSACTIONS, record("b")))
        asyncio.run(storage.put(TRANSACTIONS, record("a", title="new")))

        records = asyncio.run(storage.get_all(TRANSACTIONS))
        assert [r["id"] for r in records] == ["a", "b"]
        assert records[0]["title"] == "new"

    def test_put_inserts_missing_record(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.put(LIMITS, record("l-9")))
        assert asyncio.run(storage.get(LIMITS, "l-9")) is not None

    def test_delete(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(LIMITS, record("l-1")))

        assert asyncio.run(storage.delete(LIMITS, "l-1")) is True
        assert asyncio.run(storage.get(LIMITS, "l-1")) is None

    def test_delete_missing_is_not_an_error(self, storage):
        asyncio.run(storage.initialize())
        assert asyncio.run(storage.delete(LIMITS, "nope")) is False

    def test_unknown_store_raises(self, storage):
        asyncio.run(storage.initialize())
        with pytest.raises(StorageError):
            asyncio.run(storage.get_all("no_such_store"))
        with pytest.raises(StorageError):
            asyncio.run(storage.add("no_such_store", record("x")))

    def test_reset_restores_defaults(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(TRANSACTIONS, record("t-1")))
        asyncio.run(storage.add(ACCOUNTS, {"id": "second", "name": "Second"}))

        asyncio.run(storage.reset())

        assert asyncio.run(storage.get_all(TRANSACTIONS)) == []
        accounts = asyncio.run(storage.get_all(ACCOUNTS))
        assert [a["id"] for a in accounts] == [DEFAULT_ACCOUNT_ID]
        assert len(asyncio.run(storage.get_all(CATEGORIES))) == len(DEFAULT_CATEGORIES)


class TestInMemoryStorage:
    """Tests specific to the in-memory backend."""

    def test_records_are_copied(self):
        storage = InMemoryKeyValueStorage()
        asyncio.run(storage.initialize())
        original = record("t-1", title="Lunch")
        asyncio.run(storage.add(TRANSACTIONS, original))

        original["title"] = "changed"
        fetched = asyncio.run(storage.get(TRANSACTIONS, "t-1"))
        fetched["title"] = "changed again"

        assert asyncio.run(storage.get(TRANSACTIONS, "t-1"))["title"] == "Lunch"

    def test_uninitialized_store_raises(self):
        storage = InMemoryKeyValueStorage()
        with pytest.raises(StorageError):
            asyncio.run(storage.get_all(TRANSACTIONS))


class TestSQLiteStorage:
    """Tests specific to the SQLite backend."""

    def test_data_survives_reopening(self, sqlite_settings):
        first = SQLiteKeyValueStorage(SQLiteClient(sqlite_settings))
        asyncio.run(first.initialize())
        asyncio.run(first.add(TRANSACTIONS, record("t-1", title="Rent")))
        first.close()

        second = SQLiteKeyValueStorage(SQLiteClient(sqlite_settings))
        assert asyncio.run(second.initialize()) is False
        assert asyncio.run(second.get(TRANSACTIONS, "t-1"))["title"] == "Rent"
        second.close()

    def test_reset_recreates_the_database(self, sqlite_settings, tmp_path):
        storage = SQLiteKeyValueStorage(SQLiteClient(sqlite_settings))
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(TRANSACTIONS, record("t-1")))

        asyncio.run(storage.reset())

        assert (tmp_path / "budgetwise.db").exists()
        assert asyncio.run(storage.get_all(TRANSACTIONS)) == []
        storage.close()

    def test_creates_missing_parent_directory(self, tmp_path):
        settings = StorageSettings(db_path=str(tmp_path / "nested" / "dir" / "data.db"))
        storage = SQLiteKeyValueStorage(SQLiteClient(settings))
        asyncio.run(storage.initialize())

        assert (tmp_path / "nested" / "dir" / "data.db").exists()
        storage.close()


class FlakyConnection:
    """Wraps a real connection and fails the first few statements."""

    def __init__(self, connection, failures, message="database is locked"):
        self._connection = connection
        self.failures = failures
        self.message = message
        self.calls = 0

    def __enter__(self):
        self._connection.__enter__()
        return self

    def __exit__(self, *exc_info):
        return self._connection.__exit__(*exc_info)

    def execute(self, sql, params=()):
        self.calls += 1
        if self.calls <= self.failures:
            raise sqlite3.OperationalError(self.message)
        return self._connection.execute(sql, params)

    def close(self):
        self._connection.close()


class TestSQLiteRetries:
    """Tests for retrying a locked database."""

    def make_client(self, tmp_path, failures, message="database is locked"):
        settings = StorageSettings(db_path=str(tmp_path / "budgetwise.db"), retry_attempts=3)
        client = SQLiteClient(settings)
        client.create_stores()
        flaky = FlakyConnection(client.connect(), failures, message)
        client._connection = flaky
        return client, flaky

    def test_is_locked(self):
        assert is_locked(sqlite3.OperationalError("database is locked"))
        assert is_locked(sqlite3.OperationalError("database table is locked"))
        assert is_locked(sqlite3.OperationalError("SQLITE_BUSY"))
        assert not is_locked(sqlite3.OperationalError("no such table: bills"))
        assert not is_locked(sqlite3.IntegrityError("UNIQUE constraint failed"))

    def test_write_succeeds_after_locked_attempts(self, tmp_path):
        client, flaky = self.make_client(tmp_path, failures=2)

        rowcount = client.write(
            f'INSERT INTO "{LIMITS}" (id, data) VALUES (?, ?)',
            ("l-1", "{}"),
        )

        assert rowcount == 1
        assert flaky.calls == 3
        assert len(client.read(f'SELECT id FROM "{LIMITS}"')) == 1
        client.close()

    def test_write_gives_up_after_retry_attempts(self, tmp_path):
        client, flaky = self.make_client(tmp_path, failures=10)

        with pytest.raises(sqlite3.OperationalError, match="locked"):
            client.write(
                f'INSERT INTO "{LIMITS}" (id, data) VALUES (?, ?)',
                ("l-1", "{}"),
            )

        assert flaky.calls == 3
        client.close()

    def test_locked_write_surfaces_as_storage_error(self, tmp_path):
        client, _ = self.make_client(tmp_path, failures=10)
        storage = SQLiteKeyValueStorage(client)

        with pytest.raises(StorageError):
            asyncio.run(storage.add(LIMITS, record("l-1")))
        storage.close()

    def test_other_operational_errors_are_not_retried(self, tmp_path):
        client, flaky = self.make_client(tmp_path, failures=10, message="no such table: bills")

        with pytest.raises(sqlite3.OperationalError, match="no such table"):
            client.write('DELETE FROM "bills" WHERE id = ?', ("x",))

        assert flaky.calls == 1
        client.close()

    def test_read_is_retried(self, tmp_path):
        client, flaky = self.make_client(tmp_path, failures=1)

        assert client.read(f'SELECT id FROM "{LIMITS}"') == []
        assert flaky.calls == 2
        client.close()


class TestAuditStorage:
    """Tests for the audit log on top of the key-value store."""

    def test_events_by_account(self, storage):
        asyncio.run(storage.initialize())
        audit = KeyValueAuditStorage(storage)

        asyncio.run(audit.append_event(AuditEventBuilder.record_added("limit", "l-1", "a")))
        asyncio.run(audit.append_event(AuditEventBuilder.record_added("limit", "l-2", "b")))
        asyncio.run(audit.append_event(AuditEventBuilder.record_deleted("limit", "l-1", "a")))

        events = asyncio.run(audit.get_events_by_account("a"))
        assert [e.entity_id for e in events] == ["l-1", "l-1"]
        assert len(asyncio.run(storage.get_all(AUDIT_LOG))) == 3

    def test_events_by_entity(self, storage):
        asyncio.run(storage.initialize())
        audit = KeyValueAuditStorage(storage)

        asyncio.run(audit.append_event(AuditEventBuilder.record_added("limit", "l-1", "a")))
        asyncio.run(audit.append_event(AuditEventBuilder.record_added("template", "l-1", "a")))

        events = asyncio.run(audit.get_events_by_entity("limit", "l-1"))
        assert len(events) == 1

    def test_recent_events_newest_first(self, storage):
        asyncio.run(storage.initialize())
        audit = KeyValueAuditStorage(storage)
        for i in range(5):
            asyncio.run(audit.append_event(AuditEventBuilder.record_added("limit", f"l-{i}", "a")))

        recent = asyncio.run(audit.get_recent_events(limit=2))
        assert len(recent) == 2
        assert recent[0].timestamp >= recent[1].timestamp

    def test_malformed_record_raises(self, storage):
        asyncio.run(storage.initialize())
        asyncio.run(storage.add(AUDIT_LOG, {"id": "broken"}))

        with pytest.raises(StorageError):
            asyncio.run(KeyValueAuditStorage(storage).get_recent_events())
