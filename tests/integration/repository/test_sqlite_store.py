# ==============================================================================
# ARCHITECTURE: INTEGRATION TEST (PERSISTENCE)
# ------------------------------------------------------------------------------
# GOAL: Verify the SQLite key-value store against a real database file.
# CONSTRAINTS:
#   1. I/O: ALLOWED. Real SQLite, temp files only (tmp_path).
#   2. SCOPE: Adapter layer. No UI, no network.
# ==============================================================================
import os
import sqlite3
from unittest.mock import patch

import pytest

from typemaster.trainer.adapters.db_manager import DatabaseManager
from typemaster.trainer.adapters.kv_store import InMemoryStore, SQLiteStore
from typemaster.trainer.domain.errors import PersistenceError


def columns(conn):
    return [row[1] for row in conn.execute("PRAGMA table_info(kv_store)").fetchall()]


class TestDatabaseManager:
    def test_creates_file_and_parent_directories(self, tmp_path):
        db_path = str(tmp_path / "nested" / "dir" / "typemaster.db")

        db = DatabaseManager(db_path)

        assert os.path.exists(db_path)
        assert columns(db.get_connection()) == ["key", "json_data", "updated_at"]
        db.close()

    def test_memory_db_keeps_one_connection(self):
        db = DatabaseManager(":memory:")

        assert db.get_connection() is db.get_connection()
        db.close()

    def test_reconnects_after_external_close(self, tmp_path):
        db = DatabaseManager(str(tmp_path / "t.db"))
        db.get_connection().close()

        assert db.get_connection().execute("SELECT 1").fetchone() == (1,)
        db.close()

    def test_unopenable_database_raises_persistence_error(self, tmp_path):
        with patch("sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(PersistenceError):
                DatabaseManager(str(tmp_path / "t.db"))


@pytest.fixture
def sqlite_store(tmp_path):
    db = DatabaseManager(str(tmp_path / "store.db"))
    yield SQLiteStore(db)
    db.close()


class TestSQLiteStore:
    def test_missing_key_returns_default(self, sqlite_store):
        assert sqlite_store.get("nope") is None
        assert sqlite_store.get("nope", []) == []

    def test_set_replaces_whole_value(self, sqlite_store):
        sqlite_store.set("k", {"a": 1})
        sqlite_store.set("k", [1, 2, 3])

        assert sqlite_store.get("k") == [1, 2, 3]

    def test_delete_and_clear(self, sqlite_store):
        sqlite_store.set("a", 1)
        sqlite_store.set("b", 2)

        sqlite_store.delete("a")
        assert sqlite_store.get("a") is None
        assert sqlite_store.get("b") == 2

        sqlite_store.clear()
        assert sqlite_store.get("b") is None

    def test_values_survive_reopen(self, tmp_path):
        db_path = str(tmp_path / "durable.db")
        first = DatabaseManager(db_path)
        SQLiteStore(first).set("typemaster_results", [{"wpm": 50}])
        first.close()

        second = DatabaseManager(db_path)
        assert SQLiteStore(second).get("typemaster_results") == [{"wpm": 50}]
        second.close()

    def test_write_stamps_updated_at(self, sqlite_store):
        sqlite_store.set("k", "v")

        row = (
            sqlite_store.db_manager.get_connection()
            .execute("SELECT updated_at FROM kv_store WHERE key = 'k'")
            .fetchone()
        )
        assert row[0] is not None

    def test_corrupt_value_raises_persistence_error(self, sqlite_store):
        conn = sqlite_store.db_manager.get_connection()
        conn.execute("INSERT INTO kv_store (key, json_data) VALUES ('k', '{not json')")
        conn.commit()

        with pytest.raises(PersistenceError):
            sqlite_store.get("k")

    def test_unserializable_value_is_rejected_before_write(self, sqlite_store):
        with pytest.raises(TypeError):
            sqlite_store.set("k", object())
        assert sqlite_store.get("k") is None


class TestInMemoryStore:
    def test_reads_do_not_alias_stored_value(self):
        store = InMemoryStore()
        store.set("k", [1])

        store.get("k").append(2)

        assert store.get("k") == [1]

    def test_writes_do_not_alias_caller_value(self):
        store = InMemoryStore()
        value = {"a": [1]}
        store.set("k", value)

        value["a"].append(2)

        assert store.get("k") == {"a": [1]}
