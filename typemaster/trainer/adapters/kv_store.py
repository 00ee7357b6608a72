import copy
import json
import sqlite3
from typing import Any

from typemaster.shared.telemetry import Telemetry, measure_time
from typemaster.trainer.adapters.db_manager import DatabaseManager
from typemaster.trainer.domain.errors import PersistenceError
from typemaster.trainer.domain.ports import IKeyValueStore


class InMemoryStore(IKeyValueStore):
    """Dict-backed store. Values are deep-copied so callers never alias them."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        # Same contract as the durable store: JSON or nothing.
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class SQLiteStore(IKeyValueStore):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteStore")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    @measure_time("kv_get")
    def get(self, key: str, default: Any = None) -> Any:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT json_data FROM kv_store WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Read failed for '{key}'") from e

        if not row:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value stored under '{key}'") from e

    @measure_time("kv_set")
    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        conn = self._get_connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, json_data, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP)",
                (key, payload),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Write failed for '{key}'") from e

    def delete(self, key: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Delete failed for '{key}'") from e

    def clear(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store")
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError("Clear failed") from e
