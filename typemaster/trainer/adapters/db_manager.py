import os
import sqlite3

from typemaster.shared.telemetry import Telemetry, measure_time
from typemaster.trainer.domain.errors import PersistenceError


class DatabaseManager:
    """
    Responsible for:
    1. Managing the SQLite connection lifecycle.
    2. Initializing the key-value schema (DDL).
    """

    def __init__(self, db_path: str = "data/typemaster.db") -> None:
        self.db_path = db_path
        self.telemetry = Telemetry("DatabaseManager")
        self._shared_connection: sqlite3.Connection | None = None

        self._ensure_db_exists()

        # For in-memory DBs, we must keep the connection open immediately
        if self.db_path == ":memory:":
            self._shared_connection = sqlite3.connect(
                ":memory:", check_same_thread=False
            )

        self._init_schema()

    def get_connection(self) -> sqlite3.Connection:
        """Returns a usable database connection, reconnecting if necessary."""
        if self._shared_connection:
            try:
                self._shared_connection.execute("SELECT 1")
                return self._shared_connection
            except sqlite3.ProgrammingError:
                # Connection was closed externally
                self._shared_connection = None

        try:
            # Saves run off the event loop thread (asyncio.to_thread).
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            if self.db_path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            self.telemetry.log_error("Cannot open database", e, path=self.db_path)
            raise PersistenceError(f"Cannot open database {self.db_path}") from e

        self._shared_connection = conn
        return conn

    def close(self) -> None:
        if self._shared_connection:
            self._shared_connection.close()
            self._shared_connection = None

    def _ensure_db_exists(self) -> None:
        if self.db_path == ":memory:":
            return
        dir_name = os.path.dirname(self.db_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    @measure_time("db_init_schema")
    def _init_schema(self) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store
                (
                    key        TEXT PRIMARY KEY,
                    json_data  TEXT NOT NULL,
                    updated_at DATETIME
                )
                """
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error("Schema Init Failed", e)
            raise PersistenceError("Schema init failed") from e

