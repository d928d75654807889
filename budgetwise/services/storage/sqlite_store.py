"""
SQLite Storage Implementation

DESIGN DECISION: A single local SQLite file is the storage backend because:
1. All data stays on the user's machine
2. No server or setup required
3. The file is trivially backed up or copied
4. It is in the standard library

TRADEOFFS:
- We only use it as a key-value store: one table per object store,
  each row an id and a JSON document
- No queries beyond "by id" and "everything" (we filter in Python)
- No multi-record transactions (last write wins)

The implementation follows the abstract interface, so the budget service
never sees SQL.
"""

import json
import sqlite3
from pathlib import Path
from typing import Optional

from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from budgetwise.config import StorageSettings, get_settings
from budgetwise.services.storage.interface import (
    STORE_NAMES,
    ConnectionError,
    DuplicateError,
    KeyValueStorageInterface,
    Record,
    StorageError,
)


IN_MEMORY_PATH = ":memory:"


def is_locked(error: BaseException) -> bool:
    """Only a locked or busy database is worth another attempt."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


class SQLiteClient:
    """
    Low-level SQLite connection wrapper.

    Handles opening the database and creating object stores. Opening,
    reading and writing are retried while the database is locked.
    """

    def __init__(self, settings: Optional[StorageSettings] = None):
        self._settings = settings or get_settings().storage
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def db_path(self) -> str:
        return self._settings.db_path

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
            retry=retry_if_exception(is_locked),
            reraise=True,
        )

    def _open(self) -> sqlite3.Connection:
        if self.db_path != IN_MEMORY_PATH:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(
            self.db_path,
            timeout=self._settings.timeout_seconds,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        return connection

    def connect(self) -> sqlite3.Connection:
        """Open the database once and reuse the connection."""
        if self._connection is None:
            try:
                self._connection = self._retrying()(self._open)
            except sqlite3.Error as e:
                raise ConnectionError(f"Failed to open database {self.db_path}: {e}")
        return self._connection

    def create_stores(self) -> None:
        """Create every object store that does not exist yet."""
        connection = self.connect()
        with connection:
            for store in STORE_NAMES:
                connection.execute(
                    f'CREATE TABLE IF NOT EXISTS "{store}" ('
                    "seq INTEGER PRIMARY KEY AUTOINCREMENT, "
                    "id TEXT NOT NULL UNIQUE, "
                    "data TEXT NOT NULL)"
                )

    def write(self, sql: str, params: tuple) -> int:
        """
        Run a single-statement write in its own transaction.

        Returns the number of affected rows.
        """
        connection = self.connect()
        for attempt in self._retrying():
            with attempt:
                with connection:
                    cursor = connection.execute(sql, params)
                    return cursor.rowcount
        return 0

    def read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        connection = self.connect()
        for attempt in self._retrying():
            with attempt:
                return connection.execute(sql, params).fetchall()
        return []

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def drop_database(self) -> None:
        """Delete the database file, or every table of an in-memory database."""
        if self.db_path == IN_MEMORY_PATH:
            connection = self.connect()
            with connection:
                for store in STORE_NAMES:
                    connection.execute(f'DROP TABLE IF EXISTS "{store}"')
            return

        self.close()
        Path(self.db_path).unlink(missing_ok=True)


class SQLiteKeyValueStorage(KeyValueStorageInterface):
    """
    SQLite implementation of the key-value store.

    Every object store is a table with one row per record.
    Records are JSON-serialized into a single column.
    """

    def __init__(self, client: Optional[SQLiteClient] = None):
        self._client = client or SQLiteClient()

    async def initialize(self) -> bool:
        """Create missing stores and seed defaults."""
        try:
            self._client.create_stores()
        except sqlite3.Error as e:
            raise ConnectionError(f"Failed to initialize database: {e}")
        return await self._seed_defaults()

    async def add(self, store: str, record: Record) -> Record:
        """Insert a record; ids must be unique within a store."""
        self._check_store(store)
        try:
            self._client.write(
                f'INSERT INTO "{store}" (id, data) VALUES (?, ?)',
                (record["id"], json.dumps(record)),
            )
            return record
        except sqlite3.IntegrityError:
            raise DuplicateError(f"Record already exists in {store}: {record['id']}")
        except (sqlite3.Error, KeyError, TypeError) as e:
            raise StorageError(f"Failed to add record to {store}: {e}")

    async def get(self, store: str, record_id: str) -> Optional[Record]:
        self._check_store(store)
        try:
            rows = self._client.read(
                f'SELECT data FROM "{store}" WHERE id = ?',
                (record_id,),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get record from {store}: {e}")

        if not rows:
            return None
        return json.loads(rows[0]["data"])

    async def get_all(self, store: str) -> list[Record]:
        self._check_store(store)
        try:
            rows = self._client.read(f'SELECT data FROM "{store}" ORDER BY seq')
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list records of {store}: {e}")
        return [json.loads(row["data"]) for row in rows]

    async def put(self, store: str, record: Record) -> Record:
        """Insert or replace a record, keeping its original position."""
        self._check_store(store)
        try:
            self._client.write(
                f'INSERT INTO "{store}" (id, data) VALUES (?, ?) '
                "ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                (record["id"], json.dumps(record)),
            )
            return record
        except (sqlite3.Error, KeyError, TypeError) as e:
            raise StorageError(f"Failed to put record into {store}: {e}")

    async def delete(self, store: str, record_id: str) -> bool:
        self._check_store(store)
        try:
            removed = self._client.write(
                f'DELETE FROM "{store}" WHERE id = ?',
                (record_id,),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete record from {store}: {e}")
        return removed > 0

    async def reset(self) -> None:
        """Delete the database and rebuild it with defaults."""
        try:
            self._client.drop_database()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Failed to delete database: {e}")
        await self.initialize()

    def close(self) -> None:
        self._client.close()
