"""Key-value stores backing subscriptions, cache entries and preferences.

Two backends share one contract:
- MemoryKeyValueStore: process-local dict, values deep-copied on the way in
  and out so callers never alias stored state.
- SQLiteKeyValueStore: single ``kv`` table, values stored as JSON text.

Backend failures surface as ``StorageError``. A stored value that cannot be
decoded is logged and reported as absent.
"""
import copy
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from ..errors import StorageError

logger = logger.bind(module="conftrack.storage")

# ============== SQL Schema ==============

_INIT_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key           TEXT PRIMARY KEY,
    value         TEXT NOT NULL,
    updated_at_ms INTEGER NOT NULL
);
"""


class MemoryKeyValueStore:
    """In-memory store, mainly for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        pass

    def snapshot(self) -> dict[str, Any]:
        """Copy of everything currently stored."""
        return copy.deepcopy(self._data)


class SQLiteKeyValueStore:
    """SQLite-backed store.

    Thread-safety: SQLite handles its own locking; the engine runs on a
    single event loop so one shared connection is enough.
    """

    def __init__(self, db_path: str | Path):
        """Initialize store.

        Args:
            db_path: Path of the SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self._db: sqlite3.Connection | None = None

    # ============== Lifecycle ==============

    async def initialize(self) -> None:
        """Open the database and create the schema if needed."""
        if self._db is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._db.execute("PRAGMA journal_mode=WAL")
            self._db.execute("PRAGMA synchronous=NORMAL")
            self._db.executescript(_INIT_SQL)
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Failed to open key-value store {self.db_path}: {e}") from e
        logger.info(f"Key-value store ready at {self.db_path}")

    async def close(self) -> None:
        """Close store."""
        if self._db:
            self._db.close()
            self._db = None

    async def _conn(self) -> sqlite3.Connection:
        if self._db is None:
            await self.initialize()
        assert self._db is not None
        return self._db

    # ============== Key-value API ==============

    async def get(self, key: str) -> Any:
        db = await self._conn()
        try:
            row = db.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key {key!r}: {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError as e:
            logger.warning(f"Ignoring undecodable value for key {key!r}: {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for key {key!r} is not JSON-serializable: {e}") from e

        db = await self._conn()
        now_ms = int(datetime.now().timestamp() * 1000)
        try:
            db.execute(
                """INSERT INTO kv (key, value, updated_at_ms) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at_ms=excluded.updated_at_ms
                """,
                (key, encoded, now_ms),
            )
            db.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key {key!r}: {e}") from e

    async def remove(self, key: str) -> None:
        db = await self._conn()
        try:
            db.execute("DELETE FROM kv WHERE key = ?", (key,))
            db.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove key {key!r}: {e}") from e
