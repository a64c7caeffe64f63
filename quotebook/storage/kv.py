"""Key-value blob stores.

The reconciliation core only needs get/set on opaque blobs. SQLite gives a
durable single-file store; the in-memory store backs tests and throwaway
sessions.
"""

import contextlib
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional

from quotebook.protocols import StorageError
from quotebook.utils import get_quotebook_home

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "quotebook.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
)
"""


class SQLiteKeyValueStore:
    """Key-value store backed by a single SQLite table.

    Args:
        db_path: Database file. Defaults to ``<quotebook home>/quotebook.db``.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else get_quotebook_home() / DEFAULT_DB_NAME
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(SCHEMA)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    @contextlib.contextmanager
    def _connect(self):
        """Context manager that handles transactions AND closes connection.

        Commits on success, rolls back on exception, closes in all cases.
        """
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[bytes]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        value = row["value"]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, sqlite3.Binary(value)),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))


class MemoryKeyValueStore:
    """In-process key-value store."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data)
