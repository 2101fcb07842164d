"""SQLite accessor for the kine key/value table."""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Iterator

from pvreset.config import DEFAULT_TABLE, is_identifier
from pvreset.errors import StorageBackendError, StoreWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """One stored row: an opaque key and its encoded value."""

    key: str
    value: bytes


class KineStore:
    """Reads and overwrites values of a kine table.

    The store never creates or deletes keys. Each ``update`` commits on its own,
    so a failure partway through a scan leaves earlier writes in place.
    """

    def __init__(self, db_path: str, *, table: str = DEFAULT_TABLE) -> None:
        if not is_identifier(table):
            raise StorageBackendError("open", f"invalid table name {table!r}")
        self.db_path = db_path
        self.table = table
        try:
            self._conn = sqlite3.connect(db_path)
        except sqlite3.Error as e:
            raise StorageBackendError("open", str(e)) from e

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> KineStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def has_table(self) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (self.table,)
        ).fetchone()
        return row is not None

    def scan(self, selector: str) -> Iterator[Record]:
        """Yield records whose key matches the LIKE pattern ``selector``.

        Single pass and lazy: rows are produced as the cursor steps. Abandoning the
        iterator leaves the remaining rows unvisited.
        """
        try:
            cursor = self._conn.execute(
                f"SELECT name, value FROM {self.table} WHERE name LIKE ?", (selector,)
            )
        except sqlite3.Error as e:
            raise StorageBackendError("scan", str(e)) from e
        try:
            while True:
                try:
                    row = cursor.fetchone()
                except sqlite3.Error as e:
                    raise StorageBackendError("scan", str(e)) from e
                if row is None:
                    return
                name, value = row
                yield Record(key=name, value=bytes(value) if value is not None else b"")
        finally:
            cursor.close()

    def count(self, selector: str) -> int:
        try:
            row = self._conn.execute(
                f"SELECT COUNT(*) FROM {self.table} WHERE name LIKE ?", (selector,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageBackendError("count", str(e)) from e
        return int(row[0])

    def get(self, key: str) -> bytes | None:
        """Return the most recently inserted value stored under ``key``."""
        try:
            row = self._conn.execute(
                f"SELECT value FROM {self.table} WHERE name = ? ORDER BY rowid DESC LIMIT 1",
                (key,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageBackendError("get", str(e)) from e
        if row is None:
            return None
        return bytes(row[0]) if row[0] is not None else b""

    def update(self, key: str, value: bytes) -> int:
        """Overwrite every row stored under ``key`` and commit. Returns the row count."""
        try:
            cursor = self._conn.execute(
                f"UPDATE {self.table} SET value = ? WHERE name = ?", (value, key)
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreWriteError(key, str(e)) from e
        if cursor.rowcount != 1:
            logger.warning("Update of [%s] affected %d rows", key, cursor.rowcount)
        return cursor.rowcount

    def storage_info(self) -> dict[str, Any]:
        return {
            "backend": "sqlite",
            "db_path": os.path.abspath(self.db_path),
            "table": self.table,
        }


def open_store(db_path: str, *, table: str = DEFAULT_TABLE) -> KineStore:
    """Open an existing datastore file, failing if it or its table is missing."""
    if db_path != ":memory:" and not os.path.exists(db_path):
        raise StorageBackendError("open", f"database not found: {db_path}")
    store = KineStore(db_path, table=table)
    try:
        if not store.has_table():
            raise StorageBackendError("open", f"table '{table}' not found in {db_path}")
    except sqlite3.Error as e:
        store.close()
        raise StorageBackendError("open", str(e)) from e
    except StorageBackendError:
        store.close()
        raise
    return store
