"""Read and write access to one editor key-value store.

Editors keep their state in SQLite files with one or two ``(key, value)``
tables. Values range from a few bytes to hundreds of megabytes, so reads
here are always either size-only, bounded previews, or explicit full reads
that the caller has already size-gated.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from chatsweep.errors import CannotOpenError
from chatsweep.lib.log import get_logger

logger = get_logger(__name__)


def _decode_text(raw: bytes) -> str:
    # Protobuf payloads are sometimes stored as TEXT; keep their bytes
    # recoverable instead of failing the whole row.
    return raw.decode("utf-8", errors="surrogateescape")


def text_to_bytes(value: str | bytes) -> bytes:
    """Recover the stored bytes of a value read through this module."""
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8", errors="surrogateescape")


def bytes_to_text(value: str | bytes) -> str:
    if isinstance(value, str):
        return value
    return _decode_text(value)


@dataclass(frozen=True)
class KeyEntry:
    """A key with the leading part of its value and the value's full length."""

    key: str
    preview: str | bytes
    size: int


class KVStore:
    """Handle on an open store. Obtain one through :func:`open_store`."""

    def __init__(self, conn: sqlite3.Connection, path: Path):
        self.conn = conn
        self.path = path
        self.tables: frozenset[str] = frozenset(
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        )

    def has_table(self, table: str) -> bool:
        return table in self.tables

    def value_size(self, table: str, key: str) -> int:
        """Length of the value stored under ``key``, or 0 when absent."""
        if table not in self.tables:
            return 0
        try:
            row = self.conn.execute(f"SELECT length(value) FROM [{table}] WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            logger.debug("value_size_failed", table=table, key=key, error=str(exc))
            return 0
        if row is None or row[0] is None:
            return 0
        return int(row[0])

    def value_full(self, table: str, key: str) -> str | None:
        """Whole value as text, or None when absent."""
        if table not in self.tables:
            return None
        try:
            row = self.conn.execute(f"SELECT value FROM [{table}] WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            logger.debug("value_full_failed", table=table, key=key, error=str(exc))
            return None
        if row is None or row[0] is None:
            return None
        return bytes_to_text(row[0])

    def value_preview(self, table: str, pattern: str, preview_len: int) -> list[KeyEntry]:
        """Keys matching a LIKE ``pattern`` with bounded value previews.

        TEXT values yield a ``str`` preview, BLOB values a ``bytes`` preview.
        """
        if table not in self.tables:
            return []
        sql = f"SELECT key, substr(value, 1, ?), length(value) FROM [{table}] WHERE key LIKE ?"
        try:
            rows = self.conn.execute(sql, (preview_len, pattern)).fetchall()
        except sqlite3.Error as exc:
            logger.debug("value_preview_failed", table=table, pattern=pattern, error=str(exc))
            return []
        entries: list[KeyEntry] = []
        for key, preview, size in rows:
            if not isinstance(key, str):
                continue
            entries.append(KeyEntry(key=key, preview=preview if preview is not None else "", size=int(size or 0)))
        return entries

    def text_values(self, table: str, pattern: str, min_size: int) -> Iterator[tuple[str, str]]:
        """Full TEXT values for keys matching ``pattern`` longer than ``min_size``."""
        if table not in self.tables:
            return
        sql = (
            f"SELECT key, value FROM [{table}] "
            "WHERE key LIKE ? AND typeof(value) = 'text' AND length(value) > ?"
        )
        try:
            cursor = self.conn.execute(sql, (pattern, min_size))
        except sqlite3.Error as exc:
            logger.debug("text_values_failed", table=table, pattern=pattern, error=str(exc))
            return
        for key, value in cursor:
            yield key, value

    def value_sizes(self, table: str, pattern: str) -> Iterator[tuple[str, int]]:
        """``(key, length)`` pairs for keys matching ``pattern``."""
        if table not in self.tables:
            return
        try:
            cursor = self.conn.execute(f"SELECT key, length(value) FROM [{table}] WHERE key LIKE ?", (pattern,))
        except sqlite3.Error as exc:
            logger.debug("value_sizes_failed", table=table, pattern=pattern, error=str(exc))
            return
        for key, size in cursor:
            yield key, int(size or 0)

    def delete_key(self, table: str, key: str) -> int:
        """Delete the row for ``key``; returns the number of rows removed."""
        if table not in self.tables:
            return 0
        cursor = self.conn.execute(f"DELETE FROM [{table}] WHERE key = ?", (key,))
        return cursor.rowcount

    def vacuum(self) -> bool:
        """Reclaim free pages. Returns False when the store refused."""
        try:
            self.conn.execute("VACUUM")
        except sqlite3.Error as exc:
            logger.warning("vacuum_failed", path=str(self.path), error=str(exc))
            return False
        return True


def _connect(path: Path, write: bool) -> sqlite3.Connection:
    if write:
        if not path.is_file():
            raise CannotOpenError(f"Failed to open DB: {path} does not exist")
        # Autocommit: each DELETE lands immediately and VACUUM can run.
        return sqlite3.connect(path, isolation_level=None)
    uri = f"file:{quote(path.as_posix())}?mode=ro"
    return sqlite3.connect(uri, uri=True)


@contextmanager
def open_store(path: str | Path, *, write: bool = False) -> Iterator[KVStore]:
    """Open the store at ``path`` for the duration of a ``with`` block.

    Read-only unless ``write`` is set. The connection is closed on every
    exit path.

    Raises:
        CannotOpenError: the file is missing or is not a SQLite database.
    """
    target = Path(path)
    try:
        conn = _connect(target, write)
    except sqlite3.Error as exc:
        raise CannotOpenError(f"Failed to open DB: {exc}") from exc
    try:
        conn.text_factory = _decode_text
        try:
            store = KVStore(conn, target)
        except sqlite3.Error as exc:
            raise CannotOpenError(f"Failed to open DB: {exc}") from exc
        yield store
    finally:
        conn.close()


__all__ = ["KVStore", "KeyEntry", "bytes_to_text", "open_store", "text_to_bytes"]
