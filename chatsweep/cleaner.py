"""Delete stored conversations and reclaim their space.

Deletion is immediate and irreversible; taking a backup first is the
caller's job. Writes to one store are not coordinated across callers, and a
batch is not a transaction: an interrupted batch may leave some keys
deleted and others not.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from pathlib import Path

from chatsweep.errors import (
    BatchDeleteError,
    CannotOpenError,
    ChatsweepError,
    ConversationNotFoundError,
    StoreError,
)
from chatsweep.lib.log import get_logger
from chatsweep.models import BatchDeleteResult, DeleteRequest
from chatsweep.rules import KNOWN_TABLES
from chatsweep.scanner import CASCADE_SUFFIX, file_size
from chatsweep.store import KVStore, open_store

logger = get_logger(__name__)


def _conversation_file(directory: Path, key: str) -> Path:
    return directory / f"{key}{CASCADE_SUFFIX}"


def _delete_file(directory: Path, key: str) -> int:
    path = _conversation_file(directory, key)
    if not path.is_file():
        raise ConversationNotFoundError(f"{key}: file not found")
    size = file_size(path)
    try:
        path.unlink()
    except OSError as exc:
        raise ChatsweepError(f"{key}: {exc}") from exc
    logger.info("conversation_file_deleted", path=str(path), size=size)
    return size


def _delete_from_tables(store: KVStore, key: str) -> int | None:
    """Remove ``key`` from the first known table holding it.

    Returns the freed size, or None when no table had the key.

    Raises:
        StoreError: no table removed the key and at least one DELETE failed,
            so the key may still be present (a locked store, for example).
    """
    failure: sqlite3.Error | None = None
    for table in KNOWN_TABLES:
        size = store.value_size(table, key)
        try:
            removed = store.delete_key(table, key)
        except sqlite3.Error as exc:
            logger.warning("delete_failed", table=table, key=key, error=str(exc))
            failure = exc
            continue
        if removed > 0:
            return size
    if failure is not None:
        raise StoreError(f"{key}: {failure}") from failure
    return None


def delete_one(db_path: str | Path, source_key: str) -> int:
    """Delete one conversation; returns the bytes freed.

    ``db_path`` may be a directory of per-conversation files, in which case
    ``source_key`` names the file.

    Raises:
        CannotOpenError: the store cannot be opened for writing.
        ConversationNotFoundError: nothing was stored under ``source_key``.
        StoreError: the store refused the delete.
        ChatsweepError: the conversation file could not be removed.
    """
    path = Path(db_path)
    if path.is_dir():
        return _delete_file(path, source_key)

    with open_store(path, write=True) as store:
        size = max(store.value_size(table, source_key) for table in KNOWN_TABLES)
        if _delete_from_tables(store, source_key) is None:
            raise ConversationNotFoundError("Conversation key not found")
        store.vacuum()
    logger.info("conversation_deleted", path=str(path), key=source_key, size=size)
    return size


def _group_by_db(requests: Iterable[DeleteRequest]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for request in requests:
        groups.setdefault(request.source_db, []).append(request.source_key)
    return groups


def _delete_store_keys(db_path: Path, keys: list[str], errors: list[str]) -> int:
    freed = 0
    try:
        with open_store(db_path, write=True) as store:
            for key in keys:
                try:
                    size = _delete_from_tables(store, key)
                except StoreError as exc:
                    errors.append(str(exc))
                    continue
                if size is None:
                    errors.append(f"{key}: Conversation key not found")
                    continue
                freed += size
            store.vacuum()
    except CannotOpenError as exc:
        errors.append(f"{db_path}: {exc}")
    return freed


def delete_batch(requests: Iterable[DeleteRequest]) -> BatchDeleteResult:
    """Delete many conversations, opening and compacting each store once.

    Per-item failures are collected, not raised, as long as something was
    freed.

    Raises:
        BatchDeleteError: nothing was freed and at least one item failed.
    """
    result = BatchDeleteResult()
    for db, keys in _group_by_db(requests).items():
        path = Path(db)
        if path.is_dir():
            for key in keys:
                try:
                    result.bytes_freed += _delete_file(path, key)
                except ChatsweepError as exc:
                    result.errors.append(str(exc))
        elif path.is_file():
            result.bytes_freed += _delete_store_keys(path, keys, result.errors)
        else:
            result.errors.append(f"{db}: database not found")

    if result.errors and result.bytes_freed == 0:
        raise BatchDeleteError(result.errors)
    logger.info("batch_delete_complete", freed=result.bytes_freed, errors=len(result.errors))
    return result


__all__ = ["delete_batch", "delete_one"]
