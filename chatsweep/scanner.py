"""Scan an editor installation for stored conversations.

An editor's chats can live in its global store, in one store per workspace,
and for one vendor in a directory of per-conversation protobuf files. This
module walks all of them, merges what the classifier finds, and accounts
for every byte those files occupy.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from chatsweep.classifier import KeyClassifier
from chatsweep.config import ChatsweepSettings, get_settings
from chatsweep.errors import CannotOpenError
from chatsweep.lib.log import get_logger
from chatsweep.models import ConversationRecord, DbFileRecord, EditorDescriptor, ScanResult
from chatsweep.rules import LOOSE_FILE_MIN_SIZE, WORKSPACE_DB_MIN_SIZE
from chatsweep.store import open_store

logger = get_logger(__name__)

STATE_DB_NAME = "state.vscdb"
BACKUP_DB_NAME = "state.vscdb.backup"
CASCADE_EDITOR_ID = "windsurf"
CASCADE_SUFFIX = ".pb"


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def file_modified_time(path: Path) -> int | None:
    try:
        return int(path.stat().st_mtime)
    except OSError:
        return None


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _db_file(path: Path, name: str, size: int) -> DbFileRecord:
    return DbFileRecord(path=str(path), size=size, name=name, modified=file_modified_time(path))


def sort_by_recency(records: Iterable[ConversationRecord]) -> list[ConversationRecord]:
    """Newest first; records without a timestamp go last."""
    return sorted(records, key=lambda record: record.last_modified or 0, reverse=True)


def dedupe(records: Iterable[ConversationRecord]) -> list[ConversationRecord]:
    """Drop records whose identity was already seen; the first one wins."""
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


def extract_from_db(db_path: str | Path, classifier: KeyClassifier | None = None) -> list[ConversationRecord]:
    """Every conversation in one store file, newest first.

    A store that cannot be opened contributes nothing rather than failing
    the scan.
    """
    path = Path(db_path)
    classifier = classifier or KeyClassifier()
    try:
        with open_store(path) as store:
            records = classifier.classify(store, modified=file_modified_time(path))
    except CannotOpenError as exc:
        logger.debug("store_unreadable", path=str(path), error=str(exc))
        return []
    return sort_by_recency(dedupe(records))


def _workspace_dbs(workspace_root: Path) -> list[tuple[Path, str]]:
    try:
        if not workspace_root.is_dir():
            return []
        entries = sorted(workspace_root.iterdir())
    except OSError as exc:
        logger.debug("workspace_unreadable", path=str(workspace_root), error=str(exc))
        return []
    found = []
    for entry in entries:
        db = entry / STATE_DB_NAME
        try:
            if not (entry.is_dir() and db.is_file()):
                continue
        except OSError as exc:
            logger.debug("workspace_entry_unreadable", path=str(entry), error=str(exc))
            continue
        found.append((db, f"workspaceStorage/{entry.name[:8]}/{STATE_DB_NAME}"))
    return found


def scan_cascade_dir(cascade_dir: Path) -> tuple[list[ConversationRecord], DbFileRecord | None, int]:
    """Records for per-conversation ``.pb`` files.

    Returns the records, a db-file entry for the directory, and the bytes
    the counted files contribute to the total.
    """
    try:
        if not cascade_dir.is_dir():
            return [], None, 0
        paths = sorted(cascade_dir.iterdir())
    except OSError as exc:
        logger.debug("cascade_unreadable", path=str(cascade_dir), error=str(exc))
        return [], None, 0
    records: list[ConversationRecord] = []
    counted = 0
    dir_size = 0
    for path in paths:
        size = file_size(path)
        dir_size += size
        if path.suffix != CASCADE_SUFFIX or size < LOOSE_FILE_MIN_SIZE:
            continue
        counted += size
        stem = path.stem
        records.append(
            ConversationRecord(
                id=f"pb:{cascade_dir}:{stem}",
                title=f"Cascade {stem[:8]}",
                source_db=str(cascade_dir),
                source_key=stem,
                message_count=0,
                size_bytes=size,
                last_modified=file_modified_time(path),
            )
        )
    entry = DbFileRecord(
        path=str(cascade_dir),
        size=dir_size,
        name=".codeium/windsurf/cascade/",
        modified=file_modified_time(cascade_dir),
    )
    return records, entry, counted


def scan(
    editor: EditorDescriptor,
    *,
    settings: ChatsweepSettings | None = None,
    classifier: KeyClassifier | None = None,
) -> ScanResult:
    """Collect conversations and backing files for one editor installation."""
    settings = settings or get_settings()
    classifier = classifier or KeyClassifier()
    conversations: list[ConversationRecord] = []
    db_files: list[DbFileRecord] = []
    total_size = 0

    if editor.global_storage_path is not None:
        main_db = editor.global_storage_path / STATE_DB_NAME
        if _is_file(main_db):
            size = file_size(main_db)
            total_size += size
            db_files.append(_db_file(main_db, f"globalStorage/{STATE_DB_NAME}", size))
            conversations.extend(extract_from_db(main_db, classifier))

        backup_db = editor.global_storage_path / BACKUP_DB_NAME
        if _is_file(backup_db):
            size = file_size(backup_db)
            total_size += size
            db_files.append(_db_file(backup_db, f"globalStorage/{BACKUP_DB_NAME}", size))

    if editor.workspace_storage_path is not None:
        for db, name in _workspace_dbs(editor.workspace_storage_path):
            size = file_size(db)
            if size < WORKSPACE_DB_MIN_SIZE:
                continue
            total_size += size
            db_files.append(_db_file(db, name, size))
            conversations.extend(extract_from_db(db, classifier))

    if editor.id == CASCADE_EDITOR_ID:
        records, entry, counted = scan_cascade_dir(settings.cascade_dir)
        conversations.extend(records)
        total_size += counted
        if entry is not None:
            db_files.append(entry)

    result = ScanResult(
        editor_id=editor.id,
        conversations=sort_by_recency(dedupe(conversations)),
        db_files=db_files,
        total_size=total_size,
    )
    logger.info(
        "scan_complete",
        editor=editor.id,
        conversations=len(result.conversations),
        db_files=len(result.db_files),
        total_size=total_size,
    )
    return result


__all__ = ["dedupe", "extract_from_db", "file_modified_time", "file_size", "scan", "scan_cascade_dir", "sort_by_recency"]
