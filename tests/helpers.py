"""Test utilities and builders for the Chatsweep test suite.

Usage:
    from tests.helpers import StoreBuilder, make_editor

    db = StoreBuilder(tmp_path / "state.vscdb").item("chat.data", {...}).build()
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from chatsweep.lib.json import dumps
from chatsweep.models import EditorDescriptor
from chatsweep.rules import DISK_KV_TABLE, ITEM_TABLE


# =============================================================================
# STORE BUILDER (Fluent API)
# =============================================================================


class StoreBuilder:
    """Fluent builder for editor key-value stores.

    Example:
        db = (StoreBuilder(tmp_path / "state.vscdb")
              .item("chat.data", {"tabs": [...]})
              .disk_kv("composerData:abc", {...})
              .build())
    """

    def __init__(self, path: Path, *, item_table: bool = True, disk_kv: bool = False):
        self.path = path
        self.tables: list[str] = []
        if item_table:
            self.tables.append(ITEM_TABLE)
        if disk_kv:
            self.tables.append(DISK_KV_TABLE)
        self.rows: list[tuple[str, str, Any]] = []

    def item(self, key: str, value: Any) -> StoreBuilder:
        self.rows.append((ITEM_TABLE, key, value))
        return self

    def disk_kv(self, key: str, value: Any) -> StoreBuilder:
        if DISK_KV_TABLE not in self.tables:
            self.tables.append(DISK_KV_TABLE)
        self.rows.append((DISK_KV_TABLE, key, value))
        return self

    def build(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            for table in self.tables:
                conn.execute(f"CREATE TABLE IF NOT EXISTS [{table}] (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
            for table, key, value in self.rows:
                conn.execute(f"INSERT INTO [{table}] (key, value) VALUES (?, ?)", (key, encode_value(value)))
            conn.commit()
        finally:
            conn.close()
        return self.path


def encode_value(value: Any) -> str | bytes:
    """Store strings and bytes as-is, anything else as compact JSON text."""
    if isinstance(value, (str, bytes)):
        return value
    return dumps(value)


def stored_size(value: Any) -> int:
    """The size the store reports for ``value`` (``length(value)``)."""
    return len(encode_value(value))


def row_keys(path: Path, table: str = ITEM_TABLE) -> set[str]:
    conn = sqlite3.connect(path)
    try:
        return {row[0] for row in conn.execute(f"SELECT key FROM [{table}]")}
    finally:
        conn.close()


def make_editor(
    root: Path,
    editor_id: str = "cursor",
    *,
    global_storage: bool = True,
    workspace_storage: bool = True,
) -> EditorDescriptor:
    """Descriptor with storage directories under ``root`` (created)."""
    global_path = root / "User" / "globalStorage"
    workspace_path = root / "User" / "workspaceStorage"
    if global_storage:
        global_path.mkdir(parents=True, exist_ok=True)
    if workspace_storage:
        workspace_path.mkdir(parents=True, exist_ok=True)
    return EditorDescriptor(
        id=editor_id,
        name=editor_id.title(),
        global_storage_path=global_path if global_storage else None,
        workspace_storage_path=workspace_path if workspace_storage else None,
    )


# =============================================================================
# PAYLOAD FACTORIES
# =============================================================================


def make_chat(title: str = "", messages: int = 1, **extra: Any) -> dict[str, Any]:
    chat: dict[str, Any] = {"messages": [{"role": "user", "text": f"message {i}"} for i in range(messages)]}
    if title:
        chat["title"] = title
    chat.update(extra)
    return chat


def make_composer(composer_id: str, name: str = "", headers: int = 0, **extra: Any) -> dict[str, Any]:
    composer: dict[str, Any] = {
        "composerId": composer_id,
        "fullConversationHeadersOnly": [{"bubbleId": f"b{i}", "type": 1 + i % 2} for i in range(headers)],
    }
    if name:
        composer["name"] = name
    composer.update(extra)
    return composer
