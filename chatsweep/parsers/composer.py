"""Composer records: per-conversation metadata with encrypted bodies.

A composer row (``composerData:{id}``) carries the conversation's name,
header list, last user input and edit statistics, while the actual message
bodies sit in an encrypted blob store the engine cannot read. Scans read the
metadata directly; transcripts are synthesized from it and flagged as
incomplete.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chatsweep.lib.json import try_loads
from chatsweep.lib.roles import Role
from chatsweep.models import ConversationContent, ConversationRecord, Message

from .base import ParseContext
from .text import extract_rich_text

ENCRYPTED_NOTICE = (
    "Note: Full conversation messages are stored in an encrypted binary format "
    "and cannot be displayed. Only metadata is shown above."
)

_HEADER_USER = 1
_HEADER_ASSISTANT = 2


def _str_field(obj: Mapping[str, Any], name: str) -> str:
    value = obj.get(name)
    return value if isinstance(value, str) else ""


def _int_field(obj: Mapping[str, Any], name: str) -> int:
    value = obj.get(name)
    # bool is an int subclass; a flag is not a count.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _headers(obj: Mapping[str, Any]) -> list[Any]:
    headers = obj.get("fullConversationHeadersOnly")
    return headers if isinstance(headers, list) else []


def is_composer(item: Any) -> bool:
    """Whether an aggregate item is a composer rather than a plain chat."""
    return isinstance(item, Mapping) and "composerId" in item and "conversationState" in item


def composer_record(
    document: Any,
    ctx: ParseContext,
    size_bytes: int,
) -> ConversationRecord | None:
    """Scan record for one composer document.

    ``createdAt`` (milliseconds) wins over the file's own modification time.
    """
    if not isinstance(document, Mapping):
        return None
    composer_id = _str_field(document, "composerId")
    title = _str_field(document, "name") or _str_field(document, "subtitle")
    message_count = len(_headers(document))
    if not title and message_count == 0:
        return None

    created_at = document.get("createdAt")
    modified = None
    if isinstance(created_at, (int, float)) and not isinstance(created_at, bool):
        modified = int(created_at) // 1000

    return ctx.record(
        title=title or composer_id or ctx.key,
        message_count=message_count,
        size_bytes=size_bytes,
        item_id=composer_id or ctx.key,
        modified=modified,
    )


def parse_composer_value(raw: str, ctx: ParseContext) -> ConversationRecord | None:
    return composer_record(try_loads(raw), ctx, len(raw))


def _header_kind(header: Any) -> int | None:
    kind = header.get("type") if isinstance(header, Mapping) else None
    # bool is an int subclass; true is not a user header.
    if isinstance(kind, bool) or not isinstance(kind, int):
        return None
    return kind


def _overview(headers: list[Any]) -> str:
    if not headers:
        return ""
    kinds = [_header_kind(header) for header in headers]
    users = sum(1 for kind in kinds if kind == _HEADER_USER)
    assistants = sum(1 for kind in kinds if kind == _HEADER_ASSISTANT)
    others = len(headers) - users - assistants
    overview = f"Conversation: {len(headers)} messages ({users} user, {assistants} assistant"
    if others:
        overview += f", {others} other"
    return overview + ")"


def last_user_input(obj: Mapping[str, Any]) -> str:
    """The user's last typed input: plain text first, then the rich document."""
    return _str_field(obj, "text") or extract_rich_text(obj.get("richText"))


def _todo_list(obj: Mapping[str, Any]) -> str:
    todos = obj.get("todos")
    if not isinstance(todos, list) or not todos:
        return ""
    lines = ["Tasks:"]
    for todo in todos:
        todo = todo if isinstance(todo, Mapping) else {}
        label = _str_field(todo, "label") or "task"
        marker = "✓" if todo.get("status") == "done" else "○"
        lines.append(f"  {marker} {label}")
    return "\n".join(lines) + "\n"


def _new_files(obj: Mapping[str, Any]) -> str:
    files = obj.get("newlyCreatedFiles")
    if not isinstance(files, list):
        return ""
    paths = [path for path in files if isinstance(path, str)]
    if not paths:
        return ""
    return "New files:\n  " + "\n  ".join(paths)


def _status_line(obj: Mapping[str, Any]) -> str:
    status = _str_field(obj, "status")
    mode = _str_field(obj, "unifiedMode")
    added = _int_field(obj, "totalLinesAdded")
    removed = _int_field(obj, "totalLinesRemoved")
    files_changed = _int_field(obj, "filesChangedCount")
    if not status and added <= 0 and files_changed <= 0:
        return ""
    return f"Status: {status} | Mode: {mode} | Files: {files_changed} | +{added} -{removed}"


def reconstruct_composer(document: Any, source_key: str) -> ConversationContent:
    """Synthesize a transcript from composer metadata.

    Sections appear in a fixed order and only when non-empty; the closing
    notice is always present.
    """
    obj: Mapping[str, Any] = document if isinstance(document, Mapping) else {}
    title = _str_field(obj, "name") or source_key

    sections = (
        (Role.SYSTEM, _overview(_headers(obj))),
        (Role.USER, last_user_input(obj)),
        (Role.ASSISTANT, _str_field(obj, "subtitle")),
        (Role.ASSISTANT, _todo_list(obj)),
        (Role.SYSTEM, _new_files(obj)),
        (Role.SYSTEM, _status_line(obj)),
        (Role.SYSTEM, ENCRYPTED_NOTICE),
    )
    messages = [Message(role=role.value, content=text) for role, text in sections if text]
    return ConversationContent(title=title, messages=messages, complete=False)


__all__ = [
    "ENCRYPTED_NOTICE",
    "composer_record",
    "is_composer",
    "last_user_input",
    "parse_composer_value",
    "reconstruct_composer",
]
