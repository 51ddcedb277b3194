"""Pull plain text out of structured vendor fields.

Vendors wrap message text in a handful of ways: bare strings, objects with a
text-ish field, arrays of parts, or an editor document tree. Everything that
turns one of those into a display string lives here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from chatsweep.lib.json import try_loads

TITLE_FIELDS = ("chatTitle", "title", "name", "subject", "description")
CONTENT_TITLE_FIELDS = ("chatTitle", "title", "name")
COUNT_FIELDS = (
    "bubbles",
    "messages",
    "conversation",
    "turns",
    "exchanges",
    "entries",
    "requests",
    "fullConversationHeadersOnly",
)
MESSAGE_FIELDS = ("bubbles", "messages", "conversation", "turns", "exchanges")
ID_FIELDS = ("id", "chatId", "composerId", "conversationId")
CONTENT_FIELDS = ("text", "content", "message", "body", "value")
ROLE_FIELDS = ("role", "type", "sender", "author")
BUBBLE_TEXT_FIELDS = ("rawText", "displayText")


def first_present(obj: Any, fields: Iterable[str]) -> Any | None:
    """Value of the first of ``fields`` present on ``obj``, whatever its type."""
    if not isinstance(obj, Mapping):
        return None
    for field in fields:
        if field in obj:
            return obj[field]
    return None


def first_str(obj: Any, fields: Iterable[str]) -> str:
    """Like :func:`first_present`, but only a string value counts."""
    value = first_present(obj, fields)
    return value if isinstance(value, str) else ""


def first_array(obj: Any, fields: Iterable[str]) -> list[Any] | None:
    value = first_present(obj, fields)
    return value if isinstance(value, list) else None


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    for field in ("text", "content"):
        value = first_present(part, (field,))
        if isinstance(value, str):
            return value
    return None


def extract_content(value: Any) -> str:
    """Resolve a message content field to text.

    Strings are returned as-is, objects are probed for the usual text fields,
    and arrays of parts are joined with newlines.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        for field in CONTENT_FIELDS:
            inner = value.get(field)
            if isinstance(inner, str):
                return inner
        return ""
    if isinstance(value, list):
        parts = [text for text in (_part_text(part) for part in value) if text is not None]
        return "\n".join(parts)
    return ""


def extract_rich_text(document: str | Mapping[str, Any] | None) -> str:
    """Flatten an editor document tree (root -> paragraphs -> text nodes).

    Accepts the serialized JSON or the already parsed object. Only the two
    levels the chat input editor produces are walked.
    """
    tree = try_loads(document) if isinstance(document, str) else document
    root = first_present(tree, ("root",))
    paragraphs = first_present(root, ("children",))
    if not isinstance(paragraphs, list):
        return ""
    parts: list[str] = []
    for paragraph in paragraphs:
        nodes = first_present(paragraph, ("children",))
        if not isinstance(nodes, list):
            continue
        for node in nodes:
            text = first_present(node, ("text",))
            if isinstance(text, str) and text:
                parts.append(text)
    return "\n".join(parts)


__all__ = [
    "BUBBLE_TEXT_FIELDS",
    "CONTENT_FIELDS",
    "CONTENT_TITLE_FIELDS",
    "COUNT_FIELDS",
    "ID_FIELDS",
    "MESSAGE_FIELDS",
    "ROLE_FIELDS",
    "TITLE_FIELDS",
    "extract_content",
    "extract_rich_text",
    "first_array",
    "first_present",
    "first_str",
]
