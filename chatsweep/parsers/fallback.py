"""Heuristics for previews that are not parseable JSON.

Previews are cut at a fixed length, so large values arrive as truncated JSON.
Rather than reading the whole blob, scrape a title and a rough message count
straight out of the text. Counts here are estimates.
"""

from __future__ import annotations

from chatsweep.models import ConversationRecord

from .base import ParseContext

TITLE_MARKERS = (
    '"chatTitle":"',
    '"chatTitle": "',
    '"name":"',
    '"name": "',
    '"title":"',
    '"title": "',
)
MAX_TITLE_LEN = 200
MIN_UNTITLED_SIZE = 100

_KEY_RENAMES = (
    ("icube-ai-agent-storage", "Trae AI Sessions"),
    ("interactive-session-view-copilot", "Copilot Edits"),
    ("interactive-session", "Copilot Chat"),
)


def _quoted_span(text: str, start: int) -> int:
    """Index of the closing quote for a string starting at ``start``."""
    end = start
    while end < len(text):
        char = text[end]
        if char == "\\":
            end += 2
            continue
        if char == '"':
            return end
        end += 1
    return len(text)


def extract_title_from_text(text: str) -> str:
    """First short quoted value following a known title marker.

    Escaped quotes do not terminate the value. A marker whose value is empty
    or too long is skipped in favor of the next marker.
    """
    for marker in TITLE_MARKERS:
        start = text.find(marker)
        if start < 0:
            continue
        value_start = start + len(marker)
        end = min(_quoted_span(text, value_start), len(text))
        length = end - value_start
        if 0 < length < MAX_TITLE_LEN:
            return text[value_start:end]
    return ""


def count_messages_from_text(text: str) -> int:
    """Estimate how many messages a truncated JSON document holds."""
    return max(text.count('"role"'), text.count('"type":"user"'))


def clean_key_title(key: str) -> str:
    """Readable title for a record that only has its key to go on."""
    cleaned = key.removeprefix("memento/")
    for raw, label in _KEY_RENAMES:
        cleaned = cleaned.replace(raw, label)
    if cleaned.startswith("composerData:"):
        return f"Composer {cleaned.removeprefix('composerData:')[:8]}"
    return cleaned


def record_from_text(text: str, size: int, ctx: ParseContext) -> ConversationRecord | None:
    """Best-effort record for a truncated value.

    Untitled values are only kept when they are big enough to plausibly hold
    a conversation.
    """
    title = extract_title_from_text(text)
    if not title and size < MIN_UNTITLED_SIZE:
        return None
    return ctx.record(
        title=title or clean_key_title(ctx.key) or ctx.key,
        message_count=count_messages_from_text(text),
        size_bytes=size,
    )


__all__ = [
    "clean_key_title",
    "count_messages_from_text",
    "extract_title_from_text",
    "record_from_text",
]
