"""Session-history values: ``{"history": {participant: [turn, ...]}}``."""

from __future__ import annotations

from collections.abc import Mapping

from chatsweep.lib.json import try_loads
from chatsweep.models import ConversationRecord
from chatsweep.store import KeyEntry, bytes_to_text

from .base import ParseContext

PREVIEW_CHARS = 80


def session_label(key: str) -> str:
    return "Copilot Edits" if "view-copilot" in key else "Copilot Chat"


def parse_session_history(entry: KeyEntry, ctx: ParseContext) -> ConversationRecord | None:
    """One record per session key; the message count sums every participant.

    The first turn's text, shortened, becomes part of the title.
    """
    document = try_loads(bytes_to_text(entry.preview))
    history = document.get("history") if isinstance(document, Mapping) else None
    if not isinstance(history, Mapping):
        return None

    total = 0
    first_text = ""
    for turns in history.values():
        if not isinstance(turns, list):
            continue
        total += len(turns)
        if not first_text and turns and isinstance(turns[0], Mapping):
            text = turns[0].get("text")
            if isinstance(text, str):
                first_text = text[:PREVIEW_CHARS]

    if total == 0:
        return None

    label = session_label(entry.key)
    return ctx.record(
        title=f"{label}: {first_text}" if first_text else label,
        message_count=total,
        size_bytes=entry.size,
    )


__all__ = ["parse_session_history", "session_label"]
