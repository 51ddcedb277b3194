"""Protobuf-encoded state values.

Some editors persist agent state as raw protobuf. Without the schema the
only useful signal is the human-readable strings embedded in it, so this
module works on bytes alone and knows nothing about JSON.
"""

from __future__ import annotations

import re

from chatsweep.models import ConversationRecord
from chatsweep.store import KeyEntry, text_to_bytes

from .base import ParseContext

MIN_RUN_LEN = 10
PLACEHOLDER_TITLE = "Antigravity Session"

_TITLE_PUNCTUATION = set(".,;:!?-_'\"()")


def printable_runs(data: bytes, min_len: int = MIN_RUN_LEN) -> list[str]:
    """Maximal runs of printable ASCII at least ``min_len`` long, in order."""
    pattern = re.compile(rb"[\x20-\x7e]{%d,}" % max(min_len, 1))
    return [match.decode("ascii") for match in pattern.findall(data)]


def looks_like_title(run: str) -> bool:
    return all(char.isalnum() or char.isspace() or char in _TITLE_PUNCTUATION for char in run)


def parse_binary_state(entry: KeyEntry, ctx: ParseContext) -> ConversationRecord | None:
    """One record per binary key, titled by its first sentence-like string.

    The message count is unknown for this shape and is always 0.
    """
    runs = printable_runs(text_to_bytes(entry.preview))
    if not runs:
        return None
    title = next((run for run in runs if looks_like_title(run)), PLACEHOLDER_TITLE)
    return ctx.record(title=title, message_count=0, size_bytes=entry.size)


__all__ = ["PLACEHOLDER_TITLE", "looks_like_title", "parse_binary_state", "printable_runs"]
