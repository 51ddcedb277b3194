"""Shape parsers: raw store values → ConversationRecord.

Preview entries go through ``extract_from_preview``, which tries the
specialized parsers selected by key name, then the generic multi-shape JSON
parser, then the text heuristics for truncated values.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from chatsweep.lib.json import try_loads
from chatsweep.lib.log import get_logger
from chatsweep.models import ConversationRecord
from chatsweep.rules import COMPOSER_KEY_PREFIX
from chatsweep.store import KeyEntry, bytes_to_text

from .base import ParseContext
from .binary import parse_binary_state, printable_runs
from .composer import composer_record, parse_composer_value, reconstruct_composer
from .fallback import clean_key_title, record_from_text
from .generic import MATCHERS, parse_chat_value, parse_document
from .session import parse_session_history

logger = get_logger(__name__)

EntryParser = Callable[[KeyEntry, ParseContext], ConversationRecord | None]


@dataclass(frozen=True)
class SpecializedParser:
    """A parser for keys whose values have a vendor-specific shape.

    When ``final`` is set, a None result drops the entry; otherwise the
    entry continues to the generic parser.
    """

    name: str
    prefixes: tuple[str, ...]
    parse: EntryParser
    final: bool = True

    def matches(self, key: str) -> bool:
        return key.startswith(self.prefixes)


def _parse_composer_preview(entry: KeyEntry, ctx: ParseContext) -> ConversationRecord | None:
    document = try_loads(bytes_to_text(entry.preview))
    return composer_record(document, ctx, entry.size)


SPECIALIZED_PARSERS: tuple[SpecializedParser, ...] = (
    SpecializedParser("session_history", ("memento/interactive-session",), parse_session_history),
    SpecializedParser(
        "binary_state",
        ("jetskiStateSync.", "antigravityUnifiedStateSync."),
        parse_binary_state,
    ),
    # Truncated composer previews are not JSON; let the heuristics try.
    SpecializedParser("composer", (COMPOSER_KEY_PREFIX,), _parse_composer_preview, final=False),
)


def extract_from_preview(
    entry: KeyEntry,
    ctx: ParseContext,
    parsers: tuple[SpecializedParser, ...] = SPECIALIZED_PARSERS,
) -> ConversationRecord | None:
    """At most one record for a preview-read key."""
    for parser in parsers:
        if not parser.matches(entry.key):
            continue
        record = parser.parse(entry, ctx)
        if record is not None or parser.final:
            return record
        logger.debug("specialized_parser_fell_through", parser=parser.name, key=entry.key)
        break

    text = bytes_to_text(entry.preview)
    records = parse_chat_value(text, ctx)
    if records:
        return records[0]
    return record_from_text(text, entry.size, ctx)


__all__ = [
    "MATCHERS",
    "SPECIALIZED_PARSERS",
    "ParseContext",
    "SpecializedParser",
    "clean_key_title",
    "extract_from_preview",
    "parse_binary_state",
    "parse_chat_value",
    "parse_composer_value",
    "parse_document",
    "parse_session_history",
    "printable_runs",
    "reconstruct_composer",
    "record_from_text",
]
