"""Multi-shape parser for JSON chat containers.

Vendors wrap their conversation lists in different envelopes. Each envelope
is recognized by one matcher: a pure function from the parsed document to
candidate item arrays, in preference order. Matchers are tried in order and
the first candidate array that produces at least one record wins.

Supporting a new envelope means appending a matcher to ``MATCHERS``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any

from chatsweep.lib.json import serialized_size, try_loads
from chatsweep.lib.log import get_logger
from chatsweep.models import ConversationRecord

from .base import ParseContext
from .text import COUNT_FIELDS, ID_FIELDS, TITLE_FIELDS, first_array, first_str

logger = get_logger(__name__)

Matcher = Callable[[Any], Iterator[list[Any]]]

WRAPPER_FIELDS = ("conversations", "chats", "history", "data", "items", "threads", "sessions")
# Every array that may hold conversations, in lookup order.
CONTAINER_FIELDS = ("tabs", "allComposers", *WRAPPER_FIELDS)


def _field_array(field: str) -> Matcher:
    def matcher(value: Any) -> Iterator[list[Any]]:
        if isinstance(value, Mapping) and isinstance(value.get(field), list):
            yield value[field]

    matcher.__name__ = f"match_{field}"
    return matcher


def match_top_level_array(value: Any) -> Iterator[list[Any]]:
    if isinstance(value, list):
        yield value


def match_wrapper_arrays(value: Any) -> Iterator[list[Any]]:
    if not isinstance(value, Mapping):
        return
    for field in WRAPPER_FIELDS:
        if isinstance(value.get(field), list):
            yield value[field]


def match_single_object(value: Any) -> Iterator[list[Any]]:
    if isinstance(value, Mapping):
        yield [value]


MATCHERS: tuple[Matcher, ...] = (
    _field_array("tabs"),
    _field_array("allComposers"),
    match_top_level_array,
    match_wrapper_arrays,
    match_single_object,
)


def item_to_record(item: Any, index: int, ctx: ParseContext) -> ConversationRecord | None:
    """Build a record for one conversation-like object, or None to skip it.

    An item with neither a title nor any messages is not a conversation.
    """
    if not isinstance(item, Mapping):
        return None

    title = first_str(item, TITLE_FIELDS)
    messages = first_array(item, COUNT_FIELDS)
    message_count = len(messages) if messages is not None else 0
    if not title and message_count == 0:
        return None

    item_id = first_str(item, ID_FIELDS) or f"item_{index}"
    return ctx.record(
        title=title or f"Chat {index + 1}",
        message_count=message_count,
        size_bytes=serialized_size(item),
        item_id=item_id,
    )


def parse_items(items: Sequence[Any], ctx: ParseContext) -> list[ConversationRecord]:
    records = []
    for index, item in enumerate(items):
        record = item_to_record(item, index, ctx)
        if record is not None:
            records.append(record)
    return records


def parse_document(
    document: Any,
    ctx: ParseContext,
    matchers: Sequence[Matcher] = MATCHERS,
) -> list[ConversationRecord]:
    """Records from an already parsed JSON document."""
    for matcher in matchers:
        for candidates in matcher(document):
            records = parse_items(candidates, ctx)
            if records:
                return records
    return []


def parse_chat_value(
    raw: str | bytes,
    ctx: ParseContext,
    matchers: Sequence[Matcher] = MATCHERS,
) -> list[ConversationRecord]:
    """Records from a raw JSON value. Invalid JSON yields no records."""
    document = try_loads(raw)
    if document is None:
        logger.debug("chat_value_not_json", key=ctx.key)
        return []
    return parse_document(document, ctx, matchers)


def iter_containers(document: Any) -> Iterator[list[Any]]:
    """Every conversation array in ``document``, in lookup order."""
    if isinstance(document, Mapping):
        for field in CONTAINER_FIELDS:
            if isinstance(document.get(field), list):
                yield document[field]
    if isinstance(document, list):
        yield document


__all__ = [
    "CONTAINER_FIELDS",
    "MATCHERS",
    "Matcher",
    "WRAPPER_FIELDS",
    "item_to_record",
    "iter_containers",
    "match_single_object",
    "match_top_level_array",
    "match_wrapper_arrays",
    "parse_chat_value",
    "parse_document",
    "parse_items",
]
