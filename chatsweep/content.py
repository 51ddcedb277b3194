"""Rebuild the transcript of one conversation.

Given the location a scan reported (store, key, item discriminator), the
owning value is re-read and parsed in full. Composer records, whose real
bodies are encrypted, get a metadata-only transcript instead.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from chatsweep.errors import ContentParseError, ConversationNotFoundError
from chatsweep.lib.json import JSONDecodeError, loads
from chatsweep.lib.log import get_logger
from chatsweep.lib.roles import normalize_role
from chatsweep.models import ConversationContent, Message
from chatsweep.parsers import reconstruct_composer
from chatsweep.parsers.composer import is_composer
from chatsweep.parsers.generic import iter_containers
from chatsweep.parsers.text import (
    BUBBLE_TEXT_FIELDS,
    CONTENT_FIELDS,
    CONTENT_TITLE_FIELDS,
    ID_FIELDS,
    MESSAGE_FIELDS,
    ROLE_FIELDS,
    extract_content,
    first_array,
    first_present,
    first_str,
)
from chatsweep.rules import COMPOSER_KEY_PREFIX, DEFAULT_RULES, DISK_KV_TABLE, ITEM_TABLE, KeyRules
from chatsweep.store import KVStore, open_store

logger = get_logger(__name__)

POSITIONAL_PREFIX = "item_"


def _message_role(message: Any) -> str:
    return normalize_role(first_str(message, ROLE_FIELDS))


def extract_messages(item: Any) -> list[Message]:
    """Messages from a conversation object, skipping empty ones."""
    messages: list[Message] = []
    for raw in first_array(item, MESSAGE_FIELDS) or []:
        content = extract_content(first_present(raw, CONTENT_FIELDS))
        if content:
            messages.append(Message(role=_message_role(raw), content=content))
    if messages:
        return messages

    # Some bubble formats keep the text under their own field names.
    bubbles = first_present(item, ("bubbles",))
    for bubble in bubbles if isinstance(bubbles, list) else []:
        content = first_str(bubble, BUBBLE_TEXT_FIELDS)
        if content:
            messages.append(Message(role=_message_role(bubble), content=content))
    return messages


def _positional_index(identity: str) -> int | None:
    if not identity.startswith(POSITIONAL_PREFIX):
        return None
    suffix = identity[len(POSITIONAL_PREFIX):]
    return int(suffix) if suffix.isdigit() else None


def find_in_aggregate(document: Any, identity: str) -> Any | None:
    """The item ``identity`` refers to inside an aggregate document.

    ``item_N`` identities are positional across the container arrays;
    anything else is matched against the item's id fields.
    """
    containers = list(iter_containers(document))
    index = _positional_index(identity)
    if index is not None:
        for items in containers:
            if index < len(items):
                return items[index]
    for items in containers:
        for item in items:
            if first_str(item, ID_FIELDS) == identity:
                return item
    return None


def _read_value(store: KVStore, key: str) -> str | None:
    tables = (DISK_KV_TABLE, ITEM_TABLE) if store.has_table(DISK_KV_TABLE) else (ITEM_TABLE,)
    for table in tables:
        value = store.value_full(table, key)
        if value is not None:
            return value
    return None


def _direct_content(item: Any, source_key: str) -> ConversationContent:
    title = first_str(item, CONTENT_TITLE_FIELDS) if isinstance(item, Mapping) else ""
    return ConversationContent(title=title or source_key, messages=extract_messages(item))


def get_content(
    db_path: str | Path,
    source_key: str,
    identity: str = "",
    *,
    rules: KeyRules = DEFAULT_RULES,
) -> ConversationContent:
    """Transcript for one conversation.

    Raises:
        CannotOpenError: the store cannot be opened.
        ConversationNotFoundError: the key is in no known table, or
            ``identity`` matches nothing in the aggregate value.
        ContentParseError: the value is not valid JSON.
    """
    with open_store(db_path) as store:
        value = _read_value(store, source_key)
    if value is None:
        raise ConversationNotFoundError("Key not found in database")

    try:
        document = loads(value)
    except JSONDecodeError as exc:
        raise ContentParseError(f"Failed to parse JSON: {exc}") from exc

    if source_key.startswith(COMPOSER_KEY_PREFIX):
        return reconstruct_composer(document, source_key)

    if rules.is_aggregate(source_key) and identity:
        item = find_in_aggregate(document, identity)
        if item is None:
            raise ConversationNotFoundError("Conversation not found in aggregated data")
        if is_composer(item):
            return reconstruct_composer(item, source_key)
        return _direct_content(item, source_key)

    return _direct_content(document, source_key)


__all__ = ["extract_messages", "find_in_aggregate", "get_content"]
