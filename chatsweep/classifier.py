"""Decide how each key in a store is read and parsed.

Keys in the flat table are handled in tiers:

1. aggregate keys holding a whole chat dataset (size-gated full read)
2. per-conversation key patterns (bounded preview read)
3. ignore rules for metadata keys that only resemble chat storage
4. discovery over broad patterns, only when 1-2 found nothing

Stores that also have the composite table keep per-message rows there;
their composer rows are read in full and credited with their children's
sizes.
"""

from __future__ import annotations

from collections import defaultdict

from chatsweep.lib.log import get_logger
from chatsweep.models import ConversationRecord
from chatsweep.parsers import ParseContext, extract_from_preview, parse_chat_value, parse_composer_value
from chatsweep.rules import (
    AGGREGATE_MIN_SIZE,
    BUBBLE_KEY_PREFIX,
    COMPOSER_KEY_PREFIX,
    COMPOSER_MIN_SIZE,
    DEFAULT_RULES,
    DISCOVERY_FULL_READ_MIN,
    DISCOVERY_MIN_SIZE,
    DISK_KV_TABLE,
    ITEM_MIN_SIZE,
    ITEM_TABLE,
    MAX_FULL_READ,
    PREVIEW_LEN,
    KeyRules,
)
from chatsweep.store import KVStore

logger = get_logger(__name__)


class KeyClassifier:
    """Runs the key tiers over one store. One instance can serve many scans."""

    def __init__(self, rules: KeyRules = DEFAULT_RULES):
        self.rules = rules

    def classify(self, store: KVStore, modified: int | None = None) -> list[ConversationRecord]:
        """Records for every conversation found in ``store``."""
        db_path = str(store.path)
        records: list[ConversationRecord] = []
        if store.has_table(ITEM_TABLE):
            records.extend(self.scan_item_table(store, db_path, modified))
        if store.has_table(DISK_KV_TABLE):
            records.extend(self.scan_composite_table(store, db_path, modified))
        return records

    # Flat table

    def scan_item_table(self, store: KVStore, db_path: str, modified: int | None) -> list[ConversationRecord]:
        processed: set[str] = set()
        records = self._aggregate_keys(store, db_path, modified, processed)
        # Composite-table stores list the same conversations there.
        if not store.has_table(DISK_KV_TABLE):
            records.extend(self._item_patterns(store, db_path, modified, processed))
        if not records:
            records.extend(self._discover(store, db_path, modified, processed))
        return records

    def _aggregate_keys(
        self, store: KVStore, db_path: str, modified: int | None, processed: set[str]
    ) -> list[ConversationRecord]:
        records: list[ConversationRecord] = []
        for key in self.rules.aggregate_keys:
            size = store.value_size(ITEM_TABLE, key)
            if size < AGGREGATE_MIN_SIZE:
                continue
            processed.add(key)
            ctx = ParseContext(db_path, key, modified)
            if size >= MAX_FULL_READ:
                logger.debug("aggregate_key_oversized", key=key, size=size)
                records.append(ctx.record(title=key, message_count=0, size_bytes=size))
                continue
            value = store.value_full(ITEM_TABLE, key)
            if value is not None:
                records.extend(parse_chat_value(value, ctx))
        return records

    def _candidates(self, store: KVStore, patterns: tuple[str, ...], processed: set[str]):
        for pattern in patterns:
            for entry in store.value_preview(ITEM_TABLE, pattern, PREVIEW_LEN):
                if entry.key in processed or self.rules.is_ignored(entry.key):
                    continue
                processed.add(entry.key)
                yield entry

    def _item_patterns(
        self, store: KVStore, db_path: str, modified: int | None, processed: set[str]
    ) -> list[ConversationRecord]:
        records: list[ConversationRecord] = []
        for entry in self._candidates(store, self.rules.item_patterns, processed):
            if entry.size <= ITEM_MIN_SIZE:
                continue
            record = extract_from_preview(entry, ParseContext(db_path, entry.key, modified))
            if record is not None:
                records.append(record)
        return records

    def _discover(
        self, store: KVStore, db_path: str, modified: int | None, processed: set[str]
    ) -> list[ConversationRecord]:
        records: list[ConversationRecord] = []
        for entry in self._candidates(store, self.rules.discovery_patterns, processed):
            if entry.size <= DISCOVERY_MIN_SIZE:
                continue
            ctx = ParseContext(db_path, entry.key, modified)
            if DISCOVERY_FULL_READ_MIN < entry.size < MAX_FULL_READ:
                value = store.value_full(ITEM_TABLE, entry.key)
                found = parse_chat_value(value, ctx) if value is not None else []
                if found:
                    records.extend(found)
                    continue
            record = extract_from_preview(entry, ctx)
            if record is not None:
                logger.debug("discovered_key", key=entry.key, size=entry.size)
                records.append(record)
        return records

    # Composite table

    def child_sizes(self, store: KVStore) -> dict[str, int]:
        """Total size of ``bubbleId:{parent}:{child}`` rows per parent id."""
        sizes: dict[str, int] = defaultdict(int)
        for key, size in store.value_sizes(DISK_KV_TABLE, f"{BUBBLE_KEY_PREFIX}%"):
            parts = key.split(":", 2)
            if len(parts) >= 2:
                sizes[parts[1]] += size
        return dict(sizes)

    def scan_composite_table(
        self, store: KVStore, db_path: str, modified: int | None
    ) -> list[ConversationRecord]:
        child_sizes = self.child_sizes(store)
        records: list[ConversationRecord] = []
        for key, value in store.text_values(DISK_KV_TABLE, f"{COMPOSER_KEY_PREFIX}%", COMPOSER_MIN_SIZE):
            record = parse_composer_value(value, ParseContext(db_path, key, modified))
            if record is None:
                continue
            extra = child_sizes.get(record.item_id or "", 0)
            if extra:
                record = record.model_copy(update={"size_bytes": record.size_bytes + extra})
            records.append(record)
        return records


__all__ = ["KeyClassifier"]
