"""Tests for the multi-shape JSON chat parser."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chatsweep.lib.json import dumps
from chatsweep.parsers import ParseContext, parse_chat_value
from chatsweep.parsers.generic import MATCHERS, item_to_record, parse_document

from tests.helpers import make_chat

CTX = ParseContext("/tmp/state.vscdb", "chat.data", 1_700_000_000)

GOOD = [make_chat("Alpha", 2), make_chat("Beta", 3), make_chat("", 1)]
# No title and no messages: never a conversation.
BAD = {"id": "x", "note": "padding padding padding padding padding padding"}


# =============================================================================
# SHAPES - PARAMETRIZED
# =============================================================================


SHAPE_CASES = [
    ({"tabs": [*GOOD, BAD]}, "tabs"),
    ({"allComposers": [*GOOD, BAD]}, "allComposers"),
    ([*GOOD, BAD], "top-level array"),
    ({"threads": [*GOOD, BAD]}, "wrapper field"),
    ({"chats": [BAD], "sessions": [*GOOD]}, "first wrapper with records wins"),
]


@pytest.mark.parametrize("payload,desc", SHAPE_CASES)
def test_each_shape_yields_one_record_per_conversation(payload, desc):
    records = parse_chat_value(dumps(payload), CTX)

    assert [r.title for r in records] == ["Alpha", "Beta", "Chat 3"], desc
    assert [r.message_count for r in records] == [2, 3, 1], desc


def test_single_object_shape():
    records = parse_chat_value(dumps(make_chat("Solo", 4)), CTX)

    assert len(records) == 1
    assert records[0].title == "Solo"
    assert records[0].message_count == 4
    assert records[0].item_id == "item_0"


def test_tabs_win_over_later_shapes():
    payload = {"tabs": [make_chat("Tab", 1)], "conversations": [make_chat("Wrapped", 1)]}

    records = parse_chat_value(dumps(payload), CTX)

    assert [r.title for r in records] == ["Tab"]


def test_empty_tabs_fall_through_to_wrappers():
    payload = {"tabs": [BAD], "conversations": [make_chat("Wrapped", 1)]}

    records = parse_chat_value(dumps(payload), CTX)

    assert [r.title for r in records] == ["Wrapped"]


# =============================================================================
# PER-ITEM EXTRACTION
# =============================================================================


ITEM_CASES = [
    ({"chatTitle": "A", "title": "B"}, "A", 0),
    ({"subject": "S", "turns": [1, 2]}, "S", 2),
    ({"description": "D", "requests": [1]}, "D", 1),
    ({"name": "N", "exchanges": [1, 2, 3], "entries": [1]}, "N", 3),
    ({"title": 42, "bubbles": [1]}, "Chat 1", 1),
    ({"title": "T", "messages": "not a list"}, "T", 0),
]


@pytest.mark.parametrize("item,title,count", ITEM_CASES)
def test_item_fields(item, title, count):
    record = item_to_record(item, 0, CTX)

    assert record is not None
    assert record.title == title
    assert record.message_count == count


@pytest.mark.parametrize(
    "item",
    [
        {},
        {"title": ""},
        {"messages": []},
        {"id": "abc", "title": "", "messages": [], "payload": "x" * 200},
        "a string",
        ["a", "list"],
    ],
)
def test_items_without_title_or_messages_are_rejected(item):
    assert item_to_record(item, 0, CTX) is None


def test_small_titled_item_is_kept():
    record = item_to_record({"title": "T"}, 0, CTX)

    assert record is not None
    assert record.size_bytes == len('{"title":"T"}')


def test_identity_prefers_id_fields():
    record = item_to_record({"chatId": "c-1", "composerId": "x", "title": "T"}, 5, CTX)

    assert record.item_id == "c-1"
    assert record.id == "/tmp/state.vscdb:chat.data:c-1"


def test_positional_identity_when_id_missing_or_not_a_string():
    record = item_to_record({"id": 7, "title": "T"}, 3, CTX)

    assert record.item_id == "item_3"
    assert record.id.endswith(":chat.data:item_3")


def test_headers_only_item_counts_headers_and_gets_generated_title():
    payload = [{"fullConversationHeadersOnly": [{}, {}]}]

    records = parse_chat_value(dumps(payload), CTX)

    assert len(records) == 1
    assert records[0].message_count == 2
    assert records[0].title == "Chat 1"


def test_records_carry_context():
    record = parse_chat_value(dumps([make_chat("A", 1)]), CTX)[0]

    assert record.source_db == CTX.db_path
    assert record.source_key == CTX.key
    assert record.last_modified == CTX.modified


# =============================================================================
# ROBUSTNESS
# =============================================================================


@pytest.mark.parametrize("raw", ["", "not json", '{"tabs": [', "null", "42", '"text"', b"\xff\xfe"])
def test_invalid_or_scalar_values_yield_nothing(raw):
    assert parse_chat_value(raw, CTX) == []


def test_custom_matchers_can_be_appended():
    def match_payload(value):
        if isinstance(value, dict) and isinstance(value.get("payload"), list):
            yield value["payload"]

    document = {"payload": [make_chat("Custom", 1), make_chat("Other", 1)]}

    assert parse_document(document, CTX) == []
    records = parse_document(document, CTX, (*MATCHERS[:-1], match_payload))
    assert [r.title for r in records] == ["Custom", "Other"]


json_values = st.recursive(
    st.none() | st.booleans() | st.integers(-(2**31), 2**31) | st.text(max_size=20),
    lambda children: st.lists(children, max_size=5) | st.dictionaries(st.text(max_size=12), children, max_size=5),
    max_leaves=30,
)


@settings(max_examples=200)
@given(json_values)
def test_arbitrary_json_never_raises_and_titles_are_non_empty(value):
    records = parse_chat_value(dumps(value), CTX)

    for record in records:
        assert record.title
        assert record.size_bytes >= 0
