"""Tests for the key-value store adapter."""

from __future__ import annotations

import sqlite3

import pytest

from chatsweep.errors import CannotOpenError
from chatsweep.rules import DISK_KV_TABLE, ITEM_TABLE
from chatsweep.store import open_store, text_to_bytes

from tests.helpers import StoreBuilder, row_keys


@pytest.fixture
def store_path(db_path):
    return (
        StoreBuilder(db_path)
        .item("chat.alpha", "a" * 30)
        .item("chat.beta", "b" * 12_000)
        .item("other.key", "zzz")
        .item("blob.key", b"\x00\x01binary\xff")
        .disk_kv("composerData:1", '{"composerId":"1","name":"' + "n" * 60 + '"}')
        .disk_kv("composerData:2", b"\x00not text")
        .disk_kv("bubbleId:1:a", "x" * 50)
        .build()
    )


class TestOpenStore:
    def test_lists_tables(self, store_path):
        with open_store(store_path) as store:
            assert store.tables == {ITEM_TABLE, DISK_KV_TABLE}
            assert store.has_table(ITEM_TABLE)
            assert not store.has_table("Nope")

    def test_missing_file_cannot_open(self, tmp_path):
        with pytest.raises(CannotOpenError):
            with open_store(tmp_path / "missing.vscdb"):
                pass

    def test_missing_file_is_not_created_for_writes(self, tmp_path):
        target = tmp_path / "missing.vscdb"
        with pytest.raises(CannotOpenError):
            with open_store(target, write=True):
                pass
        assert not target.exists()

    def test_garbage_file_cannot_open(self, tmp_path):
        target = tmp_path / "garbage.vscdb"
        target.write_bytes(b"this is not a sqlite database" * 100)
        with pytest.raises(CannotOpenError):
            with open_store(target):
                pass

    def test_read_handle_refuses_writes(self, store_path):
        with open_store(store_path) as store:
            with pytest.raises(sqlite3.OperationalError):
                store.delete_key(ITEM_TABLE, "chat.alpha")

    def test_handle_is_closed_after_error(self, store_path):
        with pytest.raises(RuntimeError):
            with open_store(store_path) as store:
                raise RuntimeError("boom")
        with pytest.raises(sqlite3.ProgrammingError):
            store.conn.execute("SELECT 1")


class TestReads:
    def test_value_size(self, store_path):
        with open_store(store_path) as store:
            assert store.value_size(ITEM_TABLE, "chat.beta") == 12_000
            assert store.value_size(ITEM_TABLE, "absent") == 0
            assert store.value_size("Nope", "chat.beta") == 0

    def test_value_full(self, store_path):
        with open_store(store_path) as store:
            assert store.value_full(ITEM_TABLE, "chat.alpha") == "a" * 30
            assert store.value_full(ITEM_TABLE, "absent") is None

    def test_blob_value_keeps_its_bytes(self, store_path):
        with open_store(store_path) as store:
            value = store.value_full(ITEM_TABLE, "blob.key")
        assert text_to_bytes(value) == b"\x00\x01binary\xff"

    def test_preview_is_bounded(self, store_path):
        with open_store(store_path) as store:
            entries = {e.key: e for e in store.value_preview(ITEM_TABLE, "chat.%", 8000)}

        assert set(entries) == {"chat.alpha", "chat.beta"}
        assert entries["chat.beta"].preview == "b" * 8000
        assert entries["chat.beta"].size == 12_000
        assert entries["chat.alpha"].preview == "a" * 30

    def test_text_values_filters_type_and_size(self, store_path):
        with open_store(store_path) as store:
            rows = dict(store.text_values(DISK_KV_TABLE, "composerData:%", 50))

        assert list(rows) == ["composerData:1"]

    def test_value_sizes(self, store_path):
        with open_store(store_path) as store:
            assert dict(store.value_sizes(DISK_KV_TABLE, "bubbleId:%")) == {"bubbleId:1:a": 50}

    def test_missing_table_reads_are_empty(self, tmp_path):
        path = StoreBuilder(tmp_path / "only_item.vscdb").item("chat.x", "v").build()
        with open_store(path) as store:
            assert store.value_preview(DISK_KV_TABLE, "%", 10) == []
            assert list(store.text_values(DISK_KV_TABLE, "%", 0)) == []
            assert list(store.value_sizes(DISK_KV_TABLE, "%")) == []
            assert store.value_full(DISK_KV_TABLE, "chat.x") is None


class TestWrites:
    def test_delete_and_vacuum(self, store_path):
        with open_store(store_path, write=True) as store:
            assert store.delete_key(ITEM_TABLE, "chat.beta") == 1
            assert store.delete_key(ITEM_TABLE, "chat.beta") == 0
            assert store.delete_key("Nope", "chat.beta") == 0
            assert store.vacuum() is True

        assert "chat.beta" not in row_keys(store_path)
