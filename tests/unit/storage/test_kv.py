"""Unit tests for key-value substrates."""

from __future__ import annotations

import pytest

from chatdesk.storage import FileKeyValueStore, InMemoryKeyValueStore


class TestInMemoryKeyValueStore:
    """In-memory substrate behaviour."""

    def test_missing_key_returns_none(self):
        assert InMemoryKeyValueStore().get("chats_nobody") is None

    def test_set_overwrites(self):
        store = InMemoryKeyValueStore({"k": "old"})

        store.set("k", "new")

        assert store.get("k") == "new"
        assert store.keys() == ["k"]


class TestFileKeyValueStore:
    """File substrate behaviour."""

    def test_missing_key_returns_none(self, tmp_path):
        assert FileKeyValueStore(tmp_path / "data").get("chats_alice") is None

    def test_set_creates_directory_and_round_trips(self, tmp_path):
        data_dir = tmp_path / "nested" / "data"
        store = FileKeyValueStore(data_dir)

        store.set("chats_alice", '[{"title": "Peru – día 1"}]')

        assert data_dir.is_dir()
        assert store.get("chats_alice") == '[{"title": "Peru – día 1"}]'

    def test_set_replaces_whole_value(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("k", "a much longer first value")

        store.set("k", "short")

        assert store.get("k") == "short"

    def test_unsafe_key_characters_are_encoded(self, tmp_path):
        store = FileKeyValueStore(tmp_path)

        store.set("chats_../../etc/passwd", "[]")

        path = store.path_for("chats_../../etc/passwd")
        assert path.parent == tmp_path
        assert path.name == "chats_..%2F..%2Fetc%2Fpasswd.json"
        assert path.read_text(encoding="utf-8") == "[]"

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("chats_ann@x.io", "chats_ann_x.io"),
            ("chats_a/b", "chats_a_b"),
            ("chats_a%40b", "chats_a@b"),
        ],
    )
    def test_distinct_keys_never_share_a_file(self, tmp_path, first, second):
        store = FileKeyValueStore(tmp_path)

        store.set(first, "first")
        store.set(second, "second")

        assert store.path_for(first) != store.path_for(second)
        assert store.get(first) == "first"
        assert store.get(second) == "second"

    def test_undecodable_value_raises_unicode_error(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.path_for("chats_u1").write_bytes(b"\xff\xfe garbage")

        with pytest.raises(UnicodeDecodeError):
            store.get("chats_u1")

    def test_keys_are_isolated(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("chats_alice", "alice")
        store.set("chats_bob", "bob")

        assert store.get("chats_alice") == "alice"
        assert store.get("chats_bob") == "bob"
