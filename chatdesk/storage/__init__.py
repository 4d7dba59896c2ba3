"""Durable key-value substrates for conversation persistence."""

from chatdesk.storage.kv import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

__all__ = ["FileKeyValueStore", "InMemoryKeyValueStore", "KeyValueStore"]
