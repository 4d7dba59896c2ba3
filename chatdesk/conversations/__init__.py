"""Conversation state, persistence, and the streaming reply protocol."""

from .ids import IdAllocator
from .store import ConversationStore, SnapshotListener, StoreSnapshot

__all__ = ["ConversationStore", "IdAllocator", "SnapshotListener", "StoreSnapshot"]
