"""In-memory conversation state with per-user durable persistence."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chatdesk.auth import IdentityProvider, IdentityState, Unsubscribe, UserIdentity
from chatdesk.config import ChatSettings, StorageSettings
from chatdesk.conversations.ids import IdAllocator
from chatdesk.diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from chatdesk.llm.base import BaseLLMProvider
from chatdesk.llm.models import LLMMessage
from chatdesk.models.chat import Conversation, ConversationList, Message, Role, utc_now
from chatdesk.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

TITLE_ELLIPSIS = "..."
_MIN_TICK = timedelta(microseconds=1)


class StoreSnapshot(BaseModel):
    """Point-in-time copy of the store state handed to listeners."""

    conversations: list[Conversation] = Field(default_factory=list)
    active_conversation_id: str | None = None
    busy: bool = False
    user_id: str | None = None

    model_config = ConfigDict(frozen=True)


SnapshotListener = Callable[[StoreSnapshot], None]


class ConversationStore:
    """
    Single-writer owner of the signed-in user's conversations.

    Every mutation rewrites the user's whole collection to the key-value
    substrate and then notifies subscribers with a fresh snapshot. Reads
    return deep copies, so callers never hold references into live state.

    Usage:
        store = ConversationStore(kv_store, identity_provider, llm_provider)
        store.start()
        chat_id = store.create_conversation(activate=True)
        await store.send_user_message("Plan my trip to Peru")
        store.close()
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        identity_provider: IdentityProvider,
        llm_provider: BaseLLMProvider,
        *,
        settings: ChatSettings | None = None,
        key_prefix: str | None = None,
        diagnostics: DiagnosticsSink | None = None,
        id_allocator: IdAllocator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._kv = kv_store
        self._identity_provider = identity_provider
        self._llm = llm_provider
        self._settings = settings or ChatSettings()
        self._key_prefix = key_prefix or StorageSettings().key_prefix
        self._diagnostics = diagnostics or LoggingDiagnosticsSink(__name__)
        self._ids = id_allocator or IdAllocator()
        self._clock = clock or utc_now

        self._conversations: list[Conversation] = []
        self._active_id: str | None = None
        self._busy = False
        self._identity: UserIdentity | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._listeners: list[SnapshotListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to identity changes. Calling twice is a no-op."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._identity_provider.on_identity_change(
            self._handle_identity_change
        )

    def close(self) -> None:
        """Release the identity subscription."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def _handle_identity_change(self, state: IdentityState) -> None:
        self._identity = state.identity
        self._active_id = None
        if state.identity is None:
            self._conversations = []
            logger.info("conversation_state_cleared")
        else:
            self._conversations = self._load(state.identity.id)
            logger.info(
                "conversation_state_loaded",
                extra={
                    "user_id": state.identity.id,
                    "conversation_count": len(self._conversations),
                },
            )
        self._notify()

    def reload(self) -> None:
        """Replace in-memory state with the bound identity's durable collection."""
        self._handle_identity_change(IdentityState(identity=self._identity))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def identity(self) -> UserIdentity | None:
        return self._identity

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def active_conversation_id(self) -> str | None:
        return self._active_id

    @property
    def conversations(self) -> list[Conversation]:
        return [conversation.model_copy(deep=True) for conversation in self._conversations]

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            conversations=self.conversations,
            active_conversation_id=self._active_id,
            busy=self._busy,
            user_id=self._identity.id if self._identity else None,
        )

    def get_conversation(self, chat_id: str) -> Conversation | None:
        conversation = self._find(chat_id)
        return conversation.model_copy(deep=True) if conversation else None

    def get_active_conversation(self) -> Conversation | None:
        if self._active_id is None:
            return None
        return self.get_conversation(self._active_id)

    def subscribe(self, listener: SnapshotListener) -> Unsubscribe:
        """Register a listener called with a snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_active_conversation(self, chat_id: str | None) -> bool:
        if chat_id is not None and self._find(chat_id) is None:
            logger.warning("activate_unknown_conversation", extra={"chat_id": chat_id})
            return False
        self._active_id = chat_id
        self._notify()
        return True

    def create_conversation(self, *, activate: bool = False) -> str | None:
        """Create an empty conversation at the front of the list; None when signed out."""
        if self._identity is None:
            logger.debug("create_conversation_without_identity")
            return None

        now = self._clock()
        conversation = Conversation(
            id=self._ids.conversation_id(),
            user_id=self._identity.id,
            title=self._settings.default_title,
            created_at=now,
            updated_at=now,
            messages=[],
        )
        self._conversations.insert(0, conversation)
        if activate:
            self._active_id = conversation.id
        logger.debug("conversation_created", extra={"chat_id": conversation.id})
        self._commit()
        return conversation.id

    def rename_conversation(self, chat_id: str, title: str) -> bool:
        conversation = self._find(chat_id)
        if conversation is None:
            return False
        conversation.title = title
        self._touch(conversation)
        self._commit()
        return True

    def delete_conversation(self, chat_id: str) -> bool:
        remaining = [c for c in self._conversations if c.id != chat_id]
        if len(remaining) == len(self._conversations):
            return False
        self._conversations = remaining
        if self._active_id == chat_id:
            self._active_id = remaining[0].id if remaining else None
        logger.debug(
            "conversation_deleted",
            extra={"chat_id": chat_id, "active_conversation_id": self._active_id},
        )
        self._commit()
        return True

    def append_message(self, chat_id: str, role: Role, content: str = "") -> Message | None:
        """
        Append a message to a conversation and return it.

        The first message of a conversation, when it is a non-blank user
        message, also becomes the conversation title (truncated to
        ``title_max_length`` characters plus an ellipsis).
        """
        conversation = self._find(chat_id)
        if conversation is None:
            return None

        message = Message(
            id=self._ids.message_id(),
            chat_id=chat_id,
            role=role,
            content=content,
            created_at=self._clock(),
        )
        if not conversation.messages and role == "user":
            title = self._derive_title(content)
            if title:
                conversation.title = title
        conversation.messages.append(message)
        self._touch(conversation)
        self._commit()
        return message.model_copy()

    def update_message_content(self, chat_id: str, message_id: str, content: str) -> bool:
        """Replace a message's content in place."""
        conversation = self._find(chat_id)
        if conversation is None:
            return False
        message = conversation.find_message(message_id)
        if message is None:
            return False
        message.content = content
        self._touch(conversation)
        self._commit()
        return True

    async def send_user_message(self, content: str) -> Message | None:
        """
        Send ``content`` in the active conversation and stream the reply.

        Appends the user message and an empty assistant placeholder, then
        rewrites the placeholder with the full accumulated reply after every
        streamed fragment. On failure the placeholder is overwritten with the
        configured error reply. Returns the final assistant message, or None
        when nothing was sent.
        """
        text = content.strip()
        if not text:
            return None
        chat_id = self._active_id
        if self._identity is None or chat_id is None:
            logger.debug("send_without_active_conversation")
            return None
        if self._busy:
            logger.warning("send_while_busy_ignored", extra={"chat_id": chat_id})
            return None

        placeholder_id: str | None = None
        try:
            self.append_message(chat_id, "user", text)
            placeholder = self.append_message(chat_id, "assistant", "")
            placeholder_id = placeholder.id
            self._set_busy(True)

            history = self._build_history(chat_id, exclude_id=placeholder_id)
            accumulated = ""

            def on_fragment(fragment: str) -> None:
                nonlocal accumulated
                accumulated += fragment
                self.update_message_content(chat_id, placeholder_id, accumulated)

            await self._llm.stream_reply(history, self._settings.model, on_fragment)
            logger.info(
                "assistant_reply_completed",
                extra={"chat_id": chat_id, "message_id": placeholder_id, "chars": len(accumulated)},
            )
        except Exception as exc:
            self._diagnostics.report(
                "stream_failure", exc, chat_id=chat_id, message_id=placeholder_id
            )
            if placeholder_id is not None:
                self.update_message_content(chat_id, placeholder_id, self._settings.error_reply)
        finally:
            self._set_busy(False)

        conversation = self._find(chat_id)
        if conversation is None or placeholder_id is None:
            return None
        message = conversation.find_message(placeholder_id)
        return message.model_copy() if message else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, chat_id: str) -> Conversation | None:
        for conversation in self._conversations:
            if conversation.id == chat_id:
                return conversation
        return None

    def _derive_title(self, content: str) -> str | None:
        trimmed = content.strip()
        if not trimmed:
            return None
        limit = self._settings.title_max_length
        if len(trimmed) > limit:
            return trimmed[:limit] + TITLE_ELLIPSIS
        return trimmed

    def _touch(self, conversation: Conversation) -> None:
        # updated_at must strictly increase even when the clock does not
        conversation.updated_at = max(self._clock(), conversation.updated_at + _MIN_TICK)

    def _build_history(self, chat_id: str, *, exclude_id: str) -> list[LLMMessage]:
        conversation = self._find(chat_id)
        if conversation is None:
            return []
        return [
            LLMMessage(role=message.role, content=message.content)
            for message in conversation.messages
            if message.id != exclude_id and message.content
        ]

    def _set_busy(self, busy: bool) -> None:
        if self._busy == busy:
            return
        self._busy = busy
        self._notify()

    def _storage_key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}"

    def _load(self, user_id: str) -> list[Conversation]:
        key = self._storage_key(user_id)
        try:
            raw = self._kv.get(key)
        except UnicodeDecodeError as exc:
            self._diagnostics.report("persistence_corrupt", exc, key=key)
            return []
        except OSError as exc:
            self._diagnostics.report("persistence_read_failed", exc, key=key)
            return []
        if raw is None:
            return []
        try:
            conversations = ConversationList.validate_json(raw)
        except ValidationError as exc:
            self._diagnostics.report("persistence_corrupt", exc, key=key)
            return []

        owned = [c for c in conversations if c.user_id == user_id]
        if len(owned) != len(conversations):
            logger.warning(
                "foreign_conversations_skipped",
                extra={"key": key, "skipped": len(conversations) - len(owned)},
            )
        return owned

    def _persist(self) -> None:
        if self._identity is None:
            return
        key = self._storage_key(self._identity.id)
        payload = ConversationList.dump_json(self._conversations).decode("utf-8")
        try:
            self._kv.set(key, payload)
        except OSError as exc:
            self._diagnostics.report("persistence_write_failed", exc, key=key)

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                self._diagnostics.report("listener_failed", exc)
