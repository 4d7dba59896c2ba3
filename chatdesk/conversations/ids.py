"""Identifier allocation for conversations and messages."""

from collections.abc import Callable
from uuid import uuid4


def _uuid_hex() -> str:
    return uuid4().hex


class IdAllocator:
    """Hand out prefixed identifiers that are never reused."""

    CONVERSATION_PREFIX = "chat_"
    MESSAGE_PREFIX = "msg_"

    def __init__(self, token_factory: Callable[[], str] | None = None) -> None:
        self._token_factory = token_factory or _uuid_hex

    def conversation_id(self) -> str:
        return f"{self.CONVERSATION_PREFIX}{self._token_factory()}"

    def message_id(self) -> str:
        return f"{self.MESSAGE_PREFIX}{self._token_factory()}"
