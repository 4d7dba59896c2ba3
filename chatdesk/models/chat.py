"""
Chat Models

Pydantic models for conversations, messages, and derived search results.
Conversations are the unit of persistence; search results are ephemeral.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

Role = Literal["user", "assistant"]


def utc_now() -> datetime:
    return datetime.now(UTC)


def assume_utc(value: datetime) -> datetime:
    """Treat timestamps stored without an offset as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Message(BaseModel):
    """One turn in a conversation. Content is mutable while a reply streams."""

    id: str = Field(..., description="Unique message identifier")
    chat_id: str = Field(..., description="Owning conversation identifier")
    role: Role = Field(..., description="Message author")
    content: str = Field(default="", description="Message text (may be empty while pending)")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")

    model_config = ConfigDict(frozen=False)

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return assume_utc(v)


class Conversation(BaseModel):
    """A titled, ordered sequence of messages owned by one user identity."""

    id: str = Field(..., description="Unique conversation identifier")
    user_id: str = Field(..., description="Owner identity")
    title: str = Field(..., description="Conversation title")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last write timestamp")
    messages: list[Message] = Field(
        default_factory=list, description="Messages in insertion order"
    )

    model_config = ConfigDict(frozen=False)

    @field_validator("created_at", "updated_at")
    @classmethod
    def validate_timestamps(cls, v: datetime) -> datetime:
        return assume_utc(v)

    def find_message(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None


class SearchResult(BaseModel):
    """A message matched by a search query, with its relevance score."""

    chat_id: str
    message_id: str
    chat_title: str
    content: str
    role: Role
    created_at: datetime
    relevance_score: int = Field(..., ge=0, description="Additive relevance score")

    model_config = ConfigDict(frozen=True)


ConversationList = TypeAdapter(list[Conversation])
