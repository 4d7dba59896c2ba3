"""
Streaming Reply Models

Provider-neutral request and chunk shapes passed between the conversation
store and the OpenAI, Anthropic, and local providers.
"""

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, Field

FinishReason = Literal["stop", "length", "content_filter", "error"]


class LLMMessage(BaseModel):
    """One history entry sent to a provider."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., min_length=1, description="Non-empty message text")

    def to_payload(self) -> dict[str, str]:
        """Wire dict accepted by chat-completion style APIs."""
        return {"role": self.role, "content": self.content}


class LLMRequest(BaseModel):
    """A single streamed reply request."""

    messages: list[LLMMessage] = Field(
        ..., min_length=1, description="History, oldest first, ending with the user turn"
    )
    model: str | None = Field(None, description="Model selector; None uses the provider model")
    temperature: float | None = Field(None, ge=0.0, le=2.0, description="Sampling override")
    max_tokens: int | None = Field(None, gt=0, description="Reply length override")
    stream: bool = Field(default=True, description="Replies are always streamed")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Extra provider keyword arguments"
    )

    @classmethod
    def from_history(cls, history: Iterable[LLMMessage], model: str | None) -> "LLMRequest":
        return cls(messages=list(history), model=model)

    def payload_messages(self, *, include_system: bool = True) -> list[dict[str, str]]:
        return [
            message.to_payload()
            for message in self.messages
            if include_system or message.role != "system"
        ]

    @property
    def system_prompt(self) -> str | None:
        """Content of the last system message, if any."""
        prompts = [message.content for message in self.messages if message.role == "system"]
        return prompts[-1] if prompts else None


class LLMStreamChunk(BaseModel):
    """A fragment of reply text as it arrives from the provider."""

    content: str = Field(..., description="Fragment text; may be empty on control events")
    finish_reason: FinishReason | None = Field(None, description="Set on the final fragment")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider event details")
