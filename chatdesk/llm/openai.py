"""
OpenAI LLM Provider

Streams chat completion deltas from the OpenAI API as reply fragments.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import openai
from openai import AsyncOpenAI

from chatdesk.llm.base import BaseLLMProvider
from chatdesk.llm.models import FinishReason, LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)

_PASSTHROUGH_FINISH_REASONS = {"stop", "length", "content_filter"}


class OpenAIProvider(BaseLLMProvider):
    """Reply streaming through ``AsyncOpenAI.chat.completions``."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))
        logger.info(f"OpenAI provider ready ({model})", extra={"model": model})

    def _completion_params(self, request: LLMRequest) -> dict[str, Any]:
        return {
            "model": request.model or self.model,
            "messages": request.payload_messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": True,
            **request.options,
        }

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """
        Yield one chunk per content-bearing delta.

        Raises:
            openai.APIError: On API errors, after any chunks already yielded
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            events = await self.client.chat.completions.create(**self._completion_params(request))
            async for event in events:
                chunk = self._to_chunk(event)
                if chunk is not None:
                    yield chunk
        except openai.APIError as e:
            logger.error(f"OpenAI stream failed: {e}", extra={"model": request.model or self.model})
            raise

    def _to_chunk(self, event: Any) -> LLMStreamChunk | None:
        # role-only and usage-only events carry no text
        if not event.choices:
            return None
        choice = event.choices[0]
        if not choice.delta.content:
            return None
        finish = self._map_finish_reason(choice.finish_reason) if choice.finish_reason else None
        return LLMStreamChunk(
            content=choice.delta.content,
            finish_reason=finish,
            metadata={"id": event.id},
        )

    def _map_finish_reason(self, reason: str | None) -> FinishReason:
        return reason if reason in _PASSTHROUGH_FINISH_REASONS else "stop"
