"""
Anthropic LLM Provider

Streaming implementation of BaseLLMProvider for Anthropic's Claude models.
"""

import logging
from collections.abc import AsyncIterator

import anthropic
from anthropic import AsyncAnthropic

from chatdesk.llm.base import BaseLLMProvider
from chatdesk.llm.models import LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """
    Anthropic (Claude) LLM provider implementation.

    Uses the anthropic Python SDK.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-20241022",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="anthropic",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout))

        logger.info(f"Anthropic provider initialized with model: {model}", extra={"model": model})

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """Stream completion using Anthropic API."""
        request = self._apply_defaults(request)
        self._log_request(request)

        # Anthropic takes the system prompt out of band
        kwargs = dict(request.options)
        if request.system_prompt:
            kwargs["system"] = request.system_prompt

        try:
            async with self.client.messages.stream(
                model=request.model or self.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                messages=request.payload_messages(include_system=False),
                **kwargs,
            ) as stream:
                async for text in stream.text_stream:
                    yield LLMStreamChunk(content=text, finish_reason=None)
        except anthropic.APIError as e:
            logger.error(f"Anthropic streaming error: {e}")
            raise
