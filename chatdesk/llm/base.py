"""
Base LLM Provider

Abstract base class defining the streaming interface for all LLM providers.
Ensures consistent API across OpenAI, Anthropic, and local servers.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Sequence

from chatdesk.llm.models import LLMMessage, LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)

FragmentCallback = Callable[[str], None]


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        provider_name: Unique identifier for this provider
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        """
        Initialize base provider.

        Args:
            provider_name: Provider identifier (e.g., "openai", "anthropic")
            temperature: Default temperature for responses
            max_tokens: Default max tokens for responses
            timeout: Request timeout in seconds
        """
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    @abstractmethod
    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """
        Stream a completion from the LLM.

        Yields chunks of generated text as they're produced, in order.

        Args:
            request: LLM request with messages and parameters

        Yields:
            LLMStreamChunk: Chunks of generated text

        Raises:
            Exception: Provider-specific errors
        """
        pass  # pragma: no cover - abstract method

    async def stream_reply(
        self,
        history: Sequence[LLMMessage],
        model: str | None,
        on_fragment: FragmentCallback,
    ) -> str:
        """
        Stream a reply to ``history``, invoking ``on_fragment`` once per text chunk.

        Fragments are delivered sequentially; the callback finishes before the
        next chunk is requested. Errors from the provider propagate to the
        caller after any fragments already delivered.

        Returns:
            The concatenation of every delivered fragment.
        """
        request = LLMRequest.from_history(history, model)
        parts: list[str] = []
        async for chunk in self.stream(request):
            if not chunk.content:
                continue
            parts.append(chunk.content)
            on_fragment(chunk.content)
        reply = "".join(parts)
        logger.debug(
            f"{self.provider_name} reply streamed",
            extra={"provider": self.provider_name, "fragments": len(parts), "chars": len(reply)},
        )
        return reply

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """Apply default values to request if not specified."""
        if request.temperature is None:
            request.temperature = self.temperature
        if request.max_tokens is None:
            request.max_tokens = self.max_tokens
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
                "model": request.model,
            },
        )
