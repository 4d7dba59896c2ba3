"""
LLM Provider Module

Streaming LLM abstraction layer supporting OpenAI, Anthropic, and local models.

Usage:
    from chatdesk.llm import LLMProviderFactory, LLMMessage
    from chatdesk.config import get_settings

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)
    reply = await provider.stream_reply(
        [LLMMessage(role="user", content="Hello!")],
        model=None,
        on_fragment=print,
    )
"""

from chatdesk.llm.anthropic import AnthropicProvider
from chatdesk.llm.base import BaseLLMProvider, FragmentCallback
from chatdesk.llm.factory import LLMProviderFactory
from chatdesk.llm.local import LocalProvider
from chatdesk.llm.models import LLMMessage, LLMRequest, LLMStreamChunk
from chatdesk.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "FragmentCallback",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMStreamChunk",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    "LocalProvider",
]
