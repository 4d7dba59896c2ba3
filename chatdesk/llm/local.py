"""
Local LLM Provider

Streaming implementation of BaseLLMProvider for local model servers.
Supports Ollama natively and any OpenAI-compatible endpoint (vLLM, llama.cpp).
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Literal

import httpx

from chatdesk.llm.base import BaseLLMProvider
from chatdesk.llm.models import LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)


class LocalProvider(BaseLLMProvider):
    """
    Local LLM provider implementation.

    ``api_style`` selects the wire format: "ollama" streams newline-delimited
    JSON from /api/chat, "openai" streams server-sent events from
    /v1/chat/completions.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: int = 30,
        api_style: Literal["ollama", "openai"] = "ollama",
    ):
        super().__init__(
            provider_name="local",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_style = api_style
        self.client = httpx.AsyncClient(timeout=float(timeout))

        logger.info(
            f"Local provider initialized: {base_url} with model: {model}",
            extra={"base_url": base_url, "model": model, "api_style": api_style},
        )

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """Stream completion using the local model server."""
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = {
            "model": request.model or self.model,
            "messages": request.payload_messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": True,
        }

        if self.api_style == "ollama":
            url = f"{self.base_url}/api/chat"
        else:
            url = f"{self.base_url}/v1/chat/completions"

        async with self.client.stream("POST", url, json=payload) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                content = self._parse_line(line)
                if content:
                    yield LLMStreamChunk(content=content, finish_reason=None)

    def _parse_line(self, line: str) -> str | None:
        line = line.strip()
        if not line:
            return None
        if self.api_style == "ollama":
            return json.loads(line).get("message", {}).get("content")
        if not line.startswith("data: ") or line.endswith("[DONE]"):
            return None
        chunk_data = json.loads(line[6:])
        choices = chunk_data.get("choices") or [{}]
        return choices[0].get("delta", {}).get("content")

    async def close(self) -> None:
        await self.client.aclose()
