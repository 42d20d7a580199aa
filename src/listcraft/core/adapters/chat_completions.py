"""Text adapters for OpenAI-compatible chat completion APIs.

Groq, xAI and OpenRouter expose the OpenAI ``/chat/completions`` wire format,
so one base class carries the request building and response parsing and each
provider only sets its endpoint and sampling options.  The OpenAI adapter in
:mod:`listcraft.core.adapters.openai` extends the same base with images.
"""

from __future__ import annotations

import logging
from typing import Any

from listcraft.core.errors import ParseError, truncate
from listcraft.core.model_adapters import ProviderAdapter, adapter_registry, read_json
from listcraft.core.models import Provider, TextGenerationRequest, TextGenerationResult
from listcraft.core.prompt_builder import (
    SYSTEM_MESSAGE,
    build_description_prompt,
    parse_description_payload,
)

logger = logging.getLogger(__name__)


class ChatCompletionsAdapter(ProviderAdapter):
    """Base adapter for ``POST {base_url}/chat/completions``.

    Attributes
    ----------
    base_url : str
        API root, without a trailing slash
    json_mode : bool
        Send ``response_format: {"type": "json_object"}``
    temperature : float
        Sampling temperature
    max_tokens : int
        Completion token limit
    """

    supports_text = True

    base_url: str = ""
    json_mode: bool = True
    temperature: float = 0.7
    max_tokens: int = 2000

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }

    def _body(self, model_id: str, prompt: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model_id,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.json_mode:
            body["response_format"] = {"type": "json_object"}
        return body

    async def generate_text(
        self, model_id: str, request: TextGenerationRequest, credential: str
    ) -> TextGenerationResult:
        prompt = build_description_prompt(
            request.original_text, request.subject_name, request.tone, request.style
        )
        logger.info(f"Requesting description from {self.label} ({model_id})")

        response = await self._send(
            "POST",
            f"{self.base_url}/chat/completions",
            headers=self._headers(credential),
            json=self._body(model_id, prompt),
        )
        data = read_json(response, self.label)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raw = response.text
            logger.error(f"No content returned from {self.label}: {truncate(raw)}")
            raise ParseError(f"No content returned from {self.label}", raw=raw)

        return parse_description_payload(content)


class GroqAdapter(ChatCompletionsAdapter):
    provider = Provider.GROQ
    base_url = "https://api.groq.com/openai/v1"
    temperature = 0.6
    max_tokens = 1024


class XAIAdapter(ChatCompletionsAdapter):
    provider = Provider.XAI
    base_url = "https://api.x.ai/v1"
    json_mode = False


class OpenRouterAdapter(ChatCompletionsAdapter):
    """OpenRouter wants the calling application identified in headers."""

    provider = Provider.OPENROUTER
    base_url = "https://openrouter.ai/api/v1"

    def _headers(self, credential: str) -> dict[str, str]:
        headers = super()._headers(credential)
        headers["HTTP-Referer"] = self.config.app_referer
        headers["X-Title"] = self.config.app_title
        return headers


adapter_registry.register(GroqAdapter)
adapter_registry.register(XAIAdapter)
adapter_registry.register(OpenRouterAdapter)
