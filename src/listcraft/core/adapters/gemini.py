"""Google Gemini adapter over the REST ``generateContent`` endpoint.

Gemini serves description enhancement only; its image path is a capability
gap and raises :class:`~listcraft.core.errors.UnsupportedCapabilityError`
from the base class.
"""

from __future__ import annotations

import logging

import httpx

from listcraft.core.errors import CredentialError, ParseError, truncate
from listcraft.core.model_adapters import (
    ProviderAdapter,
    adapter_registry,
    extract_error_message,
    read_json,
)
from listcraft.core.models import Provider, TextGenerationRequest, TextGenerationResult
from listcraft.core.prompt_builder import build_description_prompt, parse_description_payload

logger = logging.getLogger(__name__)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAdapter(ProviderAdapter):
    provider = Provider.GEMINI
    supports_text = True

    async def generate_text(
        self, model_id: str, request: TextGenerationRequest, credential: str
    ) -> TextGenerationResult:
        prompt = build_description_prompt(
            request.original_text, request.subject_name, request.tone, request.style
        )
        logger.info(f"Requesting description from Gemini ({model_id})")

        response = await self._send(
            "POST",
            f"{BASE_URL}/models/{model_id}:generateContent",
            headers={"x-goog-api-key": credential, "Content-Type": "application/json"},
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "temperature": 0.7,
                },
            },
        )

        data = read_json(response, self.label)
        try:
            parts = data["candidates"][0]["content"]["parts"]
            content = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError):
            content = ""

        if not content.strip():
            raw = response.text
            logger.error(f"No content returned from Gemini: {truncate(raw)}")
            raise ParseError("No content returned from Gemini", raw=raw)

        return parse_description_payload(content)

    def _raise_for_status(self, response: httpx.Response) -> None:
        # Gemini reports a bad key as HTTP 400 rather than 401.
        if response.status_code == 400:
            message = extract_error_message(response) or ""
            if "API key not valid" in message or "API_KEY_INVALID" in response.text:
                logger.error("Gemini rejected the API key")
                raise CredentialError(f"Invalid Gemini API key: {message}")
        super()._raise_for_status(response)


adapter_registry.register(GeminiAdapter)
