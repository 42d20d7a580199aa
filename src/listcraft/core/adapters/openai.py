"""OpenAI adapter: chat completions for text, DALL-E for images.

Image Modes
-----------
- **Text-to-image** (``/images/generations``): DALL-E 3 only returns one image
  per call, so ``count`` single-image calls run concurrently and the results
  are recombined in request order.
- **Variation** (``/images/variations``): used when the request carries a
  source image.  One multipart call with ``n=count`` on DALL-E 2, the only
  model the endpoint accepts.

Image Analysis
--------------
:meth:`OpenAIAdapter.analyze_image` sends the product photo to a vision chat
model as an ``image_url`` data URI and returns the description as plain prose.

Aspect ratios map to the DALL-E 3 sizes::

    16:9  -> 1792x1024
    9:16  -> 1024x1792
    other -> 1024x1024
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from listcraft.core.errors import ParseError, truncate
from listcraft.core.model_adapters import (
    adapter_registry,
    gather_in_order,
    image_mime_type,
    read_json,
)
from listcraft.core.models import (
    ImageAnalysisRequest,
    ImageAnalysisResult,
    ImageGenerationRequest,
    ImageGenerationResult,
    Provider,
)
from listcraft.core.prompt_builder import (
    ANALYSIS_SYSTEM_MESSAGE,
    ANALYSIS_USER_PROMPT,
    build_image_prompt,
)

from .chat_completions import ChatCompletionsAdapter

logger = logging.getLogger(__name__)

SIZES = {"16:9": "1792x1024", "9:16": "1024x1792"}
DEFAULT_SIZE = "1024x1024"
VARIATION_MODEL = "dall-e-2"
ANALYSIS_MAX_TOKENS = 1000


def _b64_images(data: Any, label: str, raw: str) -> list[str]:
    try:
        items = data["data"]
        return [item["b64_json"] for item in items if item.get("b64_json")]
    except (KeyError, TypeError, AttributeError) as e:
        logger.error(f"Unexpected {label} image payload: {truncate(raw)}")
        raise ParseError(f"{label} returned an unexpected image payload", raw=raw) from e


class OpenAIAdapter(ChatCompletionsAdapter):
    provider = Provider.OPENAI
    base_url = "https://api.openai.com/v1"
    supports_images = True
    supports_image_analysis = True

    async def generate_images(
        self, model_id: str, request: ImageGenerationRequest, credential: str
    ) -> ImageGenerationResult:
        if request.source_image:
            images = await self._variations(request, credential)
            return self._image_result(images, VARIATION_MODEL, mode="variation")

        size = SIZES.get(request.aspect_ratio or "", DEFAULT_SIZE)
        body: dict[str, Any] = {
            "model": model_id,
            "prompt": build_image_prompt(request.prompt),
            "n": 1,
            "size": size,
            "response_format": "b64_json",
        }
        if model_id == "dall-e-3":
            if request.quality:
                body["quality"] = "hd" if request.quality == "hd" else "standard"
            if request.style:
                body["style"] = request.style

        logger.info(f"Requesting {request.count} image(s) from OpenAI ({model_id}, {size})")
        batches = await gather_in_order(
            (self._generate_one(body, credential) for _ in range(request.count))
        )
        images = [image for batch in batches for image in batch]
        return self._image_result(images, model_id, mode="text-to-image", size=size)

    async def _generate_one(self, body: dict[str, Any], credential: str) -> list[str]:
        response = await self._send(
            "POST",
            f"{self.base_url}/images/generations",
            headers=self._headers(credential),
            json=body,
        )
        return _b64_images(read_json(response, self.label), self.label, response.text)

    async def _variations(self, request: ImageGenerationRequest, credential: str) -> list[str]:
        logger.info(f"Requesting {request.count} variation(s) from OpenAI")
        response = await self._send(
            "POST",
            f"{self.base_url}/images/variations",
            headers={"Authorization": f"Bearer {credential}"},
            files={"image": ("source.png", base64.b64decode(request.source_image), "image/png")},
            data={
                "model": VARIATION_MODEL,
                "n": str(request.count),
                "size": DEFAULT_SIZE,
                "response_format": "b64_json",
            },
        )
        return _b64_images(read_json(response, self.label), self.label, response.text)

    async def analyze_image(
        self, model_id: str, request: ImageAnalysisRequest, credential: str
    ) -> ImageAnalysisResult:
        mime = image_mime_type(base64.b64decode(request.image))
        logger.info(f"Requesting image analysis from OpenAI ({model_id}, {mime})")

        response = await self._send(
            "POST",
            f"{self.base_url}/chat/completions",
            headers=self._headers(credential),
            json={
                "model": model_id,
                "messages": [
                    {"role": "system", "content": ANALYSIS_SYSTEM_MESSAGE},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": ANALYSIS_USER_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime};base64,{request.image}"},
                            },
                        ],
                    },
                ],
                "max_tokens": ANALYSIS_MAX_TOKENS,
            },
        )
        data = read_json(response, self.label)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raw = response.text
            logger.error(f"No analysis returned from OpenAI: {truncate(raw)}")
            raise ParseError("No analysis generated", raw=raw)

        return ImageAnalysisResult(analysis=content.strip())


adapter_registry.register(OpenAIAdapter)
