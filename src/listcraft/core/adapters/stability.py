"""Stability AI adapter (v1 generation REST API).

Text-to-image asks for all images in one call with ``samples=count``.
Image-to-image uploads the source as ``init_image`` in ``IMAGE_STRENGTH`` mode;
that endpoint is called once per image with one sample each and the results
are recombined in request order.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from listcraft.core.errors import ParseError, truncate
from listcraft.core.model_adapters import (
    ProviderAdapter,
    adapter_registry,
    gather_in_order,
    read_json,
)
from listcraft.core.models import ImageGenerationRequest, ImageGenerationResult, Provider
from listcraft.core.prompt_builder import build_image_prompt

logger = logging.getLogger(__name__)

BASE_URL = "https://api.stability.ai/v1/generation"

DEFAULT_SOURCE_STRENGTH = 0.35
CFG_SCALE = 7
STEPS = 30

# Width x height per aspect ratio, all within the SDXL allowed dimensions.
DIMENSIONS = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "9:16": (768, 1344),
    "21:9": (1536, 640),
    "2:3": (832, 1216),
    "3:2": (1216, 832),
}


def _artifacts(data: Any, raw: str) -> list[str]:
    try:
        artifacts = data["artifacts"]
        return [a["base64"] for a in artifacts if a.get("base64")]
    except (KeyError, TypeError, AttributeError) as e:
        logger.error(f"Unexpected Stability AI payload: {truncate(raw)}")
        raise ParseError("Stability AI returned an unexpected image payload", raw=raw) from e


class StabilityAdapter(ProviderAdapter):
    provider = Provider.STABILITY
    supports_images = True

    def _headers(self, credential: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {credential}", "Accept": "application/json"}

    async def generate_images(
        self, model_id: str, request: ImageGenerationRequest, credential: str
    ) -> ImageGenerationResult:
        prompt = build_image_prompt(request.prompt)

        if request.source_image:
            strength = (
                request.source_strength
                if request.source_strength is not None
                else DEFAULT_SOURCE_STRENGTH
            )
            logger.info(
                f"Requesting {request.count} image-to-image result(s) from Stability AI "
                f"({model_id}, strength {strength})"
            )
            batches = await gather_in_order(
                (
                    self._image_to_image(model_id, prompt, request, strength, credential)
                    for _ in range(request.count)
                )
            )
            images = [image for batch in batches for image in batch]
            return self._image_result(
                images, model_id, mode="image-to-image", source_strength=strength
            )

        width, height = DIMENSIONS.get(request.aspect_ratio or "1:1", DIMENSIONS["1:1"])
        body: dict[str, Any] = {
            "text_prompts": [{"text": prompt, "weight": 1}],
            "cfg_scale": CFG_SCALE,
            "height": height,
            "width": width,
            "samples": request.count,
            "steps": STEPS,
        }
        if request.style:
            body["style_preset"] = request.style

        logger.info(f"Requesting {request.count} image(s) from Stability AI ({model_id})")
        response = await self._send(
            "POST",
            f"{BASE_URL}/{model_id}/text-to-image",
            headers={**self._headers(credential), "Content-Type": "application/json"},
            json=body,
        )
        images = _artifacts(read_json(response, self.label), response.text)
        return self._image_result(
            images, model_id, mode="text-to-image", width=width, height=height
        )

    async def _image_to_image(
        self,
        model_id: str,
        prompt: str,
        request: ImageGenerationRequest,
        strength: float,
        credential: str,
    ) -> list[str]:
        data = {
            "text_prompts[0][text]": prompt,
            "text_prompts[0][weight]": "1",
            "init_image_mode": "IMAGE_STRENGTH",
            "image_strength": str(strength),
            "cfg_scale": str(CFG_SCALE),
            "samples": "1",
            "steps": str(STEPS),
        }
        if request.style:
            data["style_preset"] = request.style

        response = await self._send(
            "POST",
            f"{BASE_URL}/{model_id}/image-to-image",
            headers=self._headers(credential),
            files={"init_image": ("init.png", base64.b64decode(request.source_image), "image/png")},
            data=data,
        )
        return _artifacts(read_json(response, self.label), response.text)


adapter_registry.register(StabilityAdapter)
