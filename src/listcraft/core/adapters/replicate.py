"""Replicate adapter for job-based image generation.

Each requested image is its own prediction:

1. ``POST /predictions`` submits the job and returns its id.
2. ``GET /predictions/{id}`` is polled through
   :func:`~listcraft.core.polling.poll_until_complete` until the job is
   terminal or the attempt budget is spent.
3. The first output URL is downloaded and base64 encoded.

Predictions for one request run concurrently and are recombined in request
order.  When one prediction fails, its siblings are cancelled.  A prediction
cancelled mid-poll, either that way or because the awaiting task was
cancelled, asks Replicate to cancel it (best effort) and re-raises the
cancellation.

Model ids are pinned ``owner/name:version`` strings; only the version hash is
sent upstream.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from listcraft.core.errors import ParseError, ProviderError
from listcraft.core.model_adapters import (
    ProviderAdapter,
    adapter_registry,
    fetch_image_as_base64,
    gather_in_order,
    read_json,
)
from listcraft.core.models import (
    AsyncJob,
    ImageGenerationRequest,
    ImageGenerationResult,
    JobStatus,
    Provider,
)
from listcraft.core.polling import poll_until_complete
from listcraft.core.prompt_builder import build_image_prompt

logger = logging.getLogger(__name__)

BASE_URL = "https://api.replicate.com/v1"

NEGATIVE_PROMPT = (
    "low quality, blurry, distorted, deformed, disfigured, bad anatomy, "
    "watermark, signature, text"
)


def version_of(model_id: str) -> str:
    """Return the version hash of an ``owner/name:version`` model id."""
    return model_id.rsplit(":", 1)[-1]


def _job_from(data: Any, raw: str) -> AsyncJob:
    if not isinstance(data, dict) or not data.get("id"):
        raise ParseError("Replicate returned a prediction without an id", raw=raw)
    return AsyncJob(
        job_id=str(data["id"]),
        status=JobStatus.from_upstream(data.get("status")),
        output=data.get("output"),
        error=data.get("error"),
    )


def _first_output_url(output: Any) -> str | None:
    if isinstance(output, str) and output:
        return output
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    return None


class ReplicateAdapter(ProviderAdapter):
    provider = Provider.REPLICATE
    supports_images = True

    def _headers(self, credential: str) -> dict[str, str]:
        return {"Authorization": f"Token {credential}", "Content-Type": "application/json"}

    async def generate_images(
        self, model_id: str, request: ImageGenerationRequest, credential: str
    ) -> ImageGenerationResult:
        prompt = build_image_prompt(request.prompt)
        logger.info(f"Starting {request.count} Replicate prediction(s) for {model_id}")
        images = await gather_in_order(
            (self._generate_one(model_id, prompt, credential) for _ in range(request.count))
        )
        return self._image_result(images, model_id, mode="text-to-image")

    async def _generate_one(self, model_id: str, prompt: str, credential: str) -> str:
        job = await self._submit(model_id, prompt, credential)
        logger.debug(f"Replicate prediction {job.job_id} submitted")

        try:
            if not job.status.is_terminal:
                job = await poll_until_complete(
                    lambda: self._fetch(job.job_id, credential),
                    interval=self.config.poll_interval,
                    max_attempts=self.config.poll_max_attempts,
                )
        except asyncio.CancelledError:
            await self._cancel(job.job_id, credential)
            raise

        if job.status is not JobStatus.SUCCEEDED:
            message = job.error or f"Prediction {job.status.value}"
            logger.error(f"Replicate prediction {job.job_id} ended {job.status.value}: {message}")
            raise ProviderError(f"Replicate prediction {job.status.value}: {message}")

        url = _first_output_url(job.output)
        if url is None:
            raise ProviderError("No image URLs returned from Replicate")
        return await fetch_image_as_base64(self.client, url)

    async def _submit(self, model_id: str, prompt: str, credential: str) -> AsyncJob:
        response = await self._send(
            "POST",
            f"{BASE_URL}/predictions",
            headers=self._headers(credential),
            json={
                "version": version_of(model_id),
                "input": {
                    "prompt": prompt,
                    "negative_prompt": NEGATIVE_PROMPT,
                    "width": 1024,
                    "height": 1024,
                },
            },
        )
        return _job_from(read_json(response, self.label), response.text)

    async def _fetch(self, job_id: str, credential: str) -> AsyncJob:
        response = await self._send(
            "GET",
            f"{BASE_URL}/predictions/{job_id}",
            headers=self._headers(credential),
        )
        return _job_from(read_json(response, self.label), response.text)

    async def _cancel(self, job_id: str, credential: str) -> None:
        logger.info(f"Cancelling Replicate prediction {job_id}")
        try:
            await self.client.post(
                f"{BASE_URL}/predictions/{job_id}/cancel",
                headers=self._headers(credential),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Could not cancel Replicate prediction {job_id}: {e}")


adapter_registry.register(ReplicateAdapter)
