"""Generation strategies and the router that evaluates them in order.

A generation call can be served by the trusted intermediary (server-side
keys) or directly against the provider with a caller-supplied key.  Each path
is a strategy.  A strategy that cannot serve the call raises
:class:`StrategyUnavailable` and the router moves on; any other failure is the
answer and propagates unchanged.

Client chain::

    IntermediaryGenerationStrategy -> DirectGenerationStrategy

Server chain (inside the intermediary)::

    DirectGenerationStrategy (server credentials)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .errors import (
    CredentialError,
    GenerationError,
    NotFoundError,
    ParseError,
    ProviderError,
    error_from_payload,
    truncate,
)
from .model_adapters import ProviderAdapter
from .models import (
    ImageAnalysisRequest,
    ImageAnalysisResult,
    ImageGenerationRequest,
    ImageGenerationResult,
    LocalCredentials,
    ModelDescriptor,
    Provider,
    TextGenerationRequest,
    TextGenerationResult,
)
from .prompt_builder import description_from_mapping
from .registry import provider_info

logger = logging.getLogger(__name__)


class StrategyUnavailable(Exception):
    """The strategy cannot serve this call; the next one should be tried."""


class GenerationStrategy(ABC):
    name: str = "strategy"

    @abstractmethod
    async def generate_text(
        self, model: ModelDescriptor, request: TextGenerationRequest
    ) -> TextGenerationResult: ...

    @abstractmethod
    async def generate_images(
        self, model: ModelDescriptor, request: ImageGenerationRequest
    ) -> ImageGenerationResult: ...

    @abstractmethod
    async def analyze_image(
        self, model: ModelDescriptor, request: ImageAnalysisRequest
    ) -> ImageAnalysisResult: ...


class IntermediaryGenerationStrategy(GenerationStrategy):
    """Forward the call to the trusted intermediary's provider route.

    Unavailable when the intermediary cannot be connected to, does not answer
    with JSON, has no route for the provider, or reports that it holds no key.
    A failure after the request was sent (a read timeout, a dropped
    connection) is terminal: the intermediary may already be generating, so
    the call is not repeated on the direct path.
    """

    name = "intermediary"

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def _post(self, provider: Provider, route: str, body: dict[str, Any]) -> Any:
        url = f"{self.base_url}/api/{provider.value}/{route}"
        try:
            response = await self.client.post(url, json=body)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise StrategyUnavailable(f"intermediary unreachable: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Intermediary timed out on {route} for {provider.value}: {e}")
            raise ProviderError(
                "The intermediary timed out before answering. Please try again later.",
                status_code=504,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Intermediary request for {route} failed: {e}")
            raise ProviderError(f"The intermediary request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise StrategyUnavailable(
                f"intermediary returned non-JSON (HTTP {response.status_code})"
            ) from e

        if response.is_success:
            return payload

        kind = payload.get("kind") if isinstance(payload, dict) else None
        if response.status_code == 404 and kind in (None, NotFoundError.kind):
            raise StrategyUnavailable(f"intermediary has no route for {provider.value}")

        error = error_from_payload(response.status_code, payload)
        if isinstance(error, CredentialError) and error.missing:
            raise StrategyUnavailable(f"intermediary holds no {provider.value} key")
        raise error

    async def generate_text(
        self, model: ModelDescriptor, request: TextGenerationRequest
    ) -> TextGenerationResult:
        payload = await self._post(
            model.provider,
            "enhance-description",
            {
                "modelId": model.id,
                "originalText": request.original_text,
                "subjectName": request.subject_name,
                "tone": request.tone,
                "style": request.style,
            },
        )
        return description_from_mapping(payload, str(payload))

    async def generate_images(
        self, model: ModelDescriptor, request: ImageGenerationRequest
    ) -> ImageGenerationResult:
        payload = await self._post(
            model.provider,
            "generate-images",
            {
                "modelId": model.id,
                "prompt": request.prompt,
                "count": request.count,
                "sourceImage": request.source_image,
                "sourceStrength": request.source_strength,
                "aspectRatio": request.aspect_ratio,
                "style": request.style,
                "quality": request.quality,
            },
        )
        images = payload.get("images") if isinstance(payload, dict) else None
        if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
            raw = str(payload)
            logger.error(f"Intermediary returned malformed images: {truncate(raw)}")
            raise ParseError("Intermediary returned a malformed image list", raw=raw)
        if not images:
            raise ProviderError(f"No images generated by {provider_info(model.provider).name}.")
        metadata = payload.get("metadata")
        return ImageGenerationResult(
            images=images, metadata=dict(metadata) if isinstance(metadata, dict) else {}
        )

    async def analyze_image(
        self, model: ModelDescriptor, request: ImageAnalysisRequest
    ) -> ImageAnalysisResult:
        payload = await self._post(
            model.provider, "analyze-image", {"modelId": model.id, "image": request.image}
        )
        analysis = payload.get("analysis") if isinstance(payload, dict) else None
        if not isinstance(analysis, str) or not analysis.strip():
            raw = str(payload)
            logger.error(f"Intermediary returned a malformed analysis: {truncate(raw)}")
            raise ParseError("Intermediary returned a malformed image analysis", raw=raw)
        return ImageAnalysisResult(analysis=analysis.strip())


class DirectGenerationStrategy(GenerationStrategy):
    """Call the provider adapter directly with a locally held key."""

    name = "direct"

    def __init__(
        self, adapters: Mapping[Provider, ProviderAdapter], credentials: LocalCredentials
    ) -> None:
        self.adapters = adapters
        self.credentials = credentials

    def _resolve(self, provider: Provider) -> tuple[ProviderAdapter, str]:
        credential = self.credentials.get(provider)
        if credential is None:
            raise StrategyUnavailable(f"no local {provider.value} key")
        return self.adapters[provider], credential

    async def generate_text(
        self, model: ModelDescriptor, request: TextGenerationRequest
    ) -> TextGenerationResult:
        adapter, credential = self._resolve(model.provider)
        return await adapter.generate_text(model.id, request, credential)

    async def generate_images(
        self, model: ModelDescriptor, request: ImageGenerationRequest
    ) -> ImageGenerationResult:
        adapter, credential = self._resolve(model.provider)
        return await adapter.generate_images(model.id, request, credential)

    async def analyze_image(
        self, model: ModelDescriptor, request: ImageAnalysisRequest
    ) -> ImageAnalysisResult:
        adapter, credential = self._resolve(model.provider)
        return await adapter.analyze_image(model.id, request, credential)


class GenerationRouter:
    """Evaluate strategies in order until one serves the call.

    Raises:
        CredentialError: ``missing=True`` when every strategy was unavailable.
        GenerationError: The first terminal failure, unchanged.
        ProviderError: Wrapping any unclassified exception.
    """

    def __init__(self, strategies: Sequence[GenerationStrategy]) -> None:
        self.strategies = list(strategies)

    async def generate_text(
        self, model: ModelDescriptor, request: TextGenerationRequest
    ) -> TextGenerationResult:
        return await self._route("generate_text", model, request)

    async def generate_images(
        self, model: ModelDescriptor, request: ImageGenerationRequest
    ) -> ImageGenerationResult:
        return await self._route("generate_images", model, request)

    async def analyze_image(
        self, model: ModelDescriptor, request: ImageAnalysisRequest
    ) -> ImageAnalysisResult:
        return await self._route("analyze_image", model, request)

    async def _route(self, operation: str, model: ModelDescriptor, request: Any) -> Any:
        for strategy in self.strategies:
            try:
                result = await getattr(strategy, operation)(model, request)
            except StrategyUnavailable as e:
                logger.warning(f"{strategy.name} strategy unavailable for {model.id}: {e}")
                continue
            except GenerationError:
                raise
            except Exception as e:
                logger.exception(f"Unexpected failure in {strategy.name} strategy for {model.id}")
                raise ProviderError(f"Unexpected error calling {model.provider.value}: {e}") from e

            logger.info(f"{operation} for {model.id} served by {strategy.name} strategy")
            return result

        name = provider_info(model.provider).name
        raise CredentialError(
            f"No {name} API key is available. Add your own {name} API key "
            "or choose a model from another provider.",
            missing=True,
        )
