"""Dispatch layer: the public generation entry points.

Every call runs the same checks, strictly in order, before any network
traffic:

1. The model's modality matches the operation (``ValidationError``).
2. An adapter is registered for the model's provider (``ConfigurationError``).
3. The provider supports the operation (``UnsupportedCapabilityError``).
4. The request is valid for that provider (``ValidationError``).

Image analysis runs the same checks against a text model whose adapter
supports it.

Only then is the :class:`~listcraft.core.routing.GenerationRouter` asked to
serve the call.  Dispatch never retries.

Usage
-----
As a library, with caller-held keys::

    creds = LocalCredentials({Provider.OPENAI: "sk-..."})
    result = await generate_enhanced_description(
        find_model("gpt-4o"),
        TextGenerationRequest(original_text="...", subject_name="Acme Bottle"),
        credentials=creds,
    )

Long-lived callers build one :class:`Dispatcher` around a shared client::

    async with httpx.AsyncClient(timeout=config.request_timeout) as client:
        dispatcher = Dispatcher.for_client(client, config, creds)
        images = await dispatcher.generate_product_images(model, request)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from .config import ListcraftConfig, config
from .errors import ConfigurationError, UnsupportedCapabilityError, ValidationError
from .model_adapters import ProviderAdapter, adapter_registry, unsupported_images_error
from .models import (
    ImageAnalysisRequest,
    ImageAnalysisResult,
    ImageGenerationRequest,
    ImageGenerationResult,
    LocalCredentials,
    ModelDescriptor,
    Modality,
    Provider,
    TextGenerationRequest,
    TextGenerationResult,
)
from .registry import image_capabilities, provider_info
from .routing import (
    DirectGenerationStrategy,
    GenerationRouter,
    IntermediaryGenerationStrategy,
)

logger = logging.getLogger(__name__)

QUALITIES = ("standard", "hd")


class Dispatcher:
    """Validate generation calls and hand them to a router.

    Args:
        adapters: Provider adapters available to this dispatcher.
        router: Strategy chain that performs the call.
    """

    def __init__(
        self, adapters: Mapping[Provider, ProviderAdapter], router: GenerationRouter
    ) -> None:
        self.adapters = adapters
        self.router = router

    @classmethod
    def for_client(
        cls,
        client: httpx.AsyncClient,
        settings: ListcraftConfig,
        credentials: LocalCredentials,
    ) -> Dispatcher:
        """Intermediary first, then direct calls with *credentials*."""
        adapters = adapter_registry.instantiate_all(client, settings)
        router = GenerationRouter(
            [
                IntermediaryGenerationStrategy(client, settings.intermediary_url),
                DirectGenerationStrategy(adapters, credentials),
            ]
        )
        return cls(adapters, router)

    @classmethod
    def for_server(cls, client: httpx.AsyncClient, settings: ListcraftConfig) -> Dispatcher:
        """Direct calls with the server's configured keys only."""
        adapters = adapter_registry.instantiate_all(client, settings)
        router = GenerationRouter(
            [DirectGenerationStrategy(adapters, settings.server_credentials())]
        )
        return cls(adapters, router)

    def _adapter_for(self, model: ModelDescriptor, modality: Modality) -> ProviderAdapter:
        if model.modality != modality:
            raise ValidationError(
                f"Model '{model.id}' is a {model.modality.value} model and cannot be used "
                f"for {modality.value} generation."
            )
        adapter = self.adapters.get(model.provider)
        if adapter is None:
            raise ConfigurationError(
                f"No adapter is configured for provider '{model.provider.value}'."
            )
        return adapter

    async def generate_enhanced_description(
        self, model: ModelDescriptor, request: TextGenerationRequest
    ) -> TextGenerationResult:
        """Rewrite a product description with *model*."""
        adapter = self._adapter_for(model, Modality.TEXT)
        if not adapter.supports_text:
            raise UnsupportedCapabilityError(
                f"{provider_info(model.provider).name} does not support description enhancement."
            )

        try:
            request.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        logger.info(f"Enhancing description for '{request.subject_name}' with {model.id}")
        return await self.router.generate_text(model, request)

    async def generate_product_images(
        self, model: ModelDescriptor, request: ImageGenerationRequest
    ) -> ImageGenerationResult:
        """Generate ``request.count`` product images with *model*."""
        adapter = self._adapter_for(model, Modality.IMAGE)
        caps = image_capabilities(model.provider)
        if not caps.supports_generation or not adapter.supports_images:
            raise unsupported_images_error(model.provider)

        try:
            request.validate(caps.max_images)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if request.aspect_ratio and request.aspect_ratio not in caps.supported_aspect_ratios:
            raise ValidationError(
                f"Aspect ratio '{request.aspect_ratio}' is not supported by "
                f"{provider_info(model.provider).name}. "
                f"Supported: {', '.join(caps.supported_aspect_ratios)}"
            )
        if request.style and request.style not in caps.supported_styles:
            raise ValidationError(
                f"Style '{request.style}' is not supported by "
                f"{provider_info(model.provider).name}. "
                f"Supported: {', '.join(caps.supported_styles)}"
            )
        if request.quality and request.quality not in QUALITIES:
            raise ValidationError(f"Quality must be one of: {', '.join(QUALITIES)}")

        logger.info(f"Generating {request.count} image(s) with {model.id}")
        return await self.router.generate_images(model, request)

    async def analyze_product_image(
        self, model: ModelDescriptor, request: ImageAnalysisRequest
    ) -> ImageAnalysisResult:
        """Describe a product photo with the vision-capable text *model*."""
        adapter = self._adapter_for(model, Modality.TEXT)
        if not adapter.supports_image_analysis:
            raise UnsupportedCapabilityError(
                f"{provider_info(model.provider).name} does not support image analysis."
            )

        try:
            request.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        logger.info(f"Analyzing product image with {model.id}")
        return await self.router.analyze_image(model, request)


async def generate_enhanced_description(
    model: ModelDescriptor,
    request: TextGenerationRequest,
    *,
    credentials: LocalCredentials | None = None,
    settings: ListcraftConfig = config,
) -> TextGenerationResult:
    """One-shot helper around :meth:`Dispatcher.generate_enhanced_description`."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        dispatcher = Dispatcher.for_client(client, settings, credentials or LocalCredentials())
        return await dispatcher.generate_enhanced_description(model, request)


async def generate_product_images(
    model: ModelDescriptor,
    request: ImageGenerationRequest,
    *,
    credentials: LocalCredentials | None = None,
    settings: ListcraftConfig = config,
) -> ImageGenerationResult:
    """One-shot helper around :meth:`Dispatcher.generate_product_images`."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        dispatcher = Dispatcher.for_client(client, settings, credentials or LocalCredentials())
        return await dispatcher.generate_product_images(model, request)


async def analyze_product_image(
    model: ModelDescriptor,
    request: ImageAnalysisRequest,
    *,
    credentials: LocalCredentials | None = None,
    settings: ListcraftConfig = config,
) -> ImageAnalysisResult:
    """One-shot helper around :meth:`Dispatcher.analyze_product_image`."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        dispatcher = Dispatcher.for_client(client, settings, credentials or LocalCredentials())
        return await dispatcher.analyze_product_image(model, request)
