"""Static catalog of AI models and providers.

The registry is the single source of truth for which models exist, which
provider serves each one, and what each provider's image path can do.  It is
built once at import time from constant tables and never mutated afterwards;
every lookup is a pure function over that table.

Usage
-----
::

    from listcraft.core.registry import model_registry
    from listcraft.core.models import Modality

    for model in model_registry.list_models(Modality.TEXT):
        print(model.id, model.provider.value)

    gpt = model_registry.find_model("gpt-4o")
    default_image = model_registry.default_model(Modality.IMAGE)

Module-level :func:`list_models`, :func:`find_model` and
:func:`default_model` delegate to the global :data:`model_registry`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import ImageCapabilities, ModelDescriptor, Modality, Provider, ProviderInfo

logger = logging.getLogger(__name__)

PROVIDERS: dict[Provider, ProviderInfo] = {
    Provider.OPENAI: ProviderInfo(
        provider=Provider.OPENAI,
        name="OpenAI",
        description="Powerful AI models for text and image generation",
        docs_url="https://platform.openai.com/docs/api-reference",
        credential_name="OpenAI API Key",
        credential_placeholder="sk-...",
    ),
    Provider.GEMINI: ProviderInfo(
        provider=Provider.GEMINI,
        name="Google Gemini",
        description="Google's advanced AI models for text generation",
        docs_url="https://ai.google.dev/",
        credential_name="Gemini API Key",
        credential_placeholder="AIza...",
    ),
    Provider.STABILITY: ProviderInfo(
        provider=Provider.STABILITY,
        name="Stability AI",
        description="Specialized in high-quality image generation",
        docs_url="https://platform.stability.ai/docs/api-reference",
        credential_name="Stability AI API Key",
        credential_placeholder="sk-...",
    ),
    Provider.REPLICATE: ProviderInfo(
        provider=Provider.REPLICATE,
        name="Replicate",
        description="Run open-source models with a simple API",
        docs_url="https://replicate.com/docs",
        credential_name="Replicate API Key",
        credential_placeholder="r8_...",
    ),
    Provider.OPENROUTER: ProviderInfo(
        provider=Provider.OPENROUTER,
        name="OpenRouter",
        description="Access to multiple AI models through a unified API",
        docs_url="https://openrouter.ai/docs",
        credential_name="OpenRouter API Key",
        credential_placeholder="sk-or-v1-...",
    ),
    Provider.GROQ: ProviderInfo(
        provider=Provider.GROQ,
        name="Groq",
        description="Ultra-fast AI inference with open-source models",
        docs_url="https://console.groq.com/docs",
        credential_name="Groq API Key",
        credential_placeholder="gsk_...",
    ),
    Provider.XAI: ProviderInfo(
        provider=Provider.XAI,
        name="Grok (xAI)",
        description="xAI's Grok models for text generation",
        docs_url="https://docs.x.ai/",
        credential_name="xAI API Key",
        credential_placeholder="xai-...",
    ),
}

_NO_IMAGES = ImageCapabilities(supports_generation=False, max_images=0)

IMAGE_CAPABILITIES: dict[Provider, ImageCapabilities] = {
    Provider.OPENAI: ImageCapabilities(
        supports_generation=True,
        max_images=4,
        supported_aspect_ratios=("1:1", "16:9", "9:16"),
        supported_styles=("natural", "vivid"),
    ),
    Provider.STABILITY: ImageCapabilities(
        supports_generation=True,
        max_images=10,
        supported_aspect_ratios=("1:1", "16:9", "9:16", "21:9", "2:3", "3:2"),
        supported_styles=("photographic", "digital-art", "cinematic", "anime", "fantasy-art"),
    ),
    Provider.REPLICATE: ImageCapabilities(
        supports_generation=True,
        max_images=4,
        supported_aspect_ratios=("1:1", "16:9", "9:16", "4:3", "3:4"),
        supported_styles=("realistic", "artistic", "anime", "cartoon"),
    ),
    Provider.GEMINI: _NO_IMAGES,
    Provider.OPENROUTER: _NO_IMAGES,
    Provider.GROQ: _NO_IMAGES,
    Provider.XAI: _NO_IMAGES,
}


def _text(model_id: str, name: str, provider: Provider, description: str, *caps: str, **kw):
    return ModelDescriptor(
        id=model_id,
        display_name=name,
        provider=provider,
        modality=Modality.TEXT,
        capabilities=caps,
        description=description,
        **kw,
    )


def _image(model_id: str, name: str, provider: Provider, description: str, *caps: str, **kw):
    return ModelDescriptor(
        id=model_id,
        display_name=name,
        provider=provider,
        modality=Modality.IMAGE,
        capabilities=caps,
        description=description,
        **kw,
    )


# Replicate model ids are pinned "owner/name:version" strings.
REPLICATE_SDXL = "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"

MODEL_CATALOG: tuple[ModelDescriptor, ...] = (
    # OpenAI text
    _text(
        "gpt-4o",
        "GPT-4o",
        Provider.OPENAI,
        "OpenAI's most advanced model, optimized for both quality and speed",
        "High-quality text generation",
        "Nuanced understanding",
        "Creative writing",
        is_default_for_modality=True,
    ),
    _text(
        "gpt-4-turbo",
        "GPT-4 Turbo",
        Provider.OPENAI,
        "Powerful model with a good balance of quality and cost",
        "High-quality text generation",
        "Detailed responses",
        "Good context handling",
    ),
    _text(
        "gpt-3.5-turbo",
        "GPT-3.5 Turbo",
        Provider.OPENAI,
        "Fast and cost-effective model for most text generation tasks",
        "Fast responses",
        "Cost-effective",
        "Good for most tasks",
    ),
    # Gemini text
    _text(
        "gemini-1.5-pro",
        "Gemini 1.5 Pro",
        Provider.GEMINI,
        "Google's advanced model with strong reasoning capabilities",
        "High-quality text generation",
        "Long context window",
        "Multimodal understanding",
    ),
    _text(
        "gemini-1.5-flash",
        "Gemini 1.5 Flash",
        Provider.GEMINI,
        "Faster version of Gemini optimized for efficiency",
        "Fast responses",
        "Cost-effective",
        "Good quality outputs",
    ),
    # OpenAI images
    _image(
        "dall-e-3",
        "DALL-E 3",
        Provider.OPENAI,
        "OpenAI's advanced image generation model",
        "High-quality images",
        "Detailed prompt following",
        "Creative compositions",
        is_default_for_modality=True,
    ),
    _image(
        "dall-e-2",
        "DALL-E 2",
        Provider.OPENAI,
        "OpenAI's previous generation image model, also used for variations",
        "Good quality images",
        "Image variations",
        "Lower cost",
    ),
    # Gemini images (listed for visibility; the provider path is a capability gap)
    _image(
        "imagen-3.0-generate-002",
        "Imagen 3",
        Provider.GEMINI,
        "Google's image generation model with enhanced quality and style control",
        "High-quality images",
        "Advanced style control",
        "Multiple aspect ratios",
    ),
    _image(
        "gemini-2.0-flash-preview-image-generation",
        "Gemini 2.0 Flash Image Generation",
        Provider.GEMINI,
        "Conversational image generation and editing with Gemini 2.0 Flash",
        "Conversational image generation",
        "Image editing",
        "Contextual understanding",
    ),
    _image(
        "imagen-2",
        "Imagen 2",
        Provider.GEMINI,
        "Google's previous generation image model",
        "Good quality images",
        "Reliable generation",
        is_enabled=False,
    ),
    # Stability AI images
    _image(
        "stable-diffusion-xl-1024-v1-0",
        "Stable Diffusion XL 1024",
        Provider.STABILITY,
        "Stability AI's flagship SDXL model for high-quality 1024x1024 images",
        "High-quality images",
        "1024x1024 resolution",
        "Image-to-image",
    ),
    _image(
        "stable-diffusion-v1-6",
        "Stable Diffusion v1.6",
        Provider.STABILITY,
        "Classic Stable Diffusion model for reliable image generation",
        "Reliable generation",
        "Good quality",
        "Fast processing",
    ),
    _image(
        "stable-diffusion-512-v2-1",
        "Stable Diffusion 512 v2.1",
        Provider.STABILITY,
        "Stable Diffusion v2.1 optimized for 512x512 images",
        "512x512 resolution",
        "Good quality",
        "Efficient processing",
    ),
    # Replicate images
    _image(
        REPLICATE_SDXL,
        "Stable Diffusion XL (via Replicate)",
        Provider.REPLICATE,
        "Stability AI's SDXL model accessed through Replicate",
        "High-quality images",
        "Artistic styles",
        "Detailed control",
    ),
    _image(
        "lucataco/sdxl-lightning:652d4b24c87aba0c45f021c9b6b1b8a16d157e2d2d8e3f9a8c0c0e19c5ce0698",
        "SDXL Lightning (via Replicate)",
        Provider.REPLICATE,
        "Fast version of SDXL, accessed through Replicate",
        "Fast generation",
        "Good quality",
        "Efficient processing",
    ),
    _image(
        "fofr/sdxl-emoji:dee76b5afde21b0f01ed7925f0665b7e472d4277474fb4266c0f0089cb6e9358",
        "SDXL Emoji (via Replicate)",
        Provider.REPLICATE,
        "Generate emoji-style product images",
        "Emoji style",
        "Cute designs",
        "Stylized representations",
    ),
    _image(
        "cjwbw/realistic-vision-v5:9e6701a09bd8a0f4a3d13f4fedafef8a2259b812af0f5eb0918c38e9c7fc4c75",
        "Realistic Vision V5 (via Replicate)",
        Provider.REPLICATE,
        "Highly realistic image generation model",
        "Photorealistic images",
        "Detailed textures",
        "Lifelike lighting",
    ),
    # OpenRouter text
    _text(
        "openai/gpt-4-turbo",
        "GPT-4 Turbo (via OpenRouter)",
        Provider.OPENROUTER,
        "OpenAI's GPT-4 Turbo accessed through OpenRouter",
        "High-quality text generation",
        "Detailed responses",
        "Good context handling",
    ),
    _text(
        "anthropic/claude-3-opus",
        "Claude 3 Opus (via OpenRouter)",
        Provider.OPENROUTER,
        "Anthropic's most capable model, accessed through OpenRouter",
        "High-quality text generation",
        "Nuanced understanding",
        "Thoughtful responses",
    ),
    _text(
        "anthropic/claude-3-sonnet",
        "Claude 3 Sonnet (via OpenRouter)",
        Provider.OPENROUTER,
        "Anthropic's balanced model for quality and speed, accessed through OpenRouter",
        "High-quality text generation",
        "Fast responses",
        "Good reasoning",
    ),
    _text(
        "meta-llama/llama-3-70b-instruct",
        "Llama 3 70B (via OpenRouter)",
        Provider.OPENROUTER,
        "Meta's Llama 3 70B model, accessed through OpenRouter",
        "High-quality text generation",
        "Open-source foundation",
        "Instruction following",
    ),
    # Groq text
    _text(
        "llama-3.1-70b-versatile",
        "Llama 3.1 70B Versatile",
        Provider.GROQ,
        "Meta's Llama 3.1 70B model optimized for speed on Groq",
        "Ultra-fast inference",
        "High-quality text generation",
        "Versatile applications",
    ),
    _text(
        "llama-3.1-8b-instant",
        "Llama 3.1 8B Instant",
        Provider.GROQ,
        "Lightweight Llama model for instant responses",
        "Instant responses",
        "Cost-effective",
        "Good for simple tasks",
    ),
    _text(
        "mixtral-8x7b-32768",
        "Mixtral 8x7B",
        Provider.GROQ,
        "Mistral's mixture of experts model on Groq",
        "Fast inference",
        "High-quality outputs",
        "Large context window",
    ),
    # xAI text
    _text(
        "grok-beta",
        "Grok Beta",
        Provider.XAI,
        "xAI's Grok model with real-time knowledge",
        "Real-time information",
        "Witty responses",
        "Current events awareness",
    ),
)


class ModelRegistry:
    """Read-only lookup over a fixed model catalog.

    The registry indexes the catalog once on construction.  Duplicate ids or
    more than one default per modality are rejected up front, so every lookup
    afterwards can rely on those invariants.

    Args:
        catalog: Model descriptors in display order.

    Raises:
        ValueError: If the catalog breaks an invariant.
    """

    def __init__(self, catalog: Iterable[ModelDescriptor]) -> None:
        self._models: tuple[ModelDescriptor, ...] = tuple(catalog)
        self._by_id: dict[str, ModelDescriptor] = {}
        self._defaults: dict[Modality, ModelDescriptor] = {}

        for model in self._models:
            if model.id in self._by_id:
                raise ValueError(f"Duplicate model id in catalog: {model.id}")
            self._by_id[model.id] = model

            if model.is_default_for_modality:
                if model.modality in self._defaults:
                    raise ValueError(
                        f"More than one default model for modality '{model.modality.value}': "
                        f"{self._defaults[model.modality].id}, {model.id}"
                    )
                self._defaults[model.modality] = model

        logger.debug(f"Indexed {len(self._models)} models")

    def all_models(self) -> tuple[ModelDescriptor, ...]:
        """Return every catalog entry, enabled or not."""
        return self._models

    def list_models(self, modality: Modality) -> list[ModelDescriptor]:
        """Return enabled models of one modality in catalog order."""
        return [m for m in self._models if m.modality == modality and m.is_enabled]

    def find_model(self, model_id: str) -> ModelDescriptor | None:
        """Return the model with *model_id*, or ``None`` if unknown."""
        return self._by_id.get(model_id)

    def default_model(self, modality: Modality) -> ModelDescriptor | None:
        """Return the model flagged default for *modality*, if any."""
        return self._defaults.get(modality)

    def models_by_provider(self, provider: Provider) -> list[ModelDescriptor]:
        """Return enabled models served by *provider*."""
        return [m for m in self._models if m.provider == provider and m.is_enabled]

    def models_for(self, modality: Modality, provider: Provider) -> list[ModelDescriptor]:
        """Return enabled models matching both *modality* and *provider*."""
        return [
            m
            for m in self._models
            if m.modality == modality and m.provider == provider and m.is_enabled
        ]


def provider_info(provider: Provider) -> ProviderInfo:
    """Return presentation details for *provider*."""
    return PROVIDERS[provider]


def image_capabilities(provider: Provider) -> ImageCapabilities:
    """Return the image capabilities of *provider*."""
    return IMAGE_CAPABILITIES[provider]


def recommended_image_providers() -> list[Provider]:
    """Return providers that can generate images, largest batch size first.

    Ties keep the declaration order of :data:`IMAGE_CAPABILITIES`.
    """
    capable = [p for p, caps in IMAGE_CAPABILITIES.items() if caps.supports_generation]
    return sorted(capable, key=lambda p: -IMAGE_CAPABILITIES[p].max_images)


# Global registry instance built from the static catalog.
model_registry = ModelRegistry(MODEL_CATALOG)


def list_models(modality: Modality) -> list[ModelDescriptor]:
    return model_registry.list_models(modality)


def find_model(model_id: str) -> ModelDescriptor | None:
    return model_registry.find_model(model_id)


def default_model(modality: Modality) -> ModelDescriptor | None:
    return model_registry.default_model(modality)
