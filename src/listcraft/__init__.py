"""Listcraft - multi-provider AI description rewriting and product image generation."""

__version__ = "0.1.0"

from listcraft.core.config import ListcraftConfig, config
from listcraft.core.dispatch import (
    Dispatcher,
    analyze_product_image,
    generate_enhanced_description,
    generate_product_images,
)
from listcraft.core.model_adapters import ProviderAdapter, adapter_registry

# Import adapters to ensure they're registered
from listcraft.core.adapters import OpenAIAdapter  # noqa: F401

__all__ = [
    "Dispatcher",
    "ListcraftConfig",
    "ProviderAdapter",
    "adapter_registry",
    "analyze_product_image",
    "config",
    "generate_enhanced_description",
    "generate_product_images",
]
