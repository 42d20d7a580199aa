"""Core functionality for Listcraft.

This package holds everything below the HTTP surface:

- **registry**: Static model and provider catalog
- **credentials**: Credential availability checks across strategies
- **selection**: Automatic model choice from availability
- **model_adapters** / **adapters**: One adapter per AI provider
- **routing**: Intermediary-then-direct strategy chain
- **dispatch**: The two public generation entry points
- **config**: Environment-based configuration (``LISTCRAFT_`` prefix)

Usage Example
-------------
    from listcraft.core import config, find_model, generate_enhanced_description
    from listcraft.core.models import LocalCredentials, Provider, TextGenerationRequest

    result = await generate_enhanced_description(
        find_model("gpt-4o"),
        TextGenerationRequest(original_text="...", subject_name="Acme Bottle"),
        credentials=LocalCredentials({Provider.OPENAI: "sk-..."}),
    )
"""

from listcraft.core.config import ListcraftConfig, config
from listcraft.core.model_adapters import ProviderAdapter, adapter_registry

# Import adapters to ensure they're registered
# This must happen after adapter_registry is imported
from listcraft.core.adapters import OpenAIAdapter  # noqa: F401
from listcraft.core.dispatch import (
    Dispatcher,
    analyze_product_image,
    generate_enhanced_description,
    generate_product_images,
)
from listcraft.core.registry import default_model, find_model, list_models, model_registry

__all__ = [
    "Dispatcher",
    "ListcraftConfig",
    "ProviderAdapter",
    "adapter_registry",
    "analyze_product_image",
    "config",
    "default_model",
    "find_model",
    "generate_enhanced_description",
    "generate_product_images",
    "list_models",
    "model_registry",
]
