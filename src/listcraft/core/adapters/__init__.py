"""Provider adapter implementations.

Importing this package registers every adapter with
:data:`listcraft.core.model_adapters.adapter_registry`.

Available adapters:
- OpenAIAdapter: chat completions for text, DALL-E for images
- GeminiAdapter: generateContent for text
- StabilityAdapter: text-to-image and image-to-image
- ReplicateAdapter: job-based image generation
- GroqAdapter, XAIAdapter, OpenRouterAdapter: OpenAI-compatible text
"""

from listcraft.core.adapters.chat_completions import (
    ChatCompletionsAdapter,
    GroqAdapter,
    OpenRouterAdapter,
    XAIAdapter,
)
from listcraft.core.adapters.gemini import GeminiAdapter
from listcraft.core.adapters.openai import OpenAIAdapter
from listcraft.core.adapters.replicate import ReplicateAdapter
from listcraft.core.adapters.stability import StabilityAdapter

__all__ = [
    "ChatCompletionsAdapter",
    "GeminiAdapter",
    "GroqAdapter",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "ReplicateAdapter",
    "StabilityAdapter",
    "XAIAdapter",
]
