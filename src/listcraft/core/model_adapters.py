"""Provider adapter base class and registry.

Every AI provider is reached through a :class:`ProviderAdapter`.  An adapter
translates the normalized :class:`~listcraft.core.models.TextGenerationRequest`
and :class:`~listcraft.core.models.ImageGenerationRequest` into the provider's
wire format, performs the call on a shared ``httpx.AsyncClient``, and maps the
answer (or failure) back into domain types and the error taxonomy.

Adapters hold no credentials.  The key is passed explicitly on every call, so
the same adapter instance serves both the intermediary (server keys) and the
direct path (caller keys).

Failure Classification
----------------------
=====================  ==============================================
Upstream outcome       Raised
=====================  ==============================================
401 / 403              CredentialError
429                    ProviderError (rate_limited)
other non-2xx          ProviderError carrying the upstream status
transport failure      ProviderError
2xx, unusable body     ParseError
2xx, zero images       ProviderError
=====================  ==============================================

Registry
--------
Adapter classes register themselves with the global :data:`adapter_registry`
at import time, keyed by provider::

    >>> from listcraft.core.model_adapters import adapter_registry
    >>> adapter = adapter_registry.instantiate(Provider.OPENAI, client, config)
    >>> result = await adapter.generate_text("gpt-4o", request, credential="sk-...")
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from abc import ABC
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

import httpx
from PIL import Image

from .config import ListcraftConfig
from .errors import CredentialError, ParseError, ProviderError, UnsupportedCapabilityError, truncate
from .models import (
    ImageAnalysisRequest,
    ImageAnalysisResult,
    ImageGenerationRequest,
    ImageGenerationResult,
    Provider,
    TextGenerationRequest,
    TextGenerationResult,
)
from .registry import provider_info, recommended_image_providers

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_error_message(response: httpx.Response) -> str | None:
    """Pull a human-readable message out of a provider error body, if any."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return truncate(text, 200) if text else None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        for key in ("message", "detail", "name"):
            if body.get(key):
                return str(body[key])
    return None


def raise_for_provider_status(response: httpx.Response, label: str) -> None:
    """Raise the classified error for a non-2xx provider response."""
    if response.is_success:
        return

    status = response.status_code
    message = extract_error_message(response)
    logger.error(f"{label} API error (HTTP {status}): {message}")

    if status in (401, 403):
        raise CredentialError(f"Invalid {label} API key: {message or 'access denied'}")
    if status == 429:
        raise ProviderError(
            f"{label} rate limit exceeded. Please try again later.", status_code=429
        )
    raise ProviderError(
        f"{label} API error: {message or f'request failed with HTTP {status}'}",
        status_code=status,
    )


def read_json(response: httpx.Response, label: str) -> Any:
    """Decode a 2xx provider body, raising :class:`ParseError` if it is not JSON."""
    try:
        return response.json()
    except ValueError as e:
        raw = response.text
        logger.error(f"{label} returned a non-JSON body: {truncate(raw)}")
        raise ParseError(f"{label} returned a response that is not valid JSON", raw=raw) from e


def verify_image_bytes(data: bytes) -> None:
    """Raise :class:`ParseError` unless *data* decodes as an image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except Image.DecompressionBombError as e:
        raise ParseError(f"Fetched image is too large to decode safely: {e}") from e
    except (OSError, SyntaxError, ValueError) as e:
        raise ParseError(f"Fetched content is not a valid image: {e}") from e


def image_mime_type(data: bytes, default: str = "image/jpeg") -> str:
    """Guess the MIME type of encoded image *data* from its header."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return Image.MIME.get(image.format or "", default)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return default


async def gather_in_order(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Run *aws* concurrently and return their results in order.

    The first failure cancels every sibling still running, and waits for
    them to finish their own cleanup, before it propagates.  Cancelling the
    caller cancels them all the same way.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug(f"Cancelled {len(pending)} sibling request(s)")
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


async def fetch_image_as_base64(client: httpx.AsyncClient, url: str) -> str:
    """Download a generated image and return it base64 encoded.

    Raises:
        ProviderError: If the download fails.
        ParseError: If the payload is not an image.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise ProviderError(f"Failed to fetch generated image: {e}") from e

    if not response.is_success:
        raise ProviderError(
            f"Failed to fetch generated image (HTTP {response.status_code})",
            status_code=response.status_code,
        )

    verify_image_bytes(response.content)
    return base64.b64encode(response.content).decode("ascii")


def unsupported_images_error(provider: Provider) -> UnsupportedCapabilityError:
    """Build the error for a provider without image generation."""
    recommended = recommended_image_providers()
    names = ", ".join(provider_info(p).name for p in recommended)
    return UnsupportedCapabilityError(
        f"{provider_info(provider).name} does not support image generation. "
        f"Try {names} instead.",
        alternatives=tuple(p.value for p in recommended),
    )


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses set ``provider`` and override the generation methods they
    support; the defaults raise :class:`UnsupportedCapabilityError` without
    touching the network.

    Attributes
    ----------
    provider : Provider
        Provider this adapter talks to
    supports_text : bool
        Whether :meth:`generate_text` is implemented
    supports_images : bool
        Whether :meth:`generate_images` is implemented
    supports_image_analysis : bool
        Whether :meth:`analyze_image` is implemented
    """

    provider: Provider
    supports_text: bool = False
    supports_images: bool = False
    supports_image_analysis: bool = False

    def __init__(self, client: httpx.AsyncClient, config: ListcraftConfig) -> None:
        self.client = client
        self.config = config

    @property
    def label(self) -> str:
        return provider_info(self.provider).name

    async def generate_text(
        self, model_id: str, request: TextGenerationRequest, credential: str
    ) -> TextGenerationResult:
        raise UnsupportedCapabilityError(
            f"{self.label} does not support description enhancement."
        )

    async def generate_images(
        self, model_id: str, request: ImageGenerationRequest, credential: str
    ) -> ImageGenerationResult:
        raise unsupported_images_error(self.provider)

    async def analyze_image(
        self, model_id: str, request: ImageAnalysisRequest, credential: str
    ) -> ImageAnalysisResult:
        raise UnsupportedCapabilityError(f"{self.label} does not support image analysis.")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one upstream request and classify any failure."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.label} request to {url} failed: {e}")
            raise ProviderError(f"Failed to call {self.label} API: {e}") from e

        self._raise_for_status(response)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        raise_for_provider_status(response, self.label)

    def _image_result(
        self, images: list[str], model_id: str, **metadata: Any
    ) -> ImageGenerationResult:
        if not images:
            logger.error(f"{self.label} returned no images for {model_id}")
            raise ProviderError(f"No images generated by {self.label}.")
        logger.info(f"{self.label} generated {len(images)} image(s) with {model_id}")
        return ImageGenerationResult(
            images=images,
            metadata={"provider": self.provider.value, "model": model_id, **metadata},
        )


class AdapterRegistry:
    """Registry of adapter classes keyed by provider.

    Usage
    -----
        >>> adapter_registry.register(MyAdapter)
        >>> adapters = adapter_registry.instantiate_all(client, config)
    """

    def __init__(self) -> None:
        self._adapters: dict[Provider, type[ProviderAdapter]] = {}

    def register(self, adapter_class: type[ProviderAdapter]) -> None:
        provider = adapter_class.provider
        if provider in self._adapters:
            logger.warning(f"Adapter for '{provider.value}' is already registered, overwriting")
        self._adapters[provider] = adapter_class
        logger.debug(f"Registered adapter for {provider.value}: {adapter_class.__name__}")

    def get_adapter_class(self, provider: Provider) -> type[ProviderAdapter] | None:
        return self._adapters.get(provider)

    def list_available(self) -> list[Provider]:
        return list(self._adapters)

    def instantiate(
        self, provider: Provider, client: httpx.AsyncClient, config: ListcraftConfig
    ) -> ProviderAdapter:
        """Create an adapter for *provider*.

        Raises
        ------
        KeyError
            If no adapter is registered for the provider
        """
        if provider not in self._adapters:
            available = ", ".join(p.value for p in self.list_available())
            raise KeyError(f"No adapter for provider '{provider.value}'. Available: {available}")
        return self._adapters[provider](client, config)

    def instantiate_all(
        self, client: httpx.AsyncClient, config: ListcraftConfig
    ) -> dict[Provider, ProviderAdapter]:
        return {p: cls(client, config) for p, cls in self._adapters.items()}


# Global adapter registry instance
adapter_registry = AdapterRegistry()
