"""Listcraft trusted intermediary: FastAPI application.

This module is the single entry point for the intermediary.  It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
- **Credentials** never leave the server.  Keys come from
  :data:`~listcraft.core.config.config` only.
- **Generation** is delegated to a :class:`~listcraft.core.dispatch.Dispatcher`
  built with a direct-only strategy chain over the server keys, sharing one
  ``httpx.AsyncClient`` for the life of the app.
- **Errors** from the dispatch layer render as ``{"error": str, "kind": str}``
  with the status code of the error class, so the dispatch client can rebuild
  the same error type on its side.

Endpoints
---------
========  =========================================  ================================
Method    Path                                       Purpose
========  =========================================  ================================
POST      ``/api/check-api-key``                     Is a server key configured?
POST      ``/api/{provider}/enhance-description``    Rewrite a product description
POST      ``/api/{provider}/generate-images``        Generate product images
POST      ``/api/{provider}/analyze-image``          Describe a product photo
GET       ``/api/models``                            Model catalog (``?modality=``)
GET       ``/api/providers``                         Providers and image capabilities
========  =========================================  ================================

Usage
-----
CLI (installed entry point)::

    listcraft

Direct invocation::

    python -m listcraft.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listcraft import __version__
from listcraft.api.models import (
    AnalyzeImageRequest,
    AnalyzeImageResponse,
    CheckApiKeyRequest,
    CheckApiKeyResponse,
    EnhanceDescriptionRequest,
    EnhanceDescriptionResponse,
    GenerateImagesRequest,
    GenerateImagesResponse,
)
from listcraft.api.rate_limit import RateLimiter, client_key
from listcraft.core.config import ListcraftConfig, config
from listcraft.core.dispatch import Dispatcher
from listcraft.core.errors import (
    GenerationError,
    NotFoundError,
    UnsupportedCapabilityError,
    ValidationError,
)
from listcraft.core.model_adapters import unsupported_images_error
from listcraft.core.models import ModelDescriptor, Modality, Provider
from listcraft.core.registry import (
    PROVIDERS,
    find_model,
    image_capabilities,
    list_models,
    model_registry,
    provider_info,
)

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# ---------------------------------------------------------------------------
# Application lifecycle: shared HTTP client and dispatcher.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Opens the shared ``httpx.AsyncClient``, builds the server-side
        :class:`Dispatcher` and the rate limiter, and stores them on
        ``app.state``.

    On shutdown:
        Closes the HTTP client.
    """
    # --- Startup -----------------------------------------------------------
    client = httpx.AsyncClient(timeout=config.request_timeout)
    app.state.http_client = client
    app.state.dispatcher = Dispatcher.for_server(client, config)
    app.state.rate_limiter = RateLimiter(
        config.rate_limit_window_seconds,
        config.rate_limit_max_requests,
        trust_forwarded_for=config.trust_forwarded_for,
    )
    configured = [p.value for p in config.server_credentials().providers()]
    logger.info(f"Intermediary started; server keys configured for: {configured or 'none'}")

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await client.aclose()
    logger.info("HTTP client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Listcraft",
    description="Trusted intermediary for AI description rewriting and product images.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_and_secure(request: Request, call_next):
    """Apply per-client rate limiting to ``/api`` routes and add security headers."""
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is not None and request.url.path.startswith("/api/"):
        key = client_key(request, limiter.trust_forwarded_for)
        if not await limiter.allow(key):
            logger.warning(f"Rate limit exceeded for {key}")
            response = JSONResponse(
                status_code=429,
                content={
                    "error": "Too many requests. Please try again later.",
                    "kind": "rate_limited",
                },
            )
            response.headers.update(SECURITY_HEADERS)
            return response

    response = await call_next(request)
    response.headers.update(SECURITY_HEADERS)
    return response


# ---------------------------------------------------------------------------
# Error rendering.
# ---------------------------------------------------------------------------


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed ({exc.kind}): {exc.message}")
    else:
        logger.warning(f"{request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    error = ValidationError(f"{location}: {message}" if location else message)
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_settings() -> ListcraftConfig:
    return config


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def _provider_from_path(provider: str) -> Provider:
    try:
        return Provider(provider.lower())
    except ValueError:
        raise NotFoundError(f"Unknown provider: {provider}") from None


def _resolve_model(provider: Provider, modality: Modality, model_id: str | None) -> ModelDescriptor:
    """Return the requested model, or the provider's first model for *modality*.

    Raises:
        ValidationError: Unknown model, or a model of another provider.
        UnsupportedCapabilityError: The provider has no model for *modality*.
    """
    if not model_id:
        candidates = model_registry.models_for(modality, provider)
        if candidates:
            return candidates[0]
        if modality is Modality.IMAGE:
            raise unsupported_images_error(provider)
        raise UnsupportedCapabilityError(
            f"{provider_info(provider).name} does not support description enhancement."
        )

    model = find_model(model_id)
    if model is None:
        raise ValidationError(f"Unknown model: {model_id}")
    if model.provider is not provider:
        raise ValidationError(
            f"Model '{model_id}' belongs to {model.provider.value}, not {provider.value}"
        )
    return model


def _model_payload(model: ModelDescriptor) -> dict:
    return {
        "id": model.id,
        "name": model.display_name,
        "provider": model.provider.value,
        "modality": model.modality.value,
        "description": model.description,
        "capabilities": list(model.capabilities),
        "requiresCredential": model.requires_credential,
        "isDefault": model.is_default_for_modality,
    }


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post("/api/check-api-key", response_model=CheckApiKeyResponse)
async def check_api_key(
    req: CheckApiKeyRequest, settings: ListcraftConfig = Depends(get_settings)
) -> CheckApiKeyResponse:
    """Report whether the server holds a key for ``req.provider``.

    Raises:
        ValidationError: 400 when the provider is missing or unknown.
    """
    if not req.provider:
        raise ValidationError("Provider is required")
    try:
        provider = Provider(req.provider.lower())
    except ValueError:
        raise ValidationError(f"Unknown provider: {req.provider}") from None

    return CheckApiKeyResponse(has_credential=settings.server_credentials().has(provider))


@app.post("/api/{provider}/enhance-description", response_model=EnhanceDescriptionResponse)
async def enhance_description(
    provider: str,
    req: EnhanceDescriptionRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> EnhanceDescriptionResponse:
    """Rewrite a product description with a model of *provider*."""
    target = _provider_from_path(provider)
    model = _resolve_model(target, Modality.TEXT, req.model_id)
    result = await dispatcher.generate_enhanced_description(model, req.to_domain())
    return EnhanceDescriptionResponse.from_domain(result)


@app.post("/api/{provider}/generate-images", response_model=GenerateImagesResponse)
async def generate_images(
    provider: str,
    req: GenerateImagesRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> GenerateImagesResponse:
    """Generate ``req.count`` product images with a model of *provider*."""
    target = _provider_from_path(provider)
    model = _resolve_model(target, Modality.IMAGE, req.model_id)
    result = await dispatcher.generate_product_images(model, req.to_domain())
    return GenerateImagesResponse.from_domain(result)


@app.post("/api/{provider}/analyze-image", response_model=AnalyzeImageResponse)
async def analyze_image(
    provider: str,
    req: AnalyzeImageRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> AnalyzeImageResponse:
    """Describe a product photo with a vision-capable text model of *provider*."""
    target = _provider_from_path(provider)
    model = _resolve_model(target, Modality.TEXT, req.model_id)
    result = await dispatcher.analyze_product_image(model, req.to_domain())
    return AnalyzeImageResponse.from_domain(result)


@app.get("/api/models")
async def get_models(modality: Modality | None = None) -> dict:
    """List enabled catalog models, optionally for one modality."""
    modalities = [modality] if modality else list(Modality)
    models = [m for mod in modalities for m in list_models(mod)]
    return {"models": [_model_payload(m) for m in models]}


@app.get("/api/providers")
async def get_providers() -> dict:
    """List providers with presentation details and image capabilities."""
    providers = []
    for provider, info in PROVIDERS.items():
        caps = image_capabilities(provider)
        providers.append(
            {
                "id": provider.value,
                "name": info.name,
                "description": info.description,
                "docsUrl": info.docs_url,
                "credentialName": info.credential_name,
                "credentialPlaceholder": info.credential_placeholder,
                "imageCapabilities": {
                    "supportsGeneration": caps.supports_generation,
                    "maxImages": caps.max_images,
                    "supportedAspectRatios": list(caps.supported_aspect_ratios),
                    "supportedStyles": list(caps.supported_styles),
                },
            }
        )
    return {"providers": providers}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~listcraft.core.config.config` (which
    loads from ``LISTCRAFT_SERVER_HOST`` and ``LISTCRAFT_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``listcraft`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "listcraft.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
