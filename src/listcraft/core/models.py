"""Domain types shared by the registry, adapters, and dispatch layer.

These are plain dataclasses rather than Pydantic models: they never cross a
serialisation boundary directly.  The HTTP layer converts to and from them in
:mod:`listcraft.api.models`.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    """Third-party AI providers the layer can talk to."""

    OPENAI = "openai"
    GEMINI = "gemini"
    STABILITY = "stability"
    REPLICATE = "replicate"
    OPENROUTER = "openrouter"
    GROQ = "groq"
    XAI = "xai"


class Modality(str, Enum):
    """Kind of generation a model performs."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class ModelDescriptor:
    """Immutable catalog entry for one AI model.

    Attributes:
        id: Provider-side model identifier, unique across the catalog.
        display_name: Human-readable label.
        provider: Provider serving the model.
        modality: Text or image generation.
        capabilities: Ordered feature hints for UI filtering.
        is_enabled: Disabled models are hidden from listings.
        requires_credential: Whether a provider key is needed.
        is_default_for_modality: At most one model per modality sets this.
        description: Short marketing description.
    """

    id: str
    display_name: str
    provider: Provider
    modality: Modality
    capabilities: tuple[str, ...] = ()
    is_enabled: bool = True
    requires_credential: bool = True
    is_default_for_modality: bool = False
    description: str = ""


@dataclass(frozen=True)
class ProviderInfo:
    """Presentation-only details about a provider."""

    provider: Provider
    name: str
    description: str
    docs_url: str
    credential_name: str
    credential_placeholder: str


@dataclass(frozen=True)
class ImageCapabilities:
    """What a provider's image path can do."""

    supports_generation: bool
    max_images: int
    supported_aspect_ratios: tuple[str, ...] = ()
    supported_styles: tuple[str, ...] = ()
    requires_credential: bool = True


@dataclass
class TextGenerationRequest:
    """Normalized description-rewrite request.

    Attributes:
        original_text: Product description to rewrite.  Must not be blank.
        subject_name: Product name.  Must not be blank.
        tone: Optional tone hint (e.g. ``"playful"``).
        style: Optional style hint (e.g. ``"bullet-free prose"``).
    """

    original_text: str
    subject_name: str
    tone: str | None = None
    style: str | None = None

    def validate(self) -> None:
        """Check required fields.

        Raises:
            ValueError: If a required field is blank.
        """
        if not self.original_text or not self.original_text.strip():
            raise ValueError("original_text must not be empty")
        if not self.subject_name or not self.subject_name.strip():
            raise ValueError("subject_name must not be empty")


@dataclass(frozen=True)
class TextGenerationResult:
    """Rewritten description plus a short justification of the rewrite."""

    enhanced_text: str
    rationale: str


@dataclass
class ImageAnalysisRequest:
    """Product photo to describe.

    Attributes:
        image: Base64 image data without a data-URI prefix.
    """

    image: str

    def validate(self) -> None:
        if not self.image or not self.image.strip():
            raise ValueError("image must not be empty")
        try:
            base64.b64decode(self.image, validate=True)
        except binascii.Error as e:
            raise ValueError("image must be base64 encoded") from e


@dataclass(frozen=True)
class ImageAnalysisResult:
    analysis: str


@dataclass
class ImageGenerationRequest:
    """Normalized image-generation request.

    Attributes:
        prompt: Product context the image must depict faithfully.
        count: Number of images (1..provider maximum).
        source_image: Optional base64 image (no data-URI prefix) for
            image-to-image or variation modes.
        source_strength: Influence of ``source_image`` (0..1).  Only
            meaningful when ``source_image`` is set.
        aspect_ratio: Optional aspect ratio id such as ``"16:9"``.
        style: Optional provider style preset.
        quality: Optional quality hint (``"standard"`` or ``"hd"``).
    """

    prompt: str
    count: int = 1
    source_image: str | None = None
    source_strength: float | None = None
    aspect_ratio: str | None = None
    style: str | None = None
    quality: str | None = None

    def validate(self, max_images: int) -> None:
        """Check the request against a provider's advertised maximum.

        Args:
            max_images: Upper bound on ``count`` for the target provider.

        Raises:
            ValueError: With a user-facing message on the first violation.
        """
        if not self.prompt or not self.prompt.strip():
            raise ValueError("prompt must not be empty")
        if self.count < 1 or self.count > max_images:
            raise ValueError(f"count must be between 1 and {max_images}, got {self.count}")
        if self.source_image is not None:
            try:
                base64.b64decode(self.source_image, validate=True)
            except binascii.Error as e:
                raise ValueError("source_image must be base64 encoded") from e
        if self.source_strength is not None:
            if not self.source_image:
                raise ValueError("source_strength requires a source_image")
            if not 0.0 <= self.source_strength <= 1.0:
                raise ValueError(
                    f"source_strength must be between 0 and 1, got {self.source_strength}"
                )


@dataclass
class ImageGenerationResult:
    """Ordered base64 image payloads plus result metadata.

    ``metadata["is_placeholder"]`` is always present so that callers can tell
    real output from any labelled substitute.
    """

    images: list[str]
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.metadata.setdefault("is_placeholder", False)


class JobStatus(str, Enum):
    """Lifecycle of an asynchronous provider job."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PENDING

    @classmethod
    def from_upstream(cls, value: Any) -> JobStatus:
        """Map a provider status string onto the four known states.

        Intermediate states such as ``starting`` or ``processing`` and any
        unknown value count as pending.
        """
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.PENDING


@dataclass
class AsyncJob:
    """Snapshot of a job-based provider prediction."""

    job_id: str
    status: JobStatus
    output: Any = None
    error: str | None = None


@dataclass(frozen=True)
class LocalCredentials:
    """Caller-supplied provider keys, passed explicitly wherever they are needed.

    Blank keys are dropped on construction so that ``has`` and ``get`` agree.
    The mapping is excluded from ``repr`` to keep keys out of logs.
    """

    keys: dict[Provider, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        cleaned = {
            Provider(provider): key.strip()
            for provider, key in self.keys.items()
            if key and key.strip()
        }
        object.__setattr__(self, "keys", cleaned)

    def get(self, provider: Provider) -> str | None:
        return self.keys.get(provider)

    def has(self, provider: Provider) -> bool:
        return provider in self.keys

    def providers(self) -> list[Provider]:
        return list(self.keys)
