"""Pydantic request and response models for the intermediary API.

These models define the JSON schema for every API endpoint.  The wire format
is camelCase; the Python attributes are snake_case.  Field-level checks are
kept loose on purpose: the dispatcher validates requests and reports failures
in the same ``{"error", "kind"}`` shape as every other error.

Models
------
CheckApiKeyRequest / CheckApiKeyResponse
    ``POST /api/check-api-key``
EnhanceDescriptionRequest / EnhanceDescriptionResponse
    ``POST /api/{provider}/enhance-description``
GenerateImagesRequest / GenerateImagesResponse
    ``POST /api/{provider}/generate-images``
AnalyzeImageRequest / AnalyzeImageResponse
    ``POST /api/{provider}/analyze-image``
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from listcraft.core.models import (
    ImageAnalysisRequest,
    ImageAnalysisResult,
    ImageGenerationRequest,
    ImageGenerationResult,
    TextGenerationRequest,
    TextGenerationResult,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class CheckApiKeyRequest(_CamelModel):
    """Request body for ``POST /api/check-api-key``."""

    provider: str | None = None


class CheckApiKeyResponse(_CamelModel):
    has_credential: bool = Field(serialization_alias="hasCredential")


class EnhanceDescriptionRequest(_CamelModel):
    """Request body for ``POST /api/{provider}/enhance-description``.

    ``originalDescription`` and ``productName`` are accepted as older names
    for ``originalText`` and ``subjectName``.
    """

    model_id: str | None = Field(default=None, validation_alias="modelId")
    original_text: str = Field(
        default="",
        validation_alias=AliasChoices("originalText", "originalDescription", "original_text"),
    )
    subject_name: str = Field(
        default="",
        validation_alias=AliasChoices("subjectName", "productName", "subject_name"),
    )
    tone: str | None = None
    style: str | None = None

    def to_domain(self) -> TextGenerationRequest:
        return TextGenerationRequest(
            original_text=self.original_text,
            subject_name=self.subject_name,
            tone=self.tone,
            style=self.style,
        )


class EnhanceDescriptionResponse(_CamelModel):
    enhanced_text: str = Field(serialization_alias="enhancedText")
    rationale: str

    @classmethod
    def from_domain(cls, result: TextGenerationResult) -> EnhanceDescriptionResponse:
        return cls(enhanced_text=result.enhanced_text, rationale=result.rationale)


class GenerateImagesRequest(_CamelModel):
    """Request body for ``POST /api/{provider}/generate-images``.

    Attributes:
        model_id: Catalog model id.  Omitted means the provider's first
            image model.
        prompt: Product context to depict.
        count: Number of images; ``numberOfImages`` is accepted too.
        source_image: Optional base64 image for image-to-image or variations.
        source_strength: Influence of the source image (0..1).
        aspect_ratio: Optional aspect ratio such as ``"16:9"``.
        style: Optional provider style preset.
        quality: ``"standard"`` or ``"hd"``.
    """

    model_id: str | None = Field(default=None, validation_alias="modelId")
    prompt: str = ""
    count: int = Field(default=1, validation_alias=AliasChoices("count", "numberOfImages"))
    source_image: str | None = Field(
        default=None, validation_alias=AliasChoices("sourceImage", "source_image")
    )
    source_strength: float | None = Field(
        default=None, validation_alias=AliasChoices("sourceStrength", "source_strength")
    )
    aspect_ratio: str | None = Field(
        default=None, validation_alias=AliasChoices("aspectRatio", "aspect_ratio")
    )
    style: str | None = None
    quality: str | None = None

    def to_domain(self) -> ImageGenerationRequest:
        return ImageGenerationRequest(
            prompt=self.prompt,
            count=self.count,
            source_image=self.source_image,
            source_strength=self.source_strength,
            aspect_ratio=self.aspect_ratio,
            style=self.style,
            quality=self.quality,
        )


class GenerateImagesResponse(_CamelModel):
    images: list[str]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, result: ImageGenerationResult) -> GenerateImagesResponse:
        return cls(images=list(result.images), metadata=dict(result.metadata))


class AnalyzeImageRequest(_CamelModel):
    """Request body for ``POST /api/{provider}/analyze-image``.

    ``image`` is base64 without a data-URI prefix; ``imageBase64`` is accepted
    too.  Omitting ``modelId`` picks the provider's first text model.
    """

    model_id: str | None = Field(default=None, validation_alias="modelId")
    image: str = Field(default="", validation_alias=AliasChoices("image", "imageBase64"))

    def to_domain(self) -> ImageAnalysisRequest:
        return ImageAnalysisRequest(image=self.image)


class AnalyzeImageResponse(_CamelModel):
    analysis: str

    @classmethod
    def from_domain(cls, result: ImageAnalysisResult) -> AnalyzeImageResponse:
        return cls(analysis=result.analysis)
