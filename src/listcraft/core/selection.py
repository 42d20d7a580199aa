"""Automatic model selection from credential availability."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .models import ModelDescriptor, Modality, Provider
from .registry import REPLICATE_SDXL, ModelRegistry, model_registry

logger = logging.getLogger(__name__)

# Preferred models per modality, best first.  The registry default is tried
# after these.
PRIORITIES: dict[Modality, tuple[str, ...]] = {
    Modality.TEXT: ("gpt-4o", "llama-3.1-70b-versatile", "gemini-1.5-pro"),
    Modality.IMAGE: ("dall-e-3", "stable-diffusion-xl-1024-v1-0", REPLICATE_SDXL),
}


def select_best_model(
    modality: Modality,
    availability: Mapping[Provider, bool],
    registry: ModelRegistry = model_registry,
) -> ModelDescriptor | None:
    """Return the highest-priority enabled model whose provider is available.

    Args:
        modality: Text or image.
        availability: Provider to usable flag, as published by the resolver.
        registry: Catalog to look models up in.

    Returns:
        The chosen model, or ``None`` when no candidate's provider is usable.
    """
    candidates = [registry.find_model(model_id) for model_id in PRIORITIES[modality]]
    candidates.append(registry.default_model(modality))

    for model in candidates:
        if model is None or not model.is_enabled or model.modality != modality:
            continue
        if availability.get(model.provider, False):
            return model
    return None


class ModelSelection:
    """Current text and image model choice.

    An explicit :meth:`choose` always wins; :meth:`refresh` only fills an
    empty slot from :func:`select_best_model`.
    """

    def __init__(self, registry: ModelRegistry = model_registry) -> None:
        self.registry = registry
        self._selected: dict[Modality, ModelDescriptor | None] = {m: None for m in Modality}

    def get(self, modality: Modality) -> ModelDescriptor | None:
        return self._selected[modality]

    @property
    def text_model(self) -> ModelDescriptor | None:
        return self._selected[Modality.TEXT]

    @property
    def image_model(self) -> ModelDescriptor | None:
        return self._selected[Modality.IMAGE]

    def choose(self, model: ModelDescriptor) -> None:
        """Record an explicit user choice for the model's modality."""
        logger.info(f"Selected {model.modality.value} model: {model.id}")
        self._selected[model.modality] = model

    def clear(self, modality: Modality) -> None:
        self._selected[modality] = None

    def refresh(self, availability: Mapping[Provider, bool]) -> None:
        """Fill empty slots from *availability*; existing choices are kept."""
        for modality in Modality:
            if self._selected[modality] is not None:
                continue
            best = select_best_model(modality, availability, self.registry)
            if best is not None:
                logger.info(f"Auto-selected {modality.value} model: {best.id}")
                self._selected[modality] = best
