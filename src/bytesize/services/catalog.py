"""Model catalog: normalize, filter and rank upstream models."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from result import Err, Ok, Result

from bytesize.models.catalog import Capability, ModelDescriptor, ModelSelection, Pricing
from bytesize.models.errors import ServiceError, UpstreamError

if TYPE_CHECKING:
    from bytesize.data.protocols import ModelApi

logger = logging.getLogger(__name__)

NO_MODELS_NOTICE = "No models available for this mode."

ModalityStrategy = Callable[[Mapping[str, Any], str], list[str] | None]


def _from_architecture(raw: Mapping[str, Any], field: str) -> list[str] | None:
    arch = raw.get("architecture")
    if not isinstance(arch, Mapping):
        return None
    return _as_tag_list(arch.get(field))


def _from_top_level(raw: Mapping[str, Any], field: str) -> list[str] | None:
    return _as_tag_list(raw.get(field))


# Tried in order; the first strategy that yields a non-empty list wins.
MODALITY_STRATEGIES: tuple[ModalityStrategy, ...] = (_from_architecture, _from_top_level)


def extract_modalities(
    raw: Mapping[str, Any],
    field: str,
    strategies: Sequence[ModalityStrategy] = MODALITY_STRATEGIES,
) -> tuple[str, ...]:
    """Resolve a modality list through the ordered extraction strategies."""
    for strategy in strategies:
        tags = strategy(raw, field)
        if tags:
            return tuple(tags)
    return ()


def _as_tag_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(tag).strip().lower() for tag in value if isinstance(tag, str) and tag.strip()]


def _price(pricing: Mapping[str, Any], key: str) -> float:
    value = pricing.get(key)
    if value in (None, ""):
        return 0.0
    return float(value)


def normalize_model(raw: Mapping[str, Any]) -> ModelDescriptor:
    """Map one raw catalog record to a descriptor.

    Raises:
        ValueError: if the record has no usable id or an unparseable price.
    """
    pricing = raw.get("pricing")
    if not isinstance(pricing, Mapping):
        pricing = {}
    model_id = raw.get("id")
    if not isinstance(model_id, str) or not model_id.strip():
        msg = "model record has no id"
        raise ValueError(msg)

    return ModelDescriptor(
        id=model_id,
        name=str(raw.get("name") or model_id),
        description=str(raw.get("description") or ""),
        pricing=Pricing(prompt=_price(pricing, "prompt"), completion=_price(pricing, "completion")),
        input_modalities=extract_modalities(raw, "input_modalities"),
        output_modalities=extract_modalities(raw, "output_modalities"),
    )


def normalize_models(raw_models: Iterable[object]) -> list[ModelDescriptor]:
    """Normalize a raw catalog, dropping records that cannot be parsed."""
    descriptors: list[ModelDescriptor] = []
    for index, raw in enumerate(raw_models):
        if not isinstance(raw, Mapping):
            logger.warning("Dropping catalog record %d: not an object", index)
            continue
        try:
            descriptors.append(normalize_model(raw))
        except (ValueError, TypeError, ValidationError) as exc:
            logger.warning("Dropping catalog record %d (%s): %s", index, raw.get("id"), exc)
    return descriptors


def rank(descriptors: Iterable[ModelDescriptor]) -> list[ModelDescriptor]:
    """Free models first, then ascending prompt price; ties keep input order."""
    return sorted(descriptors, key=lambda m: (not m.is_free, m.pricing.prompt))


def filter_by_capability(
    descriptors: Iterable[ModelDescriptor], capability: Capability | str = Capability.NONE
) -> list[ModelDescriptor]:
    """Keep the descriptors that support ``capability``."""
    match Capability(capability):
        case Capability.IMAGE:
            return [m for m in descriptors if m.is_image_capable]
        case Capability.VIDEO:
            return [m for m in descriptors if m.is_video_capable]
        case _:
            return list(descriptors)


def selectable_models(
    descriptors: Iterable[ModelDescriptor], capability: Capability | str = Capability.NONE
) -> list[ModelDescriptor]:
    """Filter first, then rank."""
    return rank(filter_by_capability(descriptors, capability))


def select_default_model(
    current_id: str | None, ranked: Sequence[ModelDescriptor]
) -> ModelSelection:
    """Keep the current model if it is still offered, otherwise pick the first one."""
    if not ranked:
        return ModelSelection(model_id=None, notice=NO_MODELS_NOTICE)
    if current_id and any(m.id == current_id for m in ranked):
        return ModelSelection(model_id=current_id)
    return ModelSelection(model_id=ranked[0].id)


def format_price(pricing: Pricing) -> str:
    """Human price label, per million tokens."""
    if pricing.prompt == 0 and pricing.completion == 0:
        return "Free"
    prompt = pricing.prompt * 1_000_000
    completion = pricing.completion * 1_000_000
    return f"${prompt:.2f} / ${completion:.2f} per 1M tokens"


class CatalogService:
    """Fetches the upstream catalog and serves ranked, filtered views of it."""

    def __init__(self, api: ModelApi) -> None:
        self._api = api

    async def list_models(
        self, capability: Capability | str = Capability.NONE
    ) -> Result[list[ModelDescriptor], ServiceError]:
        try:
            capability = Capability(capability)
        except ValueError:
            return Err(ServiceError.input(f"Unknown capability: {capability}"))
        try:
            raw_models = await self._api.list_models()
        except UpstreamError as exc:
            return Err(ServiceError.upstream("Failed to load models from OpenRouter.", exc.body))
        descriptors = normalize_models(raw_models)
        logger.info("Catalog fetched: %d models (%d usable)", len(raw_models), len(descriptors))
        return Ok(selectable_models(descriptors, capability))

    async def list_video_models(self) -> Result[list[ModelDescriptor], ServiceError]:
        return await self.list_models(Capability.VIDEO)
