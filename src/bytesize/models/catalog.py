"""Normalized model catalog entries."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Capability(StrEnum):
    """Capability filter applied to the catalog."""

    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"


class Pricing(BaseModel):
    """Cost per unit; 0 means the free tier."""

    prompt: float = Field(default=0.0, ge=0)
    completion: float = Field(default=0.0, ge=0)


class ModelDescriptor(BaseModel):
    """A selectable upstream model with derived capability flags."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    pricing: Pricing = Field(default_factory=Pricing)
    input_modalities: tuple[str, ...] = ()
    output_modalities: tuple[str, ...] = ()

    @computed_field(alias="isFree")  # type: ignore[prop-decorator]
    @property
    def is_free(self) -> bool:
        return self.pricing.prompt == 0 and self.pricing.completion == 0

    @computed_field(alias="isImageCapable")  # type: ignore[prop-decorator]
    @property
    def is_image_capable(self) -> bool:
        return "image" in self.output_modalities

    @computed_field(alias="isVideoCapable")  # type: ignore[prop-decorator]
    @property
    def is_video_capable(self) -> bool:
        return "video" in self.output_modalities or "video" in self.input_modalities


class VideoBackend(BaseModel):
    """A fixed-price video generation backend offered in video mode."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    label: str
    price_label: str = ""


class ModelSelection(BaseModel):
    """Outcome of the default-selection policy for one mode."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    model_id: str | None = None
    notice: str = ""
