"""User turns and the routing decisions made for them."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bytesize.models.conversations import Message

CHAT_MODE = "Chat / Brain"
CAMPAIGN_MODE = "Campaign Builder"
IMAGE_MODE = "Image Prompts"
VIDEO_MODE = "Video Prompts"

MODES: tuple[str, ...] = (CHAT_MODE, CAMPAIGN_MODE, IMAGE_MODE, VIDEO_MODE)
BRANDS: tuple[str, ...] = ("DSSA", "LVR", "AI")


class Route(StrEnum):
    """Upstream capability a turn is dispatched to."""

    COUNTDOWN = "countdown"
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


class VideoParams(BaseModel):
    """Generation parameters sent with every video request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    aspect_ratio: str = "16:9"
    duration_seconds: int = Field(default=6, gt=0)
    audio_enabled: bool = True


class Turn(BaseModel):
    """One prompt submission from the client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = ""
    brand: str = BRANDS[0]
    mode: str = CHAT_MODE
    model_id: str | None = None
    client_date: str | None = None
    aspect_ratio: str | None = None
    duration_seconds: int | None = Field(default=None, gt=0)
    audio_enabled: bool | None = None

    def video_params(self) -> VideoParams:
        overrides = {
            key: value
            for key, value in (
                ("aspect_ratio", self.aspect_ratio),
                ("duration_seconds", self.duration_seconds),
                ("audio_enabled", self.audio_enabled),
            )
            if value is not None
        }
        return VideoParams(**overrides)

    def user_message(self) -> Message:
        return Message.model_validate(
            {
                "role": "user",
                "text": self.prompt.strip(),
                "meta": {"brand": self.brand, "mode": self.mode},
            }
        )


class RoutedRequest(BaseModel):
    """The fully resolved outbound request for a turn."""

    route: Route
    effective_at: datetime
    model_id: str = ""
    prompt: str = ""
    messages: list[dict[str, str]] = Field(default_factory=list)
    video: VideoParams | None = None
    reply: str = ""


class TurnResult(BaseModel):
    """The two messages a turn appends, plus the failure text if any."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    route: Route
    user_message: Message
    message: Message
    error: str | None = None
