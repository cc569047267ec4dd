"""Request router: decide which upstream capability serves a turn."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING, Any

from result import Err, Ok, Result

from bytesize.models.catalog import Capability
from bytesize.models.conversations import Message
from bytesize.models.errors import ServiceError, UpstreamError
from bytesize.models.turns import (
    IMAGE_MODE,
    VIDEO_MODE,
    Route,
    RoutedRequest,
    Turn,
    TurnResult,
    VideoParams,
)
from bytesize.services.countdown import (
    christmas_countdown,
    is_christmas_question,
    resolve_effective_time,
)

if TYPE_CHECKING:
    from bytesize.config import Config
    from bytesize.data.protocols import ModelApi, VideoApi
    from bytesize.services.protocols import CatalogServiceProtocol

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_REPLY = "Here is your generated image."
VIDEO_REPLY = "Here’s your generated video:"

SYSTEM_PROMPT_TEMPLATE = """\
You are Byte-Size AI, the personal AI assistant for {owner}.
Brand: {brand}
Mode: {mode}

Current real-world date & time (user's context) is: {human_date} (ISO: {iso_date}).
Always use THIS runtime date/time for:
- "today", "now", "current year", "this month", "this week"
- counting days until/from a date
- anything involving deadlines, days remaining, or time differences.

Do NOT rely on your training cutoff date for time-related questions. If there is any conflict,
the runtime date above is the source of truth.

Stay consistent with {owner}'s brand voice: professional, sharp, direct, but still human.
Speak clearly, be practical, and avoid fluff."""


def human_timestamp(moment: datetime) -> str:
    """Long form, e.g. ``Wednesday, 01 January 2025 at 09:30``."""
    return moment.strftime("%A, %d %B %Y at %H:%M")


def build_system_prompt(owner: str, brand: str, mode: str, moment: datetime) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        owner=owner,
        brand=brand,
        mode=mode,
        human_date=human_timestamp(moment),
        iso_date=moment.isoformat(),
    )


def extract_completion_text(payload: dict[str, Any]) -> str:
    """Return ``choices[0].message.content`` or raise UpstreamError."""
    message = _first_choice_message(payload)
    content = message.get("content")
    if isinstance(content, str) and content.strip():
        return content
    raise UpstreamError("No response received from OpenRouter.", body=payload)


def extract_image_url(payload: dict[str, Any]) -> str:
    """Return the first image URL from either known response shape.

    OpenRouter has been observed answering with both ``image_url`` and
    ``imageUrl``; neither is treated as legacy.
    """
    images = _first_choice_message(payload).get("images")
    if isinstance(images, list) and images and isinstance(images[0], dict):
        first = images[0]
        for key in ("image_url", "imageUrl"):
            holder = first.get(key)
            if isinstance(holder, dict) and isinstance(holder.get("url"), str) and holder["url"]:
                return holder["url"]
    raise UpstreamError("OpenRouter returned no image for this prompt.", body=payload)


def extract_video_url(payload: dict[str, Any]) -> str:
    """Return the generated video URL from either known response shape."""
    video = payload.get("video")
    if isinstance(video, dict) and isinstance(video.get("url"), str) and video["url"]:
        return video["url"]
    for key in ("videoUrl", "video_url"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    raise UpstreamError("Video backend returned no video for this prompt.", body=payload)


def _first_choice_message(payload: dict[str, Any]) -> dict[str, Any]:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict):
            return message
    return {}


def _needs_image_catalog(turn: Turn) -> bool:
    """Image-mode turns that will not be answered locally."""
    prompt = turn.prompt.strip()
    return turn.mode == IMAGE_MODE and bool(prompt) and not is_christmas_question(prompt)


class RequestRouter:
    """Classifies turns and dispatches them to exactly one upstream call."""

    def __init__(
        self,
        config: Config,
        model_api: ModelApi,
        video_api: VideoApi,
        catalog: CatalogServiceProtocol,
    ) -> None:
        self._config = config
        self._model_api = model_api
        self._video_api = video_api
        self._catalog = catalog

    def route(
        self,
        turn: Turn,
        now: datetime | None = None,
        image_models: Collection[str] = (),
    ) -> Result[RoutedRequest, ServiceError]:
        """Resolve a turn into an outbound request without contacting anything.

        ``image_models`` holds the ids of the currently selectable image-capable
        models. Image mode only reaches the image path when it is non-empty.
        """
        prompt = turn.prompt.strip()
        if not prompt:
            return Err(ServiceError.input("Missing prompt."))

        effective_at = resolve_effective_time(turn.client_date, now)

        reply = christmas_countdown(prompt, effective_at)
        if reply is not None:
            return Ok(RoutedRequest(route=Route.COUNTDOWN, effective_at=effective_at, reply=reply))

        if turn.mode == IMAGE_MODE and image_models:
            if turn.model_id and turn.model_id in image_models:
                model_id = turn.model_id
            else:
                model_id = self._config.default_image_model
            return Ok(
                RoutedRequest(
                    route=Route.IMAGE,
                    effective_at=effective_at,
                    model_id=model_id,
                    prompt=prompt,
                )
            )

        if turn.mode == VIDEO_MODE:
            return Ok(
                RoutedRequest(
                    route=Route.VIDEO,
                    effective_at=effective_at,
                    model_id=turn.model_id or self._config.default_video_model,
                    prompt=prompt,
                    video=turn.video_params(),
                )
            )

        system_prompt = build_system_prompt(
            self._config.owner_name, turn.brand, turn.mode, effective_at
        )
        return Ok(
            RoutedRequest(
                route=Route.TEXT,
                effective_at=effective_at,
                model_id=turn.model_id or self._config.default_text_model,
                prompt=prompt,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        )

    async def dispatch(self, request: RoutedRequest) -> Message:
        """Perform the single upstream call for a routed request.

        Raises:
            UpstreamError: on transport failure or a payload without the expected result.
        """
        match request.route:
            case Route.COUNTDOWN:
                return Message(role="assistant", text=request.reply)
            case Route.IMAGE:
                payload = await self._model_api.generate_image(request.model_id, request.prompt)
                image_url = extract_image_url(payload)
                content = _first_choice_message(payload).get("content")
                if not isinstance(content, str) or not content.strip():
                    content = DEFAULT_IMAGE_REPLY
                return Message(role="assistant", text=content, image_url=image_url)
            case Route.VIDEO:
                payload = await self._video_api.generate_video(
                    request.model_id, request.prompt, request.video or VideoParams()
                )
                return Message(
                    role="assistant",
                    text=VIDEO_REPLY,
                    type="video",
                    video_url=extract_video_url(payload),
                )
            case _:
                payload = await self._model_api.complete(request.model_id, request.messages)
                return Message(role="assistant", text=extract_completion_text(payload))

    async def handle(
        self, turn: Turn, now: datetime | None = None
    ) -> Result[TurnResult, ServiceError]:
        """Route and dispatch a turn.

        Input errors come back as Err. Upstream failures still produce a
        TurnResult whose assistant message carries the error text.
        """
        image_models: list[str] = []
        if _needs_image_catalog(turn):
            listed = await self._catalog.list_models(Capability.IMAGE)
            if isinstance(listed, Err):
                logger.error("Image model lookup failed: %s", listed.err_value)
                return Ok(
                    TurnResult(
                        route=Route.IMAGE,
                        user_message=turn.user_message(),
                        message=Message(role="assistant", text=listed.err_value.message),
                        error=listed.err_value.message,
                    )
                )
            image_models = [m.id for m in listed.ok_value]

        routed = self.route(turn, now, image_models)
        if isinstance(routed, Err):
            return routed
        request = routed.ok_value
        user_message = turn.user_message()

        try:
            message = await self.dispatch(request)
        except UpstreamError as exc:
            logger.error("%s turn failed on %s: %s", request.route, request.model_id, exc)
            return Ok(
                TurnResult(
                    route=request.route,
                    user_message=user_message,
                    message=Message(role="assistant", text=str(exc)),
                    error=str(exc),
                )
            )
        return Ok(TurnResult(route=request.route, user_message=user_message, message=message))
