"""Tests for turn routing and dispatch."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from result import Err, Ok

from bytesize.config import Config
from bytesize.models.errors import UpstreamError
from bytesize.models.turns import IMAGE_MODE, VIDEO_MODE, Route, Turn, VideoParams
from bytesize.services.catalog import CatalogService
from bytesize.services.router import (
    RequestRouter,
    build_system_prompt,
    extract_image_url,
    extract_video_url,
    human_timestamp,
)
from tests.conftest import FakeModelApi, FakeVideoApi

NOW = datetime(2025, 1, 1, 9, 30, tzinfo=UTC)
GEMINI = "google/gemini-2.5-flash-image-preview"


@pytest.fixture
def router(test_config: Config, model_api: FakeModelApi, video_api: FakeVideoApi) -> RequestRouter:
    return RequestRouter(test_config, model_api, video_api, CatalogService(model_api))


class TestRoute:
    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_empty_prompt_is_input_error(self, router: RequestRouter, prompt: str) -> None:
        result = router.route(Turn(prompt=prompt))
        assert isinstance(result, Err)
        assert result.err_value.kind == "input"

    def test_text_route_embeds_brand_mode_and_time(self, router: RequestRouter) -> None:
        turn = Turn(prompt="  plan my week ", brand="LVR", mode="Campaign Builder")
        result = router.route(turn, NOW)
        assert isinstance(result, Ok)
        routed = result.ok_value
        assert routed.route == Route.TEXT
        assert routed.model_id == "openai/gpt-4o-mini"
        system, user = routed.messages
        assert system["role"] == "system"
        assert "Brand: LVR" in system["content"]
        assert "Mode: Campaign Builder" in system["content"]
        assert "Wednesday, 01 January 2025 at 09:30" in system["content"]
        assert "2025-01-01T09:30:00+00:00" in system["content"]
        assert "source of truth" in system["content"]
        assert user == {"role": "user", "content": "plan my week"}

    def test_client_date_overrides_wall_clock(self, router: RequestRouter) -> None:
        turn = Turn(prompt="what day is it?", client_date="2031-07-04T12:00:00Z")
        result = router.route(turn, NOW)
        assert isinstance(result, Ok)
        assert result.ok_value.effective_at == datetime(2031, 7, 4, 12, tzinfo=UTC)

    def test_selected_model_is_used(self, router: RequestRouter) -> None:
        result = router.route(Turn(prompt="hi", model_id="vendor/x"), NOW)
        assert isinstance(result, Ok)
        assert result.ok_value.model_id == "vendor/x"

    def test_image_mode_with_selectable_model_routes_to_image(self, router: RequestRouter) -> None:
        turn = Turn(prompt="a cat", mode=IMAGE_MODE, model_id="img/model")
        result = router.route(turn, NOW, ["img/model", GEMINI])
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.IMAGE
        assert result.ok_value.model_id == "img/model"
        assert result.ok_value.prompt == "a cat"

    def test_image_mode_without_model_uses_default_image_model(
        self, router: RequestRouter
    ) -> None:
        result = router.route(Turn(prompt="a cat", mode=IMAGE_MODE), NOW, [GEMINI])
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.IMAGE
        assert result.ok_value.model_id == GEMINI

    def test_image_mode_ignores_model_that_cannot_make_images(
        self, router: RequestRouter
    ) -> None:
        turn = Turn(prompt="a cat", mode=IMAGE_MODE, model_id="openai/gpt-4o-mini")
        result = router.route(turn, NOW, [GEMINI])
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.IMAGE
        assert result.ok_value.model_id == GEMINI

    def test_image_mode_without_image_models_is_text(self, router: RequestRouter) -> None:
        turn = Turn(prompt="a cat", mode=IMAGE_MODE, model_id="img/model")
        result = router.route(turn, NOW)
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.TEXT

    def test_video_mode_uses_fixed_defaults(self, router: RequestRouter) -> None:
        result = router.route(Turn(prompt="a drone shot", mode=VIDEO_MODE), NOW)
        assert isinstance(result, Ok)
        routed = result.ok_value
        assert routed.route == Route.VIDEO
        assert routed.model_id == "fal-ai/ovi"
        assert routed.video == VideoParams(
            aspect_ratio="16:9", duration_seconds=6, audio_enabled=True
        )

    def test_video_params_can_be_overridden(self, router: RequestRouter) -> None:
        turn = Turn.model_validate(
            {
                "prompt": "waves",
                "mode": VIDEO_MODE,
                "modelId": "fal-ai/wan-2.5",
                "aspectRatio": "9:16",
                "audioEnabled": False,
            }
        )
        result = router.route(turn, NOW)
        assert isinstance(result, Ok)
        assert result.ok_value.model_id == "fal-ai/wan-2.5"
        assert result.ok_value.video == VideoParams(
            aspect_ratio="9:16", duration_seconds=6, audio_enabled=False
        )

    def test_christmas_question_short_circuits_every_mode(self, router: RequestRouter) -> None:
        for mode in ("Chat / Brain", IMAGE_MODE, VIDEO_MODE):
            turn = Turn(
                prompt="How many days until christmas 2026?",
                mode=mode,
                model_id="img/model",
                client_date="2025-01-01T00:00:00Z",
            )
            result = router.route(turn, image_models=["img/model"])
            assert isinstance(result, Ok)
            assert result.ok_value.route == Route.COUNTDOWN
            assert "723 days until Christmas 2026" in result.ok_value.reply


class TestHandle:
    @pytest.mark.asyncio
    async def test_empty_prompt_makes_zero_upstream_calls(
        self, router: RequestRouter, model_api: FakeModelApi, video_api: FakeVideoApi
    ) -> None:
        result = await router.handle(Turn(prompt="   ", mode=VIDEO_MODE))
        assert isinstance(result, Err)
        assert model_api.calls == []
        assert video_api.calls == []

    @pytest.mark.asyncio
    async def test_countdown_never_contacts_upstream(
        self, router: RequestRouter, model_api: FakeModelApi, video_api: FakeVideoApi
    ) -> None:
        turn = Turn(prompt="how many days until christmas", client_date="2025-12-26T00:00:00Z")
        result = await router.handle(turn)
        assert isinstance(result, Ok)
        assert result.ok_value.message.text == (
            "There are 364 days until Christmas 2026. (Based on current date 2025-12-26)"
        )
        assert model_api.calls == []
        assert video_api.calls == []

    @pytest.mark.asyncio
    async def test_text_turn_produces_user_and_assistant_messages(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        result = await router.handle(Turn(prompt=" hello ", brand="AI", mode="Chat / Brain"), NOW)
        assert isinstance(result, Ok)
        turn_result = result.ok_value
        assert turn_result.user_message.role == "user"
        assert turn_result.user_message.text == "hello"
        assert turn_result.user_message.meta is not None
        assert turn_result.user_message.meta.brand == "AI"
        assert turn_result.message.role == "assistant"
        assert turn_result.message.text == "Hello from the model"
        assert turn_result.error is None
        assert [name for name, _ in model_api.calls] == ["complete"]

    @pytest.mark.asyncio
    async def test_image_turn_returns_image_message(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        result = await router.handle(Turn(prompt="red bike", mode=IMAGE_MODE, model_id=GEMINI))
        assert isinstance(result, Ok)
        message = result.ok_value.message
        assert message.image_url == "data:image/png;base64,AAAA"
        assert message.text == "A red bicycle."
        assert model_api.calls == [
            ("list_models", ()),
            ("generate_image", (GEMINI, "red bike")),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("model_id", [None, "vendor/paid-cheap", "no/such-model"])
    async def test_image_turn_falls_back_to_default_image_model(
        self, router: RequestRouter, model_api: FakeModelApi, model_id: str | None
    ) -> None:
        result = await router.handle(Turn(prompt="red bike", mode=IMAGE_MODE, model_id=model_id))
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.IMAGE
        assert result.ok_value.error is None
        assert [args for name, args in model_api.calls if name == "generate_image"] == [
            (GEMINI, "red bike")
        ]

    @pytest.mark.asyncio
    async def test_image_turn_without_image_models_goes_to_text(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        model_api.models = [m for m in model_api.models if m["id"] != GEMINI]
        result = await router.handle(Turn(prompt="red bike", mode=IMAGE_MODE, model_id=GEMINI))
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.TEXT
        assert [name for name, _ in model_api.calls] == ["list_models", "complete"]

    @pytest.mark.asyncio
    async def test_image_catalog_failure_becomes_error_message(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        model_api.error = UpstreamError("down", status=503)
        result = await router.handle(Turn(prompt="red bike", mode=IMAGE_MODE))
        assert isinstance(result, Ok)
        assert result.ok_value.error == "Failed to load models from OpenRouter."
        assert result.ok_value.message.role == "assistant"
        assert [name for name, _ in model_api.calls] == ["list_models"]

    @pytest.mark.asyncio
    async def test_image_mode_countdown_skips_catalog(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        turn = Turn(prompt="how many days until christmas", mode=IMAGE_MODE)
        result = await router.handle(turn, NOW)
        assert isinstance(result, Ok)
        assert result.ok_value.route == Route.COUNTDOWN
        assert model_api.calls == []

    @pytest.mark.asyncio
    async def test_image_without_url_is_an_error_not_an_empty_image(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        model_api.image = {"choices": [{"message": {"content": "sorry", "images": []}}]}
        result = await router.handle(Turn(prompt="red bike", mode=IMAGE_MODE, model_id="img/m"))
        assert isinstance(result, Ok)
        turn_result = result.ok_value
        assert turn_result.error == "OpenRouter returned no image for this prompt."
        assert turn_result.message.image_url is None
        assert turn_result.message.text == turn_result.error

    @pytest.mark.asyncio
    async def test_video_turn_returns_video_message(
        self, router: RequestRouter, video_api: FakeVideoApi
    ) -> None:
        result = await router.handle(Turn(prompt="sunrise", mode=VIDEO_MODE))
        assert isinstance(result, Ok)
        message = result.ok_value.message
        assert message.type == "video"
        assert message.video_url == "https://cdn.example/v.mp4"
        model, prompt, params = video_api.calls[0]
        assert (model, prompt) == ("fal-ai/ovi", "sunrise")
        assert params.duration_seconds == 6

    @pytest.mark.asyncio
    async def test_video_without_url_is_an_error(
        self, router: RequestRouter, video_api: FakeVideoApi
    ) -> None:
        video_api.response = {"status": "done"}
        result = await router.handle(Turn(prompt="sunrise", mode=VIDEO_MODE))
        assert isinstance(result, Ok)
        assert result.ok_value.error is not None
        assert result.ok_value.message.type is None

    @pytest.mark.asyncio
    async def test_upstream_failure_becomes_error_message(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        model_api.error = UpstreamError("AI request timed out.")
        result = await router.handle(Turn(prompt="hello"))
        assert isinstance(result, Ok)
        assert result.ok_value.message.text == "AI request timed out."
        assert result.ok_value.error == "AI request timed out."
        assert len(model_api.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_completion_is_an_error(
        self, router: RequestRouter, model_api: FakeModelApi
    ) -> None:
        model_api.completion = {"choices": []}
        result = await router.handle(Turn(prompt="hello"))
        assert isinstance(result, Ok)
        assert result.ok_value.error == "No response received from OpenRouter."


class TestExtractors:
    def test_image_url_camel_case_shape(self) -> None:
        payload = {"choices": [{"message": {"images": [{"imageUrl": {"url": "https://i/1.png"}}]}}]}
        assert extract_image_url(payload) == "https://i/1.png"

    def test_image_url_snake_case_shape(self) -> None:
        images = [{"image_url": {"url": "https://i/2.png"}}]
        payload = {"choices": [{"message": {"images": images}}]}
        assert extract_image_url(payload) == "https://i/2.png"

    def test_image_url_missing_raises(self) -> None:
        with pytest.raises(UpstreamError):
            extract_image_url({"choices": [{"message": {"images": [{"image_url": {}}]}}]})
        with pytest.raises(UpstreamError):
            extract_image_url({})

    def test_video_url_shapes(self) -> None:
        assert extract_video_url({"video": {"url": "https://v/1.mp4"}}) == "https://v/1.mp4"
        assert extract_video_url({"videoUrl": "https://v/2.mp4"}) == "https://v/2.mp4"
        with pytest.raises(UpstreamError):
            extract_video_url({"video": {"url": ""}})


def test_system_prompt_mentions_owner() -> None:
    prompt = build_system_prompt("Jo Bloggs", "DSSA", "Chat / Brain", NOW)
    assert prompt.startswith("You are Byte-Size AI, the personal AI assistant for Jo Bloggs.")
    assert human_timestamp(NOW) in prompt
