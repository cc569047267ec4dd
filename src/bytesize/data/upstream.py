"""HTTP clients for the OpenRouter model API and fal.ai video generation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from bytesize.models.errors import UpstreamError

if TYPE_CHECKING:
    from bytesize.config import Config
    from bytesize.models.turns import VideoParams

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return response.text


async def _request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    label: str,
    timeout: float,
    json: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Send one request and decode a JSON object, raising UpstreamError on any failure."""
    try:
        response = await client.request(method, url, json=json, timeout=timeout)
    except httpx.TimeoutException as exc:
        logger.error("%s timed out after %.0fs", label, timeout)
        raise UpstreamError(f"{label} timed out.") from exc
    except httpx.HTTPError as exc:
        logger.error("%s failed: %s", label, exc)
        raise UpstreamError(f"{label} failed: {exc}") from exc

    if response.is_error:
        body = _error_body(response)
        logger.error("%s returned status %s: %s", label, response.status_code, body)
        raise UpstreamError(
            f"{label} failed with status {response.status_code}.",
            status=response.status_code,
            body=body,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamError(f"{label} returned a non-JSON body.") from exc
    if not isinstance(payload, dict):
        raise UpstreamError(f"{label} returned an unexpected payload.", body=payload)
    return payload


class OpenRouterClient:
    """Async client for the OpenRouter catalog and chat completion endpoints."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.openrouter_base_url,
            headers={
                "Authorization": f"Bearer {config.openrouter_api_key}",
                "HTTP-Referer": config.referer,
                "X-Title": config.app_title,
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def list_models(self) -> list[Any]:
        """Return the raw model records from ``GET /models``."""
        payload = await _request_json(
            self._client,
            "GET",
            "/models",
            label="Model catalog request",
            timeout=self._config.catalog_timeout,
        )
        data = payload.get("data")
        return data if isinstance(data, list) else []

    async def complete(self, model: str, messages: list[dict[str, str]]) -> dict[str, Any]:
        return await _request_json(
            self._client,
            "POST",
            "/chat/completions",
            label="AI request",
            timeout=self._config.text_timeout,
            json={"model": model, "messages": messages},
        )

    async def generate_image(self, model: str, prompt: str) -> dict[str, Any]:
        return await _request_json(
            self._client,
            "POST",
            "/chat/completions",
            label="Image request",
            timeout=self._config.image_timeout,
            json={
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "modalities": ["image", "text"],
                "stream": False,
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()


class FalVideoClient:
    """Async client for fal.ai synchronous video generation."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.fal_base_url,
            headers={
                "Authorization": f"Key {config.fal_api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def generate_video(self, model: str, prompt: str, params: VideoParams) -> dict[str, Any]:
        return await _request_json(
            self._client,
            "POST",
            f"/{model.strip('/')}",
            label="Video request",
            timeout=self._config.video_timeout,
            json={
                "prompt": prompt,
                "aspect_ratio": params.aspect_ratio,
                "duration": params.duration_seconds,
                "generate_audio": params.audio_enabled,
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()
