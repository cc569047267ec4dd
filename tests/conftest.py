"""Shared fixtures for Byte-Size AI tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest

from bytesize.config import Config
from bytesize.data.db import Database
from bytesize.models.errors import PersistenceError, UpstreamError
from bytesize.models.turns import VideoParams

RAW_CATALOG: list[dict[str, Any]] = [
    {
        "id": "vendor/paid-cheap",
        "name": "Paid Cheap",
        "description": "cheap text model",
        "pricing": {"prompt": "0.000001", "completion": "0.000002"},
        "architecture": {"input_modalities": ["text"], "output_modalities": ["text"]},
    },
    {
        "id": "vendor/free-text",
        "name": "Free Text",
        "pricing": {"prompt": "0", "completion": "0"},
        "architecture": {"input_modalities": ["text"], "output_modalities": ["text"]},
    },
    {
        "id": "google/gemini-2.5-flash-image-preview",
        "name": "Gemini Image",
        "pricing": {"prompt": "0.0000003", "completion": "0.0000025"},
        "architecture": {
            "input_modalities": ["text", "image"],
            "output_modalities": ["image", "text"],
        },
    },
    {
        "id": "vendor/video-in",
        "name": "Video Understanding",
        "pricing": {"prompt": "0.000005", "completion": "0.00001"},
        "input_modalities": ["text", "video"],
        "output_modalities": ["text"],
    },
    {
        "id": "vendor/free-video-out",
        "name": "Free Video",
        "architecture": {"output_modalities": ["video"]},
    },
]


class FakeModelApi:
    """Records every upstream call; answers with canned payloads."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.models: list[Any] = list(RAW_CATALOG)
        self.completion: dict[str, Any] = {
            "choices": [{"message": {"content": "Hello from the model"}}]
        }
        self.image: dict[str, Any] = {
            "choices": [
                {
                    "message": {
                        "content": "A red bicycle.",
                        "images": [{"image_url": {"url": "data:image/png;base64,AAAA"}}],
                    }
                }
            ]
        }
        self.error: UpstreamError | None = None

    async def list_models(self) -> list[Any]:
        self.calls.append(("list_models", ()))
        if self.error:
            raise self.error
        return self.models

    async def complete(self, model: str, messages: list[dict[str, str]]) -> dict[str, Any]:
        self.calls.append(("complete", (model, messages)))
        if self.error:
            raise self.error
        return self.completion

    async def generate_image(self, model: str, prompt: str) -> dict[str, Any]:
        self.calls.append(("generate_image", (model, prompt)))
        if self.error:
            raise self.error
        return self.image


class FakeVideoApi:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, VideoParams]] = []
        self.response: dict[str, Any] = {"video": {"url": "https://cdn.example/v.mp4"}}
        self.error: UpstreamError | None = None

    async def generate_video(self, model: str, prompt: str, params: VideoParams) -> dict[str, Any]:
        self.calls.append((model, prompt, params))
        if self.error:
            raise self.error
        return self.response


class MemoryBackend:
    """Dict-backed snapshot storage; can be told to fail."""

    def __init__(self) -> None:
        self.rows: dict[str, str] = {}
        self.fail = False

    async def get(self, key: str) -> str | None:
        if self.fail:
            raise PersistenceError("backend unreachable")
        return self.rows.get(key)

    async def put(self, key: str, data: str) -> None:
        if self.fail:
            raise PersistenceError("backend unreachable")
        self.rows[key] = data


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config pointing at a temporary data directory."""
    return Config(
        openrouter_api_key="or-test-key",
        fal_api_key="fal-test-key",
        admin_password="hunter2",
        jwt_secret="test-secret-with-enough-length-for-hs256",
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def model_api() -> FakeModelApi:
    return FakeModelApi()


@pytest.fixture
def video_api() -> FakeVideoApi:
    return FakeVideoApi()


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
async def test_db(tmp_path: Path) -> AsyncGenerator[Database]:
    """A fresh on-disk test database."""
    db = Database(tmp_path / "test.sqlite")
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)


@pytest.fixture
async def in_memory_db() -> AsyncGenerator[Database]:
    """SQLite in-memory database for fast unit/integration tests."""
    db = Database(Path(":memory:"))
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)
