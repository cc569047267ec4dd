"""Protocol definitions for data access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from bytesize.models.turns import VideoParams


class DatabaseProtocol(Protocol):
    """Async database interface."""

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> Any: ...

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> Any | None: ...

    async def commit(self) -> None: ...


class SnapshotBackend(Protocol):
    """Key-value durable storage for serialized snapshots."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, data: str) -> None: ...


class ModelApi(Protocol):
    """The remote model-serving API."""

    async def list_models(self) -> list[Any]: ...

    async def complete(self, model: str, messages: list[dict[str, str]]) -> dict[str, Any]: ...

    async def generate_image(self, model: str, prompt: str) -> dict[str, Any]: ...


class VideoApi(Protocol):
    """The remote video-generation API."""

    async def generate_video(
        self, model: str, prompt: str, params: VideoParams
    ) -> dict[str, Any]: ...
