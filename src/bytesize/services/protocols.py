"""Protocol definitions for services."""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import Protocol

from result import Result

from bytesize.models.catalog import Capability, ModelDescriptor
from bytesize.models.conversations import ConversationSnapshot
from bytesize.models.errors import ServiceError
from bytesize.models.turns import RoutedRequest, Turn, TurnResult
from bytesize.services.auth import Principal


class CatalogServiceProtocol(Protocol):
    """Interface for model catalog operations."""

    async def list_models(
        self, capability: Capability | str = Capability.NONE
    ) -> Result[list[ModelDescriptor], ServiceError]: ...

    async def list_video_models(self) -> Result[list[ModelDescriptor], ServiceError]: ...


class RequestRouterProtocol(Protocol):
    """Interface for turn routing."""

    def route(
        self,
        turn: Turn,
        now: datetime | None = None,
        image_models: Collection[str] = (),
    ) -> Result[RoutedRequest, ServiceError]: ...

    async def handle(
        self, turn: Turn, now: datetime | None = None
    ) -> Result[TurnResult, ServiceError]: ...


class ConversationStoreProtocol(Protocol):
    """Interface for whole-snapshot persistence."""

    async def load(self) -> Result[ConversationSnapshot, ServiceError]: ...

    async def save(self, snapshot: ConversationSnapshot) -> Result[None, ServiceError]: ...


class SessionGateProtocol(Protocol):
    """Interface for issuing and verifying session credentials."""

    def issue(self, password: str | None) -> Result[str, ServiceError]: ...

    def verify(self, token: str | None) -> Result[Principal, ServiceError]: ...
