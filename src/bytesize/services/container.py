"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from bytesize.data.db import Database
from bytesize.data.repositories import SnapshotRepository
from bytesize.data.upstream import FalVideoClient, OpenRouterClient
from bytesize.services.auth import SessionGate
from bytesize.services.catalog import CatalogService
from bytesize.services.conversations import ConversationStore
from bytesize.services.router import RequestRouter

if TYPE_CHECKING:
    from bytesize.config import Config


@dataclass
class ServiceContainer:
    """Holds all application services. Built once at startup, immutable."""

    config: Config
    db: Database
    model_api: OpenRouterClient
    video_api: FalVideoClient
    session_gate: SessionGate
    catalog_service: CatalogService
    conversation_store: ConversationStore
    request_router: RequestRouter

    @classmethod
    async def create(cls, config: Config) -> ServiceContainer:
        """Async factory that wires all dependencies."""
        db = Database(config.db_path)
        await db.connect()

        model_api = OpenRouterClient(config)
        video_api = FalVideoClient(config)
        catalog_service = CatalogService(model_api)

        return cls(
            config=config,
            db=db,
            model_api=model_api,
            video_api=video_api,
            session_gate=SessionGate(
                config.admin_password,
                config.jwt_secret,
                ttl=timedelta(days=config.token_ttl_days),
                operator_name=config.owner_name,
            ),
            catalog_service=catalog_service,
            conversation_store=ConversationStore(SnapshotRepository(db), key=config.snapshot_key),
            request_router=RequestRouter(config, model_api, video_api, catalog_service),
        )

    async def close(self) -> None:
        """Shut down all services."""
        await self.model_api.aclose()
        await self.video_api.aclose()
        await self.db.close()
