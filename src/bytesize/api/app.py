"""FastAPI application: login, catalog, turns and chat state."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from result import Err

from bytesize.api.deps import Authorized, Services, http_error, set_services
from bytesize.config import Config
from bytesize.models.catalog import Capability, VideoBackend
from bytesize.models.turns import Turn
from bytesize.services.container import ServiceContainer

logger = logging.getLogger(__name__)

VIDEO_BACKENDS: tuple[VideoBackend, ...] = (
    VideoBackend(
        id="fal-ai/ovi",
        label="Ovi (per video)",
        price_label="Paid • ~ $0.20 / video • ≈ 5 videos per $1",
    ),
    VideoBackend(
        id="fal-ai/wan-2.5",
        label="Wan 2.5 (per second)",
        price_label="Paid • ~ $0.05 / sec • ≈ 20 sec per $1",
    ),
)


class LoginRequest(BaseModel):
    password: str | None = None


def _models_payload(models: list[Any]) -> dict[str, Any]:
    return {"models": [m.model_dump(by_alias=True, mode="json") for m in models]}


def _validation_message(exc: RequestValidationError) -> str:
    """First validation error as one line, e.g. ``Invalid request: prompt: ...``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request: {field}: {message}" if field else f"Invalid request: {message}"


def create_app(config: Config | None = None, container: ServiceContainer | None = None) -> FastAPI:
    """Build the API.

    Pass a prebuilt ``container`` to skip startup wiring (tests); otherwise one
    is created from ``config`` on startup and closed on shutdown.
    """
    config = config or (container.config if container else Config.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            set_services(app.state, container)
            yield
            return
        services = await ServiceContainer.create(config)
        set_services(app.state, services)
        logger.info("Byte-Size AI backend ready on http://%s:%s", config.host, config.port)
        try:
            yield
        finally:
            await services.close()

    app = FastAPI(title="Byte-Size AI", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def _error_body(_request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_body(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            {"error": _validation_message(exc)}, status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/login")
    async def login(services: Services, body: LoginRequest) -> dict[str, str]:
        issued = services.session_gate.issue(body.password)
        if isinstance(issued, Err):
            raise http_error(issued.err_value)
        return {"token": issued.ok_value}

    @app.get("/api/models")
    async def list_models(
        services: Services, _principal: Authorized, capability: str = Capability.NONE.value
    ) -> dict[str, Any]:
        result = await services.catalog_service.list_models(capability)
        if isinstance(result, Err):
            raise http_error(result.err_value)
        return _models_payload(result.ok_value)

    @app.get("/api/video-models")
    async def list_video_models(services: Services, _principal: Authorized) -> dict[str, Any]:
        result = await services.catalog_service.list_video_models()
        if isinstance(result, Err):
            raise http_error(result.err_value)
        return _models_payload(result.ok_value)

    @app.get("/api/video-backends")
    async def list_video_backends(_principal: Authorized) -> dict[str, Any]:
        return {"backends": [b.model_dump(by_alias=True) for b in VIDEO_BACKENDS]}

    @app.post("/api/ai")
    async def submit_turn(services: Services, _principal: Authorized, turn: Turn) -> dict[str, Any]:
        result = await services.request_router.handle(turn)
        if isinstance(result, Err):
            raise http_error(result.err_value)
        return result.ok_value.model_dump(by_alias=True, mode="json")

    @app.get("/api/chat-state")
    async def load_chat_state(services: Services, _principal: Authorized) -> JSONResponse:
        snapshot, error = await services.conversation_store.load_or_default()
        body: dict[str, Any] = snapshot.to_wire()
        if error is not None:
            body["error"] = error.message
            return JSONResponse(body, status_code=503)
        return JSONResponse(body)

    @app.post("/api/chat-state")
    async def save_chat_state(
        services: Services, _principal: Authorized, payload: Any = Body(default=None)
    ) -> dict[str, bool]:
        result = await services.conversation_store.save_raw(payload)
        if isinstance(result, Err):
            raise http_error(result.err_value)
        return {"success": True}

    return app
