"""Dependency access for API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from result import Err

from bytesize.models.errors import ErrorKind, ServiceError
from bytesize.services.auth import Principal, SessionGate
from bytesize.services.container import ServiceContainer

_CONTAINER_KEY = "bytesize_services"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTH: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PERSISTENCE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def set_services(app_state: object, container: ServiceContainer) -> None:
    """Store the service container in FastAPI app state."""
    setattr(app_state, _CONTAINER_KEY, container)


def get_services(request: Request) -> ServiceContainer:
    """Retrieve the service container from FastAPI app state."""
    container = getattr(request.app.state, _CONTAINER_KEY, None)
    if container is None:
        msg = "ServiceContainer not initialized"
        raise RuntimeError(msg)
    return container  # type: ignore[no-any-return]


Services = Annotated[ServiceContainer, Depends(get_services)]


def http_error(error: ServiceError) -> HTTPException:
    """Translate a service error into an HTTP error response."""
    return HTTPException(status_code=STATUS_BY_KIND[error.kind], detail=error.message)


def require_principal(
    services: Services,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Reject the request before any service runs unless the bearer token verifies."""
    verified = services.session_gate.verify(SessionGate.bearer_token(authorization))
    if isinstance(verified, Err):
        raise http_error(verified.err_value)
    return verified.ok_value


Authorized = Annotated[Principal, Depends(require_principal)]
