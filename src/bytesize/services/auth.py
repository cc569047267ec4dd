"""Session gate: password login issuing signed, time-limited bearer tokens."""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import BaseModel
from result import Err, Ok, Result

from bytesize.models.errors import ServiceError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class Principal(BaseModel):
    """The authenticated operator."""

    role: str = "admin"
    name: str = ""


class SessionGate:
    """Issues and verifies session tokens for the single operator."""

    def __init__(
        self,
        password: str,
        secret: str = "",
        *,
        ttl: timedelta = timedelta(days=7),
        operator_name: str = "",
    ) -> None:
        if not secret:
            # Tokens will not survive a restart.
            logger.warning("JWT_SECRET not set; using an ephemeral signing key")
            secret = secrets.token_urlsafe(32)
        self._password = password
        self._secret = secret
        self._ttl = ttl
        self._operator_name = operator_name

    def issue(self, password: str | None) -> Result[str, ServiceError]:
        """Exchange the shared password for a signed token."""
        if not password:
            return Err(ServiceError.input("Password is required."))
        if not self._password or not secrets.compare_digest(
            password.encode("utf-8"), self._password.encode("utf-8")
        ):
            logger.warning("Rejected login attempt")
            return Err(ServiceError.auth("Invalid password."))

        issued_at = datetime.now(UTC)
        payload = {
            "role": "admin",
            "name": self._operator_name,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return Ok(jwt.encode(payload, self._secret, algorithm=ALGORITHM))

    def verify(self, token: str | None) -> Result[Principal, ServiceError]:
        if not token:
            return Err(ServiceError.auth("Unauthorized: missing token"))
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            return Err(ServiceError.auth("Unauthorized: token expired"))
        except jwt.InvalidTokenError as exc:
            logger.error("JWT verify error: %s", exc)
            return Err(ServiceError.auth("Unauthorized: invalid token"))
        return Ok(Principal(role=str(payload.get("role", "")), name=str(payload.get("name", ""))))

    @staticmethod
    def bearer_token(authorization: str | None) -> str | None:
        """Extract the token from an ``Authorization: Bearer ...`` header."""
        if authorization and authorization.startswith("Bearer "):
            return authorization[len("Bearer ") :].strip() or None
        return None
