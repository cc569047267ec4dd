"""Error taxonomy shared by the data, service and HTTP layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure categories surfaced to callers."""

    INPUT = "input"
    AUTH = "auth"
    UPSTREAM = "upstream"
    PERSISTENCE = "persistence"


@dataclass(frozen=True, slots=True)
class ServiceError:
    """Err payload returned by services."""

    kind: ErrorKind
    message: str
    details: object = None

    @classmethod
    def input(cls, message: str) -> ServiceError:
        return cls(ErrorKind.INPUT, message)

    @classmethod
    def auth(cls, message: str) -> ServiceError:
        return cls(ErrorKind.AUTH, message)

    @classmethod
    def upstream(cls, message: str, details: object = None) -> ServiceError:
        return cls(ErrorKind.UPSTREAM, message, details)

    @classmethod
    def persistence(cls, message: str) -> ServiceError:
        return cls(ErrorKind.PERSISTENCE, message)

    def __str__(self) -> str:
        return self.message


class UpstreamError(Exception):
    """The model-serving API failed or returned an unusable payload."""

    def __init__(self, message: str, *, status: int | None = None, body: object = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class PersistenceError(Exception):
    """The snapshot backend could not be read or written."""
