"""Pydantic models for Byte-Size AI."""

from bytesize.models.catalog import (
    Capability,
    ModelDescriptor,
    ModelSelection,
    Pricing,
    VideoBackend,
)
from bytesize.models.conversations import (
    Chat,
    ConversationSnapshot,
    Message,
    MessageMeta,
    Project,
)
from bytesize.models.errors import ErrorKind, PersistenceError, ServiceError, UpstreamError
from bytesize.models.turns import (
    BRANDS,
    MODES,
    Route,
    RoutedRequest,
    Turn,
    TurnResult,
    VideoParams,
)

__all__ = [
    "Capability",
    "Chat",
    "ConversationSnapshot",
    "ErrorKind",
    "Message",
    "MessageMeta",
    "ModelDescriptor",
    "ModelSelection",
    "PersistenceError",
    "Pricing",
    "Project",
    "Route",
    "RoutedRequest",
    "ServiceError",
    "Turn",
    "TurnResult",
    "UpstreamError",
    "VideoBackend",
    "VideoParams",
    "BRANDS",
    "MODES",
]
