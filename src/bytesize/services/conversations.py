"""Conversation store and the pure operations on a snapshot."""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import ValidationError
from result import Err, Ok, Result

from bytesize.models.conversations import (
    DEFAULT_CHAT_TITLE,
    Chat,
    ConversationSnapshot,
    Message,
    Project,
)
from bytesize.models.errors import PersistenceError, ServiceError

if TYPE_CHECKING:
    from bytesize.data.protocols import SnapshotBackend

logger = logging.getLogger(__name__)

TITLE_LIMIT = 40
DEFAULT_PROJECT_NAME = "General"
WELCOME_TEXT = (
    "WELCOME TO Leonard van Rooyen's personal AI. "
    "CHOOSE A BRAND, PICK A MODE, AND TELL ME WHAT YOU WANT TO CREATE."
)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    digits = ""
    while value:
        value, rem = divmod(value, 36)
        digits = _BASE36[rem] + digits
    return digits or "0"


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    """Short unique id: base-36 millisecond clock plus a random suffix."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{_base36(now_ms())}-{suffix}"


def welcome_messages() -> list[Message]:
    return [Message(role="system", text=WELCOME_TEXT)]


def chat_title(messages: Sequence[Message], fallback: str = DEFAULT_CHAT_TITLE) -> str:
    """Title from the first user message; long titles are cut to 37 chars + '...'."""
    first_user = next((m for m in messages if m.role == "user"), None)
    if first_user is None:
        return fallback
    trimmed = first_user.text.strip()
    if not trimmed:
        return fallback
    if len(trimmed) > TITLE_LIMIT:
        return trimmed[: TITLE_LIMIT - 3] + "..."
    return trimmed


def default_snapshot() -> ConversationSnapshot:
    """Bootstrap state: a "General" project and one unfiled chat."""
    created = now_ms()
    return ConversationSnapshot(
        projects=[Project(id=new_id(), name=DEFAULT_PROJECT_NAME, created_at=created)],
        chats=[Chat(id=new_id(), project_id=None, messages=welcome_messages(), created_at=created)],
    )


def create_project(
    snapshot: ConversationSnapshot, name: str
) -> Result[tuple[ConversationSnapshot, Project], ServiceError]:
    name = name.strip()
    if not name:
        return Err(ServiceError.input("Project name is required."))
    project = Project(id=new_id(), name=name, created_at=now_ms())
    updated = snapshot.model_copy(update={"projects": [*snapshot.projects, project]})
    return Ok((updated, project))


def create_chat(
    snapshot: ConversationSnapshot, project_id: str | None = None
) -> Result[tuple[ConversationSnapshot, Chat], ServiceError]:
    """Start a chat at the top of the list, optionally inside a project."""
    if project_id is not None and not any(p.id == project_id for p in snapshot.projects):
        return Err(ServiceError.input(f"Project {project_id} not found"))
    chat = Chat(
        id=new_id(), project_id=project_id, messages=welcome_messages(), created_at=now_ms()
    )
    updated = snapshot.model_copy(update={"chats": [chat, *snapshot.chats]})
    return Ok((updated, chat))


def delete_project(snapshot: ConversationSnapshot, project_id: str) -> ConversationSnapshot:
    """Remove a project and every chat filed under it."""
    return snapshot.model_copy(
        update={
            "projects": [p for p in snapshot.projects if p.id != project_id],
            "chats": [c for c in snapshot.chats if c.project_id != project_id],
        }
    )


def delete_chat(snapshot: ConversationSnapshot, chat_id: str) -> ConversationSnapshot:
    return snapshot.model_copy(update={"chats": [c for c in snapshot.chats if c.id != chat_id]})


def chats_for_project(snapshot: ConversationSnapshot, project_id: str) -> list[Chat]:
    return [c for c in snapshot.chats if c.project_id == project_id]


def global_chats(snapshot: ConversationSnapshot) -> list[Chat]:
    return [c for c in snapshot.chats if c.project_id is None]


def append_turn(
    snapshot: ConversationSnapshot,
    chat_id: str,
    user_message: Message,
    assistant_message: Message,
) -> Result[ConversationSnapshot, ServiceError]:
    """Append one user and one assistant message, then re-derive the title."""
    if user_message.role != "user" or assistant_message.role != "assistant":
        return Err(
            ServiceError.input("A turn is one user message followed by one assistant message.")
        )

    chats: list[Chat] = []
    found = False
    for chat in snapshot.chats:
        if chat.id == chat_id:
            messages = [*chat.messages, user_message, assistant_message]
            chat = chat.model_copy(
                update={"messages": messages, "title": chat_title(messages, chat.title)}
            )
            found = True
        chats.append(chat)
    if not found:
        return Err(ServiceError.input(f"Chat {chat_id} not found"))
    return Ok(snapshot.model_copy(update={"chats": chats}))


class ConversationStore:
    """Whole-snapshot load/save under one tenant key.

    Saves are unlocked full replaces: two concurrent writers race and the
    later one wins.
    """

    def __init__(self, backend: SnapshotBackend, key: str = "default") -> None:
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> Result[ConversationSnapshot, ServiceError]:
        """Return the stored snapshot, or an empty one if nothing was saved yet."""
        try:
            data = await self._backend.get(self._key)
        except PersistenceError as exc:
            logger.error("Error reading chat state %s: %s", self._key, exc)
            return Err(ServiceError.persistence("Failed to load chat state."))
        if data is None:
            return Ok(ConversationSnapshot())
        try:
            return Ok(ConversationSnapshot.model_validate_json(data))
        except ValidationError as exc:
            logger.error("Stored chat state %s is unreadable: %s", self._key, exc)
            return Err(ServiceError.persistence("Stored chat state is corrupted."))

    async def load_or_default(self) -> tuple[ConversationSnapshot, ServiceError | None]:
        """Load, falling back to the bootstrap snapshot when loading fails."""
        result = await self.load()
        if isinstance(result, Err):
            return default_snapshot(), result.err_value
        return result.ok_value, None

    async def save(self, snapshot: ConversationSnapshot) -> Result[None, ServiceError]:
        data = json.dumps(snapshot.to_wire(), ensure_ascii=False, separators=(",", ":"))
        try:
            await self._backend.put(self._key, data)
        except PersistenceError as exc:
            logger.error("Error saving chat state %s: %s", self._key, exc)
            return Err(ServiceError.persistence("Failed to save chat state."))
        return Ok(None)

    async def save_raw(self, payload: object) -> Result[ConversationSnapshot, ServiceError]:
        """Validate an untrusted payload and save it."""
        if not isinstance(payload, dict) or "projects" not in payload or "chats" not in payload:
            return Err(ServiceError.input("Missing 'projects' or 'chats' in body."))
        try:
            snapshot = ConversationSnapshot.model_validate(payload)
        except ValidationError as exc:
            return Err(ServiceError.input(f"Invalid chat state: {exc.error_count()} error(s)"))
        saved = await self.save(snapshot)
        if isinstance(saved, Err):
            return saved
        return Ok(snapshot)
