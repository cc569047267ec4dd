"""Projects, chats, messages and the persisted snapshot."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_CHAT_TITLE = "New chat"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageMeta(_WireModel):
    """Brand and mode a user message was sent under."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    brand: str = ""
    mode: str = ""


class Message(_WireModel):
    """One chat message. Immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    role: Literal["system", "user", "assistant"]
    text: str = ""
    meta: MessageMeta | None = None
    image_url: str | None = None
    type: Literal["video"] | None = None
    video_url: str | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> Message:
        if self.meta is not None and self.role != "user":
            msg = "meta is only allowed on user messages"
            raise ValueError(msg)
        if self.type == "video" and not self.video_url:
            msg = "video messages require a videoUrl"
            raise ValueError(msg)
        return self


class Project(_WireModel):
    """A named folder of chats."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    created_at: int = 0


class Chat(_WireModel):
    """An ordered message thread, optionally filed under a project."""

    id: str = Field(min_length=1)
    project_id: str | None = None
    title: str = DEFAULT_CHAT_TITLE
    messages: list[Message] = Field(default_factory=list)
    created_at: int = 0

    @field_validator("project_id", mode="before")
    @classmethod
    def _blank_project_is_global(cls, value: object) -> object:
        return value or None


class ConversationSnapshot(_WireModel):
    """The complete persisted state: every project and chat."""

    projects: list[Project] = Field(default_factory=list)
    chats: list[Chat] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> ConversationSnapshot:
        project_ids = [p.id for p in self.projects]
        if len(set(project_ids)) != len(project_ids):
            msg = "duplicate project id in snapshot"
            raise ValueError(msg)
        chat_ids = [c.id for c in self.chats]
        if len(set(chat_ids)) != len(chat_ids):
            msg = "duplicate chat id in snapshot"
            raise ValueError(msg)
        known = set(project_ids)
        for chat in self.chats:
            if chat.project_id is not None and chat.project_id not in known:
                msg = f"chat {chat.id} references unknown project {chat.project_id}"
                raise ValueError(msg)
        return self

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, mode="json")
