"""Parsed notification events.

One ``Event`` is built per recognised line and is immutable afterwards.
Lines that match no template become an ``UnknownLine``, which is a separate
model so it can never be mistaken for a routable event.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class EventType(str, Enum):
    """The closed set of notification families."""

    EDIT = "edit"
    BLOCK = "block"
    LIST = "list"
    LIST_ABSENCE = "nolist"
    DISCUSSIONS = "discussions"
    SPAM = "spam"
    NEW_USERS = "newusers"
    UPLOAD = "upload"
    UNKNOWN = "unknown"


class ActorClass(str, Enum):
    """How the monitoring bot classifies the acting account."""

    USER = "user"
    IP = "ip"
    ADMIN = "admin"
    BOT = "bot"
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    GREYLIST = "greylist"


class SpamType(str, Enum):
    HIT = "hit"
    COI = "coi"


class Event(BaseModel):
    """A typed, immutable notification.

    Only ``type`` and ``raw`` are always present; every other field is
    populated by the extractor of the family that produced the event and
    is ``None`` (or its falsy default) otherwise.
    """

    model_config = ConfigDict(frozen=True)

    type: EventType
    raw: str

    # Actor and subject
    user: Optional[str] = None
    user_type: Optional[ActorClass] = None
    action: Optional[str] = None
    title: Optional[str] = None
    target: Optional[str] = None
    summary: Optional[str] = None
    reason: Optional[str] = None
    length: Optional[str] = None
    added_by: Optional[str] = None

    # Wiki location
    wiki: Optional[str] = None
    lang: Optional[str] = None
    domain: Optional[str] = None
    is_fandom: bool = False

    # Edits
    diff_size: Optional[int] = None
    watchlist: bool = False
    watched: Optional[str] = None
    blank: bool = False
    replace: Optional[str] = None
    url_params: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    log: Optional[str] = None

    # Lists
    list_code: Optional[str] = None

    # Discussions
    reply: Optional[int] = None
    thread_id: Optional[str] = None
    reply_id: Optional[str] = None

    # Spam
    spam_type: Optional[SpamType] = None
    coi: Optional[int] = None
    percent: Optional[float] = None
    oldid: Optional[int] = None
    url: Optional[str] = None
    filter: Optional[Union[int, str]] = None

    # Uploads
    namespace: Optional[str] = None
    reupload: bool = False

    @field_validator("url_params", mode="after")
    @classmethod
    def _freeze_params(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("url_params")
    def _dump_params(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)

    @property
    def is_routable(self) -> bool:
        return self.type is not EventType.UNKNOWN

    def populated_fields(self) -> dict[str, Any]:
        """Return only the fields that carry information (for display)."""
        data = self.model_dump(mode="json")
        return {
            key: value
            for key, value in data.items()
            if value is not None and value is not False and value not in ({}, "")
        }


class UnknownLine(BaseModel):
    """A line no catalog pattern recognised, preserved verbatim."""

    model_config = ConfigDict(frozen=True)

    type: Literal[EventType.UNKNOWN] = EventType.UNKNOWN
    raw: str

    @property
    def is_routable(self) -> bool:
        return False


ClassifiedLine = Union[Event, UnknownLine]
