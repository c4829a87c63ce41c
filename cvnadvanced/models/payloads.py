"""Destination payloads produced by formatters and consumed by sinks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmbedAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: Optional[str] = None


class EmbedField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    inline: bool = True


class EmbedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str


class Embed(BaseModel):
    """A single Discord embed."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    color: Optional[int] = None
    author: Optional[EmbedAuthor] = None
    fields: list[EmbedField] = Field(default_factory=list)
    image: Optional[EmbedImage] = None


class DiscordPayload(BaseModel):
    """A Discord webhook execute body."""

    model_config = ConfigDict(frozen=True)

    content: Optional[str] = None
    username: Optional[str] = None
    embeds: list[Embed] = Field(default_factory=list)
    allowed_mentions: dict[str, Any] = Field(
        default_factory=lambda: {"parse": []}
    )

    def to_json(self) -> dict[str, Any]:
        """Webhook body with absent keys dropped."""
        body = self.model_dump(mode="json", exclude_none=True)
        for embed in body.get("embeds", []):
            if not embed.get("fields"):
                embed.pop("fields", None)
        return body


class NewUserEntry(BaseModel):
    """A registration queued by the batching new-users transport."""

    model_config = ConfigDict(frozen=True)

    user: str
    wiki: str
    wiki_url: str = ""
    seen_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NewUserProfile(BaseModel):
    """Masthead attributes of a freshly registered user."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    username: str
    wiki: Optional[str] = None
    avatar: Optional[str] = None
    website: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    birthday: Optional[str] = Field(default=None, alias="UserProfilePagesV3_birthday")
    gender: Optional[str] = Field(default=None, alias="UserProfilePagesV3_gender")
    fb_page: Optional[str] = Field(default=None, alias="fbPage")
    twitter: Optional[str] = None
    bio: Optional[str] = None
