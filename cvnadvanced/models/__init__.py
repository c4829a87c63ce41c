"""CVNAdvanced data models — all Pydantic v2, all frozen (immutable)."""

from cvnadvanced.models.events import (
    ActorClass,
    ClassifiedLine,
    Event,
    EventType,
    SpamType,
    UnknownLine,
)
from cvnadvanced.models.payloads import (
    DiscordPayload,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedImage,
    NewUserEntry,
    NewUserProfile,
)
from cvnadvanced.models.routing import (
    FilterSpec,
    RelayProfile,
    TransportSpec,
    load_profile,
)

__all__ = [
    # events
    "ActorClass",
    "ClassifiedLine",
    "Event",
    "EventType",
    "SpamType",
    "UnknownLine",
    # payloads
    "DiscordPayload",
    "Embed",
    "EmbedAuthor",
    "EmbedField",
    "EmbedImage",
    "NewUserEntry",
    "NewUserProfile",
    # routing
    "FilterSpec",
    "RelayProfile",
    "TransportSpec",
    "load_profile",
]
