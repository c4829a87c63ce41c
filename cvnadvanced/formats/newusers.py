"""New-users format.

For the ``newusers`` dialect the format emits a ``NewUserEntry`` for the
batching sink to queue.  Once the sink has looked up the user's profile it
calls ``render_profile`` to build the Discord embed that is finally posted.
Plain ``discord`` destinations get a short registration notice instead.
"""

from __future__ import annotations

from typing import Optional, Union

from cvnadvanced.formats import Destination, Handler, TableFormatter
from cvnadvanced.formats._formatting import (
    contribs_url,
    encode,
    escape,
    event_wiki_url,
    markdown_link,
)
from cvnadvanced.models.events import Event, EventType
from cvnadvanced.models.payloads import (
    DiscordPayload,
    Embed,
    EmbedField,
    EmbedImage,
    NewUserEntry,
    NewUserProfile,
)

# (profile attribute, field label, URL prefix)
PROFILE_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("website", "Website", ""),
    ("name", "aka", ""),
    ("location", "I live in", ""),
    ("birthday", "I was born on", ""),
    ("gender", "I am", ""),
    ("fb_page", "Facebook", "https://facebook.com/"),
    ("twitter", "Twitter", "https://twitter.com/"),
    ("bio", "Bio", ""),
)


class NewUsersFormat(TableFormatter):
    format_name = "newusers"
    handled_types = frozenset({EventType.NEW_USERS})
    dialects = frozenset({"newusers", "discord"})

    def _handlers(self) -> dict[EventType, Handler]:
        return {EventType.NEW_USERS: self._new_user}

    def _new_user(
        self, destination: Destination, event: Event
    ) -> Optional[Union[NewUserEntry, DiscordPayload]]:
        if not event.user:
            return None
        if destination.dialect == "newusers":
            return NewUserEntry(
                user=event.user,
                wiki=event.wiki or "community",
                wiki_url=event_wiki_url(event),
            )
        embed = Embed(
            title=escape(event.user),
            url=contribs_url(event),
            description=f"Registered on {markdown_link(event.wiki or 'community', event_wiki_url(event))}",
        )
        return DiscordPayload(embeds=[embed])

    @staticmethod
    def render_profile(profile: NewUserProfile, entry: NewUserEntry) -> DiscordPayload:
        """Build the profile embed for a looked-up new user.

        Parameters
        ----------
        profile:
            Attributes returned by the profile service.
        entry:
            The queued registration the profile belongs to.
        """
        fields = []
        for attribute, label, prefix in PROFILE_FIELDS:
            value = getattr(profile, attribute)
            if value:
                fields.append(EmbedField(name=label, value=f"{prefix}{value}"[:1024]))
        embed = Embed(
            title=escape(profile.username),
            url=f"{entry.wiki_url}/wiki/Special:Contribs/{encode(profile.username)}",
            fields=fields,
            image=EmbedImage(url=profile.avatar) if profile.avatar else None,
        )
        return DiscordPayload(embeds=[embed])
