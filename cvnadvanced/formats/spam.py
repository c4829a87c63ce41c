"""Spam format: one embed per spam report, with a ready-made report command.

The format keeps its own bounded memory of reported users.  A user that was
already reported (on any wiki) gets ``!URGENT!`` appended to the embed author.
"""

from __future__ import annotations

from typing import Optional

from cvnadvanced.filters.builtin import SeenRegistry
from cvnadvanced.formats import Destination, Handler, TableFormatter
from cvnadvanced.formats._formatting import (
    code_span,
    contribs_url,
    escape,
    event_wiki_url,
    markdown_link,
)
from cvnadvanced.models.events import Event, EventType
from cvnadvanced.models.payloads import DiscordPayload, Embed, EmbedAuthor

COI_COLORS = (0xFF0000, 0xFFFF00, 0x00FF00, 0x0000FF, 0xFF00FF, 0x00FFFF, 0xFFFFFF)
DEFAULT_COLOR = 0xFFFFFF

COI_TITLES: dict[int, str] = {
    1: "Inserted link matches username",
    2: "Wiki URL similar to founder",
    3: "Wiki name similar to founder",
    4: "Inserted a link to a new wiki too soon",
    6: "Answers spam",
}

# Wiki-level reports for these categories, user-level for the rest.
WIKI_REPORT_COI = frozenset({2, 3, 4})


class SpamFormat(TableFormatter):
    format_name = "spam"
    handled_types = frozenset({EventType.SPAM})

    def __init__(self, *, max_users: int = 4096) -> None:
        super().__init__()
        self._seen = SeenRegistry(max_users=max_users)

    def _handlers(self) -> dict[EventType, Handler]:
        return {EventType.SPAM: self._spam}

    def _spam(self, destination: Destination, event: Event) -> DiscordPayload:
        urgent = False
        if event.user:
            urgent = self._seen.seen(event.user)
            self._seen.record(event.user, event.wiki)

        author = f"{escape(event.user)} [{escape(event.wiki)}]"
        if urgent:
            author = f"{author} !URGENT!"
        description = self._description(event)
        report = code_span(self._report_command(event))
        embed = Embed(
            author=EmbedAuthor(name=author, url=contribs_url(event)),
            color=self._color(event.coi),
            description=f"{description}\n\n{report}" if description else report,
            title=self._title(event),
            url=self._url(event),
        )
        return DiscordPayload(embeds=[embed])

    @staticmethod
    def _color(coi: Optional[int]) -> int:
        if coi is not None and 0 <= coi < len(COI_COLORS):
            return COI_COLORS[coi]
        return DEFAULT_COLOR

    @staticmethod
    def _title(event: Event) -> str:
        if event.coi == 5:
            if event.summary:
                matched = "Summary"
            elif event.title:
                matched = "Title"
            elif event.url:
                matched = "URL"
            else:
                matched = "Content"
            return f"{matched} matches spam filter"
        return COI_TITLES.get(event.coi or 0, "Unknown spam type")

    @staticmethod
    def _url(event: Event) -> str:
        base = event_wiki_url(event)
        if event.oldid:
            return f"{base}/?oldid={event.oldid}"
        return base

    @staticmethod
    def _description(event: Event) -> str:
        if event.percent is None:
            percent = "**?%**"
        else:
            percent = f"**{round(event.percent * 100)}%**"
        link = (
            markdown_link(escape(event.url), f"http://{event.url}") if event.url else ""
        )
        if event.coi == 1:
            return f"{percent}: {link}" if link else percent
        if event.coi == 2:
            return percent
        if event.coi == 3:
            return f"{percent}: {escape(event.title)}"
        if event.coi in (4, 6):
            return link
        if event.coi == 5:
            return f"{percent}: #{event.filter}"
        return ""

    @staticmethod
    def _report_command(event: Event) -> str:
        wiki = event.wiki or "community"
        if event.coi in WIKI_REPORT_COI:
            if not event.is_fandom:
                return f"!report w {wiki}"
            if event.lang and event.lang != "en":
                return f"!report w {event.lang}.{wiki}:f"
            return f"!report w {wiki}:f"
        target = "c" if wiki == "community" else wiki
        return f"!report s {target} {event.user or ''}".rstrip()
