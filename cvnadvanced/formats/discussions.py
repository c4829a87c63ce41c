"""Discussions formats.

``discussions`` renders one embed per post, reply or report.  ``plaindisc``
renders the same activity as a single line of plain text content, with link
previews suppressed.
"""

from __future__ import annotations

from typing import Optional

from cvnadvanced.formats import Destination, Handler, TableFormatter
from cvnadvanced.formats._formatting import (
    contribs_url,
    escape,
    event_wiki_url,
    italic_summary,
    join_parts,
    markdown_link,
    past_tense,
)
from cvnadvanced.models.events import Event, EventType
from cvnadvanced.models.payloads import DiscordPayload, Embed, EmbedAuthor

TARGET_COLOR: dict[str, int] = {
    "reply": 0x00FF00,
    "report": 0xFF0000,
    "thread": 0xFFFF00,
}


def action_text(event: Event) -> Optional[str]:
    """``Thread created``, ``Reply edited`` … or ``None`` when unresolved."""
    if not event.target or not event.action:
        return None
    return f"{event.target.capitalize()} {past_tense(event.action)}"


def post_url(event: Event) -> str:
    url = f"{event_wiki_url(event)}/d/p/{event.thread_id or ''}"
    if event.reply_id:
        url = f"{url}/r/{event.reply_id}"
    return url


class DiscussionsFormat(TableFormatter):
    format_name = "discussions"
    handled_types = frozenset({EventType.DISCUSSIONS})

    def _handlers(self) -> dict[EventType, Handler]:
        return {EventType.DISCUSSIONS: self._post}

    def _post(self, destination: Destination, event: Event) -> DiscordPayload:
        action = action_text(event) or "Unknown action"
        title = f"{event.title} [{action}]" if event.title else action
        embed = Embed(
            author=EmbedAuthor(
                name=f"{escape(event.user)} [{escape(event.wiki)}]", url=contribs_url(event)
            ),
            color=TARGET_COLOR.get(event.target or ""),
            description=escape(event.summary) or None,
            title=title,
            url=post_url(event),
        )
        return DiscordPayload(embeds=[embed])


class PlainDiscussionsFormat(TableFormatter):
    format_name = "plaindisc"
    handled_types = frozenset({EventType.DISCUSSIONS})

    def _handlers(self) -> dict[EventType, Handler]:
        return {EventType.DISCUSSIONS: self._post}

    def _post(self, destination: Destination, event: Event) -> DiscordPayload:
        user = markdown_link(
            escape(event.user), contribs_url(event), suppress_embed=True
        )
        if event.target == "report":
            verb = "reported" if event.action == "create" else "unreported"
        else:
            verb = past_tense(event.action) or "touched"
        target = markdown_link(
            escape(event.title or event.target), post_url(event), suppress_embed=True
        )
        summary = (event.summary or "").replace("*", "").replace("`", "")
        return DiscordPayload(
            content=join_parts(user, verb, target, italic_summary(summary))
        )
