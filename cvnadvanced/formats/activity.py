"""Activity format: embeds for edits, list changes, blocks and uploads."""

from __future__ import annotations

from typing import Optional

from cvnadvanced.formats import Destination, Handler, TableFormatter
from cvnadvanced.formats._formatting import (
    code_span,
    contribs_url,
    encode,
    escape,
    event_wiki_url,
    italic_summary,
    join_parts,
    markdown_link,
)
from cvnadvanced.models.events import ActorClass, Event, EventType
from cvnadvanced.models.payloads import DiscordPayload, Embed, EmbedAuthor

USER_TYPE_COLOR: dict[ActorClass, int] = {
    ActorClass.ADMIN: 0xBADA55,
    ActorClass.BLACKLIST: 0xFF0000,
    ActorClass.GREYLIST: 0xFFFF00,
    ActorClass.IP: 0x00FF00,
    ActorClass.USER: 0xFF00FF,
    ActorClass.WHITELIST: 0x0080FF,
}

LIST_TYPE: dict[str, str] = {
    "al": "admin list",
    "bes": "bad edit summary list",
    "bl": "blacklist",
    "bna": "bad new article list",
    "bnu": "bad new username list",
    "bot": "bot list",
    "gl": "greylist",
    "wl": "whitelist",
}

LIST_ACTION: dict[str, str] = {
    "add": "Added to",
    "delete": "Removed from",
    "info": "Is currently on",
    "update": "Updated on",
}

LIST_COLOR: dict[str, int] = {
    "al": 0x00FF00,
    "bes": 0xFF5500,
    "bl": 0x000000,
    "bna": 0xFF1188,
    "bnu": 0xFF44AA,
    "bot": 0xDDDDDD,
    "gl": 0xAAAAAA,
    "wl": 0xFFFFFF,
}

LARGE_EDIT_COLOR = 0xFF0000
WATCHED_COLOR = 0xFFFF00


class ActivityFormat(TableFormatter):
    format_name = "activity"
    handled_types = frozenset(
        {EventType.EDIT, EventType.LIST, EventType.BLOCK, EventType.UPLOAD}
    )

    def _handlers(self) -> dict[EventType, Handler]:
        return {
            EventType.EDIT: self._edit,
            EventType.LIST: self._list,
            EventType.BLOCK: self._block,
            EventType.UPLOAD: self._upload,
        }

    # ------------------------------------------------------------------
    # Embeds
    # ------------------------------------------------------------------

    def _edit(self, destination: Destination, event: Event) -> DiscordPayload:
        embed = Embed(
            author=EmbedAuthor(
                name=f"{escape(event.user)} [{escape(event.wiki)}]", url=contribs_url(event)
            ),
            color=self._edit_color(event),
            description=self._edit_description(event),
            title=event.user_type.value if event.user_type else None,
        )
        return DiscordPayload(embeds=[embed])

    def _list(self, destination: Destination, event: Event) -> DiscordPayload:
        description = None
        if event.added_by and event.length and event.reason:
            description = join_parts(
                f"By {escape(event.added_by)} until {escape(event.length)}",
                italic_summary(event.reason),
            )
        list_name = LIST_TYPE.get(event.list_code or "", "unknown list")
        embed = Embed(
            author=EmbedAuthor(name=escape(event.user), url=contribs_url(event)),
            color=LIST_COLOR.get(event.list_code or ""),
            description=description,
            title=f"{LIST_ACTION.get(event.action or '', 'Listed on')} {list_name}",
        )
        return DiscordPayload(embeds=[embed])

    def _block(self, destination: Destination, event: Event) -> DiscordPayload:
        blocked = event.action == "block"
        summary = italic_summary(event.reason)
        if blocked:
            description = join_parts(f"For {escape(event.length)}", summary)
        else:
            description = summary
        embed = Embed(
            author=EmbedAuthor(
                name=escape(event.target), url=contribs_url(event, event.target)
            ),
            description=description or None,
            title=f"{'Blocked' if blocked else 'Unblocked'} by {escape(event.user)}",
            url=contribs_url(event),
        )
        return DiscordPayload(embeds=[embed])

    def _upload(self, destination: Destination, event: Event) -> DiscordPayload:
        base = event_wiki_url(event)
        page = f"{event.namespace or 'File'}:{event.title or ''}"
        file_link = markdown_link(escape(event.title), f"{base}/wiki/{encode(page)}")
        log_link = markdown_link("log", f"{base}/wiki/Special:Log/upload")
        verb = "Reuploaded" if event.reupload else "Uploaded"
        embed = Embed(
            author=EmbedAuthor(name=escape(event.user), url=contribs_url(event)),
            description=f"{verb} {file_link} ({log_link})",
        )
        return DiscordPayload(embeds=[embed])

    # ------------------------------------------------------------------
    # Edit helpers
    # ------------------------------------------------------------------

    def _edit_description(self, event: Event) -> str:
        notices = self._notices(event)
        summary = italic_summary(event.summary)
        if event.action == "edit":
            diff = event.url_params.get("diff")
            diff_link = (
                "{" + markdown_link("diff", f"{event_wiki_url(event)}/?diff={diff}") + "}"
                if diff
                else None
            )
            return join_parts(
                f"Edited {self._page_link(event)} ({self._diff_size(event)})",
                diff_link,
                notices,
                summary,
            )
        if event.action == "create":
            return join_parts(
                f"Created {self._page_link(event)} ({self._diff_size(event)})",
                notices,
                summary,
            )
        if event.action == "log":
            return join_parts(f"Log action {code_span(event.log)}", notices, summary)
        return join_parts("Unrecognised action on", self._page_link(event))

    @staticmethod
    def _edit_color(event: Event) -> Optional[int]:
        user_color = USER_TYPE_COLOR.get(event.user_type) if event.user_type else None
        if event.action in ("edit", "create"):
            size = event.diff_size or 0
            if size < -1500 or size > 10000:
                return LARGE_EDIT_COLOR
            if event.watched:
                return WATCHED_COLOR
            return user_color
        if event.action == "log":
            return user_color
        return None

    @staticmethod
    def _page_link(event: Event) -> str:
        return markdown_link(
            escape(event.title), f"{event_wiki_url(event)}/wiki/{encode(event.title)}"
        )

    @staticmethod
    def _diff_size(event: Event) -> str:
        size = event.diff_size
        if size is None:
            return "?"
        text = f"+{size}" if size > 0 else str(size)
        if size > 1000 or size < -1000:
            text = f"*{text}*"
        return text

    @staticmethod
    def _notices(event: Event) -> str:
        if event.watched:
            return f'**watched edit summary** "{escape(event.watched)}"'
        if event.blank:
            return "**page blanked**"
        if event.replace:
            return f'**replaced with** "{escape(event.replace)}"'
        return ""
