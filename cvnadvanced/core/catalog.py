"""Pattern catalog — the ordered set of recognised notification templates.

Each ``PatternEntry`` is pure data: a compiled pattern anchored at line
start, the capture groups it copies into event fields (with a converter per
field), constant field values, and the disambiguation rules from
``cvnadvanced.core.extractors`` that resolve the remaining fields.

Order matters.  The classifier stops at the first entry that matches, and
templates share prefixes, so more specific templates come first.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from cvnadvanced.core import extractors as ex
from cvnadvanced.models.events import Event, EventType

logger = logging.getLogger(__name__)


class CaptureField(BaseModel):
    """Copies one capture group into one event field through a converter."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field: str
    group: str = ""
    convert: Callable[[Optional[str]], Any] = ex.text

    @property
    def source_group(self) -> str:
        return self.group or self.field


class PatternEntry(BaseModel):
    """One recognised template and how to turn its captures into an Event."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    event_type: EventType
    pattern: re.Pattern
    fields: tuple[CaptureField, ...] = ()
    constants: Mapping[str, Any] = Field(default_factory=dict)
    rules: tuple[ex.Rule, ...] = ()

    def match(self, line: str) -> Optional[re.Match]:
        return self.pattern.match(line)

    def extract(self, raw: str, match: re.Match, report: ex.Report) -> Event:
        """Build the Event for a line this entry matched."""
        captures = match.groupdict()
        values: dict[str, Any] = dict(self.constants)
        for spec in self.fields:
            values[spec.field] = spec.convert(captures.get(spec.source_group))
        for rule in self.rules:
            rule(captures, values, report)
        return Event(type=self.event_type, raw=raw, **values)


# ---------------------------------------------------------------------------
# Shared pattern fragments
# ---------------------------------------------------------------------------

# Wiki URL up to and including the slash after the host (or language path).
# ``pl.gta.wikia.com`` keeps the language in the subdomain; fandom.com puts
# it in the first path segment instead.
WIKI_URL = (
    r"https?://(?P<wiki>[^\s/]+?)\."
    r"(?P<domain>(?:wikia|fandom)\.(?:com|org)|[\w-]+\.[a-z]{2,})"
    r"(?:/(?P<lang_path>[a-z]{2,3}(?:-[a-z]+)?)(?=/))?/"
)

ACTOR = r"(?P<user_type>User|IP|Whitelist|Blacklist|Admin|Greylist)"
USER_LINK = r"\[\[User:(?P<user>[^\]]+)\]\]"
LIST_NAME = r"(?P<list_name>global [a-z]+|[a-z ]+? list)"


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

DISCUSSIONS = PatternEntry(
    name="discussions",
    event_type=EventType.DISCUSSIONS,
    pattern=_compile(
        USER_LINK
        + r" (?P<phrase>replied|reported post"
        r"|(?P<verb>created|deleted|undeleted|moved|edited) (?P<noun>thread|report|reply))"
        r"(?: \[\[(?P<title>.*)\]\])?(?: \((?P<reply>\d+)\))? "
        + WIKI_URL
        + r"d/p/(?P<thread_id>\d{19})(?:/r/(?P<reply_id>\d{19}))? : (?P<summary>.*)"
    ),
    fields=(
        CaptureField(field="user"),
        CaptureField(field="title"),
        CaptureField(field="reply", convert=ex.to_int),
        CaptureField(field="thread_id"),
        CaptureField(field="reply_id"),
        CaptureField(field="summary"),
    ),
    rules=(ex.discussions_action, ex.wiki_location),
)

SPAM = PatternEntry(
    name="spam",
    event_type=EventType.SPAM,
    pattern=_compile(
        r"(?P<tag>COI(?P<coi>\d+)|HIT) \((?P<percent>\d(?:\.\d{1,2})?|direct|!)\) "
        + USER_LINK
        + r" (?P<spam_action>created|created wiki|edited) "
        + WIKI_URL
        + r"(?:index\.php\?oldid=(?P<oldid>\d+))?"
        r"(?: (?P<qualifier>with title|with URL|matching filter) (?P<qualifier_value>[^,]+)"
        r"(?:, filter (?P<filter_name>.+)$)?)?"
    ),
    fields=(
        CaptureField(field="user"),
        CaptureField(field="coi", convert=ex.to_int),
        CaptureField(field="percent", convert=ex.to_percent),
        CaptureField(field="oldid", convert=ex.to_int),
    ),
    rules=(ex.spam_fields, ex.wiki_location),
)

NEW_USERS = PatternEntry(
    name="newusers",
    event_type=EventType.NEW_USERS,
    pattern=_compile(
        r"(?P<user>.*) New user registration "
        + WIKI_URL
        + r"wiki/Special:Log/newusers - https?://\S+?/wiki/Special:Contributions/.*"
    ),
    fields=(CaptureField(field="user"),),
    rules=(ex.wiki_location,),
)

EDIT = PatternEntry(
    name="edit",
    event_type=EventType.EDIT,
    pattern=_compile(
        ACTOR
        + " "
        + USER_LINK
        + r" (?P<phrase>edited|created"
        r'|used edit summary "(?P<watched_summary>[^"]+)"(?P<in_creating>(?: in creating)*)'
        r"|Copyvio\?|Tiny create|Possible gibberish\?|Large removal"
        r'|create containing watch word "(?P<watch_word>[^"]+)"|blanked)'
        r"(?P<watchlist> watched)? \[\[(?P<title>[^\]]+)\]\] \((?P<diff_size>[+\-\d]+)\) "
        r"(?P<link_kind>URL|Diff): "
        + WIKI_URL
        + r"(?:index\.php\?|\?|wiki/)*(?P<path>\S+)(?: (?P<summary>.*))?"
    ),
    fields=(
        CaptureField(field="user_type", convert=ex.actor_class),
        CaptureField(field="user"),
        CaptureField(field="watchlist", convert=ex.flag),
        CaptureField(field="title"),
        CaptureField(field="diff_size", convert=ex.to_int),
        CaptureField(field="summary"),
    ),
    rules=(ex.edit_action, ex.wiki_location),
)

REPLACE = PatternEntry(
    name="replace",
    event_type=EventType.EDIT,
    pattern=_compile(
        ACTOR
        + " "
        + USER_LINK
        + r' replaced \[\[(?P<title>[^\]]+)\]\] with "(?P<replace>.*)" '
        r"\((?P<diff_size>[+\-\d]+)\) Diff: "
        + WIKI_URL
        + r"\?(?P<path>\S+)"
    ),
    fields=(
        CaptureField(field="user_type", convert=ex.actor_class),
        CaptureField(field="user"),
        CaptureField(field="title"),
        CaptureField(field="replace"),
        CaptureField(field="diff_size", convert=ex.to_int),
    ),
    rules=(ex.replace_action, ex.wiki_location),
)

BLOCK = PatternEntry(
    name="block",
    event_type=EventType.BLOCK,
    pattern=_compile(
        r"(?P<verb>Block|Unblock) [eE]ditor \[\[User:(?P<target>[^\]]+)\]\] "
        r"(?:blocked|unblocked) by admin \[\[User:(?P<user>[^\]]+)\]\] "
        r'(?:Length: (?P<length>.*) )*"(?P<reason>[^"]+)"'
    ),
    fields=(
        CaptureField(field="target"),
        CaptureField(field="user"),
        CaptureField(field="length"),
        CaptureField(field="reason"),
    ),
    rules=(ex.block_action,),
)

LIST = PatternEntry(
    name="list",
    event_type=EventType.LIST,
    pattern=_compile(
        r"(?:(?P<prefix>Added|Updated): )*(?P<user>.*) is on "
        + LIST_NAME
        + r', added by (?P<added_by>.*) until (?P<length>.*) \("(?P<reason>.*)"\)$'
    ),
    fields=(
        CaptureField(field="user"),
        CaptureField(field="added_by"),
        CaptureField(field="length"),
        CaptureField(field="reason"),
    ),
    rules=(ex.list_prefix, ex.list_code),
)

LIST_REMOVE = PatternEntry(
    name="list_remove",
    event_type=EventType.LIST,
    pattern=_compile(r"Deleted (?P<user>.*) from " + LIST_NAME + r"$"),
    fields=(CaptureField(field="user"),),
    constants={"action": "delete"},
    rules=(ex.list_code,),
)

NO_LIST = PatternEntry(
    name="no_list",
    event_type=EventType.LIST_ABSENCE,
    pattern=_compile(r"(?P<user>.*) is not on " + LIST_NAME + r"$"),
)

DEFAULT_CATALOG: tuple[PatternEntry, ...] = (
    DISCUSSIONS,
    SPAM,
    NEW_USERS,
    EDIT,
    REPLACE,
    BLOCK,
    LIST,
    LIST_REMOVE,
    NO_LIST,
)


def catalog_index(catalog: tuple[PatternEntry, ...]) -> dict[str, PatternEntry]:
    """Index a catalog by entry name, rejecting duplicate names."""
    index: dict[str, PatternEntry] = {}
    for entry in catalog:
        if entry.name in index:
            raise ValueError(f"Duplicate catalog entry name: {entry.name!r}")
        index[entry.name] = entry
    return index
