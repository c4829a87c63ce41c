"""Field converters and per-family disambiguation rules.

Catalog entries reference these functions declaratively.  A converter maps
one optional regex capture to one typed field value.  A rule sees every
capture of a match plus the values gathered so far, fills in the fields
that need more than one capture to decide, and reports any sub-case it
cannot resolve through ``report``.  Rules never raise on bad data; they
leave the field ``None`` instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from cvnadvanced.models.events import ActorClass, SpamType

logger = logging.getLogger(__name__)

Captures = Mapping[str, Optional[str]]
Values = dict[str, Any]
Report = Callable[[str], None]
Rule = Callable[[Captures, Values, Report], None]


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

LIST_CODES: dict[str, str] = {
    "bad edit summary list": "bes",
    "bad new articles list": "bna",
    "bad new usernames list": "bnu",
    "global blacklist": "bl",
    "global greylist": "gl",
    "global whitelist": "wl",
    "rc admin list": "al",
    "rc bot list": "bot",
}

SPAM_ACTIONS: dict[str, str] = {
    "created": "page",
    "created wiki": "wiki",
    "edited": "edit",
}

FANDOM_DOMAINS = frozenset({"fandom.com", "wikia.org"})

_EDIT_PHRASES: dict[str, str] = {
    "edited": "edit",
    "Copyvio?": "edit",
    "Possible gibberish?": "edit",
    "Large removal": "edit",
    "created": "create",
    "Tiny create": "create",
}

_DISCUSSION_VERBS: dict[str, str] = {
    "created": "create",
    "deleted": "delete",
    "undeleted": "undelete",
    "moved": "move",
    "edited": "edit",
}

_LIST_PREFIXES: dict[str, str] = {
    "Added": "add",
    "Updated": "update",
}

PERCENT_DIRECT = frozenset({"direct", "!"})


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

def text(value: Optional[str]) -> Optional[str]:
    return value


def flag(value: Optional[str]) -> bool:
    return bool(value)


def to_int(value: Optional[str]) -> Optional[int]:
    """Parse a signed integer token such as ``+120``; ``None`` if it is not one."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def to_percent(value: Optional[str]) -> Optional[float]:
    """Parse a spam score.  ``direct`` and ``!`` mean a certain hit."""
    if value is None:
        return None
    if value in PERCENT_DIRECT:
        return 1.0
    try:
        return float(value)
    except ValueError:
        return None


def actor_class(value: Optional[str]) -> Optional[ActorClass]:
    if value is None:
        return None
    try:
        return ActorClass(value.lower())
    except ValueError:
        return None


def parse_query(query: str) -> dict[str, str]:
    """Split ``a=1&b=2`` into a dict.  Only the text up to a second ``=`` is kept."""
    params: dict[str, str] = {}
    for pair in query.split("&"):
        parts = pair.split("=")
        params[parts[0]] = parts[1] if len(parts) > 1 else ""
    return params


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def wiki_location(captures: Captures, values: Values, report: Report) -> None:
    """Derive ``wiki``, ``lang``, ``domain`` and ``is_fandom`` from a wiki URL."""
    sub = captures.get("wiki")
    if not sub:
        return
    domain = (captures.get("domain") or "").lower()
    lang = captures.get("lang_path")
    if "." in sub:
        prefix, sub = sub.split(".", 1)
        lang = lang or prefix
    values.update(
        wiki=sub,
        lang=lang,
        domain=domain,
        is_fandom=domain in FANDOM_DOMAINS,
    )


def url_path(captures: Captures, values: Values, report: Report) -> None:
    """A query string becomes ``url_params``; a bare path is a log action."""
    path = captures.get("path") or ""
    if "=" in path:
        values["url_params"] = parse_query(path)
        return
    values["action"] = "log"
    segments = path.split("/")
    if len(segments) > 1:
        values["log"] = segments[1]
    else:
        values["log"] = None
        report(f"log URL without an action segment: {path!r}")


def edit_action(captures: Captures, values: Values, report: Report) -> None:
    """Resolve the action phrase of an edit line.

    ``blanked`` wins over everything else, create phrases always mean
    ``create``, and a watched edit summary only means ``create`` when the
    `` in creating`` marker follows it.  A ``URL:`` link (rather than
    ``Diff:``) marks a page creation regardless of the phrase, though a
    bare log path still turns the action into ``log`` afterwards.
    """
    phrase = captures.get("phrase") or ""
    if phrase == "blanked":
        values["action"] = "edit"
        values["blank"] = True
    elif phrase in _EDIT_PHRASES:
        values["action"] = _EDIT_PHRASES[phrase]
    elif captures.get("watched_summary"):
        values["watched"] = captures["watched_summary"]
        values["action"] = "create" if captures.get("in_creating") else "edit"
    elif captures.get("watch_word"):
        values["watched"] = captures["watch_word"]
        values["action"] = "create"
    else:
        values["action"] = None
        report(f"no action recognised in phrase {phrase!r}")

    if captures.get("link_kind") == "URL":
        values["action"] = "create"
    url_path(captures, values, report)


def replace_action(captures: Captures, values: Values, report: Report) -> None:
    values["action"] = "edit"
    url_path(captures, values, report)


def block_action(captures: Captures, values: Values, report: Report) -> None:
    values["action"] = "block" if captures.get("verb") == "Block" else "unblock"


def list_prefix(captures: Captures, values: Values, report: Report) -> None:
    values["action"] = _LIST_PREFIXES.get(captures.get("prefix") or "", "info")


def list_code(captures: Captures, values: Values, report: Report) -> None:
    name = captures.get("list_name")
    code = LIST_CODES.get(name or "")
    if code is None:
        report(f"unknown list name {name!r}")
    values["list_code"] = code


def discussions_action(captures: Captures, values: Values, report: Report) -> None:
    """Map a Discussions phrase onto ``(action, target)``."""
    phrase = captures.get("phrase")
    verb = captures.get("verb")
    if phrase == "replied":
        action, target = "create", "reply"
    elif phrase == "reported post":
        action, target = "create", "report"
    elif verb in _DISCUSSION_VERBS:
        action, target = _DISCUSSION_VERBS[verb], captures.get("noun")
    else:
        action, target = None, None
        report(f"unrecognised Discussions action {phrase!r}")
    values["action"] = action
    values["target"] = target


def spam_fields(captures: Captures, values: Values, report: Report) -> None:
    """Resolve the spam family's tag, action and trailing qualifier."""
    tag = captures.get("tag") or ""
    values["spam_type"] = SpamType.HIT if tag.lower() == "hit" else SpamType.COI

    spam_action = captures.get("spam_action")
    values["action"] = SPAM_ACTIONS.get(spam_action or "")
    if values["action"] is None:
        report(f"unrecognised spam action {spam_action!r}")

    qualifier = captures.get("qualifier")
    qualifier_value = captures.get("qualifier_value")
    if qualifier == "with title":
        values["title"] = qualifier_value
    elif qualifier == "with URL":
        values["url"] = qualifier_value
    elif qualifier == "matching filter" and qualifier_value:
        values["filter"] = to_int(qualifier_value[1:])
    if not values.get("filter"):
        values["filter"] = captures.get("filter_name")
