"""Shared formatting helpers for relay formats.

Wiki URL construction, MediaWiki title encoding, and escaping of text that
could otherwise be interpreted as Discord control syntax.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote

from cvnadvanced.models.events import Event

ZWS = "\u200b"

_INVITE = re.compile(r"discord\.gg", re.IGNORECASE)
_AUTOLINK = re.compile(r"(https?:)//", re.IGNORECASE)
_MARKDOWN = re.compile(r"([\\*_~`|\[\]])")


def escape(text: Optional[str]) -> str:
    """Neutralise mentions, invite links, autolinks and markdown in *text*.

    >>> escape("@everyone")
    '@\\u200beveryone'
    """
    if not text:
        return ""
    out = _MARKDOWN.sub(r"\\\1", text)
    out = _INVITE.sub(lambda m: m.group(0).replace(".", f"{ZWS}."), out)
    out = out.replace("@", f"@{ZWS}")
    return _AUTOLINK.sub(rf"\1/{ZWS}/", out)


def code_span(text: Optional[str]) -> str:
    """Wrap *text* in an inline code span it cannot close early."""
    return "`" + " ".join((text or "").replace("`", "").split()) + "`"


def encode(title: Optional[str]) -> str:
    """Encode a page or user name the way MediaWiki builds article paths."""
    return quote((title or "").replace(" ", "_"), safe="/:")


def wiki_url(
    wiki: Optional[str],
    *,
    domain: Optional[str] = None,
    lang: Optional[str] = None,
    is_fandom: bool = False,
) -> str:
    """Base URL of a wiki, e.g. ``https://pl.gta.wikia.com``.

    Fandom-hosted wikis keep a non-English language in the path instead
    of the subdomain.
    """
    sub = wiki or "community"
    host_domain = domain or "wikia.com"
    if is_fandom:
        base = f"https://{sub}.{host_domain}"
        if lang and lang != "en":
            base = f"{base}/{lang}"
        return base
    if lang:
        sub = f"{lang}.{sub}"
    return f"https://{sub}.{host_domain}"


def event_wiki_url(event: Event) -> str:
    return wiki_url(
        event.wiki, domain=event.domain, lang=event.lang, is_fandom=event.is_fandom
    )


def contribs_url(event: Event, user: Optional[str] = None) -> str:
    name = user if user is not None else event.user
    return f"{event_wiki_url(event)}/wiki/Special:Contribs/{encode(name)}"


def markdown_link(text: str, url: str, *, suppress_embed: bool = False) -> str:
    target = f"<{url}>" if suppress_embed else url
    return f"[{text}]({target})"


def italic_summary(text: Optional[str]) -> str:
    """``(*summary*)`` or an empty string for blank and ``""`` summaries."""
    if not text:
        return ""
    trimmed = text.strip()
    if not trimmed or trimmed == '""':
        return ""
    return f"(*{escape(trimmed)}*)"


def join_parts(*parts: Optional[str]) -> str:
    return " ".join(part for part in parts if part)


def past_tense(action: Optional[str]) -> str:
    if not action:
        return ""
    return f"{action}ed" if action == "edit" else f"{action}d"
