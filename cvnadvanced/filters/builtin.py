"""Built-in filters, registered under these kinds:

* ``all``: any typed event except list-absence notices.
* ``types``: a configured set of event types.
* ``spam``: spam reports, with an optional repeat suppressor.
* ``newusers``: new user registrations.
* ``discussions``: Discussions activity on any wiki.
* ``custom``: Discussions activity on one configured wiki.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Any, Iterable

from cvnadvanced.errors import ConfigurationError
from cvnadvanced.models.events import Event, EventType

logger = logging.getLogger(__name__)


class SeenRegistry:
    """Bounded ``user -> {wiki, ...}`` memory with least-recently-seen eviction.

    Used by the spam filter and the spam format to recognise users that
    keep getting reported.
    """

    def __init__(self, max_users: int = 4096) -> None:
        if max_users < 1:
            raise ValueError("max_users must be positive")
        self._max_users = max_users
        self._seen: OrderedDict[str, set[str]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._seen)

    def wikis(self, user: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._seen.get(user, ()))

    def record(self, user: str, wiki: str | None) -> int:
        """Remember *wiki* for *user*; return how many wikis were known before."""
        with self._lock:
            wikis = self._seen.pop(user, None)
            before = 0 if wikis is None else len(wikis)
            if wikis is None:
                wikis = set()
            if wiki:
                wikis.add(wiki)
            self._seen[user] = wikis
            while len(self._seen) > self._max_users:
                self._seen.popitem(last=False)
            return before

    def seen(self, user: str) -> bool:
        with self._lock:
            return user in self._seen


class _NamedFilter:
    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def filter_name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"


class AllFilter(_NamedFilter):
    """Accepts every typed event that carries something to report."""

    def accepts(self, event: Event) -> bool:
        return event.type not in (EventType.UNKNOWN, EventType.LIST_ABSENCE)


class TypeFilter(_NamedFilter):
    """Accepts events whose type is in a configured set."""

    def __init__(self, name: str, types: Iterable[str | EventType]) -> None:
        super().__init__(name)
        try:
            self._types = frozenset(EventType(t) for t in types)
        except ValueError as exc:
            raise ConfigurationError(f"Filter {name!r}: {exc}") from exc
        if not self._types:
            raise ConfigurationError(f"Filter {name!r} needs at least one type")

    def accepts(self, event: Event) -> bool:
        return event.type in self._types


class NewUsersFilter(TypeFilter):
    def __init__(self, name: str) -> None:
        super().__init__(name, [EventType.NEW_USERS])


class DiscussionsFilter(TypeFilter):
    def __init__(self, name: str) -> None:
        super().__init__(name, [EventType.DISCUSSIONS])


class CustomFilter(_NamedFilter):
    """Discussions activity on a single wiki."""

    def __init__(self, name: str, wiki: str) -> None:
        super().__init__(name)
        if not wiki:
            raise ConfigurationError(f"Filter {name!r} requires a 'wiki' option")
        self._wiki = wiki

    def accepts(self, event: Event) -> bool:
        return event.type is EventType.DISCUSSIONS and event.wiki == self._wiki


class SpamFilter(_NamedFilter):
    """Spam reports.

    Every user/wiki pair is recorded.  By default repeat reports are let
    through so the spam format can flag them as urgent.  With
    ``suppress_repeats`` a user already seen is dropped unless they had
    exactly ``repeat_threshold`` wikis on record.
    """

    def __init__(
        self,
        name: str,
        *,
        suppress_repeats: bool = False,
        repeat_threshold: int = 19,
        max_users: int = 4096,
    ) -> None:
        super().__init__(name)
        self._suppress_repeats = suppress_repeats
        self._repeat_threshold = repeat_threshold
        self._seen = SeenRegistry(max_users=max_users)

    @property
    def seen(self) -> SeenRegistry:
        return self._seen

    def accepts(self, event: Event) -> bool:
        if event.type is not EventType.SPAM:
            return False
        if not event.user:
            return True
        repeat = self._seen.seen(event.user)
        before = self._seen.record(event.user, event.wiki)
        if not repeat or not self._suppress_repeats:
            return True
        return before == self._repeat_threshold


# ---------------------------------------------------------------------------
# Factories (name, options) -> filter
# ---------------------------------------------------------------------------

def _build_all(name: str, options: dict[str, Any]) -> AllFilter:
    return AllFilter(name)


def _build_types(name: str, options: dict[str, Any]) -> TypeFilter:
    types = options.get("types") or []
    if isinstance(types, str):
        types = [types]
    return TypeFilter(name, types)


def _build_spam(name: str, options: dict[str, Any]) -> SpamFilter:
    return SpamFilter(
        name,
        suppress_repeats=bool(options.get("suppress_repeats", False)),
        repeat_threshold=int(options.get("repeat_threshold", 19)),
        max_users=int(options.get("max_users", 4096)),
    )


def _build_newusers(name: str, options: dict[str, Any]) -> NewUsersFilter:
    return NewUsersFilter(name)


def _build_discussions(name: str, options: dict[str, Any]) -> DiscussionsFilter:
    return DiscussionsFilter(name)


def _build_custom(name: str, options: dict[str, Any]) -> CustomFilter:
    return CustomFilter(name, str(options.get("wiki") or ""))


BUILTIN_FILTERS = {
    "all": _build_all,
    "types": _build_types,
    "spam": _build_spam,
    "newusers": _build_newusers,
    "discussions": _build_discussions,
    "custom": _build_custom,
}
