"""Formatter protocol and the table-driven base used by every built-in format.

A formatter renders an ``Event`` for one destination.  It returns ``None``
when the event (or the destination's payload dialect) is not something it
handles; the dispatcher then sends nothing for that route.
"""

from __future__ import annotations

import logging
from typing import Callable, ClassVar, Optional, Protocol, Union, runtime_checkable

from cvnadvanced.errors import ConfigurationError
from cvnadvanced.models.events import Event, EventType
from cvnadvanced.models.payloads import DiscordPayload, NewUserEntry

logger = logging.getLogger(__name__)

Payload = Union[DiscordPayload, NewUserEntry]


@runtime_checkable
class Destination(Protocol):
    """What a formatter may know about where its payload is going."""

    @property
    def name(self) -> str:
        ...

    @property
    def dialect(self) -> str:
        """Payload dialect the destination's sink understands, e.g. ``discord``."""
        ...


@runtime_checkable
class BaseFormatter(Protocol):
    @property
    def format_name(self) -> str:
        ...

    def render(self, destination: Destination, event: Event) -> Optional[Payload]:
        ...


Handler = Callable[[Destination, Event], Optional[Payload]]


class TableFormatter:
    """Dispatches on ``event.type`` through an explicit handler table.

    Subclasses declare ``handled_types`` and ``dialects`` and return the
    handler table from ``_handlers``.  The table is checked at construction
    so a declared type without a handler fails at startup.
    """

    format_name: ClassVar[str] = ""
    handled_types: ClassVar[frozenset[EventType]] = frozenset()
    dialects: ClassVar[frozenset[str]] = frozenset({"discord"})

    def __init__(self) -> None:
        table = self._handlers()
        missing = sorted(t.value for t in self.handled_types - table.keys())
        if missing:
            raise ConfigurationError(
                f"Format {self.format_name!r} has no handler for: {', '.join(missing)}"
            )
        self._table: dict[EventType, Handler] = dict(table)

    def _handlers(self) -> dict[EventType, Handler]:
        raise NotImplementedError

    def render(self, destination: Destination, event: Event) -> Optional[Payload]:
        if destination.dialect not in self.dialects:
            return None
        handler = self._table.get(event.type)
        if handler is None:
            return None
        return handler(destination, event)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
