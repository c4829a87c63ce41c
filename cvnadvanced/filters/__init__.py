"""Filter protocol for the relay's route table.

A filter is a named, side-effect-free predicate over an ``Event``.  Filters
may keep small bounded state (see ``SeenRegistry``) but never mutate the
event they inspect.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cvnadvanced.models.events import Event


@runtime_checkable
class BaseFilter(Protocol):
    """Protocol that every relay filter must implement.

    Attributes
    ----------
    filter_name : str
        The configured name of this filter instance (the key in the
        profile's ``filters`` table).
    """

    @property
    def filter_name(self) -> str:
        ...

    def accepts(self, event: Event) -> bool:
        """Return ``True`` if *event* should reach this filter's routes."""
        ...
