"""Sink protocol for relay destinations.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property,
a ``deliver(payload)`` method and ``close()``.  The dispatcher calls
``deliver`` from a worker thread, once per formatted payload.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cvnadvanced.formats import Payload


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every relay sink must implement.

    Attributes
    ----------
    sink_name : str
        The configured transport name this sink delivers for
        (e.g. ``"discord-spam"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    def deliver(self, payload: Payload) -> None:
        """Deliver one formatted payload.

        Implementations raise ``DestinationDeliveryError`` on failure; the
        dispatcher reports it and carries on with the other destinations.

        Parameters
        ----------
        payload:
            The payload produced by this destination's formatter.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the sink."""
        ...
