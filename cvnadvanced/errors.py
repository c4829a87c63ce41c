"""Error taxonomy for the relay.

None of these propagate across the Event boundary: the classifier and the
dispatcher catch them locally and hand them to the diagnostic sink.
"""

from __future__ import annotations


class RelayError(RuntimeError):
    """Base class for all relay errors."""


class UnrecognizedLine(RelayError):
    """No catalog pattern matched a raw line."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"Unrecognized line: {raw!r}")
        self.raw = raw


class PartialExtraction(RelayError):
    """A pattern matched but a sub-case inside its extractor did not resolve."""

    def __init__(self, entry: str, detail: str) -> None:
        super().__init__(f"[{entry}] {detail}")
        self.entry = entry
        self.detail = detail


class DestinationDeliveryError(RelayError):
    """A sink rejected or failed to deliver a formatted payload."""

    def __init__(self, destination: str, detail: str) -> None:
        super().__init__(f"Delivery to {destination} failed: {detail}")
        self.destination = destination


class ConfigurationError(ValueError):
    """A route references a filter, format or transport that cannot be built."""
