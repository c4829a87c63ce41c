"""CVNAdvanced: wiki-monitoring feed classifier and relay.

Turns free-text notification lines from the CVN / wiki-monitoring IRC feeds
into typed, immutable events and relays them to configured destinations:
  - Ordered pattern catalog with first-match classification
  - Declarative field extraction with per-family disambiguation rules
  - Named filters and per-destination formats resolved from a route profile
  - Fire-and-forget delivery to Discord webhooks, JSON-lines files and the
    delayed new-users profile transport
"""

__version__ = "0.1.0"
__description__ = "Wiki-monitoring feed classifier and Discord relay"

from cvnadvanced.core.classifier import Classifier
from cvnadvanced.core.relay import Relay
from cvnadvanced.models.events import Event, EventType, UnknownLine

__all__ = ["Classifier", "Relay", "Event", "EventType", "UnknownLine", "__version__"]
