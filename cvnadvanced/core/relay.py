"""Relay: the context object wiring classifier, routes and dispatcher.

One ``Relay`` is built per process from a route profile.  It owns the
shared HTTP client, the classifier and the dispatcher, and is passed
explicitly to whatever feeds it lines.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import httpx

from cvnadvanced.config import RelayConfig
from cvnadvanced.core.catalog import PatternEntry
from cvnadvanced.core.classifier import Classifier
from cvnadvanced.core.diagnostics import DiagnosticSink, LoggingDiagnostics
from cvnadvanced.core.source import RawLine
from cvnadvanced.models.events import ClassifiedLine, Event
from cvnadvanced.models.routing import RelayProfile, load_profile
from cvnadvanced.routing.dispatcher import RouteDispatcher, RouteTable
from cvnadvanced.routing.registry import (
    ComponentRegistry,
    RelayContext,
    build_routes,
    default_registry,
)

logger = logging.getLogger(__name__)


class Relay:
    """Classifies lines and dispatches the resulting events.

    Parameters
    ----------
    profile:
        The route profile.
    config:
        Process settings.  Defaults to a fresh ``RelayConfig()``.
    diagnostics:
        Sink shared by the classifier, route builder and dispatcher.
    registry:
        Component registry.  Defaults to ``default_registry()``.
    http_client:
        Shared HTTP client.  When omitted the relay owns one and closes
        it in ``close()``.
    catalog:
        Pattern catalog override.

    Examples
    --------
    >>> with Relay(load_profile("profile.json")) as relay:
    ...     relay.handle_line("Deleted Bob from global blacklist", "#cvn-wikia")
    """

    def __init__(
        self,
        profile: RelayProfile,
        *,
        config: Optional[RelayConfig] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        registry: Optional[ComponentRegistry] = None,
        http_client: Optional[httpx.Client] = None,
        catalog: Optional[Sequence[PatternEntry]] = None,
    ) -> None:
        self._config = config or RelayConfig()
        self._diagnostics = diagnostics or LoggingDiagnostics()
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            timeout=httpx.Timeout(self._config.delivery_timeout_seconds),
            headers={"User-Agent": self._config.user_agent},
        )
        self._channels = frozenset(c.lower() for c in self._config.channels)
        self._classifier = Classifier(catalog, self._diagnostics)
        context = RelayContext(
            config=self._config, diagnostics=self._diagnostics, http_client=self._http
        )
        self._routes = build_routes(profile, registry or default_registry(), context)
        self._dispatcher = RouteDispatcher(
            self._routes,
            self._diagnostics,
            max_workers=self._config.max_delivery_workers,
        )
        self._closed = False

    @classmethod
    def from_profile_path(cls, path: Path | str, **kwargs) -> "Relay":
        return cls(load_profile(path), **kwargs)

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def dispatcher(self) -> RouteDispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # Line handling
    # ------------------------------------------------------------------

    def monitors(self, channel: Optional[str]) -> bool:
        """Whether lines from *channel* are classified at all."""
        if channel is None or not self._channels:
            return True
        return channel.lower() in self._channels

    def handle_line(
        self, text: str, channel: Optional[str] = None
    ) -> Optional[ClassifiedLine]:
        """Classify *text* and dispatch it when it is a typed event.

        Returns ``None`` for lines from unmonitored channels.
        """
        if not self.monitors(channel):
            return None
        result = self._classifier.classify(text)
        if isinstance(result, Event):
            self._dispatcher.dispatch(result)
        return result

    def handle(self, line: RawLine) -> Optional[ClassifiedLine]:
        return self.handle_line(line.text, line.channel)

    def run(self, source: Iterable[RawLine]) -> int:
        """Feed every line from *source*; return how many became events."""
        events = 0
        for line in source:
            if isinstance(self.handle(line), Event):
                events += 1
        return events

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._dispatcher.close(grace=self._config.shutdown_grace)
        if self._owns_http:
            self._http.close()
        logger.info("Relay closed")

    def __enter__(self) -> "Relay":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
