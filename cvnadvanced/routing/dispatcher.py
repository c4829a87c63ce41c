"""RouteDispatcher: fans a classified event out to every accepting route.

Each route pairs a filter with a transport (formatter + sink).  A filter is
consulted once per event however many routes share its name.  Rendering
happens synchronously on the caller's thread; delivery is handed to a
thread pool and never awaited.  A failure on one route, whether while
formatting or while delivering, is reported and does not affect the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from cvnadvanced.core.diagnostics import DiagnosticSink, Severity, report_safely
from cvnadvanced.errors import DestinationDeliveryError
from cvnadvanced.filters import BaseFilter
from cvnadvanced.formats import BaseFormatter, Payload
from cvnadvanced.models.events import Event, EventType, UnknownLine
from cvnadvanced.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transport:
    """A named destination: how to render for it and where to send it."""

    name: str
    kind: str
    dialect: str
    formatter: BaseFormatter
    sink: BaseSink


@dataclass(frozen=True)
class Route:
    filter_name: str
    filter: BaseFilter
    transport: Transport


class RouteTable:
    """Immutable, ordered collection of routes built once at startup."""

    def __init__(self, routes: tuple[Route, ...] | list[Route] = ()) -> None:
        self._routes = tuple(routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def accepts(self, event: Event, filter_name: str) -> bool:
        """Return whether the filter named *filter_name* accepts *event*."""
        for route in self._routes:
            if route.filter_name == filter_name:
                return route.filter.accepts(event)
        return False

    def transports(self) -> list[Transport]:
        """Distinct transports, in first-route order."""
        seen: dict[str, Transport] = {}
        for route in self._routes:
            seen.setdefault(route.transport.name, route.transport)
        return list(seen.values())


class RouteDispatcher:
    """Routes events to every transport whose filter accepts them.

    Parameters
    ----------
    routes:
        The startup route table.
    diagnostics:
        Receives format and delivery failures.
    max_workers:
        Size of the delivery thread pool.

    Usage
    -----
    >>> dispatcher = RouteDispatcher(table, diagnostics)
    >>> futures = dispatcher.dispatch(event)
    >>> dispatcher.close(grace=True)
    """

    def __init__(
        self,
        routes: RouteTable,
        diagnostics: DiagnosticSink,
        *,
        max_workers: int = 4,
    ) -> None:
        self._routes = routes
        self._diagnostics = diagnostics
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="cvn-delivery"
        )
        self._closed = False

    @property
    def routes(self) -> RouteTable:
        return self._routes

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: Union[Event, UnknownLine]) -> list[Future]:
        """Render and submit *event* to every accepting route.

        Returns one future per submitted delivery.  Futures are for
        observation only; each resolves to ``None`` even when the delivery
        failed, the failure having been reported already.
        """
        if not isinstance(event, Event) or event.type is EventType.UNKNOWN:
            report_safely(
                self._diagnostics,
                Severity.DEBUG,
                f"Refusing to dispatch untyped line: {getattr(event, 'raw', event)!r}",
            )
            return []
        if self._closed:
            logger.warning("Dispatcher closed; dropping %s event", event.type.value)
            return []

        futures: list[Future] = []
        verdicts: dict[str, Union[bool, Exception]] = {}
        for route in self._routes:
            if route.filter_name not in verdicts:
                verdicts[route.filter_name] = self._evaluate(route.filter, event)
            payload = self._render(route, event, verdicts[route.filter_name])
            if payload is None:
                continue
            futures.append(
                self._executor.submit(self._deliver, route.transport, payload)
            )
        return futures

    @staticmethod
    def _evaluate(flt: BaseFilter, event: Event) -> Union[bool, Exception]:
        # Filters may be stateful, so each one sees an event exactly once.
        try:
            return bool(flt.accepts(event))
        except Exception as exc:  # noqa: BLE001
            return exc

    def _render(
        self, route: Route, event: Event, verdict: Union[bool, Exception]
    ) -> Optional[Payload]:
        transport = route.transport
        if isinstance(verdict, Exception):
            report_safely(
                self._diagnostics,
                Severity.ERROR,
                DestinationDeliveryError(
                    transport.name, f"filter {route.filter_name!r} raised: {verdict}"
                ),
            )
            return None
        if not verdict:
            return None
        try:
            return transport.formatter.render(transport, event)
        except Exception as exc:  # noqa: BLE001
            report_safely(
                self._diagnostics,
                Severity.ERROR,
                DestinationDeliveryError(
                    transport.name, f"route {route.filter_name!r} failed to render: {exc}"
                ),
            )
            return None

    def _deliver(self, transport: Transport, payload: Payload) -> None:
        try:
            transport.sink.deliver(payload)
        except DestinationDeliveryError as exc:
            report_safely(self._diagnostics, Severity.ERROR, exc)
        except Exception as exc:  # noqa: BLE001
            report_safely(
                self._diagnostics,
                Severity.ERROR,
                DestinationDeliveryError(transport.name, f"{type(exc).__name__}: {exc}"),
            )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def close(self, grace: bool = True) -> None:
        """Stop accepting events.

        With *grace* in-flight deliveries are drained; otherwise pending
        ones are cancelled.  Every sink is closed afterwards.
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=grace, cancel_futures=not grace)
        for transport in self._routes.transports():
            try:
                transport.sink.close()
            except Exception:  # noqa: BLE001
                logger.exception("Closing transport %s failed", transport.name)
