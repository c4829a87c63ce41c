"""Component registry and route builder.

Filters, formats and transports are resolved by name through explicit
``name -> factory`` tables.  ``build_routes`` turns a ``RelayProfile`` into
the immutable ``RouteTable`` once at startup.  A filter, format or
transport that cannot be built is reported and its routes are skipped; the
rest of the profile still loads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from cvnadvanced.config import RelayConfig
from cvnadvanced.core.diagnostics import DiagnosticSink, Severity, report_safely
from cvnadvanced.errors import ConfigurationError
from cvnadvanced.filters import BaseFilter
from cvnadvanced.filters.builtin import BUILTIN_FILTERS
from cvnadvanced.formats import BaseFormatter
from cvnadvanced.formats.activity import ActivityFormat
from cvnadvanced.formats.discussions import DiscussionsFormat, PlainDiscussionsFormat
from cvnadvanced.formats.newusers import NewUsersFormat
from cvnadvanced.formats.spam import SpamFormat
from cvnadvanced.models.routing import RelayProfile, TransportSpec
from cvnadvanced.routing.dispatcher import Route, RouteTable, Transport
from cvnadvanced.routing.sinks import BaseSink
from cvnadvanced.routing.sinks.discord import DiscordWebhookSink
from cvnadvanced.routing.sinks.local_file import LocalFileSink
from cvnadvanced.routing.sinks.memory import MemorySink
from cvnadvanced.routing.sinks.newusers import (
    ATTRIBUTE_SERVICE,
    COMMUNITY_API,
    MediaWikiProfileLookup,
    NewUsersSink,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelayContext:
    """Shared resources handed to component factories."""

    config: RelayConfig
    diagnostics: DiagnosticSink
    http_client: Optional[httpx.Client] = None


FilterFactory = Callable[[str, dict[str, Any]], BaseFilter]
FormatFactory = Callable[[dict[str, Any]], BaseFormatter]
SinkFactory = Callable[[str, dict[str, Any], RelayContext], BaseSink]


@dataclass(frozen=True)
class TransportKind:
    factory: SinkFactory
    dialect: str


class ComponentRegistry:
    """Explicit name -> factory tables for filters, formats and transports."""

    def __init__(self) -> None:
        self._filters: dict[str, FilterFactory] = {}
        self._formats: dict[str, FormatFactory] = {}
        self._transports: dict[str, TransportKind] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_filter(self, kind: str, factory: FilterFactory) -> None:
        self._filters[kind] = factory

    def register_format(self, kind: str, factory: FormatFactory) -> None:
        self._formats[kind] = factory

    def register_transport(
        self, kind: str, factory: SinkFactory, *, dialect: str = "discord"
    ) -> None:
        self._transports[kind] = TransportKind(factory=factory, dialect=dialect)

    @property
    def filter_kinds(self) -> list[str]:
        return sorted(self._filters)

    @property
    def format_kinds(self) -> list[str]:
        return sorted(self._formats)

    @property
    def transport_kinds(self) -> list[str]:
        return sorted(self._transports)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build_filter(self, name: str, kind: str, options: dict[str, Any]) -> BaseFilter:
        factory = self._filters.get(kind)
        if factory is None:
            raise ConfigurationError(f"Filter {name!r}: unknown filter kind {kind!r}")
        return _construct(f"Filter {name!r}", factory, name, options)

    def build_format(self, kind: str, options: dict[str, Any]) -> BaseFormatter:
        factory = self._formats.get(kind)
        if factory is None:
            raise ConfigurationError(f"Unknown format {kind!r}")
        return _construct(f"Format {kind!r}", factory, options)

    def build_transport(
        self, name: str, spec: TransportSpec, context: RelayContext
    ) -> Transport:
        kind = self._transports.get(spec.name)
        if kind is None:
            raise ConfigurationError(
                f"Transport {name!r}: unknown transport kind {spec.name!r}"
            )
        if not spec.format:
            raise ConfigurationError(f"Transport {name!r} requires a format")
        options = spec.options
        formatter = self.build_format(spec.format, options)
        sink = _construct(f"Transport {name!r}", kind.factory, name, options, context)
        return Transport(
            name=name,
            kind=spec.name,
            dialect=kind.dialect,
            formatter=formatter,
            sink=sink,
        )


def _construct(label: str, factory: Callable[..., Any], *args: Any) -> Any:
    try:
        return factory(*args)
    except ConfigurationError:
        raise
    except (TypeError, ValueError, KeyError, OSError) as exc:
        raise ConfigurationError(f"{label}: {exc}") from exc


# ---------------------------------------------------------------------------
# Built-in transports
# ---------------------------------------------------------------------------

def _discord_sink(name: str, options: dict[str, Any], context: RelayContext) -> BaseSink:
    return DiscordWebhookSink(
        name,
        str(options.get("id") or ""),
        str(options.get("token") or ""),
        client=context.http_client,
        timeout=context.config.delivery_timeout_seconds,
        username=options.get("username"),
    )


def _newusers_sink(name: str, options: dict[str, Any], context: RelayContext) -> BaseSink:
    webhook = DiscordWebhookSink(
        name,
        str(options.get("id") or ""),
        str(options.get("token") or ""),
        client=context.http_client,
        timeout=context.config.delivery_timeout_seconds,
    )
    client = context.http_client or httpx.Client(
        timeout=context.config.delivery_timeout_seconds
    )
    lookup = MediaWikiProfileLookup(
        client,
        api_url=options.get("api_url", COMMUNITY_API),
        service_url=options.get("service_url", ATTRIBUTE_SERVICE),
    )
    db_path = options.get("database")
    return NewUsersSink(
        name,
        webhook=webhook,
        lookup=lookup,
        interval=float(options.get("interval", context.config.newusers_interval_seconds)),
        poll=float(options.get("poll", context.config.newusers_poll_seconds)),
        db_path=Path(db_path) if db_path else None,
        diagnostics=context.diagnostics,
    )


def _file_sink(name: str, options: dict[str, Any], context: RelayContext) -> BaseSink:
    path = options.get("path")
    if not path:
        raise ConfigurationError(f"Transport {name!r} requires a 'path' option")
    return LocalFileSink(name, path)


def _memory_sink(name: str, options: dict[str, Any], context: RelayContext) -> BaseSink:
    return MemorySink(name)


def default_registry() -> ComponentRegistry:
    """A registry holding every built-in filter, format and transport."""
    registry = ComponentRegistry()
    for kind, factory in BUILTIN_FILTERS.items():
        registry.register_filter(kind, factory)

    registry.register_format("activity", lambda options: ActivityFormat())
    registry.register_format(
        "spam", lambda options: SpamFormat(max_users=int(options.get("max_users", 4096)))
    )
    registry.register_format("discussions", lambda options: DiscussionsFormat())
    registry.register_format("plaindisc", lambda options: PlainDiscussionsFormat())
    registry.register_format("newusers", lambda options: NewUsersFormat())

    registry.register_transport("discord", _discord_sink)
    registry.register_transport("newusers", _newusers_sink, dialect="newusers")
    registry.register_transport("file", _file_sink, dialect="discord")
    registry.register_transport("memory", _memory_sink, dialect="discord")
    return registry


# ---------------------------------------------------------------------------
# Route building
# ---------------------------------------------------------------------------

def build_routes(
    profile: RelayProfile,
    registry: ComponentRegistry,
    context: RelayContext,
) -> RouteTable:
    """Build the startup route table from *profile*.

    Every ``map`` entry becomes one route per destination, in profile
    order.  Components that fail to build are reported at ``error``
    severity and the routes that need them are skipped.
    """

    def skip(exc: ConfigurationError) -> None:
        report_safely(context.diagnostics, Severity.ERROR, exc)

    mapped = _mapped_transports(profile)
    transports: dict[str, Transport] = {}
    for name, spec in profile.transports.items():
        if not spec.enabled:
            logger.info("Transport %s disabled in profile", name)
            continue
        if name not in mapped:
            logger.info("Transport %s is not referenced by any route", name)
            continue
        try:
            transports[name] = registry.build_transport(name, spec, context)
        except ConfigurationError as exc:
            skip(exc)

    filters: dict[str, BaseFilter] = {}
    for name, spec in profile.filters.items():
        try:
            filters[name] = registry.build_filter(name, spec.name, spec.options)
        except ConfigurationError as exc:
            skip(exc)

    routes: list[Route] = []
    for filter_name in profile.map:
        flt = filters.get(filter_name)
        if flt is None:
            if filter_name not in profile.filters:
                skip(ConfigurationError(f"Route references undefined filter {filter_name!r}"))
            continue
        for destination in profile.destinations_for(filter_name):
            transport = transports.get(destination)
            if transport is None:
                if destination not in profile.transports:
                    skip(
                        ConfigurationError(
                            f"Route {filter_name!r} references undefined transport "
                            f"{destination!r}"
                        )
                    )
                continue
            routes.append(Route(filter_name=filter_name, filter=flt, transport=transport))

    logger.info(
        "Built %d routes over %d transports and %d filters",
        len(routes),
        len(transports),
        len(filters),
    )
    return RouteTable(routes)


def _mapped_transports(profile: RelayProfile) -> set[str]:
    names: set[str] = set()
    for filter_name in profile.map:
        names.update(profile.destinations_for(filter_name))
    return names
