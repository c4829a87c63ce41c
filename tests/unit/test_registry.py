"""Unit tests for the component registry and route building."""

from __future__ import annotations

import httpx
import pytest

from cvnadvanced.core.diagnostics import Severity
from cvnadvanced.errors import ConfigurationError
from cvnadvanced.formats.spam import SpamFormat
from cvnadvanced.models.routing import RelayProfile, TransportSpec, load_profile
from cvnadvanced.routing.registry import (
    ComponentRegistry,
    RelayContext,
    build_routes,
    default_registry,
)
from cvnadvanced.routing.sinks.discord import DiscordWebhookSink
from cvnadvanced.routing.sinks.local_file import LocalFileSink
from cvnadvanced.routing.sinks.memory import MemorySink
from cvnadvanced.routing.sinks.newusers import NewUsersSink


@pytest.fixture
def context(relay_config, diagnostics):
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
    yield RelayContext(config=relay_config, diagnostics=diagnostics, http_client=client)
    client.close()


def _profile(**sections) -> RelayProfile:
    return RelayProfile.model_validate(sections)


def _errors(diagnostics) -> list[str]:
    return [str(detail) for detail in diagnostics.at(Severity.ERROR)]


# ---------------------------------------------------------------------------
# Test: registry tables
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_default_kinds(self):
        registry = default_registry()
        assert registry.format_kinds == [
            "activity",
            "discussions",
            "newusers",
            "plaindisc",
            "spam",
        ]
        assert registry.transport_kinds == ["discord", "file", "memory", "newusers"]
        assert "spam" in registry.filter_kinds

    def test_unknown_format(self):
        with pytest.raises(ConfigurationError, match="bogus"):
            default_registry().build_format("bogus", {})

    def test_format_options_passed(self):
        fmt = default_registry().build_format("spam", {"max_users": "8"})
        assert isinstance(fmt, SpamFormat)

    def test_bad_filter_options_become_configuration_errors(self):
        with pytest.raises(ConfigurationError, match="Filter 'mine'"):
            default_registry().build_filter("mine", "custom", {})

    def test_transport_requires_format(self, context):
        spec = TransportSpec(name="memory")
        with pytest.raises(ConfigurationError, match="requires a format"):
            default_registry().build_transport("mem", spec, context)

    def test_custom_transport_kind(self, context):
        registry = ComponentRegistry()
        registry.register_format("spam", lambda options: SpamFormat())
        registry.register_transport(
            "sink", lambda name, options, ctx: MemorySink(name), dialect="custom"
        )
        transport = registry.build_transport(
            "x", TransportSpec(name="sink", format="spam"), context
        )
        assert transport.dialect == "custom"
        assert transport.kind == "sink"


# ---------------------------------------------------------------------------
# Test: build_routes
# ---------------------------------------------------------------------------


class TestBuildRoutes:
    def test_routes_in_map_order(self, context, diagnostics):
        profile = _profile(
            filters={"spam": {"name": "spam"}, "all": {"name": "all"}},
            transports={
                "spamhook": {"name": "memory", "format": "spam"},
                "feed": {"name": "memory", "format": "activity"},
            },
            map={"spam": "spamhook", "all": ["feed", "spamhook"]},
        )

        table = build_routes(profile, default_registry(), context)

        assert [(r.filter_name, r.transport.name) for r in table] == [
            ("spam", "spamhook"),
            ("all", "feed"),
            ("all", "spamhook"),
        ]
        assert [t.name for t in table.transports()] == ["spamhook", "feed"]
        assert diagnostics.reports == []

    def test_shared_transport_built_once(self, context):
        profile = _profile(
            filters={"a": {"name": "all"}, "b": {"name": "spam"}},
            transports={"out": {"name": "memory", "format": "activity"}},
            map={"a": "out", "b": "out"},
        )
        routes = build_routes(profile, default_registry(), context).routes
        assert routes[0].transport is routes[1].transport

    def test_invalid_webhook_skipped_and_reported(self, context, diagnostics):
        profile = _profile(
            filters={"all": {"name": "all"}},
            transports={
                "hook": {"name": "discord", "format": "activity", "id": "123"},
                "feed": {"name": "memory", "format": "activity"},
            },
            map={"all": ["hook", "feed"]},
        )

        table = build_routes(profile, default_registry(), context)

        assert [r.transport.name for r in table] == ["feed"]
        (error,) = _errors(diagnostics)
        assert "invalid or missing webhook configuration" in error

    def test_undefined_references_reported(self, context, diagnostics):
        profile = _profile(
            filters={"all": {"name": "all"}},
            transports={"feed": {"name": "memory", "format": "activity"}},
            map={"all": ["feed", "ghost"], "nobody": "feed"},
        )

        table = build_routes(profile, default_registry(), context)

        assert len(table) == 1
        errors = _errors(diagnostics)
        assert any("undefined transport 'ghost'" in e for e in errors)
        assert any("undefined filter 'nobody'" in e for e in errors)

    def test_broken_filter_reported_once(self, context, diagnostics):
        profile = _profile(
            filters={"mine": {"name": "custom"}},
            transports={"feed": {"name": "memory", "format": "activity"}},
            map={"mine": "feed"},
        )
        assert len(build_routes(profile, default_registry(), context)) == 0
        assert len(_errors(diagnostics)) == 1

    def test_disabled_and_unmapped_transports_not_built(self, context, diagnostics):
        profile = _profile(
            filters={"all": {"name": "all"}},
            transports={
                "off": {"name": "discord", "format": "activity", "enabled": False},
                "spare": {"name": "file", "format": "activity"},
                "feed": {"name": "memory", "format": "activity"},
            },
            map={"all": ["off", "feed"]},
        )

        table = build_routes(profile, default_registry(), context)

        assert [t.name for t in table.transports()] == ["feed"]
        assert _errors(diagnostics) == []

    def test_built_in_sinks(self, context, tmp_dir):
        profile = _profile(
            filters={"all": {"name": "all"}, "nu": {"name": "newusers"}},
            transports={
                "hook": {"name": "discord", "format": "activity", "id": "1", "token": "t"},
                "log": {
                    "name": "file",
                    "format": "activity",
                    "path": str(tmp_dir / "out" / "events.jsonl"),
                },
                "fresh": {
                    "name": "newusers",
                    "format": "newusers",
                    "id": "2",
                    "token": "u",
                    "database": str(tmp_dir / "newusers.db"),
                },
            },
            map={"all": ["hook", "log"], "nu": "fresh"},
        )

        transports = {
            t.name: t
            for t in build_routes(profile, default_registry(), context).transports()
        }
        try:
            assert isinstance(transports["hook"].sink, DiscordWebhookSink)
            assert transports["hook"].sink.url.endswith("/1/t")
            assert isinstance(transports["log"].sink, LocalFileSink)
            assert transports["fresh"].dialect == "newusers"
            assert isinstance(transports["fresh"].sink, NewUsersSink)
        finally:
            for transport in transports.values():
                transport.sink.close()

    def test_load_profile_from_file(self, tmp_dir):
        path = tmp_dir / "profile.json"
        path.write_text(
            '{"filters": {"spam": {"name": "spam", "suppress_repeats": true}},'
            ' "transports": {}, "map": {"spam": ["a", "b"]}}',
            encoding="utf-8",
        )
        profile = load_profile(path)
        assert profile.filters["spam"].options == {"suppress_repeats": True}
        assert profile.destinations_for("spam") == ["a", "b"]
        assert profile.destinations_for("missing") == []
