"""Unit tests for relay sinks.

HTTP traffic goes through ``httpx.MockTransport``; nothing touches the
network.
"""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from cvnadvanced.core.diagnostics import Severity
from cvnadvanced.errors import ConfigurationError, DestinationDeliveryError
from cvnadvanced.models.payloads import DiscordPayload, Embed, NewUserEntry, NewUserProfile
from cvnadvanced.routing.sinks import BaseSink
from cvnadvanced.routing.sinks.discord import DiscordWebhookSink
from cvnadvanced.routing.sinks.local_file import LocalFileSink
from cvnadvanced.routing.sinks.memory import MemorySink
from cvnadvanced.routing.sinks.newusers import MediaWikiProfileLookup, NewUsersSink


def _payload(text: str = "hello") -> DiscordPayload:
    return DiscordPayload(embeds=[Embed(title=text)])


def _mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _StaticLookup:
    def __init__(self, profiles: list[NewUserProfile] | None = None, exc=None) -> None:
        self._profiles = profiles or []
        self._exc = exc
        self.calls: list[list[str]] = []

    def profiles(self, names):
        self.calls.append(list(names))
        if self._exc is not None:
            raise self._exc
        return [p for p in self._profiles if p.username in names]


# ---------------------------------------------------------------------------
# Test: Discord webhook
# ---------------------------------------------------------------------------


class TestDiscordWebhookSink:
    def test_posts_payload_json(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        client = _mock_client(handler)
        sink = DiscordWebhookSink("hook", "123", "abc", client=client, username="CVN")
        sink.deliver(_payload())

        (request,) = requests
        assert str(request.url) == "https://discord.com/api/webhooks/123/abc"
        body = json.loads(request.content)
        assert body["embeds"] == [{"title": "hello"}]
        assert body["username"] == "CVN"
        assert body["allowed_mentions"] == {"parse": []}
        sink.close()
        assert not client.is_closed

    def test_http_error_status(self):
        sink = DiscordWebhookSink(
            "hook", "1", "t", client=_mock_client(lambda r: httpx.Response(500))
        )
        with pytest.raises(DestinationDeliveryError, match="HTTP 500"):
            sink.deliver(_payload())

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        sink = DiscordWebhookSink("hook", "1", "t", client=_mock_client(handler))
        with pytest.raises(DestinationDeliveryError, match="refused"):
            sink.deliver(_payload())

    def test_rejects_new_user_entries(self):
        sink = DiscordWebhookSink(
            "hook", "1", "t", client=_mock_client(lambda r: httpx.Response(204))
        )
        with pytest.raises(DestinationDeliveryError, match="NewUserEntry"):
            sink.deliver(NewUserEntry(user="Eve", wiki="foo"))

    @pytest.mark.parametrize("webhook_id, token", [("", "t"), ("1", "")])
    def test_credentials_required(self, webhook_id, token):
        with pytest.raises(ConfigurationError, match="hook"):
            DiscordWebhookSink("hook", webhook_id, token)

    def test_owned_client_closed(self):
        sink = DiscordWebhookSink("hook", "1", "t")
        sink.close()
        assert sink._client.is_closed


# ---------------------------------------------------------------------------
# Test: local file and memory
# ---------------------------------------------------------------------------


class TestLocalFileSink:
    def test_appends_json_lines(self, tmp_dir):
        sink = LocalFileSink("log", tmp_dir / "nested" / "out.jsonl")
        sink.deliver(_payload("one"))
        sink.deliver(NewUserEntry(user="Eve", wiki="foo"))

        events = sink.read_events()
        assert [e["transport"] for e in events] == ["log", "log"]
        assert events[0]["payload"]["embeds"][0]["title"] == "one"
        assert events[1]["payload"]["user"] == "Eve"

    def test_read_before_write(self, tmp_dir):
        assert LocalFileSink("log", tmp_dir / "none.jsonl").read_events() == []

    def test_unwritable_path(self, tmp_dir):
        target = tmp_dir / "dir"
        target.mkdir()
        sink = LocalFileSink("log", target)
        with pytest.raises(DestinationDeliveryError):
            sink.deliver(_payload())


class TestMemorySink:
    def test_flush_clears(self):
        sink = MemorySink("mem")
        sink.deliver(_payload("a"))
        sink.deliver(_payload("b"))
        assert sink.pending_count == 2
        assert [p.embeds[0].title for p in sink.flush()] == ["a", "b"]
        assert sink.pending_count == 0

    def test_satisfies_protocol(self, tmp_dir):
        assert isinstance(MemorySink("m"), BaseSink)
        assert isinstance(LocalFileSink("f", tmp_dir / "f.jsonl"), BaseSink)


# ---------------------------------------------------------------------------
# Test: new users
# ---------------------------------------------------------------------------


@pytest.fixture
def webhook_requests():
    return []


@pytest.fixture
def webhook(webhook_requests):
    def handler(request):
        webhook_requests.append(json.loads(request.content))
        return httpx.Response(204)

    return DiscordWebhookSink("fresh", "9", "z", client=_mock_client(handler))


def _entry(user: str, wiki: str = "foo") -> NewUserEntry:
    return NewUserEntry(user=user, wiki=wiki, wiki_url=f"https://{wiki}.fandom.com")


class TestNewUsersSink:
    def test_entries_wait_for_interval(self, webhook, webhook_requests, diagnostics):
        clock = _Clock()
        lookup = _StaticLookup([NewUserProfile(username="Eve", website="eve.example")])
        sink = NewUsersSink(
            "fresh",
            webhook=webhook,
            lookup=lookup,
            interval=60,
            clock=clock,
            diagnostics=diagnostics,
            autostart=False,
        )
        sink.deliver(_entry("Eve"))
        clock.now = 30
        sink.deliver(_entry("Mallory"))

        clock.now = 59
        assert sink.drain() == 0
        assert lookup.calls == []

        clock.now = 60
        assert sink.drain() == 1
        assert lookup.calls == [["Eve"]]
        assert sink.queue_depth == 1
        (body,) = webhook_requests
        assert body["embeds"][0]["url"] == "https://foo.fandom.com/wiki/Special:Contribs/Eve"
        sink.close()

    def test_profiles_without_website_skipped(self, webhook, webhook_requests):
        lookup = _StaticLookup([NewUserProfile(username="Eve", twitter="eve")])
        sink = NewUsersSink(
            "fresh", webhook=webhook, lookup=lookup, interval=0, autostart=False
        )
        sink.deliver(_entry("Eve"))
        assert sink.drain() == 0
        assert webhook_requests == []
        assert sink.queue_depth == 0
        sink.close()

    def test_lookup_failure_reported(self, webhook, diagnostics):
        lookup = _StaticLookup(exc=httpx.ConnectError("down"))
        sink = NewUsersSink(
            "fresh",
            webhook=webhook,
            lookup=lookup,
            interval=0,
            diagnostics=diagnostics,
            autostart=False,
        )
        sink.deliver(_entry("Eve"))
        assert sink.drain() == 0
        (error,) = diagnostics.at(Severity.ERROR)
        assert isinstance(error, DestinationDeliveryError)
        sink.close()

    def test_rejects_discord_payloads(self, webhook):
        sink = NewUsersSink("fresh", webhook=webhook, lookup=_StaticLookup(), autostart=False)
        with pytest.raises(DestinationDeliveryError, match="NewUserEntry"):
            sink.deliver(_payload())
        sink.close()

    def test_records_registrations(self, webhook, tmp_dir):
        sink = NewUsersSink(
            "fresh",
            webhook=webhook,
            lookup=_StaticLookup(),
            db_path=tmp_dir / "db" / "newusers.db",
            autostart=False,
        )
        sink.deliver(_entry("Eve"))
        sink.deliver(_entry("Zed", wiki="bar"))
        assert sink.recorded_rows() == [("Eve", "foo"), ("Zed", "bar")]
        sink.close()
        assert sink.recorded_rows() == []

    def test_failed_record_leaves_nothing_queued(self, webhook, tmp_dir):
        sink = NewUsersSink(
            "fresh",
            webhook=webhook,
            lookup=_StaticLookup(),
            db_path=tmp_dir / "newusers.db",
            autostart=False,
        )
        sink._db.execute("DROP TABLE newusers")

        with pytest.raises(DestinationDeliveryError, match="newusers"):
            sink.deliver(_entry("Eve"))
        assert sink.queue_depth == 0
        sink.close()

    def test_user_on_several_wikis_announced_per_wiki(self, webhook, webhook_requests):
        lookup = _StaticLookup([NewUserProfile(username="Eve", website="eve.example")])
        sink = NewUsersSink(
            "fresh", webhook=webhook, lookup=lookup, interval=0, autostart=False
        )
        sink.deliver(_entry("Eve"))
        sink.deliver(_entry("Eve", wiki="bar"))

        assert sink.drain() == 2
        assert lookup.calls == [["Eve"]]
        urls = sorted(body["embeds"][0]["url"] for body in webhook_requests)
        assert urls == [
            "https://bar.fandom.com/wiki/Special:Contribs/Eve",
            "https://foo.fandom.com/wiki/Special:Contribs/Eve",
        ]
        sink.close()

    def test_background_poller_drains(self, webhook, webhook_requests):
        posted = threading.Event()

        class _SignallingLookup(_StaticLookup):
            def profiles(self, names):
                result = super().profiles(names)
                posted.set()
                return result

        sink = NewUsersSink(
            "fresh",
            webhook=webhook,
            lookup=_SignallingLookup([NewUserProfile(username="Eve", website="x")]),
            interval=0,
            poll=0.01,
        )
        sink.deliver(_entry("Eve"))
        assert posted.wait(timeout=5)
        sink.close()
        assert len(webhook_requests) == 1


class TestMediaWikiProfileLookup:
    def test_two_step_lookup(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("api.php"):
                return httpx.Response(
                    200,
                    json={
                        "query": {
                            "users": [
                                {"userid": 11, "name": "Eve"},
                                {"name": "Ghost", "missing": ""},
                            ]
                        }
                    },
                )
            return httpx.Response(
                200,
                json={"users": {"11": {"website": "eve.example", "fbPage": "eve"}}},
            )

        lookup = MediaWikiProfileLookup(_mock_client(handler))
        (profile,) = lookup.profiles(["Eve", "Ghost"])

        assert profile.username == "Eve"
        assert profile.website == "eve.example"
        assert profile.fb_page == "eve"
        assert seen[0].url.params["ususers"] == "Eve|Ghost"
        assert seen[1].url.params.get_list("id") == ["11"]

    def test_no_known_users_skips_attribute_call(self):
        calls: list[httpx.Request] = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"query": {"users": []}})

        assert MediaWikiProfileLookup(_mock_client(handler)).profiles(["Nobody"]) == []
        assert len(calls) == 1

    def test_service_error_raises(self):
        def handler(request):
            if request.url.path.endswith("api.php"):
                return httpx.Response(200, json={"query": {"users": [{"userid": 1, "name": "A"}]}})
            return httpx.Response(503)

        with pytest.raises(httpx.HTTPStatusError):
            MediaWikiProfileLookup(_mock_client(handler)).profiles(["A"])
