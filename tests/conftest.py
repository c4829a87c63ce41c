"""Shared test fixtures for CVNAdvanced."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from cvnadvanced.config import RelayConfig
from cvnadvanced.core.classifier import Classifier
from cvnadvanced.core.diagnostics import Detail, Severity
from cvnadvanced.models.events import ActorClass, Event, EventType
from cvnadvanced.models.payloads import DiscordPayload


# ---------------------------------------------------------------------------
# Sample feed lines, one per catalog entry
# ---------------------------------------------------------------------------

EDIT_LINE = (
    "User [[User:Alice]] edited [[Main Page]] (+120) "
    "Diff: http://en.example.com/?diff=123"
)
LIST_REMOVE_LINE = "Deleted Bob from global blacklist"
LIST_ADD_LINE = (
    'Added: Bob is on global blacklist, added by Mod until 2030-01-01 ("vandalism")'
)
NO_LIST_LINE = "Bob is not on global whitelist"
BLOCK_LINE = (
    "Block editor [[User:Vandal]] blocked by admin [[User:Mod]] "
    'Length: 2 weeks "Spamming links"'
)
UNBLOCK_LINE = 'Unblock editor [[User:Vandal]] unblocked by admin [[User:Mod]] "Mistake"'
REPLACE_LINE = (
    'IP [[User:127.0.0.1]] replaced [[Some Page]] with "lol" (-4000) '
    "Diff: https://foo.fandom.com/?diff=55&oldid=54"
)
DISCUSSIONS_LINE = (
    "[[User:Carol]] created thread [[Hello world]] "
    "https://test.fandom.com/d/p/1234567890123456789 : First post"
)
REPLY_LINE = (
    "[[User:Dave]] replied [[Hello world]] (3) "
    "https://test.fandom.com/pl/d/p/1234567890123456789/r/9876543210987654321 : Agreed"
)
SPAM_LINE = (
    "COI3 (0.85) [[User:Spammer]] created "
    "https://spamwiki.fandom.com/index.php?oldid=42 with title Buy Cheap Stuff"
)
SPAM_FILTER_LINE = (
    "HIT (direct) [[User:Spammer]] edited "
    "https://foo.wikia.com/index.php?oldid=7 matching filter #12"
)
NEW_USER_LINE = (
    "Eve New user registration https://foo.fandom.com/wiki/Special:Log/newusers "
    "- https://foo.fandom.com/wiki/Special:Contributions/Eve"
)
UNKNOWN_LINE = "some random chatter"


class RecordingDiagnostics:
    """Diagnostic sink that keeps every report for assertions."""

    def __init__(self) -> None:
        self.reports: list[tuple[Severity, Detail]] = []
        self._lock = threading.Lock()

    def report(self, severity: Severity, detail: Detail) -> None:
        with self._lock:
            self.reports.append((severity, detail))

    def at(self, severity: Severity) -> list[Detail]:
        with self._lock:
            return [detail for sev, detail in self.reports if sev is severity]


class RecordingSink:
    """A sink that keeps delivered payloads."""

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self.received: list[Any] = []
        self.closed = False
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return self._name

    def deliver(self, payload: Any) -> None:
        with self._lock:
            self.received.append(payload)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def classifier(diagnostics: RecordingDiagnostics) -> Classifier:
    """Provide a Classifier over the default catalog."""
    return Classifier(diagnostics=diagnostics)


@pytest.fixture
def relay_config(tmp_dir: Path) -> RelayConfig:
    """Provide a RelayConfig isolated from the environment and .env files."""
    return RelayConfig(
        _env_file=None,
        profile_path=tmp_dir / "profile.json",
        max_delivery_workers=2,
        newusers_poll_seconds=0.05,
    )


# ---------------------------------------------------------------------------
# Event factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory fixture: build an Event with sensible defaults."""

    def _factory(event_type: EventType = EventType.EDIT, **overrides: Any) -> Event:
        defaults: dict[str, Any] = {
            "type": event_type,
            "raw": f"synthetic {event_type.value} line",
            "user": "Alice",
            "wiki": "test",
            "domain": "fandom.com",
            "is_fandom": True,
        }
        if event_type is EventType.EDIT:
            defaults.update(
                user_type=ActorClass.USER,
                action="edit",
                title="Main Page",
                diff_size=120,
                url_params={"diff": "123"},
            )
        defaults.update(overrides)
        return Event(**defaults)

    return _factory


@pytest.fixture
def destination() -> Callable[..., Any]:
    """Factory fixture: a minimal formatter destination."""

    class _Destination:
        def __init__(self, name: str, dialect: str) -> None:
            self.name = name
            self.dialect = dialect

    def _factory(name: str = "hook", dialect: str = "discord") -> _Destination:
        return _Destination(name, dialect)

    return _factory


def only_embed(payload: DiscordPayload):
    """Return the single embed of *payload*."""
    assert isinstance(payload, DiscordPayload)
    assert len(payload.embeds) == 1
    return payload.embeds[0]
