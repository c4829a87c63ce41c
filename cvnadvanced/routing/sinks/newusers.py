"""New-users sink: delayed profile announcements for fresh registrations.

Every registration is queued (and optionally recorded in SQLite).  A
background poller releases entries once they are ``interval`` seconds old,
looks up the user's masthead profile, and posts the profile embed through a
Discord webhook when the user has filled in a website.  The delay gives
users time to fill in their profile before it is checked.

Bridge boundary
---------------
Profile data comes from two HTTP endpoints:

1. The community wiki's ``api.php`` (``list=users``) maps names to ids.
2. The user-attribute service's ``bulk`` endpoint returns attributes per id.
"""

from __future__ import annotations

import collections
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Callable, Protocol

import httpx

from cvnadvanced.core.diagnostics import DiagnosticSink, Severity, report_safely
from cvnadvanced.errors import DestinationDeliveryError
from cvnadvanced.formats import Payload
from cvnadvanced.formats.newusers import NewUsersFormat
from cvnadvanced.models.payloads import NewUserEntry, NewUserProfile
from cvnadvanced.routing.sinks.discord import DiscordWebhookSink

logger = logging.getLogger(__name__)

COMMUNITY_API = "https://community.fandom.com/api.php"
ATTRIBUTE_SERVICE = "https://services.fandom.com/user-attribute/user/bulk"

_CREATE_NEWUSERS = (
    "CREATE TABLE IF NOT EXISTS newusers ("
    "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "  name TEXT NOT NULL,"
    "  wiki TEXT NOT NULL,"
    "  created_at TEXT DEFAULT (datetime('now'))"
    ")"
)


class ProfileLookup(Protocol):
    def profiles(self, names: list[str]) -> list[NewUserProfile]:
        ...


class MediaWikiProfileLookup:
    """Looks up masthead profiles over HTTP.

    Parameters
    ----------
    client:
        ``httpx.Client`` used for both requests.
    api_url:
        ``api.php`` endpoint used to resolve user names to ids.
    service_url:
        User-attribute bulk endpoint.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        api_url: str = COMMUNITY_API,
        service_url: str = ATTRIBUTE_SERVICE,
    ) -> None:
        self._client = client
        self._api_url = api_url
        self._service_url = service_url

    def user_ids(self, names: list[str]) -> dict[str, int]:
        response = self._client.get(
            self._api_url,
            params={
                "action": "query",
                "list": "users",
                "ususers": "|".join(names),
                "format": "json",
            },
        )
        response.raise_for_status()
        users = response.json().get("query", {}).get("users", [])
        return {
            user["name"]: int(user["userid"])
            for user in users
            if "userid" in user and "missing" not in user
        }

    def profiles(self, names: list[str]) -> list[NewUserProfile]:
        ids = self.user_ids(names)
        if not ids:
            return []
        response = self._client.get(
            self._service_url, params=[("id", str(uid)) for uid in ids.values()]
        )
        response.raise_for_status()
        attributes = response.json().get("users", {})
        found: list[NewUserProfile] = []
        for name, uid in ids.items():
            attrs = attributes.get(str(uid))
            if attrs:
                found.append(NewUserProfile.model_validate({"username": name, **attrs}))
        return found


class NewUsersSink:
    """Queues registrations and announces profiles that have a website.

    Parameters
    ----------
    name:
        Transport name.
    webhook:
        Where profile embeds are posted.
    lookup:
        Profile lookup backend.
    interval:
        Seconds an entry waits in the queue before it is checked.
    poll:
        Seconds between queue checks by the background poller.
    db_path:
        Optional SQLite file that receives one ``newusers`` row per
        registration.
    diagnostics:
        Receives lookup and delivery failures from the poller thread.
    clock:
        Monotonic time source; injectable for tests.
    autostart:
        Start the background poller on construction.
    """

    def __init__(
        self,
        name: str,
        *,
        webhook: DiscordWebhookSink,
        lookup: ProfileLookup,
        interval: float = 1800.0,
        poll: float = 5.0,
        db_path: Path | str | None = None,
        diagnostics: DiagnosticSink | None = None,
        clock: Callable[[], float] = time.monotonic,
        autostart: bool = True,
    ) -> None:
        self._name = name
        self._webhook = webhook
        self._lookup = lookup
        self._interval = interval
        self._poll = poll
        self._diagnostics = diagnostics
        self._clock = clock
        self._formatter = NewUsersFormat()
        self._queue: collections.deque[tuple[float, NewUserEntry]] = collections.deque()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

        self._db: sqlite3.Connection | None = None
        if db_path is not None:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(str(db_path), check_same_thread=False)
            self._db.execute(_CREATE_NEWUSERS)
            self._db.commit()
            logger.info("NewUsersSink %s: recording registrations in %s", name, db_path)

        if autostart:
            self.start()

    @property
    def sink_name(self) -> str:
        return self._name

    @property
    def queue_depth(self) -> int:
        with self._lock:
            return len(self._queue)

    def recorded_rows(self) -> list[tuple[str, str]]:
        """``(name, wiki)`` rows recorded in SQLite, oldest first."""
        if self._db is None:
            return []
        with self._lock:
            return list(self._db.execute("SELECT name, wiki FROM newusers ORDER BY id"))

    # ------------------------------------------------------------------
    # Sink API
    # ------------------------------------------------------------------

    def deliver(self, payload: Payload) -> None:
        if not isinstance(payload, NewUserEntry):
            raise DestinationDeliveryError(
                self._name, f"expected NewUserEntry, got {type(payload).__name__}"
            )
        with self._lock:
            if self._db is not None:
                try:
                    self._db.execute(
                        "INSERT INTO newusers (name, wiki) VALUES (?, ?)",
                        (payload.user, payload.wiki),
                    )
                    self._db.commit()
                except sqlite3.Error as exc:
                    raise DestinationDeliveryError(self._name, str(exc)) from exc
            self._queue.append((self._clock(), payload))

    def drain(self, now: float | None = None) -> int:
        """Release entries older than the interval and announce them.

        Returns the number of embeds posted.  A user queued on several
        wikis is looked up once and announced once per wiki.
        """
        current = self._clock() if now is None else now
        due: list[NewUserEntry] = []
        with self._lock:
            while self._queue and current - self._queue[0][0] >= self._interval:
                due.append(self._queue.popleft()[1])
        if not due:
            return 0

        by_user: dict[str, list[NewUserEntry]] = {}
        for entry in due:
            by_user.setdefault(entry.user, []).append(entry)
        try:
            profiles = self._lookup.profiles(list(by_user))
        except (httpx.HTTPError, ValueError) as exc:
            self._report(Severity.ERROR, DestinationDeliveryError(self._name, str(exc)))
            return 0

        posted = 0
        for profile in profiles:
            if not profile.website:
                continue
            for entry in by_user.get(profile.username, ()):
                try:
                    self._webhook.deliver(self._formatter.render_profile(profile, entry))
                    posted += 1
                except DestinationDeliveryError as exc:
                    self._report(Severity.ERROR, exc)
        logger.info(
            "NewUsersSink %s: checked %d registrations, posted %d",
            self._name,
            len(due),
            posted,
        )
        return posted

    # ------------------------------------------------------------------
    # Poller
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"newusers-{self._name}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._poll):
            try:
                self.drain()
            except Exception as exc:  # noqa: BLE001
                self._report(Severity.ERROR, exc)

    def close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._poll + 1)
            self._thread = None
        self._webhook.close()
        if self._db is not None:
            self._db.close()
            self._db = None

    def _report(self, severity: Severity, detail: Exception) -> None:
        if self._diagnostics is None:
            logger.error("NewUsersSink %s: %s", self._name, detail)
        else:
            report_safely(self._diagnostics, severity, detail)
