"""Local file sink: appends payloads to a JSON-lines file.

Layout: one ``{"transport": ..., "payload": {...}}`` object per line.
Useful for dry runs and for auditing what a profile would have posted.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from cvnadvanced.errors import DestinationDeliveryError
from cvnadvanced.formats import Payload

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Appends payloads to a local JSON-lines file.

    Parameters
    ----------
    name:
        Transport name recorded with every line.
    path:
        Target file.  Parent directories are created on construction.
    """

    def __init__(self, name: str, path: Path | str) -> None:
        self._name = name
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        return self._path

    def deliver(self, payload: Payload) -> None:
        line = json.dumps(
            {"transport": self._name, "payload": payload.model_dump(mode="json")},
            sort_keys=True,
            ensure_ascii=False,
        )
        try:
            with self._lock, self._path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            raise DestinationDeliveryError(self._name, str(exc)) from exc
        logger.debug("LocalFileSink %s: wrote payload to %s", self._name, self._path)

    def read_events(self) -> list[dict]:
        """Read back every line written so far."""
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]

    def close(self) -> None:
        pass
