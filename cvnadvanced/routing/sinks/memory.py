"""In-memory sink: buffers payloads for later retrieval.

Does not send anything.  Call ``flush()`` to retrieve and clear the buffer;
used by the ``parse``/``replay`` tooling and by tests.
"""

from __future__ import annotations

import logging
import threading

from cvnadvanced.formats import Payload

logger = logging.getLogger(__name__)


class MemorySink:
    def __init__(self, name: str) -> None:
        self._name = name
        self._pending: list[Payload] = []
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return self._name

    def deliver(self, payload: Payload) -> None:
        with self._lock:
            self._pending.append(payload)
        logger.debug("MemorySink %s: buffered payload", self._name)

    def flush(self) -> list[Payload]:
        """Return and clear all pending payloads."""
        with self._lock:
            payloads = list(self._pending)
            self._pending.clear()
        return payloads

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def close(self) -> None:
        pass
