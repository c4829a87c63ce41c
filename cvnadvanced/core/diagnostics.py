"""Diagnostic channel — the injected sink every core component reports to.

The core never logs directly on its recover-and-report paths; it calls a
``DiagnosticSink`` with a severity and either a message or an exception.
``report_safely`` wraps that call so a misbehaving sink can never raise
back into classification or dispatch.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

Detail = Union[str, Exception]


class Severity(str, Enum):
    """Diagnostic severities understood by every sink."""

    DEBUG = "debug"
    WARN = "warn"
    ERROR = "error"


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receives diagnostics from the classifier, extractors and dispatcher."""

    def report(self, severity: Severity, detail: Detail) -> None:
        """Record one diagnostic."""
        ...


_LEVELS: dict[Severity, int] = {
    Severity.DEBUG: logging.DEBUG,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingDiagnostics:
    """Routes diagnostics to a stdlib logger.

    Exceptions reported at ``error`` severity carry their traceback.
    """

    def __init__(self, logger_name: str = "cvnadvanced.diagnostics") -> None:
        self._logger = logging.getLogger(logger_name)

    def report(self, severity: Severity, detail: Detail) -> None:
        level = _LEVELS.get(severity, logging.WARNING)
        if isinstance(detail, Exception):
            exc_info = detail if severity is Severity.ERROR else None
            self._logger.log(
                level, "%s: %s", type(detail).__name__, detail, exc_info=exc_info
            )
        else:
            self._logger.log(level, "%s", detail)


def report_safely(sink: DiagnosticSink, severity: Severity, detail: Detail) -> None:
    """Call ``sink.report`` and swallow anything it raises."""
    try:
        sink.report(severity, detail)
    except Exception:  # noqa: BLE001
        logger.exception("Diagnostic sink %r raised while reporting", sink)
