"""Classifier — turns one raw notification line into an Event or UnknownLine.

The classifier walks the pattern catalog in priority order and hands the
first match to that entry's extraction.  It is a pure function of the line
and the catalog; the only side effects are calls to the injected
diagnostic sink.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from cvnadvanced.core.catalog import DEFAULT_CATALOG, PatternEntry, catalog_index
from cvnadvanced.core.diagnostics import (
    DiagnosticSink,
    LoggingDiagnostics,
    Severity,
    report_safely,
)
from cvnadvanced.errors import PartialExtraction, UnrecognizedLine
from cvnadvanced.models.events import ClassifiedLine, Event, UnknownLine

logger = logging.getLogger(__name__)


class Classifier:
    """First-match classifier over an ordered pattern catalog.

    Parameters
    ----------
    catalog:
        Ordered pattern entries.  Defaults to ``DEFAULT_CATALOG``.
    diagnostics:
        Sink for unrecognised lines and partial extractions.

    Examples
    --------
    >>> Classifier().classify("Deleted Bob from global blacklist").list_code
    'bl'
    """

    def __init__(
        self,
        catalog: Optional[Sequence[PatternEntry]] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self._catalog: tuple[PatternEntry, ...] = tuple(
            DEFAULT_CATALOG if catalog is None else catalog
        )
        catalog_index(self._catalog)
        self._diagnostics = diagnostics or LoggingDiagnostics()

    @property
    def catalog(self) -> tuple[PatternEntry, ...]:
        return self._catalog

    def classify(self, raw_line: str) -> ClassifiedLine:
        """Classify one line.  Never raises."""
        line = raw_line.rstrip("\r\n")
        for entry in self._catalog:
            match = entry.match(line)
            if match is None:
                continue
            return self._extract(entry, line, match)

        report_safely(self._diagnostics, Severity.DEBUG, UnrecognizedLine(line))
        return UnknownLine(raw=line)

    def match_entry(self, raw_line: str) -> Optional[PatternEntry]:
        """Return the catalog entry that would claim *raw_line*, if any."""
        line = raw_line.rstrip("\r\n")
        for entry in self._catalog:
            if entry.match(line) is not None:
                return entry
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract(self, entry: PatternEntry, line: str, match) -> ClassifiedLine:
        def report(detail: str) -> None:
            report_safely(
                self._diagnostics, Severity.WARN, PartialExtraction(entry.name, detail)
            )

        try:
            return entry.extract(line, match, report)
        except Exception as exc:  # noqa: BLE001
            report(f"extractor raised {type(exc).__name__}: {exc}")
        try:
            return Event(type=entry.event_type, raw=line)
        except Exception as exc:  # noqa: BLE001
            report_safely(
                self._diagnostics,
                Severity.ERROR,
                PartialExtraction(entry.name, f"cannot build a bare event: {exc}"),
            )
            return UnknownLine(raw=line)
