"""Line sources: where raw notification lines come from.

The IRC connection itself is not part of the relay; anything that can yield
``RawLine`` objects can feed it.  Text streams use one line per message,
optionally prefixed by the channel and a tab::

    #cvn-wikia\tUser [[User:Alice]] edited [[Main Page]] ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, TextIO


@dataclass(frozen=True)
class RawLine:
    channel: Optional[str]
    text: str


def parse_raw(line: str, channel: Optional[str] = None) -> RawLine:
    """Split an optional ``#channel<TAB>`` prefix off *line*."""
    text = line.rstrip("\r\n")
    if text.startswith("#") and "\t" in text:
        prefix, _, rest = text.partition("\t")
        return RawLine(channel=prefix, text=rest)
    return RawLine(channel=channel, text=text)


def iter_lines(stream: TextIO, channel: Optional[str] = None) -> Iterator[RawLine]:
    """Yield non-empty lines from *stream* as ``RawLine`` objects."""
    for line in stream:
        if not line.strip():
            continue
        yield parse_raw(line, channel)


def read_file(path: Path | str, channel: Optional[str] = None) -> Iterator[RawLine]:
    with Path(path).open(encoding="utf-8") as fh:
        yield from iter_lines(fh, channel)
