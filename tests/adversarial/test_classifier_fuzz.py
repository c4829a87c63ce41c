"""Adversarial tests — classifier robustness against hostile or broken lines.

These tests verify that:
1. Arbitrary text never raises out of ``classify``
2. Truncated template lines fall through to ``UnknownLine`` or a partial event
3. IRC formatting bytes and huge lines are handled
4. Markdown and mention payloads in user text survive extraction verbatim
"""

from __future__ import annotations

import random
import string

import pytest

from conftest import BLOCK_LINE, DISCUSSIONS_LINE, EDIT_LINE, SPAM_LINE
from cvnadvanced.models.events import Event, EventType, UnknownLine

ALPHABET = string.printable + "[]()|:#\u200bé中\x02\x03\x0f"


def _random_lines(seed: int, count: int = 200) -> list[str]:
    rng = random.Random(seed)
    return [
        "".join(rng.choice(ALPHABET) for _ in range(rng.randint(0, 200)))
        for _ in range(count)
    ]


class TestRandomInput:
    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_never_raises(self, classifier, seed):
        for line in _random_lines(seed):
            result = classifier.classify(line)
            assert isinstance(result, (Event, UnknownLine))

    def test_empty_and_whitespace(self, classifier):
        for line in ("", " ", "\t", "\r\n"):
            assert isinstance(classifier.classify(line), UnknownLine)

    def test_very_long_line(self, classifier):
        line = EDIT_LINE.replace("Main Page", "A" * 5_000)
        event = classifier.classify(line)
        assert isinstance(event, Event)
        assert len(event.title) == 5_000


class TestTruncatedTemplates:
    @pytest.mark.parametrize("line", [EDIT_LINE, BLOCK_LINE, SPAM_LINE, DISCUSSIONS_LINE])
    def test_every_prefix_is_safe(self, classifier, line):
        for cut in range(0, len(line), 3):
            result = classifier.classify(line[:cut])
            assert isinstance(result, (Event, UnknownLine))

    def test_mangled_url_still_yields_event(self, classifier):
        line = EDIT_LINE.replace("http://en.example.com/?diff=123", "http://")
        result = classifier.classify(line)
        assert isinstance(result, (Event, UnknownLine))
        if isinstance(result, Event):
            assert result.type is EventType.EDIT


class TestHostileContent:
    def test_irc_colour_codes_do_not_raise(self, classifier):
        line = "\x0314[[\x0307User:Alice\x0314]]\x03 edited \x02[[Page]]\x02"
        assert isinstance(classifier.classify(line), (Event, UnknownLine))

    def test_mentions_survive_extraction(self, classifier):
        line = DISCUSSIONS_LINE.replace("First post", "@everyone *free* nitro")
        event = classifier.classify(line)
        assert isinstance(event, Event)
        assert event.summary == "@everyone *free* nitro"

    def test_brackets_in_title(self, classifier):
        line = EDIT_LINE.replace("Main Page", "Weird ]] [[ Title")
        assert isinstance(classifier.classify(line), (Event, UnknownLine))
