"""``cvnadvanced replay`` — classify every line of a captured feed.

Writes one block per line: ``field: value`` pairs for recognised lines,
``Couldn't parse line: ...`` otherwise, each block closed by a separator.
Useful as a regression harness when templates change.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from cvnadvanced.core.classifier import Classifier
from cvnadvanced.core.source import read_file
from cvnadvanced.models.events import Event

console = Console()

SEPARATOR = "-" * 20


def replay_lines(classifier: Classifier, lines: list[str]) -> tuple[str, int]:
    """Return the replay report for *lines* and the number of parsed lines."""
    blocks: list[str] = []
    parsed = 0
    for line in lines:
        result = classifier.classify(line.strip())
        if isinstance(result, Event):
            parsed += 1
            for name, value in result.populated_fields().items():
                blocks.append(f"{name}: {json.dumps(value, ensure_ascii=False)}")
        else:
            blocks.append(f"Couldn't parse line: {line}")
        blocks.append(SEPARATOR)
    return "\n".join(blocks) + "\n", parsed


def replay_cmd(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="File with one raw line per row."
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Write the report here instead of stdout."
    ),
) -> None:
    """Classify every line of INPUT_FILE and report the extracted fields."""
    lines = [raw.text for raw in read_file(input_file)]
    report, parsed = replay_lines(Classifier(), lines)

    if output is not None:
        output.write_text(report, encoding="utf-8")
        console.print(f"[green]Report written to[/green] {output}")
    else:
        console.print(report, markup=False, highlight=False, soft_wrap=True, end="")

    console.print(
        f"[bold]{parsed}[/bold]/{len(lines)} lines parsed, "
        f"[yellow]{len(lines) - parsed}[/yellow] unrecognised"
    )
