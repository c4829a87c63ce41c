"""``cvnadvanced parse`` — classify one line and show the extracted fields."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from cvnadvanced.core.classifier import Classifier
from cvnadvanced.models.events import Event

console = Console()


def event_table(event: Event) -> Table:
    """Render the populated fields of *event* as a two-column table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in event.populated_fields().items():
        table.add_row(name, json.dumps(value, ensure_ascii=False))
    return table


def parse_cmd(
    line: str = typer.Argument(..., help="Raw notification line."),
    as_json: bool = typer.Option(False, "--json", help="Print the event as JSON."),
) -> None:
    """Classify LINE and print the resulting event.

    Exits with status 1 when no template matches.
    """
    result = Classifier().classify(line)
    if not isinstance(result, Event):
        console.print(f"[yellow]Couldn't parse line:[/yellow] {line}")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(json.dumps(result.populated_fields(), ensure_ascii=False))
        return
    console.print(f"[bold green]{result.type.value}[/bold green]")
    console.print(event_table(result))
