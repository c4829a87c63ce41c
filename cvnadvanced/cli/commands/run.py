"""``cvnadvanced run`` — feed lines from stdin or a file through the relay."""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console

from cvnadvanced.config import config
from cvnadvanced.core.relay import Relay
from cvnadvanced.core.source import iter_lines, read_file

console = Console(stderr=True)


def run_cmd(
    profile: Path = typer.Option(
        None, "--profile", "-p", help="Route profile JSON (defaults to config)."
    ),
    input_file: Path = typer.Option(
        None, "--input", "-i", dir_okay=False, help="Read lines from a file."
    ),
    channel: str = typer.Option(
        None, "--channel", "-c", help="Channel for lines without a channel prefix."
    ),
) -> None:
    """Run the relay until the input is exhausted.

    Lines may carry a ``#channel<TAB>`` prefix; lines from channels that
    are not monitored are ignored.
    """
    path = profile or config.profile_path
    if not path.exists():
        console.print(f"[red]Profile not found:[/red] {path}")
        raise typer.Exit(code=1)

    with Relay.from_profile_path(path, config=config) as relay:
        source = (
            read_file(input_file, channel)
            if input_file is not None
            else iter_lines(sys.stdin, channel)
        )
        try:
            events = relay.run(source)
        except KeyboardInterrupt:
            console.print("[yellow]Interrupted[/yellow]")
            raise typer.Exit(code=130)
    console.print(f"[green]Relayed {events} event(s)[/green]")
