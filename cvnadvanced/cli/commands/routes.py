"""``cvnadvanced routes`` — show the route table a profile builds."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cvnadvanced.config import config
from cvnadvanced.core.relay import Relay
from cvnadvanced.models.routing import load_profile

console = Console()


def routes_cmd(
    profile: Path = typer.Option(
        None, "--profile", "-p", help="Route profile JSON (defaults to config)."
    ),
) -> None:
    """Build the routes from a profile and list them.

    Components that fail to build are reported through logging and left
    out of the table.
    """
    path = profile or config.profile_path
    if not path.exists():
        console.print(f"[red]Profile not found:[/red] {path}")
        raise typer.Exit(code=1)

    relay_profile = load_profile(path)
    with Relay(relay_profile, config=config) as relay:
        table = Table(title=f"Routes from {path}", header_style="bold cyan")
        table.add_column("Filter", style="cyan")
        table.add_column("Transport", style="green")
        table.add_column("Kind")
        table.add_column("Format")
        for route in relay.routes:
            transport = route.transport
            table.add_row(
                route.filter_name,
                transport.name,
                transport.kind,
                transport.formatter.format_name,
            )
        console.print(table)

        skipped = sum(
            len(relay_profile.destinations_for(name)) for name in relay_profile.map
        ) - len(relay.routes)
        if skipped:
            console.print(f"[yellow]{skipped} route(s) skipped[/yellow]")
