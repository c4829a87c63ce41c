"""Main Typer application — imports and registers all CLI commands.

Entry point: ``cvnadvanced`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from cvnadvanced.cli.commands.parse import parse_cmd
from cvnadvanced.cli.commands.replay import replay_cmd
from cvnadvanced.cli.commands.routes import routes_cmd
from cvnadvanced.cli.commands.run import run_cmd
from cvnadvanced.config import config

app = typer.Typer(
    name="cvnadvanced",
    help="CVNAdvanced: classify wiki-monitoring feed lines and relay them.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Install a Rich log handler on the root logger."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=config.debug, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", "-l", help="Override CVNADVANCED_LOG_LEVEL."
    ),
) -> None:
    configure_logging(log_level or config.log_level)


# Register subcommands
app.command(name="parse", help="Classify one line and show its fields.")(parse_cmd)
app.command(name="replay", help="Classify every line of a captured feed.")(replay_cmd)
app.command(name="routes", help="Show the routes a profile builds.")(routes_cmd)
app.command(name="run", help="Relay lines from stdin or a file.")(run_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
