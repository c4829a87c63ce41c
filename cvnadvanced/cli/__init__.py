"""CVNAdvanced CLI — Typer-based command-line interface.

Provides the ``cvnadvanced`` command with subcommands for parsing single
lines, replaying captured feeds, inspecting a route profile, and running
the relay.

All output uses Rich for formatted terminal display.
"""
