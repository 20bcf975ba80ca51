"""Main Typer application, the entry point for the ``strain`` CLI."""

from __future__ import annotations

import typer

from strain import __version__
from strain.cli.run import run_cmd

app = typer.Typer(
    name="strain",
    help="Drive sustained parallel HTTP traffic against a target.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Generate load against a URL until the duration ends or Ctrl-C.")(run_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"strain {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Strain: sustained parallel HTTP traffic generation."""
