"""Command registration utilities for the WalkingTube CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from walkingtube.cli.commands import account, admin, places, videos
from walkingtube.cli.runtime import Runtime


def register_commands(app: typer.Typer, console: Console) -> None:
    """Attach every command group to the provided Typer application."""

    runtime = Runtime(console)
    videos.register(app, console, runtime)
    places.register(app, console, runtime)
    account.register(app, console, runtime)
    admin.register(app, console, runtime)

    @app.callback(invoke_without_command=True)
    def main_callback(ctx: typer.Context) -> None:
        """Browse and share walking videos pinned to a map."""

        if ctx.invoked_subcommand is None:
            console.print("[bold green]WalkingTube CLI ready. Run with --help to see commands.[/bold green]")


__all__ = ["register_commands"]
