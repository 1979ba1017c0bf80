"""CLI entry point and application wiring."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from walkingtube.cli.commands import register_commands
from walkingtube.db.connection import close_pool


class CLIApplication:
    """Owns the Typer application and the console every command writes to."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._app = typer.Typer(add_completion=False, rich_markup_mode="rich", no_args_is_help=False)
        register_commands(self._app, self.console)

    @property
    def app(self) -> typer.Typer:
        return self._app

    def run(self, *, prog_name: Optional[str] = None, args: Optional[list[str]] = None) -> None:
        self._app(prog_name=prog_name, args=args)


def create_app(console: Optional[Console] = None) -> typer.Typer:
    """Return a configured Typer application."""

    return CLIApplication(console=console).app


def main() -> None:
    """Console script entry point for the ``walkingtube`` command."""

    try:
        CLIApplication().run(prog_name="walkingtube")
    finally:
        close_pool()


__all__ = ["CLIApplication", "create_app", "main"]
