"""CLI commands for configuration checks and database setup."""

from __future__ import annotations

import psycopg2
import typer
from rich.console import Console

from walkingtube.cli.runtime import ExitCode, Runtime
from walkingtube.db.migrate import run_migrations


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register administrative commands."""

    @app.command("check-config")
    def check_config() -> None:
        """Verify that every required credential is configured."""

        settings = runtime.settings
        console.print("[green]Configuration OK.[/green]")
        console.print(f"[dim]Map style: {settings.map_style}; field limits: {settings.field_limits.model_dump()}[/dim]")

    @app.command("migrate")
    def migrate() -> None:
        """Create or update the videos table, its policies and the change-feed trigger."""

        dsn = str(runtime.settings.database_url)
        try:
            run_migrations(console, dsn=dsn)
        except psycopg2.Error as exc:
            raise typer.Exit(code=ExitCode.STORE_ERROR) from exc


__all__ = ["register"]
