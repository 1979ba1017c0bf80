"""CLI commands for signing in and out."""

from __future__ import annotations

import typer
from rich.console import Console

from walkingtube.cli.runtime import ExitCode, Runtime
from walkingtube.services.auth import AuthError


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register account commands."""

    @app.command("login")
    def login(
        email: str = typer.Option(..., "--email", "-e", prompt=True),
        password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    ) -> None:
        """Sign in with e-mail and password."""

        try:
            user = runtime.session.sign_in(email, password)
        except AuthError as exc:
            console.print(f"[red]Sign-in failed:[/red] {exc}")
            raise typer.Exit(code=ExitCode.AUTH_REQUIRED) from exc
        console.print(f"[green]Signed in as {user.email or user.id}.[/green]")

    @app.command("signup")
    def signup(
        email: str = typer.Option(..., "--email", "-e", prompt=True),
        password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True),
    ) -> None:
        """Create an account."""

        try:
            user = runtime.session.sign_up(email, password)
        except AuthError as exc:
            console.print(f"[red]Sign-up failed:[/red] {exc}")
            raise typer.Exit(code=ExitCode.AUTH_REQUIRED) from exc
        if user is None:
            console.print("[yellow]Check your inbox to confirm the account, then run `walkingtube login`.[/yellow]")
            return
        console.print(f"[green]Account created; signed in as {user.email or user.id}.[/green]")

    @app.command("logout")
    def logout() -> None:
        """Sign out and forget the stored session."""

        runtime.session.load()
        runtime.session.sign_out()
        console.print("[green]Signed out.[/green]")

    @app.command("whoami")
    def whoami() -> None:
        """Show the signed-in user."""

        user = runtime.session.load()
        if user is None:
            console.print("[yellow]Not signed in.[/yellow]")
            raise typer.Exit(code=ExitCode.AUTH_REQUIRED)
        console.print(f"{user.email or '-'} [dim]({user.id})[/dim]")


__all__ = ["register"]
