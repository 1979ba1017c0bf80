"""Command-line interface package for WalkingTube."""

from rich.console import Console

from walkingtube.cli.main import CLIApplication, create_app

console = Console()

__all__ = ["CLIApplication", "console", "create_app"]
