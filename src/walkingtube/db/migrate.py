"""Apply the idempotent SQL migrations stored under ``db/migrations``."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from psycopg2.extensions import cursor as PsycopgCursor
from rich.console import Console
from rich.table import Table

from walkingtube.config.settings import get_settings
from walkingtube.db.connection import connection_from_dsn

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"


def load_migration_files(directory: Path = MIGRATIONS_ROOT) -> List[Path]:
    """Return migration files in the order they must be applied."""

    return sorted(directory.glob("*.sql"))


def _execute_sql_file(db_cursor: PsycopgCursor, migration_file: Path) -> None:
    db_cursor.execute(migration_file.read_text(encoding="utf-8"))


def run_migrations(console: Console | None = None, *, dsn: Optional[str] = None) -> List[str]:
    """Execute every migration inside a single transaction and return the applied file names."""

    console = console or Console()
    migrations = load_migration_files()

    if not migrations:
        console.print("[yellow]No migrations found.[/yellow]")
        return []

    connection = connection_from_dsn(dsn or str(get_settings().require().database_url))

    table = Table(title="videos schema migrations")
    table.add_column("Migration", style="cyan")
    table.add_column("Status", style="green")

    applied: List[str] = []
    try:
        with connection.cursor() as db_cursor:
            for migration in migrations:
                _execute_sql_file(db_cursor, migration)
                applied.append(migration.name)
                table.add_row(migration.name, "applied")
        connection.commit()
    except Exception as exc:
        connection.rollback()
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise
    finally:
        connection.close()

    console.print(table)
    return applied


def main() -> None:
    """Entry point for ``python -m walkingtube.db.migrate``."""

    run_migrations()


if __name__ == "__main__":  # pragma: no cover
    main()
