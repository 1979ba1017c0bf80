"""Tests for the SQL migration runner."""

from typing import List

import psycopg2
import pytest
from rich.console import Console

from walkingtube.db import migrate


class MigrationConnection:
    def __init__(self, fail_on: str = "") -> None:
        self.fail_on = fail_on
        self.statements: List[str] = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self) -> "MigrationConnection":
        return self

    def __enter__(self) -> "MigrationConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def execute(self, statement: str) -> None:
        if self.fail_on and self.fail_on in statement:
            raise psycopg2.ProgrammingError("syntax error")
        self.statements.append(statement)

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True

    def close(self) -> None:
        self.closed = True


def test_migrations_are_ordered() -> None:
    names = [path.name for path in migrate.load_migration_files()]
    assert names == ["001_create_videos.sql", "002_videos_policies.sql", "003_videos_change_feed.sql"]


def test_change_feed_trigger_publishes_on_videos_channel() -> None:
    trigger_sql = migrate.load_migration_files()[-1].read_text(encoding="utf-8")
    assert "pg_notify" in trigger_sql
    assert "'videos_changes'" in trigger_sql
    assert "AFTER INSERT OR UPDATE OR DELETE ON videos" in trigger_sql


def test_run_migrations_commits(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = MigrationConnection()
    monkeypatch.setattr(migrate, "connection_from_dsn", lambda dsn: connection)

    applied = migrate.run_migrations(Console(quiet=True), dsn="postgresql://localhost/postgres")

    assert applied == ["001_create_videos.sql", "002_videos_policies.sql", "003_videos_change_feed.sql"]
    assert len(connection.statements) == 3
    assert connection.committed and connection.closed


def test_run_migrations_rolls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    connection = MigrationConnection(fail_on="ENABLE ROW LEVEL SECURITY")
    monkeypatch.setattr(migrate, "connection_from_dsn", lambda dsn: connection)

    with pytest.raises(psycopg2.ProgrammingError):
        migrate.run_migrations(Console(quiet=True), dsn="postgresql://localhost/postgres")

    assert connection.rolled_back and not connection.committed
    assert connection.closed
