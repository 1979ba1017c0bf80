"""Postgres access for the hosted ``videos`` table and its change notifications."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from psycopg2.extensions import connection as PsycopgConnection

VIDEOS_TABLE = "videos"
VIDEOS_CHANNEL = "videos_changes"


class ConnectionFactory(Protocol):
    """Callable returning a context manager around a transactional psycopg2 connection."""

    def __call__(self) -> AbstractContextManager[PsycopgConnection]:
        """Open (or borrow) a connection for the duration of the ``with`` block."""


__all__ = ["ConnectionFactory", "VIDEOS_CHANNEL", "VIDEOS_TABLE"]
