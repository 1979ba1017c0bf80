"""Postgres connections for the video store: a pooled connection for queries and dedicated listener connections."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import psycopg2
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.pool import SimpleConnectionPool

from walkingtube.config.settings import Settings, get_settings

APPLICATION_NAME = "walkingtube"
POOL_SIZE = (1, 5)


def connection_from_dsn(dsn: str, **options: Any) -> PsycopgConnection:
    """Open a standalone connection tagged with the application name."""

    options.setdefault("application_name", APPLICATION_NAME)
    return psycopg2.connect(dsn, **options)


def listener_connection(dsn: str) -> PsycopgConnection:
    """Open an autocommit connection so ``LISTEN`` takes effect without a commit."""

    conn = connection_from_dsn(dsn)
    conn.autocommit = True
    return conn


class DatabasePool:
    """Shared pool of store connections; each checkout is one transaction."""

    def __init__(
        self,
        dsn: str,
        *,
        min_connections: int = POOL_SIZE[0],
        max_connections: int = POOL_SIZE[1],
        **options: Any,
    ) -> None:
        options.setdefault("application_name", APPLICATION_NAME)
        self._pool = SimpleConnectionPool(min_connections, max_connections, dsn, **options)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabasePool":
        settings = settings.require()
        return cls(str(settings.database_url), connect_timeout=max(1, int(settings.http_timeout_seconds)))

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Check out a connection, commit when the block succeeds and roll back when it raises."""

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except BaseException:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            # A connection the server dropped is discarded instead of returned to the pool.
            self._pool.putconn(conn, close=bool(conn.closed))

    def close(self) -> None:
        self._pool.closeall()


_pool: Optional[DatabasePool] = None


@contextmanager
def get_connection() -> Iterator[PsycopgConnection]:
    """Connection factory used by the repositories; the pool is created on first use."""

    global _pool
    if _pool is None:
        _pool = DatabasePool.from_settings(get_settings())
    with _pool.connection() as conn:
        yield conn


def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        pool.close()


__all__ = ["DatabasePool", "close_pool", "connection_from_dsn", "get_connection", "listener_connection"]
