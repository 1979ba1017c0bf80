"""Generic repository abstractions for Postgres-backed persistence."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, ClassVar, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.extras import RealDictCursor

from walkingtube.db import ConnectionFactory
from walkingtube.models.base import WalkingTubeBaseModel

ModelT = TypeVar("ModelT")


class RepositoryError(RuntimeError):
    """Base exception raised for repository layer failures."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record cannot be located."""


class BaseRepository(Generic[ModelT]):
    """Reusable building block for table-specific repositories.

    Subclasses declare the table, the columns accepted on insert and implement
    :meth:`_decode` to turn a ``RealDictCursor`` row into a domain object.
    """

    table_name: ClassVar[str]
    insert_fields: ClassVar[Sequence[str]]

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert(self, payload_model: WalkingTubeBaseModel) -> ModelT:
        """Persist a new record and return it as stored, including generated columns."""

        payload = self._serialize(payload_model, fields=self.insert_fields)
        columns, placeholders = self._build_insert_clause(payload)
        query = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders}) RETURNING *"
        return self._decode(self._fetch_one(query, payload))

    def get_by_id(self, record_id: object) -> ModelT:
        """Return a single record by its primary key."""

        query = f"SELECT * FROM {self.table_name} WHERE id = %(id)s"
        return self._decode(self._fetch_one(query, {"id": str(record_id)}))

    def fetch_all(
        self,
        where_clause: Optional[str] = None,
        params: Optional[Mapping[str, object]] = None,
        *,
        order_by: Optional[str] = None,
    ) -> List[ModelT]:
        """Return all records, optionally filtered by a predicate and ordered."""

        query = f"SELECT * FROM {self.table_name}"
        if where_clause:
            query = f"{query} WHERE {where_clause}"
        if order_by:
            query = f"{query} ORDER BY {order_by}"
        rows = self._fetch_many(query, params or {})
        return [self._decode(row) for row in rows]

    def delete_where(self, where_clause: str, params: Mapping[str, object]) -> int:
        """Delete matching records and return the affected row count."""

        query = f"DELETE FROM {self.table_name} WHERE {where_clause}"
        return self._execute(query, params)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _decode(self, row: Mapping[str, Any]) -> ModelT:
        raise NotImplementedError

    def _serialize(self, model: WalkingTubeBaseModel, *, fields: Iterable[str]) -> Dict[str, object]:
        raw_values = model.model_dump(mode="json")
        return {field: raw_values[field] for field in fields if field in raw_values}

    def _build_insert_clause(self, payload: Mapping[str, object]) -> Tuple[str, str]:
        columns = ", ".join(payload.keys())
        placeholders = ", ".join(f"%({field})s" for field in payload.keys())
        return columns, placeholders

    def _fetch_one(self, query: str, params: Mapping[str, object]) -> Mapping[str, Any]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                if row is None:
                    raise RecordNotFoundError(f"No records returned for query: {query!r}")
                return dict(row)

    def _fetch_many(self, query: str, params: Mapping[str, object]) -> List[Mapping[str, Any]]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                return [dict(row) for row in cursor.fetchall()]

    def _execute(self, query: str, params: Mapping[str, object]) -> int:
        with self._connection() as connection:
            with connection.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.rowcount

    def _connection(self) -> AbstractContextManager[PsycopgConnection]:
        return self._connection_factory()


__all__ = ["BaseRepository", "RecordNotFoundError", "RepositoryError"]
