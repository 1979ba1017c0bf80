"""Change-feed listener built on Postgres ``LISTEN``/``NOTIFY``.

The ``videos_change_feed`` trigger (see ``migrations/003_videos_change_feed.sql``) publishes a JSON
document for every insert, update and delete on ``videos``. The listener keeps one autocommit
connection, registers its socket with the asyncio loop and hands decoded
:class:`~walkingtube.models.change.ChangeEvent` objects to subscribers.
"""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Dict, Optional

from psycopg2 import sql
from psycopg2.extensions import connection as PsycopgConnection
from pydantic import ValidationError
from rich.console import Console

from walkingtube.db import VIDEOS_CHANNEL, VIDEOS_TABLE
from walkingtube.models.change import ChangeEvent
from walkingtube.models.video import PayloadShapeError
from walkingtube.utils.subscriptions import Subscription

ChangeHandler = Callable[[ChangeEvent], None]
ListenerConnectionFactory = Callable[[], PsycopgConnection]


def decode_payload(payload: str, *, table: str = VIDEOS_TABLE) -> ChangeEvent:
    """Parse a NOTIFY payload into a :class:`ChangeEvent`.

    Raises
    ------
    PayloadShapeError
        If the payload is not JSON, misses required keys or targets another table.
    """

    try:
        document = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise PayloadShapeError(f"Change payload is not JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise PayloadShapeError("Change payload must be a JSON object.")

    try:
        event = ChangeEvent.model_validate(document)
    except ValidationError as exc:
        raise PayloadShapeError(f"Malformed change payload: {exc}") from exc

    if event.table != table:
        raise PayloadShapeError(f"Change payload targets unexpected table {event.table!r}.")
    if event.record_id is None:
        raise PayloadShapeError("Change payload carries no row identifier.")
    return event


class ChangeFeedListener:
    """Subscribe to row changes on the ``videos`` table."""

    def __init__(
        self,
        connection_factory: ListenerConnectionFactory,
        *,
        channel: str = VIDEOS_CHANNEL,
        console: Optional[Console] = None,
    ) -> None:
        self._connection_factory = connection_factory
        self._channel = channel
        self._console = console or Console()
        self._handlers: Dict[int, ChangeHandler] = {}
        self._next_handle = 0
        self._connection: Optional[PsycopgConnection] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ------------------------------------------------------------------ #
    # Subscribers                                                        #
    # ------------------------------------------------------------------ #
    def subscribe(self, handler: ChangeHandler) -> Subscription:
        """Register ``handler`` for every decoded change event."""

        handle = self._next_handle
        self._next_handle += 1
        self._handlers[handle] = handler
        return Subscription(lambda: self._handlers.pop(handle, None))

    @property
    def listening(self) -> bool:
        return self._connection is not None

    # ------------------------------------------------------------------ #
    # Connection lifecycle                                               #
    # ------------------------------------------------------------------ #
    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Open the listener connection, issue ``LISTEN`` and attach to ``loop`` if given."""

        if self._connection is not None:
            return

        connection = self._connection_factory()
        with connection.cursor() as cursor:
            cursor.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self._channel)))
        self._connection = connection
        self._console.log(f"[blue]ChangeFeed:[/blue] listening on channel {self._channel}")

        if loop is not None:
            loop.add_reader(connection.fileno(), self.drain)
            self._loop = loop

    def stop(self) -> None:
        """Detach from the loop, ``UNLISTEN`` and close the connection. Safe to call twice."""

        connection, self._connection = self._connection, None
        if connection is None:
            return

        if self._loop is not None:
            self._loop.remove_reader(connection.fileno())
            self._loop = None

        try:
            if not connection.closed:
                with connection.cursor() as cursor:
                    cursor.execute(sql.SQL("UNLISTEN {}").format(sql.Identifier(self._channel)))
        finally:
            connection.close()
        self._console.log(f"[blue]ChangeFeed:[/blue] stopped listening on channel {self._channel}")

    # ------------------------------------------------------------------ #
    # Dispatch                                                           #
    # ------------------------------------------------------------------ #
    def drain(self) -> int:
        """Read pending notifications and dispatch them; return the number delivered."""

        if self._connection is None:
            return 0

        self._connection.poll()
        delivered = 0
        while self._connection.notifies:
            notification = self._connection.notifies.pop(0)
            if notification.channel != self._channel:
                continue
            if self.dispatch_payload(notification.payload):
                delivered += 1
        return delivered

    def dispatch_payload(self, payload: str) -> bool:
        """Decode a raw payload and hand it to subscribers; malformed payloads are logged and skipped."""

        try:
            event = decode_payload(payload)
        except PayloadShapeError as exc:
            self._console.log(f"[yellow]ChangeFeed:[/yellow] skipping payload ({exc})")
            return False

        for handler in list(self._handlers.values()):
            handler(event)
        return True


__all__ = ["ChangeFeedListener", "ChangeHandler", "decode_payload"]
