"""Append-only, versioned event store with optimistic concurrency.

The write side of the CQRS pattern. A stream's version is the number of
events in it; the first event sits at version 1. append() commits only when
the caller's expected_version still equals the stream's version.
"""

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from timeledger.db.connection import Database
from timeledger.errors import StoreBackendError, VersionConflictError
from timeledger.models import (
    TimeEntryEvent,
    event_from_record,
    event_payload,
    event_type_tag,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadedStream:
    events: list[TimeEntryEvent] = field(default_factory=list)
    version: int = 0


class EventStore(ABC):
    """Contract every event store backend satisfies."""

    @abstractmethod
    async def load(self, stream_id: str) -> LoadedStream:
        """Return the whole stream. Unknown streams load empty at version 0.

        Raises StoreBackendError if the backend is unavailable.
        """
        ...

    @abstractmethod
    async def append(
        self,
        stream_id: str,
        expected_version: int,
        new_events: Sequence[TimeEntryEvent],
    ) -> int:
        """Atomically append events at expected_version+1 onwards.

        Returns the stream version after the append. Raises
        VersionConflictError if the stream moved past expected_version, or
        StoreBackendError on infrastructure failure. Either way nothing lands.
        """
        ...


class InMemoryEventStore(EventStore):
    """Event store for tests and local development.

    Each stream has its own lock around the compare-and-append, so writers
    to different streams never wait on each other.
    """

    def __init__(self) -> None:
        self._streams: dict[str, list[TimeEntryEvent]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def load(self, stream_id: str) -> LoadedStream:
        events = list(self._streams.get(stream_id, ()))
        return LoadedStream(events=events, version=len(events))

    async def append(
        self,
        stream_id: str,
        expected_version: int,
        new_events: Sequence[TimeEntryEvent],
    ) -> int:
        async with self._locks[stream_id]:
            current = self._streams.get(stream_id, [])
            actual = len(current)
            if actual != expected_version:
                raise VersionConflictError(stream_id, expected_version, actual)
            # Swap in a new list so readers never see a half-extended stream.
            self._streams[stream_id] = [*current, *new_events]
            return actual + len(new_events)


class SqliteEventStore(EventStore):
    """Event store backed by the events table.

    The (stream_id, stream_version) primary key is the durable guard: a
    concurrent writer from another connection that slips past the version
    check still collides on the key and is reported as a conflict.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(self, stream_id: str) -> LoadedStream:
        try:
            rows = await self._db.fetchall(
                "SELECT stream_version, event_type, payload FROM events "
                "WHERE stream_id = ? ORDER BY stream_version",
                (stream_id,),
            )
        except sqlite3.Error as exc:
            raise StoreBackendError(str(exc)) from exc

        events = [
            event_from_record(row["event_type"], json.loads(row["payload"]))
            for row in rows
        ]
        version = rows[-1]["stream_version"] if rows else 0
        return LoadedStream(events=events, version=version)

    async def append(
        self,
        stream_id: str,
        expected_version: int,
        new_events: Sequence[TimeEntryEvent],
    ) -> int:
        recorded_at = datetime.now(UTC).isoformat()
        params = [
            (
                stream_id,
                expected_version + index + 1,
                event_type_tag(event),
                json.dumps(event_payload(event)),
                recorded_at,
            )
            for index, event in enumerate(new_events)
        ]

        try:
            async with self._db.transaction() as conn:
                actual = await self._current_version(conn, stream_id)
                if actual != expected_version:
                    raise VersionConflictError(stream_id, expected_version, actual)
                await conn.executemany(
                    """
                    INSERT INTO events
                        (stream_id, stream_version, event_type, payload, recorded_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    params,
                )
        except sqlite3.IntegrityError:
            actual = await self._version_after_collision(stream_id)
            raise VersionConflictError(stream_id, expected_version, actual) from None
        except sqlite3.Error as exc:
            logger.warning("Append to %s failed: %s", stream_id, exc)
            raise StoreBackendError(str(exc)) from exc

        return expected_version + len(new_events)

    @staticmethod
    async def _current_version(conn, stream_id: str) -> int:
        cursor = await conn.execute(
            "SELECT COALESCE(MAX(stream_version), 0) FROM events WHERE stream_id = ?",
            (stream_id,),
        )
        row = await cursor.fetchone()
        return row[0]

    async def _version_after_collision(self, stream_id: str) -> int:
        try:
            row = await self._db.fetchone(
                "SELECT COALESCE(MAX(stream_version), 0) AS version FROM events "
                "WHERE stream_id = ?",
                (stream_id,),
            )
        except sqlite3.Error as exc:
            raise StoreBackendError(str(exc)) from exc
        return row["version"]
