"""Domain outbox: deduplicated, durable intent to publish.

At most one row exists per (stream_id, stream_version). A command handler
that is re-driven after a crash between append and enqueue re-derives the
same keys and gets OutboxDuplicateError, which means "already recorded".
Moving rows to a bus is the relay's job; pending() and mark_delivered() are
the surface it uses.
"""

import asyncio
import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from timeledger.db.connection import Database
from timeledger.errors import (
    OutboxBackendError,
    OutboxDuplicateError,
    OutboxTransientError,
    OutboxValidationError,
)
from timeledger.models import OutboxRow


def validate_row(row: OutboxRow) -> None:
    """Raise OutboxValidationError for rows no relay could route."""
    if not row.topic:
        raise OutboxValidationError("topic must not be empty")
    if not row.event_type:
        raise OutboxValidationError("event_type must not be empty")
    if not row.stream_id:
        raise OutboxValidationError("stream_id must not be empty")
    if row.stream_version < 1:
        raise OutboxValidationError(
            f"stream_version must be >= 1, got {row.stream_version}"
        )
    if row.event_version < 1:
        raise OutboxValidationError(
            f"event_version must be >= 1, got {row.event_version}"
        )


class DomainOutbox(ABC):
    @abstractmethod
    async def enqueue(self, row: OutboxRow) -> None:
        """Record a row. Raises OutboxDuplicateError if its key already exists."""
        ...

    @abstractmethod
    async def pending(self, limit: int = 100) -> list[OutboxRow]:
        """Undelivered rows, oldest first."""
        ...

    @abstractmethod
    async def mark_delivered(self, stream_id: str, stream_version: int) -> None:
        """Flag a row as published. Unknown keys are ignored."""
        ...


class InMemoryDomainOutbox(DomainOutbox):
    """Outbox for tests. The key set stands in for a unique constraint."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, int], OutboxRow] = {}
        self._delivered: set[tuple[str, int]] = set()
        self._lock = asyncio.Lock()

    @property
    def rows(self) -> list[OutboxRow]:
        return list(self._rows.values())

    async def enqueue(self, row: OutboxRow) -> None:
        validate_row(row)
        key = (row.stream_id, row.stream_version)
        async with self._lock:
            if key in self._rows:
                raise OutboxDuplicateError(row.stream_id, row.stream_version)
            self._rows[key] = row

    async def pending(self, limit: int = 100) -> list[OutboxRow]:
        pending = [row for key, row in self._rows.items() if key not in self._delivered]
        return pending[:limit]

    async def mark_delivered(self, stream_id: str, stream_version: int) -> None:
        key = (stream_id, stream_version)
        if key in self._rows:
            self._delivered.add(key)


class SqliteDomainOutbox(DomainOutbox):
    """Outbox backed by the outbox table and its UNIQUE(stream_id, stream_version)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def enqueue(self, row: OutboxRow) -> None:
        validate_row(row)
        try:
            await self._db.execute(
                """
                INSERT INTO outbox
                    (topic, event_type, event_version, stream_id, stream_version,
                     occurred_at, payload)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    row.topic,
                    row.event_type,
                    row.event_version,
                    row.stream_id,
                    row.stream_version,
                    row.occurred_at,
                    json.dumps(row.payload),
                ),
            )
        except sqlite3.IntegrityError:
            raise OutboxDuplicateError(row.stream_id, row.stream_version) from None
        except sqlite3.OperationalError as exc:
            if _is_busy(exc):
                raise OutboxTransientError(str(exc)) from exc
            raise OutboxBackendError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise OutboxBackendError(str(exc)) from exc

    async def pending(self, limit: int = 100) -> list[OutboxRow]:
        try:
            rows = await self._db.fetchall(
                "SELECT * FROM outbox WHERE delivered_at IS NULL "
                "ORDER BY outbox_id LIMIT ?",
                (limit,),
            )
        except sqlite3.Error as exc:
            raise OutboxBackendError(str(exc)) from exc
        return [self._row_to_outbox_row(r) for r in rows]

    async def mark_delivered(self, stream_id: str, stream_version: int) -> None:
        try:
            await self._db.execute(
                "UPDATE outbox SET delivered_at = ? "
                "WHERE stream_id = ? AND stream_version = ? AND delivered_at IS NULL",
                (datetime.now(UTC).isoformat(), stream_id, stream_version),
            )
        except sqlite3.Error as exc:
            raise OutboxBackendError(str(exc)) from exc

    @staticmethod
    def _row_to_outbox_row(row) -> OutboxRow:
        return OutboxRow(
            topic=row["topic"],
            event_type=row["event_type"],
            event_version=row["event_version"],
            stream_id=row["stream_id"],
            stream_version=row["stream_version"],
            occurred_at=row["occurred_at"],
            payload=json.loads(row["payload"]),
        )


def _is_busy(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message
