"""Read model and watermarks backed by SQLite."""

import json
import sqlite3
from datetime import UTC, datetime

from timeledger.db.connection import Database
from timeledger.errors import RepositoryError, WatermarkError
from timeledger.models import TimeEntryRow, TimeEntryView
from timeledger.projections.repository import (
    TimeEntryProjectionRepository,
    TimeEntryQueries,
    WatermarkRepository,
    check_page,
)
from timeledger.utils.json import parse_json_list


class SqliteProjections(TimeEntryProjectionRepository, WatermarkRepository, TimeEntryQueries):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def upsert(self, row: TimeEntryRow, version: int) -> None:
        # The WHERE on the conflict branch drops redeliveries older than the stored row.
        try:
            await self._db.execute(
                """
                INSERT INTO time_entries
                    (user_id, time_entry_id, start_time, end_time, tags, description,
                     created_at, created_by, updated_at, updated_by, deleted_at,
                     last_event_id, last_event_version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, time_entry_id) DO UPDATE SET
                    start_time = excluded.start_time,
                    end_time = excluded.end_time,
                    tags = excluded.tags,
                    description = excluded.description,
                    created_at = excluded.created_at,
                    created_by = excluded.created_by,
                    updated_at = excluded.updated_at,
                    updated_by = excluded.updated_by,
                    deleted_at = excluded.deleted_at,
                    last_event_id = excluded.last_event_id,
                    last_event_version = excluded.last_event_version
                WHERE excluded.last_event_version >= time_entries.last_event_version
                """,
                (
                    row.user_id,
                    row.time_entry_id,
                    row.start_time,
                    row.end_time,
                    json.dumps(row.tags),
                    row.description,
                    row.created_at,
                    row.created_by,
                    row.updated_at,
                    row.updated_by,
                    row.deleted_at,
                    row.last_event_id,
                    version,
                ),
            )
        except sqlite3.Error as exc:
            raise RepositoryError(f"Projections repository failed: {exc}") from exc

    async def get_row(self, user_id: str, time_entry_id: str) -> TimeEntryRow | None:
        try:
            row = await self._db.fetchone(
                "SELECT * FROM time_entries WHERE user_id = ? AND time_entry_id = ?",
                (user_id, time_entry_id),
            )
        except sqlite3.Error as exc:
            raise RepositoryError(f"Projections repository failed: {exc}") from exc
        if row is None:
            return None
        return self._row_to_time_entry(row)

    async def get(self, name: str) -> str | None:
        try:
            row = await self._db.fetchone(
                "SELECT last_event_id FROM projector_watermarks WHERE projector_name = ?",
                (name,),
            )
        except sqlite3.Error as exc:
            raise WatermarkError(f"Watermark repository failed: {exc}") from exc
        return row["last_event_id"] if row else None

    async def set(self, name: str, last: str) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO projector_watermarks (projector_name, last_event_id, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (projector_name) DO UPDATE SET
                    last_event_id = excluded.last_event_id,
                    updated_at = excluded.updated_at
                """,
                (name, last, datetime.now(UTC).isoformat()),
            )
        except sqlite3.Error as exc:
            raise WatermarkError(f"Watermark repository failed: {exc}") from exc

    async def list_by_user_id(
        self,
        user_id: str,
        offset: int,
        limit: int,
        sort_desc: bool = False,
    ) -> list[TimeEntryView]:
        check_page(offset, limit)
        direction = "DESC" if sort_desc else "ASC"
        try:
            rows = await self._db.fetchall(
                f"SELECT * FROM time_entries WHERE user_id = ? "
                f"ORDER BY start_time {direction}, time_entry_id {direction} "
                f"LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            )
        except sqlite3.Error as exc:
            raise RepositoryError(f"Projections repository failed: {exc}") from exc
        return [self._row_to_time_entry(r).to_view() for r in rows]

    @staticmethod
    def _row_to_time_entry(row) -> TimeEntryRow:
        return TimeEntryRow(
            time_entry_id=row["time_entry_id"],
            user_id=row["user_id"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            tags=parse_json_list(row["tags"]),
            description=row["description"],
            created_at=row["created_at"],
            created_by=row["created_by"],
            updated_at=row["updated_at"],
            updated_by=row["updated_by"],
            deleted_at=row["deleted_at"],
            last_event_id=row["last_event_id"],
        )
