"""Read-model ports and their in-memory implementation.

TimeEntryProjectionRepository stores rows, WatermarkRepository tracks the
last event each projector applied, TimeEntryQueries reads rows back. One
backend object usually implements all three.
"""

import asyncio
from abc import ABC, abstractmethod

from timeledger.models import TimeEntryRow, TimeEntryView


class TimeEntryProjectionRepository(ABC):
    @abstractmethod
    async def upsert(self, row: TimeEntryRow, version: int) -> None:
        """Insert or replace the row keyed by (user_id, time_entry_id).

        version is the stream version the row was derived from. A row already
        stored from a later version is left untouched. Raises RepositoryError.
        """
        ...


class WatermarkRepository(ABC):
    @abstractmethod
    async def get(self, name: str) -> str | None:
        """Last event ref applied by projector `name`. Raises WatermarkError."""
        ...

    @abstractmethod
    async def set(self, name: str, last: str) -> None:
        """Record `last` as projector `name`'s watermark. Raises WatermarkError."""
        ...


class TimeEntryQueries(ABC):
    @abstractmethod
    async def list_by_user_id(
        self,
        user_id: str,
        offset: int,
        limit: int,
        sort_desc: bool = False,
    ) -> list[TimeEntryView]:
        """Entries owned by user_id, ordered by start_time, one page of them."""
        ...


def check_page(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


class InMemoryProjections(TimeEntryProjectionRepository, WatermarkRepository, TimeEntryQueries):
    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], tuple[TimeEntryRow, int]] = {}
        self._watermarks: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get_row(self, user_id: str, time_entry_id: str) -> TimeEntryRow | None:
        stored = self._rows.get((user_id, time_entry_id))
        return stored[0] if stored else None

    def row_count(self) -> int:
        return len(self._rows)

    async def upsert(self, row: TimeEntryRow, version: int) -> None:
        key = (row.user_id, row.time_entry_id)
        async with self._lock:
            stored = self._rows.get(key)
            if stored is not None and stored[1] > version:
                return
            self._rows[key] = (row, version)

    async def get(self, name: str) -> str | None:
        return self._watermarks.get(name)

    async def set(self, name: str, last: str) -> None:
        self._watermarks[name] = last

    async def list_by_user_id(
        self,
        user_id: str,
        offset: int,
        limit: int,
        sort_desc: bool = False,
    ) -> list[TimeEntryView]:
        check_page(offset, limit)
        items = [row for (uid, _), (row, _) in self._rows.items() if uid == user_id]
        items.sort(key=lambda r: (r.start_time, r.time_entry_id), reverse=sort_desc)
        return [row.to_view() for row in items[offset:offset + limit]]
