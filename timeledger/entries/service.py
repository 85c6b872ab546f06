"""Time entry service: turns API requests into commands and queries."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from timeledger.entries.schemas import RegisterTimeEntryRequest
from timeledger.events.projector import Projector
from timeledger.events.store import EventStore
from timeledger.handlers.register import RegisterTimeEntryHandler
from timeledger.models import RegisterTimeEntry, TimeEntryView
from timeledger.projections.repository import TimeEntryQueries

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def stream_id_for(time_entry_id: str) -> str:
    return f"TimeEntry-{time_entry_id}"


class TimeEntryService:
    """Coordinates the register handler, the projector and the query port."""

    def __init__(
        self,
        handler: RegisterTimeEntryHandler,
        event_store: EventStore,
        projector: Projector,
        queries: TimeEntryQueries,
        created_by: str,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._handler = handler
        self._event_store = event_store
        self._projector = projector
        self._queries = queries
        self._created_by = created_by
        self._clock = clock
        # One catch-up at a time per projector name.
        self._projector_lock = asyncio.Lock()

    async def register(self, request: RegisterTimeEntryRequest) -> str:
        """Register a new time entry and project it. Returns its id.

        The projection step runs after the command has committed; a projector
        failure leaves the entry registered and is surfaced to the caller.
        """
        time_entry_id = str(uuid4())
        stream_id = stream_id_for(time_entry_id)
        command = RegisterTimeEntry(
            time_entry_id=time_entry_id,
            user_id=request.user_id,
            start_time=request.start_time,
            end_time=request.end_time,
            tags=request.tags,
            description=request.description,
            created_at=self._clock(),
            created_by=self._created_by,
        )

        await self._handler.handle(stream_id, command)
        async with self._projector_lock:
            applied = await self._projector.catch_up(self._event_store, stream_id)
        logger.debug("Projected %d event(s) from %s", applied, stream_id)
        return time_entry_id

    async def list_by_user_id(
        self,
        user_id: str,
        offset: int = 0,
        limit: int = 20,
        sort_desc: bool = True,
    ) -> list[TimeEntryView]:
        return await self._queries.list_by_user_id(user_id, offset, limit, sort_desc)
