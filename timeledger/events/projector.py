"""Projector: applies events to the read model and advances a watermark.

The read side of the CQRS pattern. Each event becomes zero or more
idempotent mutations; the watermark moves only after every mutation has
landed, so a crash in between costs a harmless re-apply, never a lost update.
Run one instance per projector name sequentially.
"""

import logging

from timeledger.core.projections import Upsert, apply
from timeledger.errors import ProjectorError, RepositoryError, WatermarkError
from timeledger.events.store import EventStore
from timeledger.models import TimeEntryEvent, event_ref, parse_event_ref
from timeledger.projections.repository import (
    TimeEntryProjectionRepository,
    WatermarkRepository,
)

logger = logging.getLogger(__name__)


class Projector:
    """Projects time entry events into the read model under a watermark name."""

    def __init__(
        self,
        name: str,
        repository: TimeEntryProjectionRepository,
        watermarks: WatermarkRepository,
    ) -> None:
        self.name = name
        self._repository = repository
        self._watermarks = watermarks

    async def apply_one(self, stream_id: str, version: int, event: TimeEntryEvent) -> None:
        """Apply one event at (stream_id, version).

        Raises RepositoryError or WatermarkError; on either, the watermark has
        not moved past this event.
        """
        for mutation in apply(stream_id, version, event):
            if isinstance(mutation, Upsert):
                await self._run(
                    self._repository.upsert(mutation.row, mutation.version),
                    RepositoryError,
                )

        if await self._applied_through(stream_id) >= version:
            logger.debug("Projector %s already past %s:%d", self.name, stream_id, version)
            return

        ref = event_ref(stream_id, version)
        await self._run(self._watermarks.set(self.name, ref), WatermarkError)
        logger.debug("Projector %s advanced to %s", self.name, ref)

    async def catch_up(self, event_store: EventStore, stream_id: str) -> int:
        """Apply a stream's events past this projector's watermark, in version order.

        When the watermark is unset or points into another stream, the whole
        stream is replayed. Returns the number of events applied.
        """
        stream = await event_store.load(stream_id)
        applied_through = await self._applied_through(stream_id)

        applied = 0
        for version, event in enumerate(stream.events, start=1):
            if version <= applied_through:
                continue
            await self.apply_one(stream_id, version, event)
            applied += 1
        return applied

    async def watermark(self) -> str | None:
        return await self._run(self._watermarks.get(self.name), WatermarkError)

    async def _applied_through(self, stream_id: str) -> int:
        """Watermark version on stream_id, or 0 when it points elsewhere or is unset."""
        last = await self.watermark()
        if last is None:
            return 0
        last_stream, last_version = parse_event_ref(last)
        return last_version if last_stream == stream_id else 0

    @staticmethod
    async def _run(awaitable, error_cls: type[ProjectorError]):
        # Backends raise their own ProjectorError; anything else is wrapped.
        try:
            return await awaitable
        except ProjectorError:
            raise
        except Exception as exc:
            raise error_cls(str(exc)) from exc
