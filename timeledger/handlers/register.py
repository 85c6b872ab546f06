"""Registration command handler: orchestrates the write flow.

Loading -> Deciding -> Appending -> Publishing -> Done. Any step's failure
ends the invocation with that step's error, unchanged; retrying is the
caller's call. If Publishing fails after Appending succeeded, the events are
committed without outbox rows, and re-driving the outbox for those versions
later yields OutboxDuplicateError for anything already recorded.
"""

import logging
from collections.abc import Sequence

from timeledger.core.decide import decide
from timeledger.core.evolve import fold
from timeledger.errors import DomainRejectedError, VersionConflictError
from timeledger.events.outbox import DomainOutbox
from timeledger.events.store import EventStore
from timeledger.models import OutboxRow, RegisterTimeEntry, TimeEntryRegisteredV1

logger = logging.getLogger(__name__)


def build_outbox_rows(
    topic: str,
    stream_id: str,
    starting_version: int,
    events: Sequence[TimeEntryRegisteredV1],
) -> list[OutboxRow]:
    """One row per event, at the version that event occupies after the append.

    starting_version is the stream version before the append, so the i-th
    event sits at starting_version + i + 1.
    """
    rows: list[OutboxRow] = []
    for index, event in enumerate(events):
        rows.append(
            OutboxRow(
                topic=topic,
                event_type=event.event_type,
                event_version=event.event_version,
                stream_id=stream_id,
                stream_version=starting_version + index + 1,
                occurred_at=event.created_at,
                payload=event.model_dump(),
            )
        )
    return rows


class RegisterTimeEntryHandler:
    """Runs RegisterTimeEntry commands against an event store and an outbox."""

    def __init__(self, topic: str, event_store: EventStore, outbox: DomainOutbox) -> None:
        self._topic = topic
        self._event_store = event_store
        self._outbox = outbox

    async def handle(self, stream_id: str, command: RegisterTimeEntry) -> None:
        """Register the time entry on stream_id.

        Raises DomainRejectedError, any EventStoreError (VersionConflictError,
        StoreBackendError) or any OutboxError, as raised by the step that failed.
        """
        stream = await self._event_store.load(stream_id)
        state = fold(stream.events)

        try:
            new_events = decide(state, command)
        except DomainRejectedError as e:
            logger.info("Rejected %s on %s: %s", type(command).__name__, stream_id, e.reason)
            raise

        try:
            await self._event_store.append(stream_id, stream.version, new_events)
        except VersionConflictError as e:
            logger.warning("Lost append race on %s: %s", stream_id, e)
            raise

        for row in build_outbox_rows(self._topic, stream_id, stream.version, new_events):
            await self._outbox.enqueue(row)

        logger.info(
            "Registered time entry %s on %s at v%d",
            command.time_entry_id,
            stream_id,
            stream.version + len(new_events),
        )
