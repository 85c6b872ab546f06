"""Translate an event into read-model mutations.

Mutations are keyed by the event's logical identity, never by a generated
id, so applying the same event twice lands on the same row.
"""

from dataclasses import dataclass

from timeledger.models import (
    TimeEntryEvent,
    TimeEntryRegisteredV1,
    TimeEntryRow,
    event_ref,
)


@dataclass(frozen=True)
class Upsert:
    row: TimeEntryRow
    version: int


Mutation = Upsert


def apply(stream_id: str, version: int, event: TimeEntryEvent) -> list[Mutation]:
    """Return the mutations for one event at (stream_id, version)."""
    if isinstance(event, TimeEntryRegisteredV1):
        row = TimeEntryRow(
            time_entry_id=event.time_entry_id,
            user_id=event.user_id,
            start_time=event.start_time,
            end_time=event.end_time,
            tags=list(event.tags),
            description=event.description,
            created_at=event.created_at,
            created_by=event.created_by,
            updated_at=event.created_at,
            updated_by=event.created_by,
            deleted_at=None,
            last_event_id=event_ref(stream_id, version),
        )
        return [Upsert(row=row, version=version)]
    return []
