"""Shared test helpers: command, event and row builders."""

from typing import Any

from timeledger.models import (
    OutboxRow,
    RegisterTimeEntry,
    TimeEntryRegisteredV1,
)

TOPIC = "time-entries"
STREAM_ID = "time-entries-0001"

_REGISTER_DEFAULTS: dict[str, Any] = {
    "time_entry_id": "te-fixed-0001",
    "user_id": "user-fixed-0001",
    "start_time": 1_700_000_000_000,
    "end_time": 1_700_000_360_000,
    "tags": ["Work"],
    "description": "This is a test",
    "created_at": 1_700_000_000_000,
    "created_by": "user-fixed-0001",
}


def make_register_command(**overrides: Any) -> RegisterTimeEntry:
    """Create a RegisterTimeEntry command for testing."""
    return RegisterTimeEntry(**{**_REGISTER_DEFAULTS, **overrides})


def make_registered_event(**overrides: Any) -> TimeEntryRegisteredV1:
    """Create a TimeEntryRegisteredV1 event for testing."""
    return TimeEntryRegisteredV1(**{**_REGISTER_DEFAULTS, **overrides})


def make_outbox_row(
    stream_id: str = STREAM_ID,
    stream_version: int = 1,
    **overrides: Any,
) -> OutboxRow:
    """Create an OutboxRow carrying a registration payload."""
    event = make_registered_event()
    fields: dict[str, Any] = {
        "topic": TOPIC,
        "event_type": "TimeEntryRegistered",
        "event_version": 1,
        "stream_id": stream_id,
        "stream_version": stream_version,
        "occurred_at": event.created_at,
        "payload": event.model_dump(),
    }
    fields.update(overrides)
    return OutboxRow(**fields)
