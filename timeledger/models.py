"""Canonical data structures and event types for timeledger.

Defined once here, referenced everywhere else. Events are immutable facts
stored per stream; the state variants are what folding those facts yields.
All timestamps are integer epoch milliseconds.
"""

from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

# Epoch milliseconds, bounded to what SQLite INTEGER columns can hold.
EpochMillis = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]

# ---------------------------------------------------------------------------
# Events, one class per versioned event type
# ---------------------------------------------------------------------------


class DomainEvent(BaseModel):
    """Base for all persisted events. Subclasses set the class-level tags."""

    model_config = ConfigDict(frozen=True)

    event_type: ClassVar[str]
    event_version: ClassVar[int]

    @classmethod
    def type_tag(cls) -> str:
        """Versioned tag stored next to the payload, e.g. TimeEntryRegisteredV1."""
        return f"{cls.event_type}V{cls.event_version}"


class TimeEntryRegisteredV1(DomainEvent):
    event_type: ClassVar[str] = "TimeEntryRegistered"
    event_version: ClassVar[int] = 1

    time_entry_id: str
    user_id: str
    start_time: EpochMillis
    end_time: EpochMillis
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    created_at: EpochMillis
    created_by: str


class UnrecognizedEvent(BaseModel):
    """An event whose tag this code does not know. Folds and projects as a no-op."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    payload: dict[str, Any]


TimeEntryEvent = TimeEntryRegisteredV1 | UnrecognizedEvent

EVENT_TYPES: dict[str, type[DomainEvent]] = {
    TimeEntryRegisteredV1.type_tag(): TimeEntryRegisteredV1,
}


def event_type_tag(event: DomainEvent | UnrecognizedEvent) -> str:
    if isinstance(event, UnrecognizedEvent):
        return event.event_type
    return event.type_tag()


def event_payload(event: DomainEvent | UnrecognizedEvent) -> dict[str, Any]:
    if isinstance(event, UnrecognizedEvent):
        return event.payload
    return event.model_dump()


def event_from_record(event_type: str, payload: dict[str, Any]) -> TimeEntryEvent:
    """Deserialize a stored (tag, payload) pair into the matching event class."""
    event_cls = EVENT_TYPES.get(event_type)
    if event_cls is None:
        return UnrecognizedEvent(event_type=event_type, payload=payload)
    return event_cls.model_validate(payload)


# ---------------------------------------------------------------------------
# Aggregate state
# ---------------------------------------------------------------------------


class Unregistered(BaseModel):
    model_config = ConfigDict(frozen=True)


class Registered(BaseModel):
    model_config = ConfigDict(frozen=True)

    time_entry_id: str
    user_id: str
    start_time: int
    end_time: int
    tags: list[str]
    description: str
    created_at: int
    created_by: str
    updated_at: int
    updated_by: str
    deleted_at: int | None = None
    last_event_id: str | None = None


TimeEntryState = Unregistered | Registered

UNREGISTERED = Unregistered()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class RegisterTimeEntry(BaseModel):
    """Intent to register a time entry. created_at is stamped by the caller."""

    model_config = ConfigDict(frozen=True)

    time_entry_id: str
    user_id: str
    start_time: EpochMillis
    end_time: EpochMillis
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    created_at: EpochMillis
    created_by: str


# ---------------------------------------------------------------------------
# Outbox
# ---------------------------------------------------------------------------


class OutboxRow(BaseModel):
    topic: str
    event_type: str
    event_version: int
    stream_id: str
    stream_version: int
    occurred_at: int
    payload: dict[str, Any]


# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------


class TimeEntryView(BaseModel):
    """A time entry as returned by queries."""

    time_entry_id: str
    user_id: str
    start_time: int
    end_time: int
    tags: list[str]
    description: str
    created_at: int
    created_by: str
    updated_at: int
    updated_by: str
    deleted_at: int | None = None


class TimeEntryRow(TimeEntryView):
    """Stored read-model row. last_event_id is bookkeeping, never business data."""

    last_event_id: str | None = None

    def to_view(self) -> TimeEntryView:
        return TimeEntryView.model_validate(self.model_dump(exclude={"last_event_id"}))


def event_ref(stream_id: str, version: int) -> str:
    """Stable event reference, "{stream_id}:{version}"."""
    return f"{stream_id}:{version}"


def parse_event_ref(ref: str) -> tuple[str, int]:
    """Split an event reference back into (stream_id, version).

    Stream ids may themselves contain colons; the version is after the last one.
    """
    stream_id, sep, version = ref.rpartition(":")
    if not sep or not stream_id:
        raise ValueError(f"Malformed event reference: {ref!r}")
    return stream_id, int(version)
