"""Event sourcing: versioned event store, domain outbox and read-model projector."""

from timeledger.events.outbox import DomainOutbox, InMemoryDomainOutbox, SqliteDomainOutbox
from timeledger.events.projector import Projector
from timeledger.events.store import (
    EventStore,
    InMemoryEventStore,
    LoadedStream,
    SqliteEventStore,
)

__all__ = [
    "DomainOutbox",
    "EventStore",
    "InMemoryDomainOutbox",
    "InMemoryEventStore",
    "LoadedStream",
    "Projector",
    "SqliteDomainOutbox",
    "SqliteEventStore",
]
