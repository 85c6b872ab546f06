"""Read-model storage: projection rows, projector watermarks and queries."""

from timeledger.projections.repository import (
    InMemoryProjections,
    TimeEntryProjectionRepository,
    TimeEntryQueries,
    WatermarkRepository,
)
from timeledger.projections.sqlite import SqliteProjections

__all__ = [
    "InMemoryProjections",
    "SqliteProjections",
    "TimeEntryProjectionRepository",
    "TimeEntryQueries",
    "WatermarkRepository",
]
