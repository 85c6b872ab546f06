"""Evolve: fold one event into the aggregate state.

Total. Any (state, event) pair without a transition returns the state
unchanged, which makes folding a whole stream safe even when it holds event
types this code does not know yet, and makes a replayed registration a no-op.
"""

from collections.abc import Iterable
from functools import reduce

from timeledger.models import (
    UNREGISTERED,
    Registered,
    TimeEntryEvent,
    TimeEntryRegisteredV1,
    TimeEntryState,
    Unregistered,
)


def evolve(state: TimeEntryState, event: TimeEntryEvent) -> TimeEntryState:
    if isinstance(state, Unregistered) and isinstance(event, TimeEntryRegisteredV1):
        return Registered(
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
            last_event_id=None,
        )
    return state


def fold(
    events: Iterable[TimeEntryEvent], state: TimeEntryState = UNREGISTERED
) -> TimeEntryState:
    """Left-fold events (in version order) starting from state."""
    return reduce(evolve, events, state)
