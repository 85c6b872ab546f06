"""Decider: validates a command against current state and produces events.

Pure. The only failure mode is a domain rejection, raised as
DomainRejectedError. Clock values come from the command, never from here.
"""

from timeledger.errors import DomainRejectedError, RejectionReason
from timeledger.models import (
    Registered,
    RegisterTimeEntry,
    TimeEntryRegisteredV1,
    TimeEntryState,
)


def decide_register(
    state: TimeEntryState, command: RegisterTimeEntry
) -> list[TimeEntryRegisteredV1]:
    """Register a time entry. Legal only from Unregistered."""
    if isinstance(state, Registered):
        raise DomainRejectedError(RejectionReason.ALREADY_EXISTS)
    if command.end_time <= command.start_time:
        raise DomainRejectedError(RejectionReason.INVALID_INTERVAL)

    return [
        TimeEntryRegisteredV1(
            time_entry_id=command.time_entry_id,
            user_id=command.user_id,
            start_time=command.start_time,
            end_time=command.end_time,
            tags=list(command.tags),
            description=command.description,
            created_at=command.created_at,
            created_by=command.created_by,
        )
    ]


_DECIDERS = {
    RegisterTimeEntry: decide_register,
}


def decide(state: TimeEntryState, command: RegisterTimeEntry) -> list[TimeEntryRegisteredV1]:
    """Dispatch a command to its decider."""
    decider = _DECIDERS.get(type(command))
    if decider is None:
        raise TypeError(f"No decider for command {type(command).__name__}")
    return decider(state, command)
