"""Error taxonomy shared by the event store, outbox, handlers and projector.

Every error carries a ``retryable`` flag so callers can pick a retry policy
per kind without string matching.
"""

from enum import StrEnum


class TimeLedgerError(Exception):
    retryable: bool = False


# -- Domain -------------------------------------------------------------------


class RejectionReason(StrEnum):
    ALREADY_EXISTS = "time entry already exists"
    INVALID_INTERVAL = "end time must be after start time"


class DomainRejectedError(TimeLedgerError):
    def __init__(self, reason: RejectionReason) -> None:
        self.reason = reason
        super().__init__(f"domain rejected: {reason}")


# -- Event store ----------------------------------------------------------------


class EventStoreError(TimeLedgerError):
    pass


class VersionConflictError(EventStoreError):
    retryable = True

    def __init__(self, stream_id: str, expected: int, actual: int) -> None:
        self.stream_id = stream_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"version mismatch on {stream_id}: expected {expected}, actual {actual}"
        )


class StoreBackendError(EventStoreError):
    retryable = True

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"backend error: {reason}")


# -- Outbox ---------------------------------------------------------------------


class OutboxError(TimeLedgerError):
    pass


class OutboxDuplicateError(OutboxError):
    def __init__(self, stream_id: str, stream_version: int) -> None:
        self.stream_id = stream_id
        self.stream_version = stream_version
        super().__init__(
            f"duplicate outbox row for stream {stream_id} v{stream_version}"
        )


class OutboxValidationError(OutboxError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"validation failed: {reason}")


class OutboxTransientError(OutboxError):
    retryable = True

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"transient backend error: {reason}")


class OutboxBackendError(OutboxError):
    retryable = True

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"backend error: {reason}")


# -- Projector ------------------------------------------------------------------


class ProjectorError(TimeLedgerError):
    retryable = True

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RepositoryError(ProjectorError):
    pass


class WatermarkError(ProjectorError):
    pass
