"""Command handlers: load, decide, append, publish."""

from timeledger.handlers.register import RegisterTimeEntryHandler, build_outbox_rows

__all__ = ["RegisterTimeEntryHandler", "build_outbox_rows"]
