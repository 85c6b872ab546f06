"""timeledger FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from timeledger.config import Settings, load_settings
from timeledger.db.connection import Database
from timeledger.entries.router import get_time_entry_service
from timeledger.entries.router import router as time_entries_router
from timeledger.entries.service import TimeEntryService
from timeledger.events.outbox import InMemoryDomainOutbox, SqliteDomainOutbox
from timeledger.events.projector import Projector
from timeledger.events.store import InMemoryEventStore, SqliteEventStore
from timeledger.handlers.register import RegisterTimeEntryHandler
from timeledger.projections.repository import InMemoryProjections
from timeledger.projections.sqlite import SqliteProjections

logger = logging.getLogger(__name__)


async def build_service(settings: Settings) -> tuple[TimeEntryService, Database | None]:
    """Wire store, outbox, projector and queries for the configured backend."""
    if settings.backend == "memory":
        db = None
        event_store = InMemoryEventStore()
        outbox = InMemoryDomainOutbox()
        projections = InMemoryProjections()
    else:
        db = await Database.connect(settings.db_path)
        event_store = SqliteEventStore(db)
        outbox = SqliteDomainOutbox(db)
        projections = SqliteProjections(db)

    handler = RegisterTimeEntryHandler(settings.topic, event_store, outbox)
    projector = Projector(settings.projector_name, projections, projections)
    service = TimeEntryService(
        handler,
        event_store,
        projector,
        projections,
        created_by=settings.created_by,
    )
    return service, db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    load_dotenv(Path.cwd() / ".env")
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service, db = await build_service(settings)
    app.dependency_overrides[get_time_entry_service] = lambda: service
    logger.info("timeledger started with %s backend", settings.backend)

    yield

    app.dependency_overrides.clear()
    if db is not None:
        await db.close()


app = FastAPI(
    title="timeledger",
    description="Event-sourced time entry ledger with an outbox and a projected read model",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(time_entries_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": "0.1.0"}
