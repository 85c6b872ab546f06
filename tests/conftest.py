"""Shared pytest fixtures for timeledger tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from timeledger.db.connection import Database
from timeledger.entries.router import get_time_entry_service
from timeledger.entries.service import TimeEntryService
from timeledger.events.outbox import InMemoryDomainOutbox, SqliteDomainOutbox
from timeledger.events.projector import Projector
from timeledger.events.store import InMemoryEventStore, SqliteEventStore
from timeledger.handlers.register import RegisterTimeEntryHandler
from timeledger.main import app
from timeledger.projections.repository import InMemoryProjections
from timeledger.projections.sqlite import SqliteProjections
from tests.fixtures import TOPIC


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture(params=["memory", "sqlite"])
async def event_store(request, db):
    """Every event store backend, so contract tests run against both."""
    if request.param == "memory":
        return InMemoryEventStore()
    return SqliteEventStore(db)


@pytest.fixture(params=["memory", "sqlite"])
async def outbox(request, db):
    if request.param == "memory":
        return InMemoryDomainOutbox()
    return SqliteDomainOutbox(db)


@pytest.fixture(params=["memory", "sqlite"])
async def projections(request, db):
    if request.param == "memory":
        return InMemoryProjections()
    return SqliteProjections(db)


@pytest.fixture
async def projector(projections):
    return Projector("time_entry_summary", projections, projections)


@pytest.fixture
async def handler(event_store, outbox):
    return RegisterTimeEntryHandler(TOPIC, event_store, outbox)


@pytest.fixture
async def service(db):
    """TimeEntryService over the SQLite backends with a fixed clock."""
    store = SqliteEventStore(db)
    projections = SqliteProjections(db)
    return TimeEntryService(
        RegisterTimeEntryHandler(TOPIC, store, SqliteDomainOutbox(db)),
        store,
        Projector("time_entry_summary", projections, projections),
        projections,
        created_by="user-from-auth",
        clock=lambda: 1_700_000_000_000,
    )


@pytest.fixture
async def client(service):
    """Async test client with the service wired into the app."""
    app.dependency_overrides[get_time_entry_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
