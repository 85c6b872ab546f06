"""HTTP tests for the time entry routes."""

import pytest
from httpx import ASGITransport, AsyncClient

from timeledger.entries.router import get_time_entry_service
from timeledger.entries.service import TimeEntryService
from timeledger.events.outbox import InMemoryDomainOutbox
from timeledger.events.projector import Projector
from timeledger.events.store import InMemoryEventStore
from timeledger.handlers.register import RegisterTimeEntryHandler
from timeledger.main import app
from timeledger.projections.repository import InMemoryProjections
from tests.faults import FaultyEventStore, FaultyProjections
from tests.fixtures import TOPIC


def _body(**overrides):
    body = {
        "user_id": "user-123",
        "start_time": 1_700_000_000_000,
        "end_time": 1_700_000_360_000,
        "tags": ["Work"],
        "description": "This is a test",
    }
    body.update(overrides)
    return body


@pytest.fixture
async def faulty_parts():
    store = FaultyEventStore(InMemoryEventStore())
    projections = FaultyProjections(InMemoryProjections())
    return store, projections


@pytest.fixture
async def faulty_client(faulty_parts):
    store, projections = faulty_parts
    service = TimeEntryService(
        RegisterTimeEntryHandler(TOPIC, store, InMemoryDomainOutbox()),
        store,
        Projector("time_entry_summary", projections, projections),
        projections,
        created_by="user-from-auth",
    )
    app.dependency_overrides[get_time_entry_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


class TestRegister:
    async def test_register_returns_201_with_id(self, client):
        resp = await client.post("/api/time-entries", json=_body())

        assert resp.status_code == 201
        assert resp.json()["time_entry_id"]

    async def test_registered_entry_is_listed(self, client):
        resp = await client.post("/api/time-entries", json=_body())
        time_entry_id = resp.json()["time_entry_id"]

        listed = await client.get("/api/time-entries", params={"user_id": "user-123"})

        assert listed.status_code == 200
        entries = listed.json()
        assert len(entries) == 1
        entry = entries[0]
        assert entry["time_entry_id"] == time_entry_id
        assert entry["tags"] == ["Work"]
        assert entry["created_at"] == 1_700_000_000_000
        assert entry["created_by"] == "user-from-auth"
        assert entry["updated_by"] == "user-from-auth"
        assert entry["deleted_at"] is None
        assert "last_event_id" not in entry

    async def test_ids_are_unique(self, client):
        first = await client.post("/api/time-entries", json=_body())
        second = await client.post("/api/time-entries", json=_body())
        assert first.json()["time_entry_id"] != second.json()["time_entry_id"]

    async def test_invalid_interval_is_409(self, client):
        resp = await client.post(
            "/api/time-entries", json=_body(start_time=2000, end_time=1000)
        )

        assert resp.status_code == 409
        assert resp.json()["detail"] == "end time must be after start time"

    async def test_malformed_json_is_422(self, client):
        resp = await client.post(
            "/api/time-entries",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert resp.status_code == 422

    async def test_missing_fields_are_422(self, client):
        resp = await client.post("/api/time-entries", json={"user_id": "user-123"})
        assert resp.status_code == 422

    async def test_empty_user_id_is_422(self, client):
        resp = await client.post("/api/time-entries", json=_body(user_id=""))
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "start_time, end_time",
        [(2**63, 2**63 + 1), (-(2**63) - 1, 0)],
    )
    async def test_times_outside_64_bits_are_422(self, client, db, start_time, end_time):
        """Out-of-range times are refused before anything is committed."""
        resp = await client.post(
            "/api/time-entries", json=_body(start_time=start_time, end_time=end_time)
        )

        assert resp.status_code == 422
        row = await db.fetchone("SELECT COUNT(*) AS n FROM events")
        assert row["n"] == 0

    async def test_64_bit_limits_are_accepted(self, client):
        resp = await client.post(
            "/api/time-entries", json=_body(start_time=-(2**63), end_time=2**63 - 1)
        )

        assert resp.status_code == 201
        listed = await client.get("/api/time-entries", params={"user_id": "user-123"})
        assert listed.json()[0]["end_time"] == 2**63 - 1

    async def test_store_failure_is_500(self, faulty_client, faulty_parts):
        store, _ = faulty_parts
        store.offline = True

        resp = await faulty_client.post("/api/time-entries", json=_body())

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Internal error"

    async def test_projector_failure_is_500(self, faulty_client, faulty_parts):
        _, projections = faulty_parts
        projections.repository_offline = True

        resp = await faulty_client.post("/api/time-entries", json=_body())

        assert resp.status_code == 500


class TestList:
    async def test_unknown_user_is_empty(self, client):
        resp = await client.get("/api/time-entries", params={"user_id": "nobody"})
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_default_order_is_newest_first(self, client):
        for start in (1000, 3000, 2000):
            await client.post(
                "/api/time-entries", json=_body(start_time=start, end_time=start + 500)
            )

        resp = await client.get("/api/time-entries", params={"user_id": "user-123"})

        assert [e["start_time"] for e in resp.json()] == [3000, 2000, 1000]

    async def test_ascending_with_paging(self, client):
        for start in (1000, 3000, 2000):
            await client.post(
                "/api/time-entries", json=_body(start_time=start, end_time=start + 500)
            )

        resp = await client.get(
            "/api/time-entries",
            params={"user_id": "user-123", "sort_desc": "false", "offset": 1, "limit": 1},
        )

        assert [e["start_time"] for e in resp.json()] == [2000]

    async def test_negative_offset_is_422(self, client):
        resp = await client.get(
            "/api/time-entries", params={"user_id": "user-123", "offset": -1}
        )
        assert resp.status_code == 422

    async def test_missing_user_id_is_422(self, client):
        resp = await client.get("/api/time-entries")
        assert resp.status_code == 422

    async def test_query_failure_is_500(self, faulty_client, faulty_parts):
        _, projections = faulty_parts
        projections.repository_offline = True

        resp = await faulty_client.get("/api/time-entries", params={"user_id": "u"})

        assert resp.status_code == 500


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
