"""
Tests for the booking HTTP endpoints.
"""

import pytest
from httpx import AsyncClient

from booking_core.services.interfaces.dedup_cache import booking_key


@pytest.mark.asyncio
async def test_reserve(client: AsyncClient, make_event):
    """Successful reservation returns 201 with the booking record."""
    event_id = await make_event(total_seats=5)

    response = await client.post(
        "/api/bookings/reserve",
        json={"event_id": event_id, "user_id": "alice"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Booking created successfully"
    assert body["data"]["event_id"] == event_id
    assert body["data"]["user_id"] == "alice"
    assert body["data"]["booking_id"] > 0
    assert "created_at" in body["data"]


@pytest.mark.asyncio
async def test_reserve_duplicate(client: AsyncClient, make_event):
    """Same user booking same event twice returns 409."""
    event_id = await make_event()
    payload = {"event_id": event_id, "user_id": "alice"}

    first = await client.post("/api/bookings/reserve", json=payload)
    second = await client.post("/api/bookings/reserve", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {
        "success": False,
        "error": "User has already booked this event",
        "kind": "duplicate_booking",
    }


@pytest.mark.asyncio
async def test_reserve_full_event(client: AsyncClient, make_event):
    event_id = await make_event(total_seats=1)
    await client.post("/api/bookings/reserve", json={"event_id": event_id, "user_id": "alice"})

    response = await client.post("/api/bookings/reserve", json={"event_id": event_id, "user_id": "bob"})

    assert response.status_code == 409
    assert response.json()["kind"] == "capacity_exceeded"


@pytest.mark.asyncio
async def test_reserve_nonexistent_event(client: AsyncClient):
    response = await client.post("/api/bookings/reserve", json={"event_id": 999, "user_id": "dave"})

    assert response.status_code == 404
    assert response.json()["error"] == "Event not found"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"event_id": 0, "user_id": "alice"},
        {"event_id": "1", "user_id": "alice"},
        {"event_id": 1, "user_id": ""},
        {"event_id": 1, "user_id": "   "},
        {"event_id": 1},
        {"user_id": "alice"},
    ],
)
async def test_reserve_invalid_body(client: AsyncClient, payload):
    response = await client.post("/api/bookings/reserve", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reserve_populates_cache(client: AsyncClient, make_event, fake_redis):
    event_id = await make_event()

    await client.post("/api/bookings/reserve", json={"event_id": event_id, "user_id": "alice"})

    assert await fake_redis.get(booking_key(event_id, "alice")) == "true"


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, make_event):
    event_id = await make_event(name="Theatre Premiere")
    await client.post("/api/bookings/reserve", json={"event_id": event_id, "user_id": "alice"})

    response = await client.get("/api/bookings/user/alice")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]) == 1
    assert body["data"][0]["event_id"] == event_id
    assert body["data"][0]["event_name"] == "Theatre Premiere"


@pytest.mark.asyncio
async def test_list_bookings_for_unknown_user(client: AsyncClient):
    response = await client.get("/api/bookings/user/nobody")

    assert response.status_code == 200
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/api/bookings/user/alice", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "OK"
    assert response.json()["redis"] == "connected"


@pytest.mark.asyncio
async def test_health_reports_redis_outage(client: AsyncClient, redis_server):
    redis_server.connected = False

    response = await client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "ERROR"


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient, make_event):
    event_id = await make_event()
    await client.post("/api/bookings/reserve", json={"event_id": event_id, "user_id": "alice"})

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "reservation_attempts_total" in response.text
