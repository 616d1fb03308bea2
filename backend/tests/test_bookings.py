"""
Tests for booking endpoints: pricing, capacity, ownership and status changes.
"""

from datetime import datetime, timezone, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import Update, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.exceptions import ConflictError
from eventzen.core.security import create_access_token
from eventzen.models.booking import Booking
from eventzen.models.event import Event
from eventzen.models.user import User
from eventzen.realtime.connection_registry import ConnectionRegistry
from eventzen.services import booking_service


async def _book(client: AsyncClient, headers: dict, event_id: int, tickets: int = 2):
    return await client.post(
        "/api/bookings",
        json={"eventId": event_id, "ticketCount": tickets},
        headers=headers,
    )


async def _booking_count(db_session: AsyncSession) -> int:
    return (await db_session.execute(select(func.count()).select_from(Booking))).scalar_one()


@pytest.mark.asyncio
async def test_book_event(client: AsyncClient, auth_headers, test_event):
    """Booking prices tickets from the event and decrements availability."""
    response = await _book(client, auth_headers, test_event.id, 2)
    assert response.status_code == 201
    data = response.json()
    assert data["eventId"] == test_event.id
    assert data["venueId"] is None
    assert data["ticketCount"] == 2
    assert data["totalAmount"] == "300.00"
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"

    event_response = await client.get(f"/api/events/{test_event.id}")
    assert event_response.json()["availableTickets"] == 98


@pytest.mark.asyncio
async def test_ticket_count_defaults_to_one(client: AsyncClient, auth_headers, test_event):
    response = await client.post("/api/bookings", json={"eventId": test_event.id}, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["ticketCount"] == 1
    assert response.json()["totalAmount"] == "150.00"


@pytest.mark.asyncio
async def test_client_supplied_amount_is_ignored(client: AsyncClient, auth_headers, test_event):
    """Price and status keys in the request body have no effect."""
    response = await client.post(
        "/api/bookings",
        json={
            "eventId": test_event.id,
            "ticketCount": 1,
            "totalAmount": 0.01,
            "status": "confirmed",
            "paymentStatus": "completed",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["totalAmount"] == "150.00"
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"


@pytest.mark.asyncio
async def test_booking_bumps_event_version(client: AsyncClient, auth_headers, test_event, db_session):
    await _book(client, auth_headers, test_event.id, 1)
    version = (await db_session.execute(select(Event.version).where(Event.id == test_event.id))).scalar_one()
    assert version == 2


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, test_event):
    response = await client.post("/api/bookings", json={"eventId": test_event.id, "ticketCount": 1})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_book_invalid_token(client: AsyncClient, test_event):
    response = await _book(client, {"Authorization": "Bearer not-a-token"}, test_event.id, 1)
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authentication token"


@pytest.mark.asyncio
async def test_book_sold_out(client: AsyncClient, auth_headers, sold_out_event):
    response = await _book(client, auth_headers, sold_out_event.id, 1)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_book_more_than_available(client: AsyncClient, auth_headers, test_event):
    response = await _book(client, auth_headers, test_event.id, 101)
    assert response.status_code == 409
    assert "Available: 100" in response.json()["message"]


@pytest.mark.asyncio
async def test_book_zero_tickets(client: AsyncClient, auth_headers, test_event):
    response = await _book(client, auth_headers, test_event.id, 0)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"


@pytest.mark.asyncio
async def test_book_missing_event(client: AsyncClient, db_session: AsyncSession, auth_headers, test_user):
    response = await _book(client, auth_headers, 9999, 1)
    assert response.status_code == 404
    assert response.json()["message"] == "Event not found"
    assert await _booking_count(db_session) == 0


@pytest.mark.asyncio
async def test_book_last_tickets_then_sold_out(client: AsyncClient, auth_headers, test_event):
    assert (await _book(client, auth_headers, test_event.id, 100)).status_code == 201
    assert (await _book(client, auth_headers, test_event.id, 1)).status_code == 409


@pytest.mark.asyncio
async def test_book_venue(client: AsyncClient, auth_headers, test_venue):
    """Venue bookings are priced by the hour."""
    booking_date = (datetime.now(timezone.utc) + timedelta(days=10)).isoformat()
    response = await client.post(
        "/api/venue-bookings",
        json={
            "venueId": test_venue.id,
            "bookingDate": booking_date,
            "bookingDuration": 3,
            "attendeeCount": 50,
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["venueId"] == test_venue.id
    assert data["eventId"] is None
    assert data["bookingDuration"] == 3
    assert data["attendeeCount"] == 50
    assert data["totalAmount"] == "600.00"
    assert data["status"] == "pending"


@pytest.mark.asyncio
async def test_book_venue_over_capacity(client: AsyncClient, auth_headers, test_venue):
    response = await client.post(
        "/api/venue-bookings",
        json={
            "venueId": test_venue.id,
            "bookingDate": (datetime.now(timezone.utc) + timedelta(days=10)).isoformat(),
            "bookingDuration": 2,
            "attendeeCount": 201,
        },
        headers=auth_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_book_venue_duration_limit(client: AsyncClient, auth_headers, test_venue):
    response = await client.post(
        "/api/venue-bookings",
        json={
            "venueId": test_venue.id,
            "bookingDate": (datetime.now(timezone.utc) + timedelta(days=10)).isoformat(),
            "bookingDuration": 13,
            "attendeeCount": 20,
        },
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_book_venue_in_the_past(client: AsyncClient, auth_headers, test_venue):
    response = await client.post(
        "/api/venue-bookings",
        json={
            "venueId": test_venue.id,
            "bookingDate": (datetime.now(timezone.utc) - timedelta(days=1)).isoformat(),
            "bookingDuration": 2,
            "attendeeCount": 20,
        },
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "bookingDate must be in the future"


@pytest.mark.asyncio
async def test_book_missing_venue(client: AsyncClient, db_session: AsyncSession, auth_headers, test_user):
    response = await client.post(
        "/api/venue-bookings",
        json={
            "venueId": 9999,
            "bookingDate": (datetime.now(timezone.utc) + timedelta(days=10)).isoformat(),
            "bookingDuration": 2,
            "attendeeCount": 20,
        },
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert await _booking_count(db_session) == 0


@pytest.mark.asyncio
async def test_list_bookings(client: AsyncClient, auth_headers, other_headers, test_event):
    await _book(client, auth_headers, test_event.id, 1)
    await _book(client, auth_headers, test_event.id, 2)
    await _book(client, other_headers, test_event.id, 1)

    response = await client.get("/api/bookings", headers=auth_headers)
    assert response.status_code == 200
    bookings = response.json()
    assert len(bookings) == 2
    assert {b["ticketCount"] for b in bookings} == {1, 2}


@pytest.mark.asyncio
async def test_list_bookings_as_guest(client: AsyncClient, auth_headers, test_event):
    await _book(client, auth_headers, test_event.id, 1)
    response = await client.get("/api/bookings")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_booking_ownership(client: AsyncClient, auth_headers, other_headers, admin_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 1)).json()["id"]

    assert (await client.get(f"/api/bookings/{booking_id}", headers=auth_headers)).status_code == 200
    assert (await client.get(f"/api/bookings/{booking_id}", headers=other_headers)).status_code == 403
    assert (await client.get(f"/api/bookings/{booking_id}", headers=admin_headers)).status_code == 200
    assert (await client.get("/api/bookings/9999", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_cancel_booking_releases_tickets(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 3)).json()["id"]

    response = await client.put(
        f"/api/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["paymentStatus"] == "pending"

    event_response = await client.get(f"/api/events/{test_event.id}")
    assert event_response.json()["availableTickets"] == 100


@pytest.mark.asyncio
async def test_cancel_twice(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 1)).json()["id"]
    await client.put(f"/api/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth_headers)

    response = await client.put(
        f"/api/bookings/{booking_id}", json={"status": "cancelled"}, headers=auth_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking(client: AsyncClient, auth_headers, other_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 1)).json()["id"]
    response = await client.put(
        f"/api/bookings/{booking_id}", json={"status": "cancelled"}, headers=other_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cannot_set_arbitrary_status(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 1)).json()["id"]
    response = await client.put(
        f"/api/bookings/{booking_id}", json={"status": "confirmed"}, headers=auth_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_complete_pending_booking_rejected(client: AsyncClient, auth_headers, test_event):
    booking_id = (await _book(client, auth_headers, test_event.id, 1)).json()["id"]
    response = await client.put(
        f"/api/bookings/{booking_id}", json={"status": "completed"}, headers=auth_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_complete_confirmed_booking_after_event(
    client: AsyncClient, auth_headers, db_session, test_user, past_event
):
    booking = Booking(
        user_id=test_user.id,
        event_id=past_event.id,
        ticket_count=1,
        total_amount=Decimal("20.00"),
        status="confirmed",
        payment_status="completed",
    )
    db_session.add(booking)
    await db_session.commit()

    response = await client.put(
        f"/api/bookings/{booking.id}", json={"status": "completed"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_cancel_after_event_date_rejected(
    client: AsyncClient, auth_headers, db_session, test_user, past_event
):
    booking = Booking(
        user_id=test_user.id,
        event_id=past_event.id,
        ticket_count=1,
        total_amount=Decimal("20.00"),
    )
    db_session.add(booking)
    await db_session.commit()

    response = await client.put(
        f"/api/bookings/{booking.id}", json={"status": "cancelled"}, headers=auth_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_first_booking_of_new_identity(client: AsyncClient, db_session: AsyncSession, test_event):
    """A caller never seen before gets a users row, so the booking's user FK holds."""
    token = create_access_token({"sub": "uid-first-visit", "email": "first@example.com"})

    response = await _book(client, {"Authorization": f"Bearer {token}"}, test_event.id, 1)

    assert response.status_code == 201
    user = (
        await db_session.execute(select(User).where(User.external_id == "uid-first-visit"))
    ).scalar_one()
    assert user.email == "first@example.com"
    assert response.json()["userId"] == user.id


def _race_ticket_updates(monkeypatch, db_session: AsyncSession, races: int) -> list:
    """
    Let another writer bump the event's version just before each of the
    first `races` reservation UPDATEs, so they match no row.
    """
    original_execute = db_session.execute
    raced = []

    async def execute(statement, *args, **kwargs):
        if isinstance(statement, Update) and statement.table.name == "events" and len(raced) < races:
            await original_execute(text("UPDATE events SET version = version + 1"))
            await db_session.commit()
            raced.append(statement)
        return await original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", execute)
    return raced


@pytest.mark.asyncio
async def test_booking_retries_after_version_conflict(monkeypatch, db_session: AsyncSession, test_user, test_event):
    user_id, event_id = test_user.id, test_event.id
    raced = _race_ticket_updates(monkeypatch, db_session, races=2)

    booking = await booking_service.book_event(db_session, ConnectionRegistry(), user_id, event_id, 3)

    assert len(raced) == 2
    assert booking.ticket_count == 3
    assert booking.total_amount == Decimal("450.00")
    row = (
        await db_session.execute(
            text("SELECT available_tickets, version FROM events WHERE id = :id"), {"id": event_id}
        )
    ).one()
    # Two foreign bumps plus the reservation itself
    assert tuple(row) == (97, 4)


@pytest.mark.asyncio
async def test_booking_gives_up_after_three_conflicts(monkeypatch, db_session: AsyncSession, test_user, test_event):
    user_id, event_id = test_user.id, test_event.id
    raced = _race_ticket_updates(monkeypatch, db_session, races=booking_service.MAX_RETRY_ATTEMPTS)

    with pytest.raises(ConflictError) as exc:
        await booking_service.book_event(db_session, ConnectionRegistry(), user_id, event_id, 1)

    assert exc.value.message == "Booking failed due to high demand. Please try again."
    assert len(raced) == booking_service.MAX_RETRY_ATTEMPTS
    assert await _booking_count(db_session) == 0
    available = (
        await db_session.execute(text("SELECT available_tickets FROM events WHERE id = :id"), {"id": event_id})
    ).scalar_one()
    assert available == 100
