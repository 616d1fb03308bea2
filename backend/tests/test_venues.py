"""
Tests for venue endpoints. Writes are admin only.
"""

import pytest
from httpx import AsyncClient

VENUE = {
    "name": "Riverside Pavilion",
    "address": "22 River Road",
    "capacity": 80,
    "amenities": ["wifi", "projector"],
    "price": "75.00",
}


@pytest.mark.asyncio
async def test_create_venue_as_admin(client: AsyncClient, admin_headers):
    response = await client.post("/api/venues", json=VENUE, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Riverside Pavilion"
    assert data["amenities"] == ["wifi", "projector"]
    assert data["price"] == "75.00"


@pytest.mark.asyncio
async def test_create_venue_as_user(client: AsyncClient, auth_headers):
    response = await client.post("/api/venues", json=VENUE, headers=auth_headers)
    assert response.status_code == 403
    assert response.json() == {"message": "Admin access required"}


@pytest.mark.asyncio
async def test_create_venue_as_guest(client: AsyncClient):
    response = await client.post("/api/venues", json=VENUE)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_and_get_venues(client: AsyncClient, test_venue):
    listing = await client.get("/api/venues")
    assert listing.status_code == 200
    assert [v["id"] for v in listing.json()] == [test_venue.id]

    single = await client.get(f"/api/venues/{test_venue.id}")
    assert single.json()["capacity"] == 200
    assert (await client.get("/api/venues/9999")).status_code == 404


@pytest.mark.asyncio
async def test_update_venue(client: AsyncClient, admin_headers, test_venue):
    response = await client.put(
        f"/api/venues/{test_venue.id}", json={"capacity": 300}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["capacity"] == 300
    assert response.json()["name"] == "Grand Hall"


@pytest.mark.asyncio
async def test_delete_venue(client: AsyncClient, admin_headers, test_venue):
    response = await client.delete(f"/api/venues/{test_venue.id}", headers=admin_headers)
    assert response.status_code == 204
    assert (await client.get(f"/api/venues/{test_venue.id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_venue_with_events(client: AsyncClient, admin_headers, test_venue, test_event):
    response = await client.delete(f"/api/venues/{test_venue.id}", headers=admin_headers)
    assert response.status_code == 400
