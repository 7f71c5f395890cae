"""Tests for /routes endpoints."""

import pytest


def route_payload(obj_id, slug="about"):
    return {
        "slug": slug,
        "lang": "en",
        "route_obj_type": "page",
        "route_obj_id": obj_id,
        "route_options": {"layout": "wide"}
    }


@pytest.mark.asyncio
async def test_create_route(client):
    response = await client.post("/routes", json=route_payload(1))
    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "about"
    assert data["active"] is True
    assert data["creation_date"] is not None
    assert data["route_options"] == {"layout": "wide"}

    fetched = await client.get(f"/routes/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["slug"] == "about"


@pytest.mark.asyncio
async def test_colliding_slug_is_suffixed(client):
    await client.post("/routes", json=route_payload(1))
    response = await client.post("/routes", json=route_payload(2))
    assert response.json()["slug"] == "about-1"


@pytest.mark.asyncio
async def test_missing_slug_rejected(client):
    response = await client.post("/routes", json=route_payload(1, slug=""))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_route(client):
    response = await client.get("/routes/7")
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"
