"""
tests/test_workers.py
Tests for non-login worker profiles: listing, CRUD and team checks.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import TEAM_ID, FakeSupabase, api, auth_headers


# ── Listing ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_workers_sorted_by_name(client: AsyncClient):
    response = await client.get(api("/workers"), headers=auth_headers("viewer"))
    assert response.status_code == 200
    assert [w["name"] for w in response.json()] == ["Liza Santos", "Ramon Dela Cruz"]


@pytest.mark.asyncio
@pytest.mark.parametrize("params,expected", [
    ({"status": "active"}, ["w-1"]),
    ({"search": "dela"}, ["w-1"]),
    ({"team_id": "team-archived"}, []),
])
async def test_list_workers_filters(client: AsyncClient, params, expected):
    response = await client.get(api("/workers"), headers=auth_headers("owner"), params=params)
    assert [w["id"] for w in response.json()] == expected


# ── Create ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_supervisor_creates_worker(client: AsyncClient, db: FakeSupabase):
    response = await client.post(
        api("/workers"), headers=auth_headers("supervisor"),
        json={"name": " Pedro Penduko ", "role": "Dishwasher", "team_id": TEAM_ID, "hourly_rate": 95},
    )
    assert response.status_code == 201
    worker = response.json()
    assert worker["name"] == "Pedro Penduko"
    assert worker["status"] == "active"
    assert worker["tags"] == []
    assert db.row("worker_profiles", worker["id"])["provider_id"] == "prov-1"


@pytest.mark.asyncio
async def test_staff_cannot_create_worker(client: AsyncClient):
    response = await client.post(api("/workers"), headers=auth_headers("staff"), json={"name": "Pedro"})
    assert response.status_code == 403
    assert response.json()["detail"] == "You do not have permission to manage worker profiles"


@pytest.mark.asyncio
async def test_worker_cannot_join_archived_team(client: AsyncClient):
    response = await client.post(
        api("/workers"), headers=auth_headers("owner"), json={"name": "Pedro", "team_id": "team-archived"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot assign workers to an inactive or archived team"


@pytest.mark.asyncio
async def test_worker_requires_a_name(client: AsyncClient):
    response = await client.post(api("/workers"), headers=auth_headers("owner"), json={"name": "  "})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_worker_database_failure(client: AsyncClient, db: FakeSupabase):
    db.fail("worker_profiles", "insert")
    response = await client.post(api("/workers"), headers=auth_headers("owner"), json={"name": "Pedro"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create worker profile. Please try again."


# ── Update and delete ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_worker(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(
        api("/workers/w-2"), headers=auth_headers("owner"), json={"status": "active", "tags": ["cook", "grill"]}
    )
    assert response.status_code == 200
    assert response.json()["tags"] == ["cook", "grill"]
    assert db.row("worker_profiles", "w-2")["status"] == "active"


@pytest.mark.asyncio
@pytest.mark.parametrize("body,message", [
    ({"name": "   "}, "Worker name cannot be empty"),
    ({}, "No fields to update"),
])
async def test_update_worker_validation(client: AsyncClient, body, message):
    response = await client.patch(api("/workers/w-1"), headers=auth_headers("owner"), json=body)
    assert response.status_code == 400
    assert response.json()["detail"] == message


@pytest.mark.asyncio
async def test_delete_worker(client: AsyncClient, db: FakeSupabase):
    response = await client.delete(api("/workers/w-2"), headers=auth_headers("supervisor"))
    assert response.status_code == 204
    assert db.row("worker_profiles", "w-2") is None


@pytest.mark.asyncio
async def test_worker_of_another_provider_is_not_found(client: AsyncClient, db: FakeSupabase):
    db.rows("worker_profiles").append({"id": "w-x", "provider_id": "prov-2", "name": "Elsewhere", "status": "active"})
    response = await client.get(api("/workers/w-x"), headers=auth_headers("owner"))
    assert response.status_code == 404
    response = await client.delete(api("/workers/w-x"), headers=auth_headers("owner"))
    assert response.status_code == 404
    assert db.row("worker_profiles", "w-x") is not None
