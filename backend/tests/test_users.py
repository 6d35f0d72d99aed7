"""
Tests for user management endpoints.

Uses the test client fixture from conftest.py which runs with DEV_SKIP_AUTH=true.
The default user is admin_user (Admin role).
"""
import uuid

import pytest

from conftest import as_user


@pytest.mark.asyncio
async def test_get_me(client, admin_user):
    resp = await client.get("/api/v1/users/me")
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == admin_user.email
    assert data["role"] == "Admin"


@pytest.mark.asyncio
async def test_create_user_valid(client):
    payload = {
        "email": "New.Lawyer@example.com",
        "password": "s3cret!!",
        "firstName": "New",
        "lastName": "Lawyer",
        "role": "Lawyer",
    }
    resp = await client.post("/api/v1/users", json=payload)
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "new.lawyer@example.com"
    assert data["role"] == "Lawyer"
    assert data["isActive"] is True
    assert "passwordHash" not in data
    assert "id" in data


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client, admin_user):
    """Creating a user with an email that already exists returns 409."""
    payload = {
        "email": admin_user.email,
        "password": "s3cret!!",
        "firstName": "Dup",
        "lastName": "Licate",
    }
    resp = await client.post("/api/v1/users", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_create_user_requires_admin(client, lawyer_user):
    payload = {"email": "x@example.com", "password": "s3cret!!", "firstName": "X", "lastName": "Y"}
    resp = await client.post("/api/v1/users", json=payload, headers=as_user(lawyer_user))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_users_filters(client, admin_user, lawyer_user, client_user):
    resp = await client.get("/api/v1/users")
    assert resp.status_code == 200
    assert len(resp.json()) == 3

    resp = await client.get("/api/v1/users", params={"role": "Lawyer"})
    assert [u["email"] for u in resp.json()] == ["lawyer@example.com"]


@pytest.mark.asyncio
async def test_list_users_client_forbidden(client, client_user):
    """Client users must receive 403 on the user list endpoint."""
    resp = await client.get("/api/v1/users", headers=as_user(client_user))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_get_user_by_id(client, admin_user):
    resp = await client.get(f"/api/v1/users/{admin_user.id}")
    assert resp.status_code == 200
    assert resp.json()["id"] == str(admin_user.id)


@pytest.mark.asyncio
async def test_client_can_only_view_self(client, client_user, lawyer_user):
    assert (await client.get(f"/api/v1/users/{client_user.id}", headers=as_user(client_user))).status_code == 200
    assert (await client.get(f"/api/v1/users/{lawyer_user.id}", headers=as_user(client_user))).status_code == 403


@pytest.mark.asyncio
async def test_get_user_not_found(client):
    resp = await client.get(f"/api/v1/users/{uuid.uuid4()}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_user(client, lawyer_user):
    resp = await client.put(f"/api/v1/users/{lawyer_user.id}", json={"firstName": "Updated"})
    assert resp.status_code == 200
    assert resp.json()["firstName"] == "Updated"


@pytest.mark.asyncio
async def test_non_admin_cannot_change_own_role(client, lawyer_user):
    resp = await client.put(
        f"/api/v1/users/{lawyer_user.id}",
        json={"phone": "555-0111", "role": "Admin"},
        headers=as_user(lawyer_user),
    )
    assert resp.status_code == 200
    assert resp.json()["phone"] == "555-0111"
    assert resp.json()["role"] == "Lawyer"


@pytest.mark.asyncio
async def test_deactivate_user(client, lawyer_user):
    """DELETE only flips isActive off."""
    resp = await client.delete(f"/api/v1/users/{lawyer_user.id}")
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False

    resp = await client.get(f"/api/v1/users/{lawyer_user.id}")
    assert resp.status_code == 200
