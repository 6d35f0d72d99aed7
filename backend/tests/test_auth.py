"""
Tests for password login, registration and HS256 access tokens.

Token verification is tested directly through _verify_access_token(); the
bearer flow is exercised end to end with DEV_SKIP_AUTH switched off.
"""
import uuid
from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

import legalms.core.security as security
from legalms.core.security import _verify_access_token, create_access_token, hash_password, verify_password
from legalms.models.base import utcnow

from conftest import PASSWORD


@pytest.fixture
def bearer_auth(monkeypatch):
    """Turn the dev bypass off so requests must carry a real token."""
    monkeypatch.setattr(security.settings, "dev_skip_auth", False)


# ---------------------------------------------------------------------------
# Passwords and tokens
# ---------------------------------------------------------------------------

def test_password_hash_roundtrip():
    hashed = hash_password("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_valid_token_returns_payload():
    user_id = uuid.uuid4()
    payload = _verify_access_token(create_access_token(user_id))
    assert payload["sub"] == str(user_id)
    assert payload["exp"] > payload["iat"]


def test_expired_token_raises_401():
    token = create_access_token(uuid.uuid4(), expires_minutes=-1)
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(token)
    assert exc_info.value.status_code == 401
    assert "expired" in exc_info.value.detail.lower()


def test_wrong_secret_raises_401():
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "exp": utcnow() + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(token)
    assert exc_info.value.status_code == 401


def test_token_without_subject_raises_401():
    token = jwt.encode(
        {"exp": utcnow() + timedelta(minutes=5)},
        security.settings.jwt_secret,
        algorithm=security.settings.jwt_algorithm,
    )
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(token)
    assert exc_info.value.status_code == 401
    assert "subject" in exc_info.value.detail.lower()


def test_malformed_token_raises_401():
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token("not.a.jwt")
    assert exc_info.value.status_code == 401


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_returns_token(client, admin_user):
    resp = await client.post("/api/v1/auth/login", json={"email": "ADMIN@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    data = resp.json()
    assert data["tokenType"] == "bearer"
    assert data["user"]["role"] == "Admin"
    assert _verify_access_token(data["accessToken"])["sub"] == str(admin_user.id)


@pytest.mark.asyncio
async def test_login_wrong_password(client, admin_user):
    resp = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_deactivated_account(client, db_session, lawyer_user):
    lawyer_user.is_active = False
    await db_session.commit()

    resp = await client.post("/api/v1/auth/login", json={"email": "lawyer@example.com", "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Account is deactivated"


@pytest.mark.asyncio
async def test_register_creates_client_account(client):
    payload = {
        "email": "new.client@example.com",
        "password": "letmein1",
        "firstName": "Nora",
        "lastName": "New",
        "role": "Admin",
    }
    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "Client"

    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_register_rejects_short_password(client):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"email": "short@example.com", "password": "abc", "firstName": "S", "lastName": "P"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_bearer_token_flow(client, lawyer_user, bearer_auth):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401

    login = await client.post("/api/v1/auth/login", json={"email": "lawyer@example.com", "password": PASSWORD})
    token = login.json()["accessToken"]

    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["email"] == "lawyer@example.com"


@pytest.mark.asyncio
async def test_bearer_token_for_inactive_user(client, db_session, lawyer_user, bearer_auth):
    token = create_access_token(lawyer_user.id)
    lawyer_user.is_active = False
    await db_session.commit()

    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
