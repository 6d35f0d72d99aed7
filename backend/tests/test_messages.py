"""
Tests for internal messaging.
"""
import uuid

import pytest

from conftest import as_user


async def _send(client, sender, receiver, **overrides):
    payload = {"receiverId": str(receiver.id), "subject": "Hello", "content": "Please call me"}
    payload.update(overrides)
    return await client.post("/api/v1/messages", json=payload, headers=as_user(sender))


@pytest.mark.asyncio
async def test_send_message(client, admin_user, lawyer_user):
    resp = await _send(client, admin_user, lawyer_user, relatedTo="billing")
    assert resp.status_code == 201
    data = resp.json()
    assert data["sender"]["email"] == "admin@example.com"
    assert data["receiver"]["firstName"] == "Lee"
    assert data["isRead"] is False
    assert data["relatedTo"] == "billing"
    assert data["case"] is None


@pytest.mark.asyncio
async def test_send_message_unknown_receiver(client):
    resp = await client.post(
        "/api/v1/messages",
        json={"receiverId": str(uuid.uuid4()), "subject": "Hi", "content": "Anyone?"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_inbox_and_unread_count(client, admin_user, lawyer_user, client_user):
    await _send(client, admin_user, lawyer_user, subject="One")
    await _send(client, admin_user, lawyer_user, subject="Two")
    await _send(client, admin_user, client_user, subject="Not for the lawyer")

    resp = await client.get("/api/v1/messages", headers=as_user(lawyer_user))
    assert {m["subject"] for m in resp.json()} == {"One", "Two"}

    resp = await client.get("/api/v1/messages/unread-count", headers=as_user(lawyer_user))
    assert resp.json() == {"count": 2}


@pytest.mark.asyncio
async def test_mark_read_receiver_only(client, admin_user, lawyer_user, other_lawyer):
    message_id = (await _send(client, admin_user, lawyer_user)).json()["id"]

    resp = await client.patch(f"/api/v1/messages/{message_id}/read", headers=as_user(other_lawyer))
    assert resp.status_code == 403

    resp = await client.patch(f"/api/v1/messages/{message_id}/read", headers=as_user(lawyer_user))
    assert resp.status_code == 200
    assert resp.json()["isRead"] is True

    resp = await client.get("/api/v1/messages/unread-count", headers=as_user(lawyer_user))
    assert resp.json() == {"count": 0}

    resp = await client.get("/api/v1/messages", params={"isRead": "false"}, headers=as_user(lawyer_user))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_mark_read_not_found(client):
    resp = await client.patch(f"/api/v1/messages/{uuid.uuid4()}/read")
    assert resp.status_code == 404
