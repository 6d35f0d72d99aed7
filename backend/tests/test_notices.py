"""
Tests for legal notices.
"""
import uuid
from datetime import datetime

import pytest

from legalms.models.notice import Notice

from conftest import as_user


@pytest.mark.asyncio
async def test_create_notice_defaults(client, client_record):
    resp = await client.post(
        "/api/v1/notices",
        json={"title": "Summons", "description": "Appear on Monday", "clientId": str(client_record.id)},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["noticeType"] == "Legal"
    assert data["priority"] == "Medium"
    assert data["status"] == "Pending"
    assert data["clientName"] == "Acme Corp"
    assert data["createdByName"] == "Ada Admin"
    assert data["issueDate"]


@pytest.mark.asyncio
async def test_create_notice_unknown_case(client):
    resp = await client.post(
        "/api/v1/notices",
        json={"title": "Summons", "description": "x", "caseId": str(uuid.uuid4())},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_client_role_cannot_create_notice(client, client_user):
    resp = await client.post(
        "/api/v1/notices",
        json={"title": "Summons", "description": "x"},
        headers=as_user(client_user),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_notices_filters(client, client_record):
    await client.post(
        "/api/v1/notices",
        json={"title": "Court date", "description": "x", "noticeType": "Court", "clientId": str(client_record.id)},
    )
    await client.post("/api/v1/notices", json={"title": "Filing", "description": "x"})

    resp = await client.get("/api/v1/notices", params={"noticeType": "Court"})
    assert [n["title"] for n in resp.json()] == ["Court date"]

    resp = await client.get("/api/v1/notices", params={"clientId": str(client_record.id)})
    assert [n["title"] for n in resp.json()] == ["Court date"]

    resp = await client.get("/api/v1/notices", params={"status": "Pending"})
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_list_notices_newest_created_first(client, db_session, admin_user):
    # Issue dates run opposite to creation order.
    db_session.add_all([
        Notice(
            title="Older notice",
            description="x",
            issue_date=datetime(2024, 6, 1),
            created_by=admin_user.id,
            created_at=datetime(2024, 1, 1, 9, 0),
        ),
        Notice(
            title="Newer notice",
            description="x",
            issue_date=datetime(2024, 2, 1),
            created_by=admin_user.id,
            created_at=datetime(2024, 1, 2, 9, 0),
        ),
    ])
    await db_session.commit()

    resp = await client.get("/api/v1/notices")
    assert [n["title"] for n in resp.json()] == ["Newer notice", "Older notice"]
