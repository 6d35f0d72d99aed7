"""
Tests for the health and status endpoints.
"""
import pytest

import legalms.api.v1.health as health_module


@pytest.mark.asyncio
async def test_health_reports_db_state(client, monkeypatch):
    async def _db_down():
        return False

    monkeypatch.setattr(health_module, "check_db_connection", _db_down)

    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "db": "error"}


@pytest.mark.asyncio
async def test_status_ok(client, monkeypatch):
    async def _db_up():
        return True

    monkeypatch.setattr(health_module, "check_db_connection", _db_up)

    resp = await client.get("/api/v1/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["database"] == {"status": "connected", "connected": True}
    assert data["server"]["environment"] == "development"


@pytest.mark.asyncio
async def test_status_503_when_db_down(client, monkeypatch):
    async def _db_down():
        return False

    monkeypatch.setattr(health_module, "check_db_connection", _db_down)

    resp = await client.get("/api/v1/status")
    assert resp.status_code == 503
    assert resp.json()["database"]["connected"] is False
