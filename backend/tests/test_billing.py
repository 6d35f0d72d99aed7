"""
Tests for time entries and invoices.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from legalms.models.billing import Invoice
from legalms.models.client import Client

from conftest import as_user, case_payload

YEAR = datetime.now(timezone.utc).year


@pytest_asyncio.fixture
async def case_id(client, client_record, lawyer_user) -> str:
    resp = await client.post("/api/v1/cases", json=case_payload(client_record, lawyer_user))
    assert resp.status_code == 201
    return resp.json()["id"]


def _invoice_payload(client_record, case_id, **overrides) -> dict:
    payload = {
        "clientId": str(client_record.id),
        "issueDate": "2024-04-01T00:00:00Z",
        "dueDate": "2024-05-01T00:00:00Z",
        "items": [
            {"caseId": case_id, "description": "Drafting", "quantity": 3, "rate": 150},
            {"caseId": case_id, "description": "Filing fee", "quantity": 1, "rate": 75.5},
        ],
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_time_entry_amount_is_computed(client, case_id, lawyer_user):
    resp = await client.post(
        "/api/v1/billing/time-entries",
        json={
            "caseId": case_id,
            "date": "2024-04-02T14:00:00Z",
            "hours": 2.5,
            "description": "Client call",
            "hourlyRate": 200,
        },
        headers=as_user(lawyer_user),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["amount"] == 500.0
    assert data["lawyerName"] == "Lee Lawyer"
    assert data["case"]["caseNumber"] == f"CASE-{YEAR}-0001"


@pytest.mark.asyncio
async def test_time_entry_unknown_case(client):
    resp = await client.post(
        "/api/v1/billing/time-entries",
        json={
            "caseId": str(uuid.uuid4()),
            "date": "2024-04-02T14:00:00Z",
            "hours": 1,
            "description": "Research",
            "hourlyRate": 100,
        },
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_lawyers_only_see_their_own_time_entries(client, case_id, lawyer_user, other_lawyer):
    entry = {"caseId": case_id, "date": "2024-04-02T14:00:00Z", "hours": 1, "hourlyRate": 100}
    await client.post(
        "/api/v1/billing/time-entries", json={**entry, "description": "Mine"}, headers=as_user(lawyer_user)
    )
    await client.post(
        "/api/v1/billing/time-entries", json={**entry, "description": "Theirs"}, headers=as_user(other_lawyer)
    )

    resp = await client.get("/api/v1/billing/time-entries", headers=as_user(lawyer_user))
    assert [e["description"] for e in resp.json()] == ["Mine"]

    resp = await client.get("/api/v1/billing/time-entries")
    assert len(resp.json()) == 2

    resp = await client.get("/api/v1/billing/time-entries", params={"lawyerId": str(other_lawyer.id)})
    assert [e["description"] for e in resp.json()] == ["Theirs"]


@pytest.mark.asyncio
async def test_client_role_cannot_read_time_entries(client, client_user):
    resp = await client.get("/api/v1/billing/time-entries", headers=as_user(client_user))
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_invoice_numbers_and_totals(client, client_record, case_id):
    resp = await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))
    assert resp.status_code == 201
    data = resp.json()
    assert data["invoiceNumber"] == f"INV-{YEAR}-0001"
    assert data["status"] == "Draft"
    assert [i["amount"] for i in data["items"]] == [450.0, 75.5]
    assert data["totalAmount"] == 525.5
    assert data["caseIds"] == [case_id]
    assert data["clientName"] == "Acme Corp"

    resp = await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))
    assert resp.json()["invoiceNumber"] == f"INV-{YEAR}-0002"


@pytest.mark.asyncio
async def test_invoice_numbers_independent_of_case_numbers(client, client_record, lawyer_user, case_id):
    # One case already exists; create two more so the case sequence is ahead.
    for _ in range(2):
        await client.post("/api/v1/cases", json=case_payload(client_record, lawyer_user))

    resp = await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))
    assert resp.json()["invoiceNumber"] == f"INV-{YEAR}-0001"


@pytest.mark.asyncio
async def test_create_invoice_unknown_case(client, client_record, case_id):
    payload = _invoice_payload(client_record, case_id)
    payload["items"].append({"caseId": str(uuid.uuid4()), "description": "Ghost", "quantity": 1, "rate": 1})

    resp = await client.post("/api/v1/billing/invoices", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "One or more cases not found"


@pytest.mark.asyncio
async def test_create_invoice_requires_items(client, client_record, case_id):
    resp = await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id, items=[]))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_client_sees_only_own_invoices(client, db_session, client_record, client_user, admin_user, case_id):
    other = Client(
        name="Globex",
        email="globex@example.com",
        phone="555-0199",
        address="2 Side Street",
        created_by=admin_user.id,
    )
    db_session.add(other)
    await db_session.commit()

    await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))
    await client.post("/api/v1/billing/invoices", json=_invoice_payload(other, case_id))

    resp = await client.get("/api/v1/billing/invoices")
    assert len(resp.json()) == 2

    resp = await client.get("/api/v1/billing/invoices", headers=as_user(client_user))
    assert [i["clientName"] for i in resp.json()] == ["Acme Corp"]


@pytest.mark.asyncio
async def test_lawyer_sees_invoices_of_assigned_clients(client, client_record, case_id, lawyer_user, other_lawyer):
    await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))

    resp = await client.get("/api/v1/billing/invoices", headers=as_user(lawyer_user))
    assert len(resp.json()) == 1

    resp = await client.get("/api/v1/billing/invoices", headers=as_user(other_lawyer))
    assert resp.json() == []


@pytest.mark.filterwarnings("error:Attribute history events accumulated:sqlalchemy.exc.SAWarning")
@pytest.mark.asyncio
async def test_update_invoice_status(client, client_record, case_id):
    created = (await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))).json()

    resp = await client.patch(f"/api/v1/billing/invoices/{created['id']}/status", json={"status": "Paid"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Paid"
    assert resp.json()["invoiceNumber"] == created["invoiceNumber"]

    resp = await client.get("/api/v1/billing/invoices", params={"status": "Paid"})
    assert [i["id"] for i in resp.json()] == [created["id"]]


@pytest.mark.asyncio
async def test_update_invoice_status_rejects_unknown_value(client, client_record, case_id):
    created = (await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))).json()

    resp = await client.patch(f"/api/v1/billing/invoices/{created['id']}/status", json={"status": "Lost"})
    assert resp.status_code == 422


@pytest.mark.filterwarnings("error:Attribute history events accumulated:sqlalchemy.exc.SAWarning")
@pytest.mark.asyncio
async def test_invoice_update_totals_stored_item_amounts(client, db_session, client_record, case_id):
    created = (await client.post("/api/v1/billing/invoices", json=_invoice_payload(client_record, case_id))).json()

    invoice = await db_session.get(Invoice, uuid.UUID(created["id"]))
    invoice.due_date = datetime(2024, 6, 1)
    await db_session.commit()

    await db_session.refresh(invoice)
    assert invoice.total_amount == Decimal("525.50")
    assert [item.amount for item in invoice.items] == [Decimal("450.00"), Decimal("75.50")]
