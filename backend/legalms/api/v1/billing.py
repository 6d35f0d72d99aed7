"""
Billing: time entries and invoices.

Time entries are Admin/Lawyer only. Invoices are visible to Admins, to the
lawyer assigned to the invoiced client, and to the client whose record shares
the caller's email. Invoice numbers (INV-{year}-{seq}) come from the sequence
allocator.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.config import get_settings
from legalms.core.db import get_db
from legalms.core.rbac import require_role
from legalms.core.security import get_current_user
from legalms.core.sequence import SequenceAllocator, SequenceKind, get_allocator, persist_with_identifier
from legalms.models.base import as_naive_utc, utcnow
from legalms.models.billing import Invoice, InvoiceItem, TimeEntry
from legalms.models.case import Case
from legalms.models.client import Client
from legalms.models.user import User
from legalms.schemas.billing import (
    InvoiceCreate,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceStatusUpdate,
    TimeEntryCreate,
    TimeEntryResponse,
)
from legalms.schemas.case import CaseSummary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/billing", tags=["billing"])
settings = get_settings()


def time_entry_response(entry: TimeEntry) -> TimeEntryResponse:
    return TimeEntryResponse(
        id=entry.id,
        case=CaseSummary.model_validate(entry.case),
        lawyer_id=entry.lawyer_id,
        lawyer_name=entry.lawyer.full_name if entry.lawyer else "Unknown",
        date=entry.date,
        hours=float(entry.hours),
        description=entry.description,
        hourly_rate=float(entry.hourly_rate),
        amount=float(entry.amount),
    )


def invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        client_id=invoice.client_id,
        client_name=invoice.client.name if invoice.client else "Unknown",
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        total_amount=float(invoice.total_amount),
        status=invoice.status,
        items=[
            InvoiceItemResponse(
                id=item.id,
                case_id=item.case_id,
                description=item.description,
                quantity=float(item.quantity),
                rate=float(item.rate),
                amount=float(item.amount),
            )
            for item in invoice.items
        ],
        case_ids=invoice.case_ids,
        created_by=invoice.created_by,
        created_at=invoice.created_at,
    )


async def _load_invoice(db: AsyncSession, invoice_id: uuid.UUID, refresh: bool = False) -> Invoice:
    stmt = select(Invoice).where(Invoice.id == invoice_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    invoice = result.scalars().first()
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


# --------------------------------------------------------------------------- #
# Time entries
# --------------------------------------------------------------------------- #

@router.get("/time-entries", response_model=list[TimeEntryResponse])
async def list_time_entries(
    case_id: uuid.UUID | None = Query(default=None, alias="caseId"),
    lawyer_id: uuid.UUID | None = Query(default=None, alias="lawyerId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> list[TimeEntryResponse]:
    """Lawyers see their own entries; Admins see all, optionally filtered by lawyerId."""
    stmt = select(TimeEntry).order_by(TimeEntry.date.desc())
    if case_id:
        stmt = stmt.where(TimeEntry.case_id == case_id)
    if current_user.role == "Admin":
        if lawyer_id:
            stmt = stmt.where(TimeEntry.lawyer_id == lawyer_id)
    else:
        stmt = stmt.where(TimeEntry.lawyer_id == current_user.id)

    result = await db.execute(stmt)
    return [time_entry_response(e) for e in result.scalars().all()]


@router.post("/time-entries", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_time_entry(
    payload: TimeEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> TimeEntryResponse:
    case = await db.get(Case, payload.case_id)
    if not case:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Case not found")

    entry = TimeEntry(
        case_id=payload.case_id,
        lawyer_id=current_user.id,
        date=as_naive_utc(payload.date),
        hours=payload.hours,
        description=payload.description,
        hourly_rate=payload.hourly_rate,
    )
    db.add(entry)
    await db.commit()

    result = await db.execute(
        select(TimeEntry).where(TimeEntry.id == entry.id).execution_options(populate_existing=True)
    )
    entry = result.scalars().one()
    logger.info("Logged %s hours on case %s by %s", entry.hours, entry.case_id, current_user.id)
    return time_entry_response(entry)


# --------------------------------------------------------------------------- #
# Invoices
# --------------------------------------------------------------------------- #

@router.get("/invoices", response_model=list[InvoiceResponse])
async def list_invoices(
    client_id: uuid.UUID | None = Query(default=None, alias="clientId"),
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[InvoiceResponse]:
    stmt = select(Invoice).order_by(Invoice.created_at.desc())

    if current_user.role == "Client":
        result = await db.execute(select(Client).where(Client.email == current_user.email.lower()))
        own = result.scalars().first()
        if not own:
            return []
        stmt = stmt.where(Invoice.client_id == own.id)
    elif current_user.role == "Lawyer":
        stmt = stmt.join(Client, Invoice.client_id == Client.id).where(
            Client.assigned_lawyer_id == current_user.id
        )

    if client_id:
        stmt = stmt.where(Invoice.client_id == client_id)
    if status_filter:
        stmt = stmt.where(Invoice.status == status_filter)

    result = await db.execute(stmt)
    return [invoice_response(i) for i in result.scalars().all()]


@router.post("/invoices", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    allocator: SequenceAllocator = Depends(get_allocator),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> InvoiceResponse:
    if not await db.get(Client, payload.client_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Client not found")

    case_ids = {item.case_id for item in payload.items}
    result = await db.execute(select(Case.id).where(Case.id.in_(case_ids)))
    if len(set(result.scalars().all())) != len(case_ids):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="One or more cases not found")

    now = utcnow()
    invoice = Invoice(
        client_id=payload.client_id,
        issue_date=as_naive_utc(payload.issue_date),
        due_date=as_naive_utc(payload.due_date),
        created_by=current_user.id,
        created_at=now,
        items=[
            InvoiceItem(
                position=position,
                case_id=item.case_id,
                description=item.description,
                quantity=item.quantity,
                rate=item.rate,
            )
            for position, item in enumerate(payload.items)
        ],
    )
    invoice.recompute_total()

    await persist_with_identifier(
        db,
        invoice,
        SequenceKind.INVOICE,
        allocator,
        created_at=now,
        max_attempts=settings.sequence_max_attempts,
    )
    await db.commit()

    invoice = await _load_invoice(db, invoice.id, refresh=True)
    logger.info("Created invoice %s (%s) for client %s", invoice.invoice_number, invoice.id, invoice.client_id)
    return invoice_response(invoice)


@router.patch("/invoices/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(
    invoice_id: uuid.UUID,
    payload: InvoiceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_role("Admin", "Lawyer")),
) -> InvoiceResponse:
    invoice = await _load_invoice(db, invoice_id)

    invoice.status = payload.status
    await db.commit()

    invoice = await _load_invoice(db, invoice_id, refresh=True)
    logger.info("Invoice %s marked %s", invoice.invoice_number, invoice.status)
    return invoice_response(invoice)
