"""
Case tracking: cases, their documents and timeline.

Visibility:
  Admin   every case
  Lawyer  cases assigned to them
  Client  cases of the client record sharing their email address

New cases get a caseNumber (CASE-{year}-{seq}) from the sequence allocator;
see legalms.core.sequence for the numbering and retry policy.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.config import get_settings
from legalms.core.db import get_db
from legalms.core.rbac import forbid, require_role
from legalms.core.security import get_current_user
from legalms.core.sequence import (
    IdentifierConflictError,
    SequenceAllocationError,
    SequenceAllocator,
    SequenceKind,
    get_allocator,
    persist_with_identifier,
)
from legalms.models.base import as_naive_utc, utcnow
from legalms.models.case import Case, CaseDocument
from legalms.models.client import Client
from legalms.models.user import User
from legalms.api.v1.clients import get_lawyer
from legalms.schemas.case import (
    BulkFailure,
    BulkResults,
    BulkSuccess,
    CaseBulkCreate,
    CaseBulkResponse,
    CaseCreate,
    CaseResponse,
    CaseStatus,
    CaseStatusUpdate,
    CaseType,
    CaseUpdate,
    DocumentCreate,
    DocumentResponse,
    TimelineEventCreate,
    TimelineEventResponse,
)
from legalms.schemas.common import StatusMessage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cases", tags=["cases"])
settings = get_settings()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def case_response(case: Case) -> CaseResponse:
    return CaseResponse(
        id=case.id,
        case_number=case.case_number,
        title=case.title,
        description=case.description,
        status=case.status,
        priority=case.priority,
        case_type=case.case_type,
        client_id=case.client_id,
        client_name=case.client.name if case.client else "Unknown",
        assigned_lawyer_id=case.assigned_lawyer_id,
        assigned_lawyer_name=case.assigned_lawyer.full_name if case.assigned_lawyer else "Unknown",
        court_name=case.court_name,
        filing_date=case.filing_date,
        next_hearing_date=case.next_hearing_date,
        custom_fields=case.custom_fields or {},
        documents=[
            DocumentResponse(
                id=doc.id,
                file_name=doc.file_name,
                file_path=doc.file_path,
                upload_date=doc.created_at,
                uploaded_by=doc.uploaded_by,
                document_type=doc.document_type,
            )
            for doc in case.documents
        ],
        timeline=[TimelineEventResponse.model_validate(event) for event in case.timeline],
    )


async def _client_record_for(db: AsyncSession, user: User) -> Client | None:
    result = await db.execute(select(Client).where(Client.email == user.email.lower()))
    return result.scalars().first()


async def _load_case(db: AsyncSession, case_id: uuid.UUID, refresh: bool = False) -> Case:
    stmt = select(Case).where(Case.id == case_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    case = result.scalars().first()
    if not case:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return case


async def _check_read_access(db: AsyncSession, case: Case, user: User) -> None:
    if user.role == "Client":
        client = await _client_record_for(db, user)
        if not client or case.client_id != client.id:
            raise forbid()
    elif user.role == "Lawyer" and case.assigned_lawyer_id != user.id:
        raise forbid()


def _check_write_access(case: Case, user: User) -> None:
    if user.role != "Admin" and case.assigned_lawyer_id != user.id:
        raise forbid()


class _Rejected(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


async def _build_case(db: AsyncSession, payload: CaseCreate, user: User) -> Case:
    """Validate references and return a new, unsaved Case with its opening timeline event."""
    result = await db.execute(select(Client).where(Client.id == payload.client_id))
    if not result.scalars().first():
        raise _Rejected(status.HTTP_400_BAD_REQUEST, "Client not found")

    if not await get_lawyer(db, payload.assigned_lawyer_id):
        raise _Rejected(status.HTTP_400_BAD_REQUEST, "Invalid assigned lawyer")

    if user.role != "Admin" and payload.assigned_lawyer_id != user.id:
        raise _Rejected(status.HTTP_403_FORBIDDEN, "You can only assign cases to yourself")

    now = utcnow()
    case = Case(
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        case_type=payload.case_type,
        client_id=payload.client_id,
        assigned_lawyer_id=payload.assigned_lawyer_id,
        court_name=payload.court_name,
        filing_date=as_naive_utc(payload.filing_date),
        next_hearing_date=as_naive_utc(payload.next_hearing_date),
        custom_fields=payload.custom_fields,
        created_by=user.id,
        created_at=now,
        timeline=[],
        documents=[],
    )
    case.add_event("filing", "Case Created", f'Case "{payload.title}" was created', user.id)
    return case


async def _save_new_case(db: AsyncSession, case: Case, allocator: SequenceAllocator) -> None:
    await persist_with_identifier(
        db,
        case,
        SequenceKind.CASE,
        allocator,
        created_at=case.created_at,
        max_attempts=settings.sequence_max_attempts,
    )
    await db.commit()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[CaseResponse])
async def list_cases(
    client_id: uuid.UUID | None = Query(default=None, alias="clientId"),
    assigned_lawyer_id: uuid.UUID | None = Query(default=None, alias="assignedLawyerId"),
    status_filter: CaseStatus | None = Query(default=None, alias="status"),
    case_type: CaseType | None = Query(default=None, alias="caseType"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[CaseResponse]:
    stmt = select(Case).order_by(Case.created_at.desc())

    if current_user.role == "Client":
        client = await _client_record_for(db, current_user)
        if not client:
            return []
        stmt = stmt.where(Case.client_id == client.id)
    elif current_user.role == "Lawyer":
        stmt = stmt.where(Case.assigned_lawyer_id == current_user.id)

    if client_id:
        stmt = stmt.where(Case.client_id == client_id)
    if assigned_lawyer_id and current_user.role == "Admin":
        stmt = stmt.where(Case.assigned_lawyer_id == assigned_lawyer_id)
    if status_filter:
        stmt = stmt.where(Case.status == status_filter)
    if case_type:
        stmt = stmt.where(Case.case_type == case_type)

    result = await db.execute(stmt)
    return [case_response(c) for c in result.scalars().all()]


@router.get("/{case_id}", response_model=CaseResponse)
async def get_case(
    case_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CaseResponse:
    case = await _load_case(db, case_id)
    await _check_read_access(db, case, current_user)
    return case_response(case)


@router.post("", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def create_case(
    payload: CaseCreate,
    db: AsyncSession = Depends(get_db),
    allocator: SequenceAllocator = Depends(get_allocator),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> CaseResponse:
    try:
        case = await _build_case(db, payload, current_user)
    except _Rejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    await _save_new_case(db, case, allocator)

    case = await _load_case(db, case.id, refresh=True)
    logger.info("Created case %s (%s) by %s", case.case_number, case.id, current_user.id)
    return case_response(case)


@router.post(
    "/bulk",
    response_model=CaseBulkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={207: {"model": CaseBulkResponse}, 400: {"model": CaseBulkResponse}},
)
async def bulk_create_cases(
    payload: CaseBulkCreate,
    db: AsyncSession = Depends(get_db),
    allocator: SequenceAllocator = Depends(get_allocator),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
):
    """
    Create several cases; each is validated and committed independently.
    Returns 201 when all succeed, 207 on partial success, 400 when none do.
    """
    successful: list[BulkSuccess] = []
    failed: list[BulkFailure] = []

    for index, item in enumerate(payload.cases):
        try:
            case = await _build_case(db, item, current_user)
            await _save_new_case(db, case, allocator)
        except _Rejected as exc:
            failed.append(BulkFailure(index=index, title=item.title, error=exc.detail))
            continue
        except (IdentifierConflictError, SequenceAllocationError, IntegrityError) as exc:
            await db.rollback()
            await db.refresh(current_user)
            logger.warning("Bulk case %d (%s) failed: %s", index, item.title, exc)
            failed.append(BulkFailure(index=index, title=item.title, error=str(exc)))
            continue

        successful.append(
            BulkSuccess(index=index, id=case.id, case_number=case.case_number, title=case.title)
        )

    body = CaseBulkResponse(
        success=bool(successful),
        total=len(payload.cases),
        created=len(successful),
        failed=len(failed),
        results=BulkResults(successful=successful, failed=failed),
    )
    if not failed:
        status_code = status.HTTP_201_CREATED
    elif successful:
        status_code = status.HTTP_207_MULTI_STATUS
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    logger.info("Bulk case import: %d created, %d failed", len(successful), len(failed))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@router.put("/{case_id}", response_model=CaseResponse)
async def update_case(
    case_id: uuid.UUID,
    payload: CaseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> CaseResponse:
    case = await _load_case(db, case_id)
    _check_write_access(case, current_user)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    new_status = changes.get("status")
    if new_status and new_status != case.status:
        case.add_event(
            "status_change",
            "Status Changed",
            f"Case status changed from {case.status} to {new_status}",
            current_user.id,
        )

    for field in ("filing_date", "next_hearing_date"):
        if field in changes:
            changes[field] = as_naive_utc(changes[field])

    for field, value in changes.items():
        setattr(case, field, value)

    await db.commit()
    case = await _load_case(db, case_id, refresh=True)
    return case_response(case)


@router.patch("/{case_id}/status", response_model=CaseResponse)
async def update_case_status(
    case_id: uuid.UUID,
    payload: CaseStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> CaseResponse:
    case = await _load_case(db, case_id)
    _check_write_access(case, current_user)

    old_status = case.status
    case.status = payload.status
    case.add_event(
        "status_change",
        "Status Changed",
        f"Case status changed from {old_status} to {payload.status}",
        current_user.id,
    )

    await db.commit()
    case = await _load_case(db, case_id, refresh=True)
    return case_response(case)


@router.post("/{case_id}/documents", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def add_document(
    case_id: uuid.UUID,
    payload: DocumentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> CaseResponse:
    case = await _load_case(db, case_id)
    _check_write_access(case, current_user)

    case.documents.append(
        CaseDocument(
            file_name=payload.file_name,
            file_path=payload.file_path,
            document_type=payload.document_type,
            uploaded_by=current_user.id,
        )
    )
    case.add_event(
        "document",
        "Document Added",
        f'Document "{payload.file_name}" ({payload.document_type}) was added',
        current_user.id,
    )

    await db.commit()
    case = await _load_case(db, case_id, refresh=True)
    return case_response(case)


@router.post("/{case_id}/timeline", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def add_timeline_event(
    case_id: uuid.UUID,
    payload: TimelineEventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> CaseResponse:
    case = await _load_case(db, case_id)
    _check_write_access(case, current_user)

    event = case.add_event(payload.type, payload.title, payload.description, current_user.id)
    if payload.date:
        event.date = as_naive_utc(payload.date)

    await db.commit()
    case = await _load_case(db, case_id, refresh=True)
    return case_response(case)


@router.delete("/{case_id}", response_model=StatusMessage)
async def delete_case(
    case_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_role("Admin")),
) -> StatusMessage:
    case = await _load_case(db, case_id)
    await db.delete(case)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Case is referenced by an invoice",
        ) from exc

    logger.info("Deleted case %s", case_id)
    return StatusMessage(message="Case deleted successfully")
