"""
Legal notices, optionally tied to a case and/or client.
"""
import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.db import get_db
from legalms.core.rbac import require_role
from legalms.core.security import get_current_user
from legalms.models.base import as_naive_utc, utcnow
from legalms.models.case import Case
from legalms.models.client import Client
from legalms.models.notice import Notice
from legalms.models.user import User
from legalms.schemas.case import CaseSummary
from legalms.schemas.notice import NoticeCreate, NoticeResponse, NoticeType

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notices", tags=["notices"])

NoticeStatus = Literal["Pending", "Acknowledged", "Responded", "Expired"]


def notice_response(notice: Notice) -> NoticeResponse:
    return NoticeResponse(
        id=notice.id,
        title=notice.title,
        description=notice.description,
        notice_type=notice.notice_type,
        case=CaseSummary.model_validate(notice.case) if notice.case else None,
        client_id=notice.client_id,
        client_name=notice.client.name if notice.client else None,
        issue_date=notice.issue_date,
        due_date=notice.due_date,
        status=notice.status,
        priority=notice.priority,
        created_by=notice.created_by,
        created_by_name=notice.author.full_name if notice.author else "Unknown",
        created_at=notice.created_at,
    )


@router.get("", response_model=list[NoticeResponse])
async def list_notices(
    case_id: uuid.UUID | None = Query(default=None, alias="caseId"),
    client_id: uuid.UUID | None = Query(default=None, alias="clientId"),
    status_filter: NoticeStatus | None = Query(default=None, alias="status"),
    notice_type: NoticeType | None = Query(default=None, alias="noticeType"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[NoticeResponse]:
    stmt = select(Notice).order_by(Notice.created_at.desc())
    if case_id:
        stmt = stmt.where(Notice.case_id == case_id)
    if client_id:
        stmt = stmt.where(Notice.client_id == client_id)
    if status_filter:
        stmt = stmt.where(Notice.status == status_filter)
    if notice_type:
        stmt = stmt.where(Notice.notice_type == notice_type)

    result = await db.execute(stmt)
    return [notice_response(n) for n in result.scalars().all()]


@router.post("", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
async def create_notice(
    payload: NoticeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> NoticeResponse:
    if payload.case_id and not await db.get(Case, payload.case_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Case not found")
    if payload.client_id and not await db.get(Client, payload.client_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Client not found")

    notice = Notice(
        title=payload.title,
        description=payload.description,
        notice_type=payload.notice_type,
        case_id=payload.case_id,
        client_id=payload.client_id,
        issue_date=as_naive_utc(payload.issue_date) or utcnow(),
        due_date=as_naive_utc(payload.due_date),
        priority=payload.priority,
        created_by=current_user.id,
    )
    db.add(notice)
    await db.commit()

    result = await db.execute(
        select(Notice).where(Notice.id == notice.id).execution_options(populate_existing=True)
    )
    notice = result.scalars().one()
    logger.info("Created notice %s (%s)", notice.id, notice.notice_type)
    return notice_response(notice)
