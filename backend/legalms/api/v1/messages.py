"""
Internal messaging between users. Callers only ever see messages they sent
or received.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.db import get_db
from legalms.core.rbac import forbid
from legalms.core.security import get_current_user
from legalms.models.case import Case
from legalms.models.message import Message
from legalms.models.user import User
from legalms.schemas.case import CaseSummary
from legalms.schemas.common import CountResponse
from legalms.schemas.message import MessageCreate, MessageResponse, Participant, RelatedTo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/messages", tags=["messages"])


def message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        sender=Participant.model_validate(message.sender),
        receiver=Participant.model_validate(message.receiver),
        subject=message.subject,
        content=message.content,
        is_read=message.is_read,
        case=CaseSummary.model_validate(message.case) if message.case else None,
        related_to=message.related_to,
        created_at=message.created_at,
    )


async def _reload(db: AsyncSession, message_id: uuid.UUID) -> Message:
    result = await db.execute(
        select(Message).where(Message.id == message_id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    is_read: bool | None = Query(default=None, alias="isRead"),
    related_to: RelatedTo | None = Query(default=None, alias="relatedTo"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MessageResponse]:
    stmt = (
        select(Message)
        .where(or_(Message.sender_id == current_user.id, Message.receiver_id == current_user.id))
        .order_by(Message.created_at.desc())
    )
    if is_read is not None:
        stmt = stmt.where(Message.is_read.is_(is_read))
    if related_to:
        stmt = stmt.where(Message.related_to == related_to)

    result = await db.execute(stmt)
    return [message_response(m) for m in result.scalars().all()]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CountResponse:
    result = await db.execute(
        select(func.count())
        .select_from(Message)
        .where(Message.receiver_id == current_user.id, Message.is_read.is_(False))
    )
    return CountResponse(count=result.scalar_one())


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    if not await db.get(User, payload.receiver_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Receiver not found")
    if payload.case_id and not await db.get(Case, payload.case_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Case not found")

    message = Message(
        sender_id=current_user.id,
        receiver_id=payload.receiver_id,
        subject=payload.subject,
        content=payload.content,
        case_id=payload.case_id,
        related_to=payload.related_to,
    )
    db.add(message)
    await db.commit()

    message = await _reload(db, message.id)
    logger.info("Message %s sent from %s to %s", message.id, message.sender_id, message.receiver_id)
    return message_response(message)


@router.patch("/{message_id}/read", response_model=MessageResponse)
async def mark_read(
    message_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    message = await db.get(Message, message_id)
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if message.receiver_id != current_user.id:
        raise forbid()

    message.is_read = True
    await db.commit()
    message = await _reload(db, message_id)
    return message_response(message)
