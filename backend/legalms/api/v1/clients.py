"""
Client records.

Lawyers work with clients assigned to them plus unassigned ones; only Admins
may reassign a client or delete it.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.db import get_db
from legalms.core.rbac import forbid, require_role
from legalms.models.client import Client
from legalms.models.user import User
from legalms.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from legalms.schemas.common import StatusMessage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/clients", tags=["clients"])


def client_response(client: Client) -> ClientResponse:
    lawyer = client.assigned_lawyer
    return ClientResponse(
        id=client.id,
        name=client.name,
        email=client.email,
        phone=client.phone,
        address=client.address,
        company_name=client.company_name,
        created_date=client.created_at,
        assigned_lawyer_id=client.assigned_lawyer_id,
        assigned_lawyer_name=lawyer.full_name if lawyer else None,
    )


async def get_client_or_404(db: AsyncSession, client_id: uuid.UUID) -> Client:
    result = await db.execute(select(Client).where(Client.id == client_id))
    client = result.scalars().first()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


async def get_lawyer(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return the user if it can own clients/cases (Lawyer or Admin)."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user or user.role not in ("Lawyer", "Admin"):
        return None
    return user


def _check_access(client: Client, user: User) -> None:
    if user.role != "Admin" and client.assigned_lawyer_id and client.assigned_lawyer_id != user.id:
        raise forbid()


async def _reload(db: AsyncSession, client_id: uuid.UUID) -> Client:
    result = await db.execute(
        select(Client).where(Client.id == client_id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    assigned_lawyer_id: uuid.UUID | None = Query(default=None, alias="assignedLawyerId"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> list[ClientResponse]:
    stmt = select(Client).order_by(Client.created_at.desc())
    if assigned_lawyer_id:
        stmt = stmt.where(Client.assigned_lawyer_id == assigned_lawyer_id)
    elif current_user.role != "Admin":
        stmt = stmt.where(
            or_(Client.assigned_lawyer_id == current_user.id, Client.assigned_lawyer_id.is_(None))
        )

    result = await db.execute(stmt)
    return [client_response(c) for c in result.scalars().all()]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> ClientResponse:
    client = await get_client_or_404(db, client_id)
    _check_access(client, current_user)
    return client_response(client)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> ClientResponse:
    email = payload.email.lower()

    if payload.assigned_lawyer_id:
        if not await get_lawyer(db, payload.assigned_lawyer_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid assigned lawyer")
        if current_user.role != "Admin" and payload.assigned_lawyer_id != current_user.id:
            raise forbid("You can only assign clients to yourself")

    existing = await db.execute(select(Client).where(Client.email == email))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client with this email already exists",
        )

    client = Client(
        name=payload.name,
        email=email,
        phone=payload.phone,
        address=payload.address,
        company_name=payload.company_name,
        assigned_lawyer_id=payload.assigned_lawyer_id,
        created_by=current_user.id,
    )
    db.add(client)
    await db.commit()

    client = await _reload(db, client.id)
    logger.info("Created client %s (lawyer=%s)", client.id, client.assigned_lawyer_id)
    return client_response(client)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: uuid.UUID,
    payload: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role("Admin", "Lawyer")),
) -> ClientResponse:
    client = await get_client_or_404(db, client_id)
    _check_access(client, current_user)

    changes = payload.model_dump(exclude_unset=True)

    if "assigned_lawyer_id" in changes:
        lawyer_id = changes.pop("assigned_lawyer_id")
        if lawyer_id and not await get_lawyer(db, lawyer_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid assigned lawyer")
        # Only Admin can reassign
        if current_user.role == "Admin":
            client.assigned_lawyer_id = lawyer_id

    if changes.get("email"):
        changes["email"] = changes["email"].lower()

    for field, value in changes.items():
        if value is not None:
            setattr(client, field, value)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Client with this email already exists",
        ) from exc
    client = await _reload(db, client.id)
    return client_response(client)


@router.delete("/{client_id}", response_model=StatusMessage)
async def delete_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_role("Admin")),
) -> StatusMessage:
    client = await get_client_or_404(db, client_id)
    await db.delete(client)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Client still has cases or invoices",
        ) from exc

    logger.info("Deleted client %s", client_id)
    return StatusMessage(message="Client deleted successfully")
