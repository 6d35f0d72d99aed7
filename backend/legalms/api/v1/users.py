"""
User management endpoints.

Admins manage everyone; Lawyers may browse the directory; any user may view
and edit their own profile. Deleting a user only deactivates it.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.db import get_db
from legalms.core.rbac import forbid, require_role
from legalms.core.security import get_current_user, hash_password
from legalms.models.user import User
from legalms.schemas.user import Role, UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user's own profile."""
    return UserResponse.model_validate(current_user)


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: Role | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    db: AsyncSession = Depends(get_db),
    _staff: User = Depends(require_role("Admin", "Lawyer")),
) -> list[UserResponse]:
    stmt = select(User).order_by(User.created_at.desc())
    if role is not None:
        stmt = stmt.where(User.role == role)
    if is_active is not None:
        stmt = stmt.where(User.is_active.is_(is_active))

    result = await db.execute(stmt)
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_role("Admin")),
) -> UserResponse:
    email = payload.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role=payload.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Created user %s (role=%s)", user.id, user.role)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    if current_user.role not in ("Admin", "Lawyer") and current_user.id != user_id:
        raise forbid()
    user = await _get_user_or_404(db, user_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Admins update anyone; everyone else only themselves (role/active status are Admin-only)."""
    is_admin = current_user.role == "Admin"
    if not is_admin and current_user.id != user_id:
        raise forbid()

    user = await _get_user_or_404(db, user_id)

    if payload.first_name is not None:
        user.first_name = payload.first_name
    if payload.last_name is not None:
        user.last_name = payload.last_name
    if payload.phone is not None:
        user.phone = payload.phone
    if is_admin and payload.role is not None:
        user.role = payload.role
    if is_admin and payload.is_active is not None:
        user.is_active = payload.is_active

    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_role("Admin")),
) -> UserResponse:
    """Soft delete: the account is deactivated, not removed."""
    user = await _get_user_or_404(db, user_id)
    user.is_active = False
    await db.commit()
    await db.refresh(user)

    logger.info("Deactivated user %s", user.id)
    return UserResponse.model_validate(user)
