"""
Password hashing, JWT issuance/verification and the current-user dependency.

In development with DEV_SKIP_AUTH=true:
  - Pass X-Dev-User-ID: <user uuid> header to authenticate as that user.
  - If the header is absent, the first active Admin in the DB is used as
    fallback (only in development; production always requires a valid token).

In production / staging:
  - Bearer token must be an HS256 access token issued by /api/v1/auth/login.
"""
import logging
import uuid
from contextvars import ContextVar
from datetime import timedelta
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.config import get_settings
from legalms.core.db import get_db
from legalms.models.base import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def create_access_token(user_id: uuid.UUID | str, expires_minutes: int | None = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.jwt_expire_minutes
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _verify_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token.
    Raises HTTPException(401) on any failure.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired") from exc
    except JWTError as exc:
        logger.warning("Access token rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token verification failed") from exc

    if not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")

    return payload


def _parse_user_id(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        return None


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    FastAPI dependency: resolve and return the current authenticated User ORM object.

    Dev bypass: when DEV_SKIP_AUTH=true (development only), authentication is
    skipped and a User row from the DB is returned based on the X-Dev-User-ID
    header (or the first active Admin if the header is absent).
    """
    # Import here to avoid circular imports
    from legalms.models.user import User

    # ------------------------------------------------------------------ #
    # Development bypass
    # ------------------------------------------------------------------ #
    if settings.auth_disabled:
        dev_user_id = _parse_user_id(_dev_user_id.get(None))
        if dev_user_id:
            result = await db.execute(select(User).where(User.id == dev_user_id))
            user = result.scalars().first()
        else:
            result = await db.execute(
                select(User).where(User.role == "Admin", User.is_active.is_(True)).limit(1)
            )
            user = result.scalars().first()

        if user and user.is_active:
            return user
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Dev auth: no matching active user found. "
                   "Set X-Dev-User-ID header or create an admin user first.",
        )

    # ------------------------------------------------------------------ #
    # Bearer JWT
    # ------------------------------------------------------------------ #
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = _verify_access_token(token)
    user_id = _parse_user_id(payload["sub"])
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return user


# ---------------------------------------------------------------------------
# Context variable for dev-mode user injection (set by middleware)
# ---------------------------------------------------------------------------
_dev_user_id: ContextVar[str | None] = ContextVar("_dev_user_id", default=None)


def set_dev_user_id(user_id: str | None) -> None:
    _dev_user_id.set(user_id)
