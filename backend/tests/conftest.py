"""
Shared pytest fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
live Postgres instance.  The SQLite dialect supports most of our schema;
UUID columns are stored as strings and JSONB falls back to JSON.

Environment overrides are applied before importing app modules so that
Settings() picks up the test database URL.
"""
import os
from datetime import datetime

# Set test environment BEFORE importing any app module
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEV_SKIP_AUTH", "true")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from legalms.core.db import configure_sqlite
from legalms.core.security import hash_password
from legalms.models.base import Base
from legalms.models.user import User
from legalms.models.client import Client
from legalms.models.case import Case, CaseDocument, CaseTimelineEvent  # noqa: F401 — registers models
from legalms.models.billing import Invoice, InvoiceItem, TimeEntry  # noqa: F401
from legalms.models.message import Message  # noqa: F401
from legalms.models.notice import Notice  # noqa: F401
from legalms.models.sequence import SequenceCounter  # noqa: F401


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = configure_sqlite(
        create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _make_user(db: AsyncSession, email: str, role: str, first_name: str, last_name: str) -> User:
    user = User(
        email=email,
        password_hash=hash_password(PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create and return a persisted Admin user."""
    return await _make_user(db_session, "admin@example.com", "Admin", "Ada", "Admin")


@pytest_asyncio.fixture
async def lawyer_user(db_session: AsyncSession) -> User:
    """Create and return a persisted Lawyer user."""
    return await _make_user(db_session, "lawyer@example.com", "Lawyer", "Lee", "Lawyer")


@pytest_asyncio.fixture
async def other_lawyer(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other.lawyer@example.com", "Lawyer", "Olive", "Other")


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession) -> User:
    """A Client-role login whose email matches the client_record fixture."""
    return await _make_user(db_session, "acme@example.com", "Client", "Carl", "Client")


@pytest_asyncio.fixture
async def client_record(db_session: AsyncSession, admin_user: User, lawyer_user: User) -> Client:
    record = Client(
        name="Acme Corp",
        email="acme@example.com",
        phone="555-0100",
        address="1 Main Street",
        company_name="Acme",
        assigned_lawyer_id=lawyer_user.id,
        created_by=admin_user.id,
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


def case_payload(client_record: Client, lawyer: User, **overrides) -> dict:
    payload = {
        "title": "Acme v. Widgets",
        "description": "Breach of supply contract",
        "priority": "High",
        "caseType": "Corporate",
        "clientId": str(client_record.id),
        "assignedLawyerId": str(lawyer.id),
        "courtName": "District Court",
        "filingDate": "2024-03-01T09:00:00Z",
    }
    payload.update(overrides)
    return payload


def new_case(client_record: Client, lawyer: User, admin: User, case_number: str, **fields) -> Case:
    """An unsaved Case with an explicit number, for tests that seed the table directly."""
    return Case(
        case_number=case_number,
        title=fields.pop("title", "Seeded case"),
        description="Seeded",
        priority="Medium",
        case_type="Civil",
        client_id=client_record.id,
        assigned_lawyer_id=lawyer.id,
        court_name="District Court",
        filing_date=datetime(2024, 1, 1),
        created_by=admin.id,
        **fields,
    )


@pytest_asyncio.fixture
async def client(engine, db_session: AsyncSession, admin_user: User):
    """
    AsyncClient for the FastAPI app with:
    - DB dependency overridden to use the test session
    - DEV_SKIP_AUTH=true so requests are authenticated as admin_user
      by default (pass X-Dev-User-ID header with a different user id
      to switch users).
    """
    from legalms.main import app
    from legalms.core.db import get_db

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        headers={"X-Dev-User-ID": str(admin_user.id)},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def as_user(user: User) -> dict:
    return {"X-Dev-User-ID": str(user.id)}
