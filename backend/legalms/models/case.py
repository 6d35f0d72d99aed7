import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from legalms.models.base import Base, utcnow
from legalms.models.client import Client
from legalms.models.user import User

CASE_STATUSES = ("Open", "InProgress", "Closed", "OnHold")
PRIORITIES = ("Low", "Medium", "High", "Urgent")
CASE_TYPES = (
    "Civil",
    "Criminal",
    "Corporate",
    "Family",
    "Property",
    "Labor",
    "Tax",
    "PersonalInjury",
    "Immigration",
    "Bankruptcy",
    "ChequeDefault",
    "Other",
)
TIMELINE_EVENT_TYPES = ("filing", "hearing", "document", "status_change", "note")


class Case(Base):
    __tablename__ = "cases"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Allocated once at first insert (see legalms.core.sequence), never updated.
    case_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    number_degraded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Open")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="Medium")
    case_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    assigned_lawyer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    court_name: Mapped[str] = mapped_column(String(200), nullable=False)
    filing_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    next_hearing_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    custom_fields: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict
    )
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    client: Mapped[Client] = relationship(lazy="selectin")
    assigned_lawyer: Mapped[User] = relationship(foreign_keys=[assigned_lawyer_id], lazy="selectin")
    documents: Mapped[list["CaseDocument"]] = relationship(
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CaseDocument.created_at",
        lazy="selectin",
    )
    timeline: Mapped[list["CaseTimelineEvent"]] = relationship(
        back_populates="case",
        cascade="all, delete-orphan",
        order_by="CaseTimelineEvent.created_at",
        lazy="selectin",
    )

    def add_event(self, event_type: str, title: str, description: str, created_by: uuid.UUID) -> "CaseTimelineEvent":
        event = CaseTimelineEvent(
            date=utcnow(),
            title=title,
            description=description,
            type=event_type,
            created_by=created_by,
        )
        self.timeline.append(event)
        return event


class CaseTimelineEvent(Base):
    __tablename__ = "case_timeline_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    case: Mapped[Case] = relationship(back_populates="timeline")


class CaseDocument(Base):
    __tablename__ = "case_documents"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    document_type: Mapped[str] = mapped_column(String(100), nullable=False)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    case: Mapped[Case] = relationship(back_populates="documents")
