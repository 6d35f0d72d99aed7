import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from legalms.models.base import Base, utcnow
from legalms.models.case import Case
from legalms.models.client import Client
from legalms.models.user import User

NOTICE_TYPES = ("Legal", "Court", "Administrative", "Other")
NOTICE_STATUSES = ("Pending", "Acknowledged", "Responded", "Expired")


class Notice(Base):
    __tablename__ = "notices"
    __table_args__ = (Index("idx_notices_status_due", "status", "due_date"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    notice_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Legal")
    case_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cases.id", ondelete="SET NULL"), nullable=True, index=True
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    issue_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending")
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="Medium")
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    case: Mapped[Case | None] = relationship(lazy="selectin")
    client: Mapped[Client | None] = relationship(lazy="selectin")
    author: Mapped[User] = relationship(foreign_keys=[created_by], lazy="selectin")
