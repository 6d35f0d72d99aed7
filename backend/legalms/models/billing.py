import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text, event, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from legalms.models.base import Base, utcnow
from legalms.models.case import Case
from legalms.models.client import Client
from legalms.models.user import User

INVOICE_STATUSES = ("Draft", "Sent", "Paid", "Overdue", "Cancelled")

_CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(_CENTS)


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lawyer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    case: Mapped[Case] = relationship(lazy="selectin")
    lawyer: Mapped[User] = relationship(lazy="selectin")

    def recompute_amount(self) -> Decimal:
        self.amount = _money(Decimal(str(self.hours)) * Decimal(str(self.hourly_rate)))
        return self.amount


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Allocated once at first insert (see legalms.core.sequence), never updated.
    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    number_degraded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    issue_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Draft")
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    client: Mapped[Client] = relationship(lazy="selectin")
    items: Mapped[list["InvoiceItem"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
        lazy="selectin",
    )

    @property
    def case_ids(self) -> list[uuid.UUID]:
        """Distinct cases billed on this invoice, in item order."""
        seen: list[uuid.UUID] = []
        for item in self.items:
            if item.case_id not in seen:
                seen.append(item.case_id)
        return seen

    def recompute_total(self) -> Decimal:
        total = Decimal("0")
        for item in self.items:
            total += item.recompute_amount()
        self.total_amount = _money(total)
        return self.total_amount

    def sum_items(self) -> Decimal:
        """Total of the stored item amounts; the items themselves are left untouched."""
        self.total_amount = _money(sum((Decimal(str(item.amount or 0)) for item in self.items), Decimal("0")))
        return self.total_amount


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cases.id", ondelete="RESTRICT"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    invoice: Mapped[Invoice] = relationship(back_populates="items")

    def recompute_amount(self) -> Decimal:
        self.amount = _money(Decimal(str(self.quantity)) * Decimal(str(self.rate)))
        return self.amount


# --------------------------------------------------------------------------- #
# Derived fields are recomputed on every save
# --------------------------------------------------------------------------- #

@event.listens_for(TimeEntry, "before_insert")
@event.listens_for(TimeEntry, "before_update")
def _time_entry_amount(mapper, connection, target: TimeEntry) -> None:
    target.recompute_amount()


@event.listens_for(InvoiceItem, "before_insert")
@event.listens_for(InvoiceItem, "before_update")
def _invoice_item_amount(mapper, connection, target: InvoiceItem) -> None:
    target.recompute_amount()


@event.listens_for(Invoice, "before_insert")
def _invoice_total(mapper, connection, target: Invoice) -> None:
    target.recompute_total()


# Items are flushed on their own; touching them here would be discarded.
@event.listens_for(Invoice, "before_update")
def _invoice_total_on_update(mapper, connection, target: Invoice) -> None:
    target.sum_items()
