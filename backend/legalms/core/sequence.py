"""
Human-readable, year-scoped numbers for cases and invoices.

    CASE-2024-0001, CASE-2024-0002, ...  INV-2024-0001, ...

The number is the kind's prefix, the calendar year of creation and a sequence
zero-padded to four digits. Past 9999 the field widens (CASE-2024-10000).
Numbering restarts at 1 each year and is independent per kind.

Strategies (SEQUENCE_STRATEGY):
  counter  Atomic INSERT .. ON CONFLICT DO UPDATE .. RETURNING on the
           sequence_counters row for (kind, year). Concurrent callers always
           receive distinct values.
  count    Count identifiers already carrying the "{PREFIX}-{year}-" prefix
           and add one. Two concurrent callers that observe the same count
           produce the same identifier; the unique index on the identifier
           column rejects the second insert. Kept for parity with data created
           before the counter table existed.

Fallback when the allocation query fails (SEQUENCE_FALLBACK):
  timestamp  "{PREFIX}-{year}-" + last four digits of the epoch milliseconds.
             Not unique. The record is flagged with number_degraded=True.
  legacy     As timestamp for cases; invoices always get INV-{year}-0001,
             which collides on the second degraded invoice of a year.
  strict     Raise SequenceAllocationError.

The unique constraint on the identifier column is authoritative; allocation is
best effort. persist_with_identifier() closes the gap by re-allocating a
bounded number of times when the insert hits that constraint.
"""
import enum
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from legalms.core.config import Settings, get_settings
from legalms.models.billing import Invoice
from legalms.models.case import Case
from legalms.models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

STRATEGIES = ("counter", "count")
FALLBACKS = ("timestamp", "legacy", "strict")


class SequenceKind(str, enum.Enum):
    CASE = "Case"
    INVOICE = "Invoice"

    @property
    def prefix(self) -> str:
        return _SCOPES[self][0]

    @property
    def attribute(self) -> str:
        """Name of the identifier attribute on the owning model."""
        return _SCOPES[self][1].key

    @property
    def column(self):
        return _SCOPES[self][1]


_SCOPES = {
    SequenceKind.CASE: ("CASE", Case.case_number),
    SequenceKind.INVOICE: ("INV", Invoice.invoice_number),
}


class SequenceAllocationError(Exception):
    """
    No number could be allocated: the query failed under the strict policy,
    or the database has no atomic upsert for the counter strategy.
    """

    def __init__(self, kind: SequenceKind, year: int, reason: str | None = None):
        message = f"Could not allocate a {kind.value} number for {year}"
        super().__init__(f"{message}: {reason}" if reason else message)
        self.kind = kind
        self.year = year


class IdentifierConflictError(Exception):
    """Every allocated identifier collided with an existing record."""

    def __init__(self, kind: SequenceKind, identifier: str, attempts: int):
        super().__init__(
            f"{kind.value} number {identifier} already exists (after {attempts} attempt(s))"
        )
        self.kind = kind
        self.identifier = identifier
        self.attempts = attempts


@dataclass(frozen=True)
class Allocation:
    identifier: str
    sequence: int | None  # None when supplied or degraded
    degraded: bool = False


def format_identifier(kind: SequenceKind, year: int, sequence: int) -> str:
    return f"{kind.prefix}-{year}-{sequence:04d}"


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class SequenceAllocator:
    def __init__(self, strategy: str = "counter", fallback: str = "timestamp"):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown sequence strategy {strategy!r}")
        if fallback not in FALLBACKS:
            raise ValueError(f"Unknown sequence fallback {fallback!r}")
        self.strategy = strategy
        self.fallback = fallback

    @classmethod
    def from_settings(cls, settings: Settings) -> "SequenceAllocator":
        return cls(strategy=settings.sequence_strategy, fallback=settings.sequence_fallback)

    async def allocate(
        self,
        db: AsyncSession,
        kind: SequenceKind,
        created_at: datetime,
        existing: str | None = None,
    ) -> str:
        """Return the identifier for a new entity of *kind* created at *created_at*."""
        allocation = await self.reserve(db, kind, created_at, existing)
        return allocation.identifier

    async def reserve(
        self,
        db: AsyncSession,
        kind: SequenceKind,
        created_at: datetime,
        existing: str | None = None,
    ) -> Allocation:
        if existing:
            return Allocation(identifier=existing, sequence=None)

        year = created_at.year
        try:
            if self.strategy == "counter":
                sequence = await self._increment_counter(db, kind, year)
            else:
                sequence = await self._count_existing(db, kind, year) + 1
        except SQLAlchemyError as exc:
            return self._degrade(kind, year, exc)

        return Allocation(identifier=format_identifier(kind, year, sequence), sequence=sequence)

    # ------------------------------------------------------------------ #
    # Queries. Each runs in a savepoint so a failure leaves the caller's
    # transaction usable for the fallback path.
    # ------------------------------------------------------------------ #

    async def _count_existing(self, db: AsyncSession, kind: SequenceKind, year: int) -> int:
        model = kind.column.class_
        stmt = (
            select(func.count())
            .select_from(model)
            .where(kind.column.like(f"{kind.prefix}-{year}-%"))
        )
        async with db.begin_nested():
            result = await db.execute(stmt)
            return result.scalar_one()

    async def _increment_counter(self, db: AsyncSession, kind: SequenceKind, year: int) -> int:
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise SequenceAllocationError(kind, year, f"atomic counter not supported on {dialect}")

        stmt = (
            insert(SequenceCounter)
            .values(kind=kind.value, year=year, last_seq=1)
            .on_conflict_do_update(
                index_elements=["kind", "year"],
                set_={"last_seq": SequenceCounter.last_seq + 1},
            )
            .returning(SequenceCounter.last_seq)
        )
        async with db.begin_nested():
            result = await db.execute(stmt)
            return result.scalar_one()

    def _degrade(self, kind: SequenceKind, year: int, exc: Exception) -> Allocation:
        if self.fallback == "strict":
            logger.error("%s number allocation failed for %d: %s", kind.value, year, exc)
            raise SequenceAllocationError(kind, year) from exc

        if kind is SequenceKind.INVOICE and self.fallback == "legacy":
            identifier = f"{kind.prefix}-{year}-0001"
            logger.error(
                "Invoice number allocation failed (%s); legacy fallback assigned fixed %s, "
                "which collides with any other degraded invoice this year",
                exc,
                identifier,
            )
            return Allocation(identifier=identifier, sequence=None, degraded=True)

        identifier = f"{kind.prefix}-{year}-{str(_now_millis())[-4:]}"
        logger.warning(
            "%s number allocation failed (%s); degraded to %s",
            kind.value,
            exc,
            identifier,
            extra={"sequence_kind": kind.value, "sequence_degraded": True},
        )
        return Allocation(identifier=identifier, sequence=None, degraded=True)


def _is_identifier_conflict(exc: IntegrityError, kind: SequenceKind) -> bool:
    return kind.attribute in str(exc.orig)


async def persist_with_identifier(
    db: AsyncSession,
    entity,
    kind: SequenceKind,
    allocator: SequenceAllocator,
    created_at: datetime,
    max_attempts: int = 3,
) -> Allocation:
    """
    Allocate an identifier for *entity*, add it to the session and flush.

    A flush that violates the identifier's unique constraint is rolled back to
    a savepoint and retried with a fresh allocation, up to *max_attempts*.
    Identifiers supplied by the caller are never replaced.
    """
    supplied = getattr(entity, kind.attribute, None) or None
    attempts = max(1, max_attempts)

    attempt = 0
    while True:
        attempt += 1
        allocation = await allocator.reserve(db, kind, created_at, supplied)
        setattr(entity, kind.attribute, allocation.identifier)
        entity.number_degraded = allocation.degraded
        try:
            async with db.begin_nested():
                db.add(entity)
                await db.flush()
        except IntegrityError as exc:
            if not _is_identifier_conflict(exc, kind):
                raise
            if supplied or attempt == attempts:
                raise IdentifierConflictError(kind, allocation.identifier, attempt) from exc
            logger.warning(
                "%s number %s already taken (attempt %d/%d); re-allocating",
                kind.value,
                allocation.identifier,
                attempt,
                attempts,
            )
        else:
            return allocation


def get_allocator() -> SequenceAllocator:
    """FastAPI dependency."""
    return SequenceAllocator.from_settings(get_settings())
