from sqlalchemy import Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from legalms.models.base import Base


class SequenceCounter(Base):
    """Last allocated sequence number per (kind, year)."""

    __tablename__ = "sequence_counters"

    kind: Mapped[str] = mapped_column(String(20), primary_key=True)
    year: Mapped[int] = mapped_column(SmallInteger, primary_key=True)
    last_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
