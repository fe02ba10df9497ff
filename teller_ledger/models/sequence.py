"""
Named counters for human-readable identifiers.

Customer numbers (C-1001), account numbers (110-100-001) and
request numbers are drawn from here. The row is locked while
it is incremented.
"""

from sqlalchemy import String, BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from teller_ledger.models.base import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(40), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False)
