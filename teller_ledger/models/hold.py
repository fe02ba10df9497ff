"""
Hold model.

A hold records a legal encumbrance (seizure or provisional
seizure) against an account. Holds are not deducted from the
spendable balance. Releasing the matching restriction deletes
them; the release itself is kept in the audit log.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, BigInteger, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teller_ledger.models.base import Base
from teller_ledger.models.enums import HoldKind


class Hold(Base):
    __tablename__ = "holds"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    kind: Mapped[HoldKind] = mapped_column(
        SAEnum(HoldKind, name="hold_kind_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Court order number or the request that created the hold
    reference: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="holds")

    def __repr__(self) -> str:
        return f"<Hold {self.kind.value} {self.amount}>"
