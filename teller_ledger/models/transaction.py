"""
Transaction model.

One row per ledger-affecting side of an operation: a cash
deposit or withdrawal writes one, a transfer writes two.
Rows are append-only and the amount is signed (negative for
money leaving the account).
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    String, DateTime, BigInteger, ForeignKey,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teller_ledger.models.base import Base
from teller_ledger.models.enums import TransactionKind


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    kind: Mapped[TransactionKind] = mapped_column(
        SAEnum(
            TransactionKind,
            name="transaction_kind_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    memo: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    counter_account_no: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return f"<Transaction {self.kind.value} {self.amount}>"
