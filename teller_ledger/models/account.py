"""
Customer account model.

The account stores its balance directly. The balance is only ever
changed by LedgerService, which appends a Transaction row in the
same database transaction, so the balance always equals the sum
of the account's transaction amounts.

Status and restriction flags are independent. An account can be
blocked, limited and under seizure at the same time.
"""

from datetime import datetime

from sqlalchemy import (
    String, DateTime, Boolean, BigInteger, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teller_ledger.models.base import Base
from teller_ledger.models.enums import AccountStatus, RestrictionKind


# Valid status transitions
VALID_TRANSITIONS: dict[AccountStatus, set[AccountStatus]] = {
    AccountStatus.NORMAL: {AccountStatus.BLOCKED, AccountStatus.CLOSED},
    AccountStatus.BLOCKED: {AccountStatus.NORMAL, AccountStatus.CLOSED},
    AccountStatus.CLOSED: set(),  # Terminal state
}

# Restriction kind -> mapped attribute holding the flag
FLAG_ATTRIBUTES: dict[RestrictionKind, str] = {
    RestrictionKind.PAYMENT_STOP: "payment_stop",
    RestrictionKind.SEIZURE: "seizure",
    RestrictionKind.PROVISIONAL_SEIZURE: "provisional_seizure",
    RestrictionKind.LIMIT_ACCOUNT: "limit_account",
}


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_no: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    account_type: Mapped[str] = mapped_column(
        String(40), nullable=False, default="checking"
    )
    status: Mapped[AccountStatus] = mapped_column(
        SAEnum(
            AccountStatus,
            name="account_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=AccountStatus.NORMAL,
    )
    balance: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    # Restriction flags
    payment_stop: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    seizure: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    provisional_seizure: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # New accounts stay limited until released in person
    limit_account: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    pin_hash: Mapped[str | None] = mapped_column(String(200), nullable=True)
    opened_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="accounts")
    # Newest hold first
    holds: Mapped[list["Hold"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="Hold.id.desc()",
    )

    def can_transition_to(self, new_status: AccountStatus) -> bool:
        """Check if a status transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def flag(self, kind: RestrictionKind) -> bool:
        return getattr(self, FLAG_ATTRIBUTES[kind])

    def set_flag(self, kind: RestrictionKind, value: bool) -> None:
        setattr(self, FLAG_ATTRIBUTES[kind], value)

    def __repr__(self) -> str:
        return f"<Account {self.account_no} ({self.status.value}) {self.balance}>"
