"""
Change request model (JeSingo).

Address changes, loss reports and restriction requests filed by
a customer or at the counter, kept for a teller to process.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teller_ledger.models.base import Base
from teller_ledger.models.enums import ChangeRequestKind, ChangeRequestStatus


class ChangeRequest(Base):
    __tablename__ = "change_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    request_no: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    kind: Mapped[ChangeRequestKind] = mapped_column(
        SAEnum(ChangeRequestKind, name="change_request_kind_enum"),
        nullable=False,
        default=ChangeRequestKind.OTHER,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ChangeRequestStatus] = mapped_column(
        SAEnum(ChangeRequestStatus, name="change_request_status_enum"),
        nullable=False,
        default=ChangeRequestStatus.OPEN,
    )
    # "teller" or the customer's email
    filed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    customer: Mapped["Customer"] = relationship()
