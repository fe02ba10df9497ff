"""
Audit log model.

Records every state-changing action: who did it, what it
touched, and the outcome. Customer creation, product enrollment,
restriction changes and hold releases have no money movement,
so this is where they leave a trace.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from teller_ledger.models.base import Base


class AuditLog(Base):
    """
    Immutable record of a system event.

    Append-only. You never update or delete an audit record.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    # JSON-encoded event payload
    details: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
