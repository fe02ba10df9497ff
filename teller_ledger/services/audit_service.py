"""
Audit service — appends events to the audit log.

Events are written in the caller's database transaction, so a
rolled-back action leaves no audit record behind.
"""

import json

from sqlalchemy import select
from sqlalchemy.orm import Session

from teller_ledger.models.audit_log import AuditLog


class AuditService:

    def __init__(self, db: Session, actor: str = "system"):
        self.db = db
        self.actor = actor

    def record(self, event_type: str, **details) -> AuditLog:
        entry = AuditLog(
            event_type=event_type,
            actor=self.actor,
            details=json.dumps(details, default=str, ensure_ascii=False),
        )
        self.db.add(entry)
        return entry

    def events(self, event_type: str | None = None) -> list[AuditLog]:
        """Return audit events, oldest first."""
        query = select(AuditLog).order_by(AuditLog.id)
        if event_type is not None:
            query = query.where(AuditLog.event_type == event_type)
        return list(self.db.execute(query).scalars().all())
