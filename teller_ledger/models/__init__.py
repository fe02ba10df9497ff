"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from teller_ledger.models.base import Base
from teller_ledger.models.enums import (
    AccountStatus,
    TransactionKind,
    CashKind,
    RestrictionKind,
    HoldKind,
    ChangeRequestKind,
    ChangeRequestStatus,
)
from teller_ledger.models.audit_log import AuditLog
from teller_ledger.models.sequence import SequenceCounter
from teller_ledger.models.customer import Customer
from teller_ledger.models.account import Account
from teller_ledger.models.hold import Hold
from teller_ledger.models.transaction import Transaction
from teller_ledger.models.product import ProductEnrollment
from teller_ledger.models.change_request import ChangeRequest
from teller_ledger.models.card import Card
from teller_ledger.models.form import FormSubmission

__all__ = [
    "Base",
    "AccountStatus",
    "TransactionKind",
    "CashKind",
    "RestrictionKind",
    "HoldKind",
    "ChangeRequestKind",
    "ChangeRequestStatus",
    "AuditLog",
    "SequenceCounter",
    "Customer",
    "Account",
    "Hold",
    "Transaction",
    "ProductEnrollment",
    "ChangeRequest",
    "Card",
    "FormSubmission",
]
