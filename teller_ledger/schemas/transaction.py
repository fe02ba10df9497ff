"""
Pydantic schemas for cash and transfer operations.
"""

import uuid
from datetime import datetime

from pydantic import Field, field_validator

from teller_ledger.models.enums import CashKind, TransactionKind
from teller_ledger.schemas.account import AccountRef
from teller_ledger.schemas.common import Amount, CamelModel, View, normalize_account_no


class CashPayload(AccountRef):
    kind: CashKind
    amount: Amount
    memo: str = Field(default="", max_length=255)


class TransferPayload(CamelModel):
    from_account: str = Field(alias="from", min_length=1, max_length=40)
    to_account: str = Field(alias="to", min_length=1, max_length=40)
    amount: Amount
    memo: str = Field(default="", max_length=255)

    @field_validator("from_account", "to_account")
    @classmethod
    def strip_spaces(cls, v: str) -> str:
        return normalize_account_no(v)


class TransactionView(View):
    external_id: uuid.UUID = Field(serialization_alias="id")
    account_no: str
    kind: TransactionKind
    amount: int
    balance_after: int
    memo: str
    counter_account_no: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, txn) -> "TransactionView":
        return cls(
            external_id=txn.external_id,
            account_no=txn.account.account_no,
            kind=txn.kind,
            amount=txn.amount,
            balance_after=txn.balance_after,
            memo=txn.memo,
            counter_account_no=txn.counter_account_no,
            created_at=txn.created_at,
        )
