"""
Pydantic schemas for account operations.
"""

from datetime import datetime

from pydantic import Field, field_validator

from teller_ledger.models.enums import AccountStatus, HoldKind
from teller_ledger.schemas.common import (
    CamelModel,
    NonNegativeAmount,
    View,
    normalize_account_no,
)


# --- Requests ---

class AccountRef(CamelModel):
    """Any payload that names a single account."""
    account_no: str = Field(min_length=1, max_length=40)

    @field_validator("account_no")
    @classmethod
    def strip_spaces(cls, v: str) -> str:
        return normalize_account_no(v)


class OpenAccountPayload(CamelModel):
    """Request to open an additional account for an existing customer."""
    customer_id: str = Field(min_length=1, max_length=255)
    account_type: str = Field(default="checking", alias="type", max_length=40)
    initial_balance: NonNegativeAmount = 0
    # Length is checked by the service so it can report InvalidPin
    pin: str = Field(max_length=64)


class SetStatusPayload(AccountRef):
    status: AccountStatus


class GetAccountPayload(AccountRef):
    pass


# --- Responses ---

class HoldView(View):
    kind: HoldKind
    amount: int
    reference: str
    created_at: datetime


class FlagsView(View):
    payment_stop: bool
    seizure: bool
    provisional_seizure: bool
    limit_account: bool


class AccountView(View):
    account_no: str
    customer_no: str
    account_type: str = Field(serialization_alias="type")
    status: AccountStatus
    balance: int
    flags: FlagsView
    holds: list[HoldView]
    has_pin: bool
    opened_at: datetime

    @classmethod
    def from_model(cls, account) -> "AccountView":
        return cls(
            account_no=account.account_no,
            customer_no=account.customer.customer_no,
            account_type=account.account_type,
            status=account.status,
            balance=account.balance,
            flags=FlagsView.model_validate(account),
            holds=[HoldView.model_validate(h) for h in account.holds],
            has_pin=account.pin_hash is not None,
            opened_at=account.opened_at,
        )
