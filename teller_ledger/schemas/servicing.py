"""
Pydantic schemas for products, change requests, cards and forms.

``who`` fields identify a customer by customer number, email or
exact name, the way a teller would look someone up at the counter.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from teller_ledger.models.enums import ChangeRequestKind, ChangeRequestStatus
from teller_ledger.schemas.account import AccountRef
from teller_ledger.schemas.common import Amount, CamelModel, View
from teller_ledger.security import mask_card_number


# --- Requests ---

class ProductPayload(CamelModel):
    who: str = Field(min_length=1, max_length=255)
    product_type: str = Field(alias="type", min_length=1, max_length=100)
    amount: Amount
    months: int = Field(strict=True, gt=0, le=600)
    memo: str = Field(default="", max_length=255)


class CustomerReportPayload(CamelModel):
    kind: ChangeRequestKind = ChangeRequestKind.OTHER
    text: str = Field(min_length=1, max_length=2000)


class TellerReportPayload(CustomerReportPayload):
    who: str = Field(min_length=1, max_length=255)


class ResolveReportPayload(CamelModel):
    request_no: str = Field(min_length=1, max_length=20)


class IssueCardPayload(AccountRef):
    pin: str = Field(min_length=1, max_length=64)
    brand: str = Field(default="debit", max_length=40)


class FormPayload(CamelModel):
    who: str = Field(min_length=1, max_length=255)
    form_type: str = Field(min_length=1, max_length=100)
    form_fields: dict[str, Any] = Field(default_factory=dict, alias="fields")
    signature: str = Field(min_length=1)


# --- Responses ---

class ProductView(View):
    product_no: str = Field(serialization_alias="id")
    product_type: str = Field(serialization_alias="type")
    amount: int
    months: int
    memo: str
    created_at: datetime


class ChangeRequestView(View):
    request_no: str = Field(serialization_alias="id")
    kind: ChangeRequestKind
    text: str
    status: ChangeRequestStatus
    filed_by: str
    created_at: datetime
    resolved_at: datetime | None


class CardView(View):
    masked_number: str
    account_no: str
    brand: str
    expiry: str
    status: str
    issued_at: datetime

    @classmethod
    def from_model(cls, card) -> "CardView":
        return cls(
            masked_number=mask_card_number(card.card_number),
            account_no=card.account.account_no,
            brand=card.brand,
            expiry=card.expiry,
            status=card.status,
            issued_at=card.issued_at,
        )


class FormView(View):
    form_no: str = Field(serialization_alias="id")
    form_type: str
    form_fields: dict[str, Any] = Field(alias="fields")
    submitted_at: datetime
