"""
Pydantic schemas for customers and enrollment.
"""

from datetime import datetime

from pydantic import Field, field_validator

from teller_ledger.schemas.common import CamelModel, View


def lower_email(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip().lower()
    return v or None


class CreateCustomerPayload(CamelModel):
    """Counter registration. With an email this is an upsert."""
    name: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=40)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return lower_email(v)


class IdentityUserPayload(CamelModel):
    """Counter enrollment into internet banking."""
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    phone: str | None = Field(default=None, max_length=40)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return lower_email(v)


class EnrollPayload(CamelModel):
    """Self-enrollment; the email comes from the bearer token."""
    name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=40)


class CustomerView(View):
    customer_no: str = Field(serialization_alias="id")
    name: str
    email: str | None
    phone: str | None
    primary_account_no: str | None
    created_at: datetime
