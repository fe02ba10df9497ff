"""
Base classes shared by request payloads and response views.

The wire format is camelCase (accountNo, initialBalance); the
Python side stays snake_case. Either spelling is accepted on
input.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest amount or balance, in won. Well inside BIGINT.
MAX_AMOUNT = 10**15

# Strict: JSON true/false and numeric strings are not amounts
Amount = Annotated[int, Field(strict=True, gt=0, le=MAX_AMOUNT)]
NonNegativeAmount = Annotated[int, Field(strict=True, ge=0, le=MAX_AMOUNT)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class View(CamelModel):
    """Response model built from ORM objects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def normalize_account_no(value: str) -> str:
    """Account numbers are compared with all whitespace removed."""
    return "".join(value.split())
