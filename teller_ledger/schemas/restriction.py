"""
Pydantic schemas for account restrictions.

A restriction request is a partial update: each flag is
three-valued. True sets it, False clears it, and an absent
(None) flag is left exactly as it is on the account.
"""

from pydantic import Field

from teller_ledger.models.enums import RestrictionKind
from teller_ledger.schemas.account import AccountRef
from teller_ledger.schemas.common import NonNegativeAmount


class RestrictPayload(AccountRef):
    payment_stop: bool | None = None
    seizure: bool | None = None
    provisional_seizure: bool | None = None
    limit_account: bool | None = None
    hold_amount: NonNegativeAmount | None = None
    reference: str = Field(default="", max_length=255)

    def supplied_flags(self) -> dict[RestrictionKind, bool]:
        """Only the flags the caller actually sent."""
        supplied = {
            RestrictionKind.PAYMENT_STOP: self.payment_stop,
            RestrictionKind.SEIZURE: self.seizure,
            RestrictionKind.PROVISIONAL_SEIZURE: self.provisional_seizure,
            RestrictionKind.LIMIT_ACCOUNT: self.limit_account,
        }
        return {kind: value for kind, value in supplied.items() if value is not None}


class ReleasePayload(AccountRef):
    kind: RestrictionKind
