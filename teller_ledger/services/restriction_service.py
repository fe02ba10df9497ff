"""
Restriction service — payment stops, seizures and limit accounts.

The four restriction flags are independent toggles. Restricting
is a partial update: only the flags named in the request change.
Seizure-type restrictions can carry a hold amount, recorded as a
Hold at the head of the account's hold list.
"""

from sqlalchemy.orm import Session

from teller_ledger.logging_config import get_logger
from teller_ledger.models.account import Account
from teller_ledger.models.enums import HoldKind, RestrictionKind
from teller_ledger.models.hold import Hold
from teller_ledger.schemas.restriction import RestrictPayload, ReleasePayload
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.ledger_service import LedgerService

logger = get_logger(__name__)

# Releasing one of these also removes the holds of the same kind
HOLD_KIND_FOR_RESTRICTION = {
    RestrictionKind.SEIZURE: HoldKind.SEIZURE,
    RestrictionKind.PROVISIONAL_SEIZURE: HoldKind.PROVISIONAL_SEIZURE,
}


def merge_restrictions(
    account: Account, update: dict[RestrictionKind, bool]
) -> dict[str, bool]:
    """
    Apply supplied flags to an account; absent flags are untouched.

    Returns the flags that actually changed, keyed by wire name.
    """
    changed = {}
    for kind, value in update.items():
        if account.flag(kind) != value:
            account.set_flag(kind, value)
            changed[kind.value] = value
    return changed


class RestrictionService:

    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.audit = audit or AuditService(db)

    def restrict(self, request: RestrictPayload) -> Account:
        account = self.ledger_service.get_account(request.account_no)
        changed = merge_restrictions(account, request.supplied_flags())

        hold = None
        if request.hold_amount:
            # Seizure wins when both are set in one request
            if request.seizure:
                hold = Hold(
                    kind=HoldKind.SEIZURE,
                    amount=request.hold_amount,
                    reference=request.reference,
                )
            elif request.provisional_seizure:
                hold = Hold(
                    kind=HoldKind.PROVISIONAL_SEIZURE,
                    amount=request.hold_amount,
                    reference=request.reference,
                )
        if hold is not None:
            account.holds.insert(0, hold)

        self.db.flush()
        self.audit.record(
            "RESTRICT",
            account_no=account.account_no,
            changed=changed,
            hold_kind=hold.kind.value if hold else None,
            hold_amount=hold.amount if hold else None,
            reference=request.reference,
        )
        logger.info(
            "restrict %s", changed, extra={"account_no": account.account_no}
        )
        return account

    def release(self, request: ReleasePayload) -> Account:
        """
        Clear one restriction flag.

        Releasing a seizure-type restriction also removes every hold
        of that kind. The removed holds are written to the audit log
        before the rows are deleted. Releasing an already-clear flag
        leaves the account unchanged.
        """
        account = self.ledger_service.get_account(request.account_no)
        account.set_flag(request.kind, False)

        removed = []
        hold_kind = HOLD_KIND_FOR_RESTRICTION.get(request.kind)
        if hold_kind is not None:
            removed = [h for h in account.holds if h.kind == hold_kind]

        self.audit.record(
            "RELEASE",
            account_no=account.account_no,
            kind=request.kind.value,
            removed_holds=[
                {
                    "kind": h.kind.value,
                    "amount": h.amount,
                    "reference": h.reference,
                    "created_at": h.created_at,
                }
                for h in removed
            ],
        )
        for hold in removed:
            account.holds.remove(hold)

        self.db.flush()
        return account
