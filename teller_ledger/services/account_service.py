"""
Account service — opening accounts and managing their status.

Opening an account with an initial balance goes through the
ledger like any other deposit, so the account's balance and its
transaction history agree from the first row.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from teller_ledger.exceptions import InvalidPin, InvalidStatusTransition
from teller_ledger.models.account import Account
from teller_ledger.models.customer import Customer
from teller_ledger.models.enums import AccountStatus, TransactionKind
from teller_ledger.schemas.account import OpenAccountPayload, SetStatusPayload
from teller_ledger.security import hash_pin
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.ledger_service import LedgerService
from teller_ledger.services.sequence_service import SequenceService

MIN_PIN_LENGTH = 4
DEFAULT_ACCOUNT_TYPE = "checking"


class AccountService:

    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.audit = audit or AuditService(db)
        self.ledger_service = LedgerService(db)
        self.customer_service = CustomerService(db)
        self.sequences = SequenceService(db)

    def create_account(
        self,
        customer: Customer,
        account_type: str = DEFAULT_ACCOUNT_TYPE,
        pin_hash: str | None = None,
    ) -> Account:
        """
        Create an empty account for a customer.

        New accounts start normal and limited; every other
        restriction flag is off.
        """
        account = Account(
            account_no=self.sequences.next_account_no(),
            customer=customer,
            account_type=account_type,
            status=AccountStatus.NORMAL,
            balance=0,
            payment_stop=False,
            seizure=False,
            provisional_seizure=False,
            limit_account=True,
            pin_hash=pin_hash,
        )
        self.db.add(account)
        self.db.flush()
        if not customer.primary_account_no:
            customer.primary_account_no = account.account_no
        return account

    def open_account(self, request: OpenAccountPayload) -> Account:
        """
        Open an account for an existing customer.

        Fails with CustomerNotFound for an unknown customer and
        InvalidPin for a PIN shorter than four characters. Only the
        salted hash of the PIN is stored.
        """
        customer = self.customer_service.get_by_customer_no(request.customer_id)

        if len(request.pin) < MIN_PIN_LENGTH:
            raise InvalidPin(f"PIN must be at least {MIN_PIN_LENGTH} characters")

        account = self.create_account(
            customer,
            account_type=request.account_type or DEFAULT_ACCOUNT_TYPE,
            pin_hash=hash_pin(request.pin),
        )

        if request.initial_balance > 0:
            self.ledger_service.record_transaction(
                account,
                TransactionKind.DEPOSIT,
                request.initial_balance,
                memo="Opening deposit",
            )
        self.audit.record(
            "ACCOUNT_OPEN",
            customer_no=customer.customer_no,
            account_no=account.account_no,
            initial_balance=request.initial_balance,
        )
        return account

    def change_status(self, request: SetStatusPayload) -> Account:
        """
        Move an account to a new status.

        Enforces the status machine. Setting the current status
        again is a no-op rather than an error.
        """
        account = self.ledger_service.get_account(request.account_no)

        if account.status == request.status:
            return account

        if not account.can_transition_to(request.status):
            raise InvalidStatusTransition(
                f"Cannot transition from {account.status.value} "
                f"to {request.status.value}"
            )

        old_status = account.status
        account.status = request.status
        if request.status == AccountStatus.CLOSED:
            account.closed_at = datetime.utcnow()

        self.db.flush()
        self.audit.record(
            "STATUS",
            account_no=account.account_no,
            old=old_status.value,
            new=request.status.value,
        )
        return account

    def get_account(self, account_no: str) -> Account:
        return self.ledger_service.get_account(account_no)

    def list_accounts(self) -> list[Account]:
        return list(self.db.execute(
            select(Account).order_by(Account.id)
        ).scalars().all())
