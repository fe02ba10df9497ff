"""
Tests for the AccountService and CustomerService.
"""

import pytest

from teller_ledger.exceptions import (
    CustomerNotFound,
    InvalidPin,
    InvalidStatusTransition,
)
from teller_ledger.models.enums import AccountStatus, TransactionKind
from teller_ledger.schemas.account import OpenAccountPayload, SetStatusPayload
from teller_ledger.security import verify_pin
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.ledger_service import LedgerService


def make_customer(db_session, name="Kim Minji", email=None):
    customer = CustomerService(db_session).create_customer(name, email)
    db_session.commit()
    return customer


def open_for(db_session, customer, pin="1234", balance=0, account_type="checking"):
    account = AccountService(db_session).open_account(OpenAccountPayload(
        customer_id=customer.customer_no,
        account_type=account_type,
        pin=pin,
        initial_balance=balance,
    ))
    db_session.commit()
    return account


def set_status(db_session, account, status):
    account = AccountService(db_session).change_status(SetStatusPayload(
        account_no=account.account_no, status=status,
    ))
    db_session.commit()
    return account


# --- Customer Tests ---

class TestCustomerNumbers:

    def test_customer_numbers_start_at_1001(self, db_session):
        first = make_customer(db_session, "Kim")
        second = make_customer(db_session, "Lee")

        assert first.customer_no == "C-1001"
        assert second.customer_no == "C-1002"

    def test_unknown_customer_number_raises(self, db_session):
        with pytest.raises(CustomerNotFound):
            CustomerService(db_session).get_by_customer_no("C-9999")


class TestFindByWho:

    def test_find_by_customer_number(self, db_session):
        customer = make_customer(db_session, "Kim", "kim@x.com")

        assert CustomerService(db_session).find_by_who("c-1001") is customer

    def test_find_by_email_case_insensitive(self, db_session):
        customer = make_customer(db_session, "Kim", "kim@x.com")

        assert CustomerService(db_session).find_by_who(" KIM@X.COM ") is customer

    def test_find_by_name_returns_oldest(self, db_session):
        first = make_customer(db_session, "Kim")
        make_customer(db_session, "Kim")

        assert CustomerService(db_session).find_by_who("kim") is first

    def test_customer_number_beats_name(self, db_session):
        # A customer literally named like another's number
        target = make_customer(db_session, "Lee")
        make_customer(db_session, "C-1001")

        assert CustomerService(db_session).find_by_who("C-1001") is target

    def test_no_match_raises(self, db_session):
        with pytest.raises(CustomerNotFound):
            CustomerService(db_session).find_by_who("nobody")


# --- Account Opening Tests ---

class TestOpenAccount:

    def test_open_account_succeeds(self, db_session):
        customer = make_customer(db_session)
        account = open_for(db_session, customer)

        assert account.account_no == "110-100-001"
        assert account.status == AccountStatus.NORMAL
        assert account.balance == 0
        assert account.limit_account is True
        assert account.payment_stop is False
        assert account.seizure is False
        assert account.provisional_seizure is False

    def test_first_account_becomes_primary(self, db_session):
        customer = make_customer(db_session)
        first = open_for(db_session, customer)
        open_for(db_session, customer, account_type="savings")

        assert customer.primary_account_no == first.account_no
        assert len(customer.accounts) == 2

    def test_pin_stored_only_as_hash(self, db_session):
        customer = make_customer(db_session)
        account = open_for(db_session, customer, pin="4321")

        assert account.pin_hash != "4321"
        assert verify_pin("4321", account.pin_hash)

    def test_initial_balance_recorded_as_deposit(self, db_session):
        customer = make_customer(db_session)
        account = open_for(db_session, customer, balance=250000)

        transactions = LedgerService(db_session).get_transactions(account.id)
        assert account.balance == 250000
        assert len(transactions) == 1
        assert transactions[0].kind == TransactionKind.DEPOSIT
        assert transactions[0].amount == 250000

    def test_zero_initial_balance_writes_no_transaction(self, db_session):
        customer = make_customer(db_session)
        account = open_for(db_session, customer)

        assert LedgerService(db_session).get_transactions(account.id) == []

    def test_short_pin_rejected(self, db_session):
        customer = make_customer(db_session)

        with pytest.raises(InvalidPin):
            open_for(db_session, customer, pin="123")

    def test_unknown_customer_checked_before_pin(self, db_session):
        with pytest.raises(CustomerNotFound):
            AccountService(db_session).open_account(OpenAccountPayload(
                customer_id="C-9999", pin="1",
            ))

    def test_open_is_audited(self, db_session):
        customer = make_customer(db_session)
        account = open_for(db_session, customer, balance=1000)

        events = AuditService(db_session).events("ACCOUNT_OPEN")
        assert len(events) == 1
        assert account.account_no in events[0].details


# --- State Machine Tests ---

class TestAccountStatusTransitions:

    def test_normal_to_blocked(self, db_session):
        account = open_for(db_session, make_customer(db_session))

        account = set_status(db_session, account, AccountStatus.BLOCKED)

        assert account.status == AccountStatus.BLOCKED

    def test_blocked_back_to_normal(self, db_session):
        account = open_for(db_session, make_customer(db_session))
        set_status(db_session, account, AccountStatus.BLOCKED)

        account = set_status(db_session, account, AccountStatus.NORMAL)

        assert account.status == AccountStatus.NORMAL

    def test_close_sets_closed_at(self, db_session):
        account = open_for(db_session, make_customer(db_session))

        account = set_status(db_session, account, AccountStatus.CLOSED)

        assert account.status == AccountStatus.CLOSED
        assert account.closed_at is not None

    def test_closed_is_terminal(self, db_session):
        account = open_for(db_session, make_customer(db_session))
        set_status(db_session, account, AccountStatus.CLOSED)

        with pytest.raises(InvalidStatusTransition):
            set_status(db_session, account, AccountStatus.NORMAL)

    def test_same_status_is_a_no_op(self, db_session):
        account = open_for(db_session, make_customer(db_session))

        account = set_status(db_session, account, AccountStatus.NORMAL)

        assert account.status == AccountStatus.NORMAL
        assert AuditService(db_session).events("STATUS") == []

    def test_status_change_is_audited(self, db_session):
        account = open_for(db_session, make_customer(db_session))
        set_status(db_session, account, AccountStatus.BLOCKED)

        events = AuditService(db_session).events("STATUS")
        assert len(events) == 1
        assert '"new": "blocked"' in events[0].details
