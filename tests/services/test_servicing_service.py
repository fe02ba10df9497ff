"""
Tests for product enrollment, change requests, forms and cards.
"""

import pytest

from teller_ledger.exceptions import (
    AccountBlocked,
    CustomerNotFound,
    NotFoundError,
    PinMismatch,
    PinNotSet,
)
from teller_ledger.models.enums import (
    AccountStatus,
    ChangeRequestKind,
    ChangeRequestStatus,
)
from teller_ledger.schemas.account import OpenAccountPayload
from teller_ledger.schemas.servicing import FormPayload, IssueCardPayload, ProductPayload
from teller_ledger.security import is_luhn_valid
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.card_service import CardService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.servicing_service import ServicingService


def make_customer(db_session, name="Kim Minji", email="kim@x.com"):
    customer = CustomerService(db_session).create_customer(name, email)
    db_session.commit()
    return customer


def open_account(db_session, customer, pin="1234"):
    account = AccountService(db_session).open_account(OpenAccountPayload(
        customer_id=customer.customer_no, pin=pin,
    ))
    db_session.commit()
    return account


class TestProducts:

    def test_enroll_product_by_email(self, db_session):
        customer = make_customer(db_session)
        service = ServicingService(db_session)

        product = service.enroll_product(ProductPayload(
            who="kim@x.com", product_type="installment savings", amount=100000, months=12,
        ))
        db_session.commit()

        assert product.product_no == "P-1"
        assert product.customer_id == customer.id
        assert product.months == 12
        assert len(AuditService(db_session).events("PRODUCT")) == 1

    def test_unknown_customer(self, db_session):
        with pytest.raises(CustomerNotFound):
            ServicingService(db_session).enroll_product(ProductPayload(
                who="nobody", product_type="fund", amount=1, months=1,
            ))


class TestChangeRequests:

    def test_file_and_resolve(self, db_session):
        customer = make_customer(db_session)
        service = ServicingService(db_session)

        change_request = service.file_change_request(
            customer, ChangeRequestKind.ADDRESS, "Moved to Busan", filed_by="teller",
        )
        db_session.commit()
        assert change_request.request_no == "R-1"
        assert change_request.status == ChangeRequestStatus.OPEN

        resolved = service.resolve_change_request("R-1")
        db_session.commit()
        assert resolved.status == ChangeRequestStatus.DONE
        assert resolved.resolved_at is not None

    def test_resolving_twice_keeps_first_resolution(self, db_session):
        customer = make_customer(db_session)
        service = ServicingService(db_session)
        service.file_change_request(customer, ChangeRequestKind.LOSS, "Lost card", "teller")
        first = service.resolve_change_request("R-1").resolved_at
        db_session.commit()

        again = service.resolve_change_request("R-1")

        assert again.resolved_at == first
        assert len(AuditService(db_session).events("REPORT_RESOLVED")) == 1

    def test_resolve_unknown_request(self, db_session):
        with pytest.raises(NotFoundError):
            ServicingService(db_session).resolve_change_request("R-404")


class TestForms:

    def test_submit_form_keeps_fields_and_signature(self, db_session):
        make_customer(db_session)

        form = ServicingService(db_session).submit_form(FormPayload(
            who="C-1001",
            form_type="address-change",
            form_fields={"address": "Busan"},
            signature="data:image/png;base64,iVBORw0KGgo=",
        ))
        db_session.commit()

        assert form.form_no == "F-1"
        assert form.fields == {"address": "Busan"}
        assert form.signature.startswith("data:image/png")


class TestCards:

    def test_issue_card(self, db_session):
        account = open_account(db_session, make_customer(db_session))

        card = CardService(db_session).issue_card(IssueCardPayload(
            account_no=account.account_no, pin="1234",
        ))
        db_session.commit()

        assert len(card.card_number) == 16
        assert card.card_number.startswith("941012")
        assert is_luhn_valid(card.card_number)
        assert card.status == "active"
        assert card.customer_id == account.customer_id

    def test_audit_never_holds_full_number(self, db_session):
        account = open_account(db_session, make_customer(db_session))
        card = CardService(db_session).issue_card(IssueCardPayload(
            account_no=account.account_no, pin="1234",
        ))
        db_session.commit()

        details = AuditService(db_session).events("CARD_ISSUE")[0].details
        assert card.card_number not in details
        assert card.card_number[-4:] in details

    def test_wrong_pin_rejected(self, db_session):
        account = open_account(db_session, make_customer(db_session))

        with pytest.raises(PinMismatch):
            CardService(db_session).issue_card(IssueCardPayload(
                account_no=account.account_no, pin="9999",
            ))

    def test_account_without_pin_rejected(self, db_session):
        customer = make_customer(db_session)
        account = AccountService(db_session).create_account(customer)
        db_session.commit()

        with pytest.raises(PinNotSet):
            CardService(db_session).issue_card(IssueCardPayload(
                account_no=account.account_no, pin="1234",
            ))

    def test_blocked_account_rejected(self, db_session):
        account = open_account(db_session, make_customer(db_session))
        account.status = AccountStatus.BLOCKED
        db_session.commit()

        with pytest.raises(AccountBlocked):
            CardService(db_session).issue_card(IssueCardPayload(
                account_no=account.account_no, pin="1234",
            ))
