"""
Action dispatcher — runs one validated action as one unit of work.

For every request the dispatcher:
1. takes the in-process locks for the accounts, identities and
   number sequences the action touches, in sorted order
2. runs the handler, which calls the services
3. serializes the result while the session is still open
4. commits, or rolls back if anything raised
5. releases the locks

The locks are held from before the first read until after commit,
so two requests against the same account never interleave between
a balance check and the write that depends on it.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from teller_ledger.exceptions import CustomerNotEnrolled, LedgerError, UnknownAction
from teller_ledger.logging_config import get_logger
from teller_ledger.models.customer import Customer
from teller_ledger.models.enums import ChangeRequestKind
from teller_ledger.schemas.account import AccountView
from teller_ledger.schemas.actions import (
    CUSTOMER,
    TELLER,
    ActionRequest,
    CustomerEnroll,
    CustomerGetMy,
    CustomerReport,
    CustomerTransfer,
    TellerAuth,
    TellerCash,
    TellerCreateCustomer,
    TellerCreateIdentityUser,
    TellerEnrollProduct,
    TellerGetAccount,
    TellerGetAll,
    TellerIssueCard,
    TellerOpenAccount,
    TellerReleaseRestriction,
    TellerReport,
    TellerResolveReport,
    TellerRestrict,
    TellerSetStatus,
    TellerSubmitForm,
    TellerTransfer,
)
from teller_ledger.schemas.customer import CustomerView
from teller_ledger.schemas.servicing import (
    CardView,
    ChangeRequestView,
    FormView,
    ProductView,
)
from teller_ledger.schemas.transaction import TransactionView
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.card_service import CardService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.enrollment_service import EnrollmentService
from teller_ledger.services.identity_client import IdentityAdminClient
from teller_ledger.services.ledger_service import LedgerService
from teller_ledger.services.locks import AccountLockRegistry, account_locks
from teller_ledger.services.restriction_service import RestrictionService
from teller_ledger.services.servicing_service import ServicingService

logger = get_logger(__name__)

# How many transactions the teller snapshot returns
SNAPSHOT_TRANSACTION_LIMIT = 200


@dataclass(frozen=True)
class Actor:
    """Who is calling: the shared teller, or a customer by email."""
    role: str
    email: str | None = None

    @property
    def label(self) -> str:
        if self.role == TELLER:
            return TELLER
        return self.email or CUSTOMER


class ActionDispatcher:

    def __init__(
        self,
        db: Session,
        identity_client: IdentityAdminClient | None = None,
        locks: AccountLockRegistry = account_locks,
    ):
        self.db = db
        self.identity_client = identity_client
        self.locks = locks
        self._handlers = {
            TellerAuth: self._teller_auth,
            TellerGetAll: self._teller_get_all,
            TellerCreateCustomer: self._teller_create_customer,
            TellerCreateIdentityUser: self._teller_create_identity_user,
            TellerOpenAccount: self._teller_open_account,
            TellerGetAccount: self._teller_get_account,
            TellerSetStatus: self._teller_set_status,
            TellerCash: self._teller_cash,
            TellerTransfer: self._transfer,
            TellerRestrict: self._teller_restrict,
            TellerReleaseRestriction: self._teller_release,
            TellerEnrollProduct: self._teller_enroll_product,
            TellerReport: self._teller_report,
            TellerResolveReport: self._teller_resolve_report,
            TellerIssueCard: self._teller_issue_card,
            TellerSubmitForm: self._teller_submit_form,
            CustomerEnroll: self._customer_enroll,
            CustomerGetMy: self._customer_get_my,
            CustomerTransfer: self._transfer,
            CustomerReport: self._customer_report,
        }

    def handles(self, variant: type[ActionRequest]) -> bool:
        return variant in self._handlers

    def dispatch(self, request: ActionRequest, actor: Actor) -> dict:
        """
        Run an action and return the response body.

        Raises LedgerError subclasses for business failures; the
        session has already been rolled back when they propagate.
        """
        handler = self._handlers.get(type(request))
        if handler is None:
            raise UnknownAction(f"Unknown action: {request.action}")

        keys = request.lock_keys() + request.sequence_keys()
        if actor.role == CUSTOMER and actor.email:
            keys.append(f"email:{actor.email}")

        audit = AuditService(self.db, actor=actor.label)
        with self.locks.hold(*keys):
            try:
                result = handler(request, actor, audit)
                self.db.commit()
            except LedgerError as e:
                self.db.rollback()
                logger.warning(
                    "%s rejected: %s", request.action, e.code,
                    extra={
                        "action": request.action,
                        "actor": actor.label,
                        "code": e.code,
                        "status": e.status_code,
                    },
                )
                raise
            except Exception:
                self.db.rollback()
                raise

        logger.info(
            "%s ok", request.action,
            extra={"action": request.action, "actor": actor.label, "status": 200},
        )
        return {"ok": True, **result}

    # --- Helpers ---

    def _current_customer(self, actor: Actor) -> Customer:
        customer = CustomerService(self.db).get_by_email(actor.email or "")
        if customer is None:
            raise CustomerNotEnrolled(
                "No customer is enrolled for this login; call customerEnroll first"
            )
        return customer

    def _enrollment(self, audit: AuditService) -> EnrollmentService:
        return EnrollmentService(
            self.db, audit=audit, identity_client=self.identity_client
        )

    @staticmethod
    def _enrolled(customer: Customer) -> dict:
        return {
            "customerId": customer.customer_no,
            "accountNo": customer.primary_account_no,
        }

    # --- Teller handlers ---

    def _teller_auth(self, request, actor, audit) -> dict:
        return {"role": TELLER}

    def _teller_get_all(self, request, actor, audit) -> dict:
        """Full back-office snapshot. Card numbers are masked."""
        customers = CustomerService(self.db).list_customers()
        accounts = AccountService(self.db, audit).list_accounts()
        transactions = LedgerService(self.db).recent_transactions(
            SNAPSHOT_TRANSACTION_LIMIT
        )
        servicing = ServicingService(self.db, audit)
        cards = CardService(self.db, audit).list_cards()
        return {
            "db": {
                "customers": [CustomerView.model_validate(c).dump() for c in customers],
                "accounts": [AccountView.from_model(a).dump() for a in accounts],
                "transactions": [
                    TransactionView.from_model(t).dump() for t in transactions
                ],
                "products": [
                    ProductView.model_validate(p).dump()
                    for p in servicing.list_products()
                ],
                "reports": [
                    ChangeRequestView.model_validate(r).dump()
                    for r in servicing.list_change_requests()
                ],
                "cards": [CardView.from_model(c).dump() for c in cards],
                "forms": [
                    FormView.model_validate(f).dump() for f in servicing.list_forms()
                ],
            }
        }

    def _teller_create_customer(self, request, actor, audit) -> dict:
        customer = self._enrollment(audit).register_at_counter(request.payload)
        return self._enrolled(customer)

    def _teller_create_identity_user(self, request, actor, audit) -> dict:
        customer = self._enrollment(audit).create_identity_user(request.payload)
        return {"email": customer.email, **self._enrolled(customer)}

    def _teller_open_account(self, request, actor, audit) -> dict:
        account = AccountService(self.db, audit).open_account(request.payload)
        return {"account": AccountView.from_model(account).dump()}

    def _teller_get_account(self, request, actor, audit) -> dict:
        account = AccountService(self.db, audit).get_account(
            request.payload.account_no
        )
        return {"account": AccountView.from_model(account).dump()}

    def _teller_set_status(self, request, actor, audit) -> dict:
        account = AccountService(self.db, audit).change_status(request.payload)
        return {"account": AccountView.from_model(account).dump()}

    def _teller_cash(self, request, actor, audit) -> dict:
        txn = LedgerService(self.db).cash_in_out(request.payload)
        return {
            "tx": TransactionView.from_model(txn).dump(),
            "balance": txn.account.balance,
        }

    def _transfer(self, request, actor, audit) -> dict:
        """Teller and customer transfers; customers may only send from their own accounts."""
        acting_customer = None
        if actor.role == CUSTOMER:
            acting_customer = self._current_customer(actor)

        txn_out, txn_in = LedgerService(self.db).transfer(
            request.payload, acting_customer=acting_customer
        )
        return {
            "txOut": TransactionView.from_model(txn_out).dump(),
            "txIn": TransactionView.from_model(txn_in).dump(),
            "balance": txn_out.account.balance,
        }

    def _teller_restrict(self, request, actor, audit) -> dict:
        account = RestrictionService(self.db, audit).restrict(request.payload)
        return {"account": AccountView.from_model(account).dump()}

    def _teller_release(self, request, actor, audit) -> dict:
        account = RestrictionService(self.db, audit).release(request.payload)
        return {"account": AccountView.from_model(account).dump()}

    def _teller_enroll_product(self, request, actor, audit) -> dict:
        product = ServicingService(self.db, audit).enroll_product(request.payload)
        return {"productId": product.product_no}

    def _teller_report(self, request, actor, audit) -> dict:
        servicing = ServicingService(self.db, audit)
        customer = servicing.customer_service.find_by_who(request.payload.who)
        change_request = servicing.file_change_request(
            customer, request.payload.kind, request.payload.text, filed_by=TELLER
        )
        return {"reportId": change_request.request_no}

    def _teller_resolve_report(self, request, actor, audit) -> dict:
        change_request = ServicingService(self.db, audit).resolve_change_request(
            request.payload.request_no
        )
        return {"report": ChangeRequestView.model_validate(change_request).dump()}

    def _teller_issue_card(self, request, actor, audit) -> dict:
        card = CardService(self.db, audit).issue_card(request.payload)
        return {"card": CardView.from_model(card).dump()}

    def _teller_submit_form(self, request, actor, audit) -> dict:
        form = ServicingService(self.db, audit).submit_form(request.payload)
        return {"formId": form.form_no}

    # --- Customer handlers ---

    def _customer_enroll(self, request, actor, audit) -> dict:
        customer = self._enrollment(audit).enroll(
            actor.email, request.payload.name, request.payload.phone
        )
        return self._enrolled(customer)

    def _customer_get_my(self, request, actor, audit) -> dict:
        customer = self._current_customer(actor)
        overview = CustomerService(self.db).overview(customer)
        return {
            "customer": CustomerView.model_validate(overview["customer"]).dump(),
            "accounts": [AccountView.from_model(a).dump() for a in overview["accounts"]],
            "transactions": [
                TransactionView.from_model(t).dump() for t in overview["transactions"]
            ],
        }

    def _customer_report(self, request, actor, audit) -> dict:
        customer = self._current_customer(actor)
        change_request = ServicingService(self.db, audit).file_change_request(
            customer,
            request.payload.kind or ChangeRequestKind.OTHER,
            request.payload.text,
            filed_by=actor.email,
        )
        return {"reportId": change_request.request_no}
