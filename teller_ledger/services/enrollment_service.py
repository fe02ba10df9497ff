"""
Enrollment service — maps an identity (email) to a customer.

Enrollment is idempotent on email: the first call creates the
customer and a default account (balance 0, limited); later calls
only refresh name and phone.
"""

from sqlalchemy.orm import Session

from teller_ledger.models.customer import Customer
from teller_ledger.schemas.customer import CreateCustomerPayload, IdentityUserPayload
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.identity_client import IdentityAdminClient


class EnrollmentService:

    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        identity_client: IdentityAdminClient | None = None,
    ):
        self.db = db
        self.customer_service = CustomerService(db)
        self.audit = audit or AuditService(db)
        self.account_service = AccountService(db, self.audit)
        self.identity_client = identity_client

    def _ensure_primary_account(self, customer: Customer) -> str:
        if not customer.primary_account_no:
            self.account_service.create_account(customer)
        return customer.primary_account_no

    def enroll(self, email: str, name: str, phone: str | None = None) -> Customer:
        """Get or create the customer for an email, with a primary account."""
        email = email.strip().lower()
        customer = self.customer_service.get_by_email(email)
        created = customer is None

        if created:
            customer = self.customer_service.create_customer(name, email, phone)
        else:
            customer.name = name or customer.name
            if phone:
                customer.phone = phone

        account_no = self._ensure_primary_account(customer)
        self.db.flush()
        self.audit.record(
            "ENROLL",
            customer_no=customer.customer_no,
            email=email,
            created=created,
            account_no=account_no,
        )
        return customer

    def register_at_counter(self, request: CreateCustomerPayload) -> Customer:
        """
        Teller registration. Upserts by email when one is given;
        without an email every registration is a new customer.
        """
        if request.email:
            return self.enroll(request.email, request.name, request.phone)

        customer = self.customer_service.create_customer(
            request.name, None, request.phone
        )
        account_no = self._ensure_primary_account(customer)
        self.db.flush()
        self.audit.record(
            "CUSTOMER_CREATE",
            customer_no=customer.customer_no,
            account_no=account_no,
        )
        return customer

    def create_identity_user(self, request: IdentityUserPayload) -> Customer:
        """
        Enroll the customer and create their internet-banking login.

        The provider call happens last; if it fails, the exception
        propagates and the caller's rollback discards the enrollment.
        """
        if self.identity_client is None:
            self.identity_client = IdentityAdminClient.from_settings()
        self.identity_client.ensure_configured()

        customer = self.enroll(request.email, request.name, request.phone)
        self.identity_client.create_user(
            email=request.email,
            password=request.password,
            metadata={"name": customer.name, "customer_id": customer.customer_no},
        )
        self.audit.record(
            "IB_ENROLL", customer_no=customer.customer_no, email=request.email
        )
        return customer
