"""
Servicing service — product enrollment, change requests (JeSingo)
and tablet-signed forms.

None of these move money. They reference a customer and leave an
audit event.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from teller_ledger.exceptions import NotFoundError
from teller_ledger.models.change_request import ChangeRequest
from teller_ledger.models.customer import Customer
from teller_ledger.models.enums import ChangeRequestKind, ChangeRequestStatus
from teller_ledger.models.form import FormSubmission
from teller_ledger.models.product import ProductEnrollment
from teller_ledger.schemas.servicing import FormPayload, ProductPayload
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.sequence_service import SequenceService


class ServicingService:

    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.customer_service = CustomerService(db)
        self.sequences = SequenceService(db)
        self.audit = audit or AuditService(db)

    # --- Products ---

    def enroll_product(self, request: ProductPayload) -> ProductEnrollment:
        customer = self.customer_service.find_by_who(request.who)
        product = ProductEnrollment(
            product_no=self.sequences.next_product_no(),
            customer_id=customer.id,
            product_type=request.product_type,
            amount=request.amount,
            months=request.months,
            memo=request.memo,
        )
        self.db.add(product)
        self.db.flush()
        self.audit.record(
            "PRODUCT",
            customer_no=customer.customer_no,
            product_no=product.product_no,
            product_type=product.product_type,
        )
        return product

    # --- Change requests ---

    def file_change_request(
        self,
        customer: Customer,
        kind: ChangeRequestKind,
        text: str,
        filed_by: str,
    ) -> ChangeRequest:
        change_request = ChangeRequest(
            request_no=self.sequences.next_request_no(),
            customer_id=customer.id,
            kind=kind,
            text=text,
            status=ChangeRequestStatus.OPEN,
            filed_by=filed_by,
        )
        self.db.add(change_request)
        self.db.flush()
        self.audit.record(
            "REPORT",
            customer_no=customer.customer_no,
            request_no=change_request.request_no,
            kind=kind.value,
        )
        return change_request

    def resolve_change_request(self, request_no: str) -> ChangeRequest:
        change_request = self.db.execute(
            select(ChangeRequest).where(ChangeRequest.request_no == request_no)
        ).scalar_one_or_none()
        if not change_request:
            raise NotFoundError(f"Change request {request_no} not found")

        if change_request.status != ChangeRequestStatus.DONE:
            change_request.status = ChangeRequestStatus.DONE
            change_request.resolved_at = datetime.utcnow()
            self.db.flush()
            self.audit.record("REPORT_RESOLVED", request_no=request_no)
        return change_request

    def list_change_requests(self) -> list[ChangeRequest]:
        return list(self.db.execute(
            select(ChangeRequest).order_by(ChangeRequest.id)
        ).scalars().all())

    # --- Forms ---

    def submit_form(self, request: FormPayload) -> FormSubmission:
        customer = self.customer_service.find_by_who(request.who)
        form = FormSubmission(
            form_no=self.sequences.next_form_no(),
            customer_id=customer.id,
            form_type=request.form_type,
            fields=request.form_fields,
            signature=request.signature,
        )
        self.db.add(form)
        self.db.flush()
        self.audit.record(
            "FORM",
            customer_no=customer.customer_no,
            form_no=form.form_no,
            form_type=form.form_type,
        )
        return form

    def list_products(self) -> list[ProductEnrollment]:
        return list(self.db.execute(
            select(ProductEnrollment).order_by(ProductEnrollment.id)
        ).scalars().all())

    def list_forms(self) -> list[FormSubmission]:
        return list(self.db.execute(
            select(FormSubmission).order_by(FormSubmission.id)
        ).scalars().all())
