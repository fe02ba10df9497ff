"""
Customer service — lookups, counter registration and the
customer's own overview.
"""

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from teller_ledger.exceptions import CustomerNotFound
from teller_ledger.models.customer import Customer
from teller_ledger.models.transaction import Transaction
from teller_ledger.services.sequence_service import SequenceService

# How many transactions a customer sees on the overview screen
OVERVIEW_TRANSACTION_LIMIT = 30


class CustomerService:

    def __init__(self, db: Session):
        self.db = db
        self.sequences = SequenceService(db)

    def create_customer(
        self, name: str, email: str | None = None, phone: str | None = None
    ) -> Customer:
        """Create a customer with the next customer number."""
        customer = Customer(
            customer_no=self.sequences.next_customer_no(),
            name=name,
            email=email,
            phone=phone,
        )
        self.db.add(customer)
        self.db.flush()
        return customer

    def get_by_email(self, email: str) -> Customer | None:
        return self.db.execute(
            select(Customer).where(Customer.email == email.strip().lower())
        ).scalar_one_or_none()

    def get_by_customer_no(self, customer_no: str) -> Customer:
        customer = self.db.execute(
            select(Customer).where(Customer.customer_no == customer_no.strip())
        ).scalar_one_or_none()
        if not customer:
            raise CustomerNotFound(f"Customer {customer_no} not found")
        return customer

    def find_by_who(self, who: str) -> Customer:
        """
        Look a customer up the way a teller would: by customer
        number, email or exact name, case-insensitive.

        Customer number wins over email, email over name. If several
        customers share a name, the oldest is returned.
        """
        query = who.strip().lower()
        candidates = self.db.execute(
            select(Customer)
            .where(or_(
                func.lower(Customer.customer_no) == query,
                Customer.email == query,
                func.lower(Customer.name) == query,
            ))
            .order_by(Customer.id)
        ).scalars().all()

        by_number = [c for c in candidates if c.customer_no.lower() == query]
        by_email = [c for c in candidates if c.email == query]
        for group in (by_number, by_email, candidates):
            if group:
                return group[0]
        raise CustomerNotFound(f"No customer matches '{who}'")

    def overview(self, customer: Customer) -> dict:
        """The customer's accounts and most recent transactions."""
        accounts = list(customer.accounts)
        account_ids = [a.id for a in accounts]
        transactions = []
        if account_ids:
            transactions = self.db.execute(
                select(Transaction)
                .where(Transaction.account_id.in_(account_ids))
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
                .limit(OVERVIEW_TRANSACTION_LIMIT)
            ).scalars().all()
        return {
            "customer": customer,
            "accounts": accounts,
            "transactions": list(transactions),
        }

    def list_customers(self) -> list[Customer]:
        return list(self.db.execute(
            select(Customer).order_by(Customer.id)
        ).scalars().all())

