"""Business logic services."""

from teller_ledger.services.ledger_service import LedgerService
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.enrollment_service import EnrollmentService
from teller_ledger.services.restriction_service import RestrictionService
from teller_ledger.services.servicing_service import ServicingService
from teller_ledger.services.card_service import CardService
from teller_ledger.services.action_dispatcher import ActionDispatcher, Actor

__all__ = [
    "LedgerService",
    "AccountService",
    "CustomerService",
    "EnrollmentService",
    "RestrictionService",
    "ServicingService",
    "CardService",
    "ActionDispatcher",
    "Actor",
]
