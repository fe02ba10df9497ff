"""
Card service — debit card issuance.

The account holder must confirm the account PIN at the counter
before a card is issued against the account.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from teller_ledger.exceptions import PinMismatch, PinNotSet
from teller_ledger.models.card import Card
from teller_ledger.schemas.servicing import IssueCardPayload
from teller_ledger.security import generate_card_number, mask_card_number, verify_pin
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.ledger_service import LedgerService

CARD_VALIDITY_YEARS = 5


class CardService:

    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.audit = audit or AuditService(db)

    def _unused_card_number(self) -> str:
        while True:
            number = generate_card_number()
            taken = self.db.execute(
                select(Card.id).where(Card.card_number == number)
            ).first()
            if not taken:
                return number

    def issue_card(self, request: IssueCardPayload) -> Card:
        account = self.ledger_service.get_account(request.account_no)

        if account.pin_hash is None:
            raise PinNotSet(f"Account {account.account_no} has no PIN")
        if not verify_pin(request.pin, account.pin_hash):
            raise PinMismatch("PIN does not match")
        self.ledger_service.require_normal(account)

        now = datetime.utcnow()
        card = Card(
            card_number=self._unused_card_number(),
            customer_id=account.customer_id,
            account=account,
            brand=request.brand or "debit",
            expiry=f"{now.month:02d}/{(now.year + CARD_VALIDITY_YEARS) % 100:02d}",
        )
        self.db.add(card)
        self.db.flush()
        self.audit.record(
            "CARD_ISSUE",
            account_no=account.account_no,
            card=mask_card_number(card.card_number),
        )
        return card

    def list_cards(self) -> list[Card]:
        return list(self.db.execute(
            select(Card).order_by(Card.id)
        ).scalars().all())
