"""
Sequence service — human-readable identifiers.

Counters live in one row each and are bumped under a row lock.
A counter row is created on first use with INSERT ... ON CONFLICT
DO NOTHING, so two processes racing to create it both end up
incrementing the same row. Within a process the action dispatcher
also serializes every action that draws from a counter.
"""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from teller_ledger.models.sequence import SequenceCounter

# counter name -> first value handed out minus one
SEQUENCE_STARTS = {
    "customer": 1000,
    "account": 100000,
    "product": 0,
    "request": 0,
    "form": 0,
}

# dialect name -> insert construct supporting on_conflict_do_nothing
UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SequenceService:

    def __init__(self, db: Session):
        self.db = db

    def _locked_counter(self, name: str) -> SequenceCounter | None:
        return self.db.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()  # Row-level lock
        ).scalar_one_or_none()

    def _create_counter(self, name: str) -> None:
        start = SEQUENCE_STARTS[name]
        insert = UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            self.db.add(SequenceCounter(name=name, value=start))
            self.db.flush()
            return
        self.db.execute(
            insert(SequenceCounter)
            .values(name=name, value=start)
            .on_conflict_do_nothing(index_elements=["name"])
        )

    def next_value(self, name: str) -> int:
        """Increment and return the named counter, creating it on first use."""
        counter = self._locked_counter(name)
        if counter is None:
            self._create_counter(name)
            counter = self._locked_counter(name)

        counter.value += 1
        self.db.flush()
        return counter.value

    def next_customer_no(self) -> str:
        return f"C-{self.next_value('customer')}"

    def next_account_no(self) -> str:
        """Bank-style account number: 110-XXX-XXX."""
        digits = f"{self.next_value('account'):06d}"
        return f"110-{digits[:3]}-{digits[3:]}"

    def next_product_no(self) -> str:
        return f"P-{self.next_value('product')}"

    def next_request_no(self) -> str:
        return f"R-{self.next_value('request')}"

    def next_form_no(self) -> str:
        return f"F-{self.next_value('form')}"
