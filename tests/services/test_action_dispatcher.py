"""
Tests for the ActionDispatcher: one action, one unit of work.

Covers the commit/rollback boundary, per-account serialization
of concurrent requests and the per-action log line.
"""

import logging
import threading

import pytest

from teller_ledger.exceptions import (
    AccountNotFound,
    CustomerNotEnrolled,
    InsufficientFunds,
    NotOwner,
)
from teller_ledger.logging_config import LOGGER_PREFIX
from teller_ledger.models.enums import TransactionKind
from teller_ledger.schemas.account import OpenAccountPayload
from teller_ledger.schemas.actions import ACTION_VARIANTS, CUSTOMER, TELLER, parse_action
from teller_ledger.services.account_service import AccountService
from teller_ledger.services.action_dispatcher import ActionDispatcher, Actor
from teller_ledger.services.audit_service import AuditService
from teller_ledger.services.customer_service import CustomerService
from teller_ledger.services.ledger_service import LedgerService
from teller_ledger.services.locks import AccountLockRegistry
from teller_ledger.services.sequence_service import SEQUENCE_STARTS

TELLER_ACTOR = Actor(role=TELLER)


def open_account(db_session, balance=0, name="Kim", email=None):
    customer = CustomerService(db_session).create_customer(name, email)
    account = AccountService(db_session).open_account(OpenAccountPayload(
        customer_id=customer.customer_no, pin="1234", initial_balance=balance,
    ))
    db_session.commit()
    return account


def transfer_action(source_no, destination_no, amount, action="tellerTransfer"):
    return parse_action({
        "action": action,
        "payload": {"from": source_no, "to": destination_no, "amount": amount},
    })


class RecordingHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def log_records():
    handler = RecordingHandler()
    logger = logging.getLogger(LOGGER_PREFIX)
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


class TestHandlers:

    def test_every_action_has_a_handler(self, db_session):
        dispatcher = ActionDispatcher(db_session)

        for variant in ACTION_VARIANTS:
            assert dispatcher.handles(variant), variant.__name__

    def test_success_envelope(self, db_session):
        result = ActionDispatcher(db_session).dispatch(
            parse_action({"action": "tellerAuth"}), TELLER_ACTOR
        )

        assert result == {"ok": True, "role": "teller"}


class TestUnitOfWork:

    def test_success_is_committed(self, db_session, session_factory):
        source = open_account(db_session, balance=1000, name="Kim")
        destination = open_account(db_session, name="Lee")

        ActionDispatcher(db_session).dispatch(
            transfer_action(source.account_no, destination.account_no, 400),
            TELLER_ACTOR,
        )

        other = session_factory()
        try:
            fresh = LedgerService(other).get_account(destination.account_no)
            assert fresh.balance == 400
        finally:
            other.close()

    def test_failure_half_way_through_transfer_changes_nothing(
        self, db_session, monkeypatch
    ):
        source = open_account(db_session, balance=50000, name="Kim")
        destination = open_account(db_session, name="Lee")
        original = LedgerService.record_transaction

        def failing_record(self, account, kind, *args, **kwargs):
            if kind == TransactionKind.TRANSFER_IN:
                raise RuntimeError("disk full")
            return original(self, account, kind, *args, **kwargs)

        monkeypatch.setattr(LedgerService, "record_transaction", failing_record)

        with pytest.raises(RuntimeError):
            ActionDispatcher(db_session).dispatch(
                transfer_action(source.account_no, destination.account_no, 20000),
                TELLER_ACTOR,
            )

        monkeypatch.undo()
        ledger = LedgerService(db_session)
        assert ledger.get_account(source.account_no).balance == 50000
        assert ledger.get_account(destination.account_no).balance == 0
        assert len(ledger.get_transactions(source.id)) == 1
        assert ledger.get_transactions(destination.id) == []

    def test_business_failure_rolls_back_audit(self, db_session):
        source = open_account(db_session, balance=10, name="Kim")
        destination = open_account(db_session, name="Lee")
        before = len(AuditService(db_session).events())

        with pytest.raises(InsufficientFunds):
            ActionDispatcher(db_session).dispatch(
                transfer_action(source.account_no, destination.account_no, 20),
                TELLER_ACTOR,
            )

        assert len(AuditService(db_session).events()) == before

    def test_audit_records_the_actor(self, db_session):
        account = open_account(db_session)

        ActionDispatcher(db_session).dispatch(
            parse_action({
                "action": "tellerSetStatus",
                "payload": {"accountNo": account.account_no, "status": "blocked"},
            }),
            TELLER_ACTOR,
        )

        event = AuditService(db_session).events("STATUS")[0]
        assert event.actor == "teller"


class TestCustomerActions:

    def test_unenrolled_customer_rejected(self, db_session):
        with pytest.raises(CustomerNotEnrolled):
            ActionDispatcher(db_session).dispatch(
                parse_action({"action": "customerGetMy"}),
                Actor(role=CUSTOMER, email="ghost@x.com"),
            )

    def test_customer_transfer_requires_ownership(self, db_session):
        source = open_account(db_session, balance=1000, name="Kim", email="kim@x.com")
        destination = open_account(db_session, name="Lee", email="lee@x.com")

        with pytest.raises(NotOwner):
            ActionDispatcher(db_session).dispatch(
                transfer_action(
                    source.account_no, destination.account_no, 10,
                    action="customerTransfer",
                ),
                Actor(role=CUSTOMER, email="lee@x.com"),
            )

    def test_customer_transfer_from_own_account(self, db_session):
        source = open_account(db_session, balance=1000, name="Kim", email="kim@x.com")
        destination = open_account(db_session, name="Lee", email="lee@x.com")

        result = ActionDispatcher(db_session).dispatch(
            transfer_action(
                source.account_no, destination.account_no, 10,
                action="customerTransfer",
            ),
            Actor(role=CUSTOMER, email="kim@x.com"),
        )

        assert result["balance"] == 990
        assert result["txOut"]["amount"] == -10
        assert result["txIn"]["amount"] == 10


class TestConcurrency:

    def test_concurrent_transfers_cannot_double_spend(self, db_session, session_factory):
        source = open_account(db_session, balance=100000, name="Kim")
        first = open_account(db_session, name="Lee")
        second = open_account(db_session, name="Park")
        source_no = source.account_no
        barrier = threading.Barrier(2)
        outcomes = []

        def send(destination_no):
            session = session_factory()
            try:
                dispatcher = ActionDispatcher(session)
                request = transfer_action(source_no, destination_no, 100000)
                barrier.wait()
                dispatcher.dispatch(request, TELLER_ACTOR)
                outcomes.append("ok")
            except InsufficientFunds:
                outcomes.append("InsufficientFunds")
            finally:
                session.close()

        threads = [
            threading.Thread(target=send, args=(first.account_no,)),
            threading.Thread(target=send, args=(second.account_no,)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes) == ["InsufficientFunds", "ok"]
        db_session.expire_all()
        ledger = LedgerService(db_session)
        assert ledger.get_account(source_no).balance == 0
        received = (
            ledger.get_account(first.account_no).balance
            + ledger.get_account(second.account_no).balance
        )
        assert received == 100000

    def test_concurrent_account_openings_get_distinct_numbers(
        self, db_session, session_factory
    ):
        customer = CustomerService(db_session).create_customer("Kim")
        db_session.commit()
        customer_no = customer.customer_no
        request = parse_action({
            "action": "tellerOpenAccount",
            "payload": {"customerId": customer_no, "pin": "1234"},
        })
        rounds = 5
        barrier = threading.Barrier(2)
        outcomes = []

        def open_one():
            for _ in range(rounds):
                session = session_factory()
                try:
                    barrier.wait()
                    result = ActionDispatcher(session).dispatch(request, TELLER_ACTOR)
                    outcomes.append(result["account"]["accountNo"])
                except Exception as e:
                    outcomes.append(type(e).__name__)
                finally:
                    session.close()

        threads = [threading.Thread(target=open_one) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert len(outcomes) == 2 * rounds
        assert all(outcome.startswith("110-") for outcome in outcomes), outcomes
        assert len(set(outcomes)) == 2 * rounds

    def test_numbered_actions_lock_their_sequences(self):
        open_account_request = parse_action({
            "action": "tellerOpenAccount",
            "payload": {"customerId": "C-1001", "pin": "1234"},
        })
        enroll_request = parse_action({
            "action": "customerEnroll", "payload": {"name": "Kim"},
        })

        assert open_account_request.sequence_keys() == ["seq:account"]
        assert enroll_request.sequence_keys() == ["seq:customer", "seq:account"]

    def test_every_sequence_is_a_known_counter(self):
        for variant in ACTION_VARIANTS:
            for name in variant.sequences:
                assert name in SEQUENCE_STARTS, variant.__name__


class TestLockRegistry:

    def test_keys_acquired_in_sorted_order(self):
        acquired = []
        registry = AccountLockRegistry()
        original = registry._checkout

        def recording_checkout(key):
            acquired.append(key)
            return original(key)

        registry._checkout = recording_checkout

        with registry.hold("110-100-002", "110-100-001", "110-100-002"):
            pass

        assert acquired == ["110-100-001", "110-100-002"]

    def test_keys_are_tracked_only_while_held(self):
        registry = AccountLockRegistry()

        with registry.hold("110-100-001", "no-such-account"):
            assert registry.active_keys() == ["110-100-001", "no-such-account"]

        assert registry.active_keys() == []

    def test_keys_dropped_when_block_raises(self):
        registry = AccountLockRegistry()

        with pytest.raises(RuntimeError):
            with registry.hold("a"):
                raise RuntimeError("boom")

        assert registry.active_keys() == []

    def test_waiting_request_keeps_the_lock_alive(self):
        registry = AccountLockRegistry()
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with registry.hold("a"):
                entered.set()
                release.wait(timeout=10)
                order.append("first")

        def second():
            entered.wait(timeout=10)
            with registry.hold("a"):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for thread in threads:
            thread.start()
        entered.wait(timeout=10)
        release.set()
        for thread in threads:
            thread.join(timeout=10)

        assert order == ["first", "second"]
        assert registry.active_keys() == []

    def test_dispatch_leaves_no_keys_behind(self, db_session):
        registry = AccountLockRegistry()

        with pytest.raises(AccountNotFound):
            ActionDispatcher(db_session, locks=registry).dispatch(
                transfer_action("110-999-998", "110-999-999", 10), TELLER_ACTOR
            )

        assert registry.active_keys() == []


class TestActionLogging:

    def test_success_logs_one_line(self, db_session, log_records):
        ActionDispatcher(db_session).dispatch(
            parse_action({"action": "tellerAuth"}), TELLER_ACTOR
        )

        dispatched = [r for r in log_records if getattr(r, "action", None)]
        assert len(dispatched) == 1
        assert dispatched[0].levelno == logging.INFO
        assert dispatched[0].actor == "teller"

    def test_rejection_logs_warning_with_code(self, db_session, log_records):
        with pytest.raises(CustomerNotEnrolled):
            ActionDispatcher(db_session).dispatch(
                parse_action({"action": "customerGetMy"}),
                Actor(role=CUSTOMER, email="ghost@x.com"),
            )

        dispatched = [r for r in log_records if getattr(r, "action", None)]
        assert dispatched[0].levelno == logging.WARNING
        assert dispatched[0].code == "CustomerNotEnrolled"
