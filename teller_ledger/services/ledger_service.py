"""
Ledger service — the core of the banking system.

This service enforces the fundamental rules:
1. An account balance changes only through record_transaction(),
   which appends the matching Transaction row. The balance always
   equals the sum of the account's transaction amounts.
2. Transactions are immutable (append-only).
3. Money moves only between existing, normal-status accounts.
4. Payment stops, insufficient funds, limit-account ceilings and
   the MAX_AMOUNT balance ceiling reject an operation before
   anything is written.

Checks run in a fixed order and the first failure is raised.
Nothing is committed here. The caller owns the database
transaction, so a transfer's debit, credit and both transaction
rows become visible together or not at all.
"""

from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from teller_ledger.config import get_settings
from teller_ledger.exceptions import (
    AccountNotFound,
    AccountBlocked,
    BalanceLimitExceeded,
    PaymentStopped,
    InsufficientFunds,
    LimitAccountTxnLimit,
    LimitAccountDailyLimit,
    NotOwner,
    SameAccount,
)
from teller_ledger.logging_config import get_logger
from teller_ledger.models.account import Account
from teller_ledger.models.customer import Customer
from teller_ledger.models.enums import AccountStatus, CashKind, TransactionKind
from teller_ledger.models.transaction import Transaction
from teller_ledger.schemas.common import MAX_AMOUNT
from teller_ledger.schemas.transaction import CashPayload, TransferPayload

logger = get_logger(__name__)

# Transaction kinds that count toward the daily outflow of a limit account
OUTFLOW_KINDS = (TransactionKind.TRANSFER_OUT,)


def local_midnight_utc(as_of: datetime | None = None) -> datetime:
    """
    Start of the local-clock day containing ``as_of``, as naive UTC.

    Naive ``as_of`` values are read as local time. Timestamps are
    stored as naive UTC, so the boundary is converted back to UTC.
    """
    local = (as_of or datetime.now()).astimezone()
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


class LedgerService:
    """
    All balance-changing operations pass through this service.

    Takes the request's session and never commits it. The
    ActionDispatcher owns the commit, so a transfer's debit,
    credit and both transaction rows land together.
    """

    def __init__(self, db: Session):
        self.db = db
        settings = get_settings()
        self.per_txn_limit = settings.LIMIT_ACCOUNT_PER_TXN
        self.daily_limit = settings.LIMIT_ACCOUNT_DAILY

    # --- Lookups ---

    def get_account(self, account_no: str, side: str | None = None) -> Account:
        """
        Load an account by number with a row lock held until commit.

        ``side`` ("from"/"to") only shapes the error message.
        """
        account = self.db.execute(
            select(Account)
            .where(Account.account_no == account_no)
            .with_for_update()
        ).scalar_one_or_none()

        if not account:
            label = f"{side} account" if side else "Account"
            raise AccountNotFound(f"{label} {account_no} not found")
        return account

    # --- Posting ---

    def record_transaction(
        self,
        account: Account,
        kind: TransactionKind,
        amount: int,
        memo: str = "",
        counter_account_no: str | None = None,
    ) -> Transaction:
        """
        Apply a signed amount to an account and append its transaction.

        This is the only place a balance changes. ``amount`` is the
        positive size of the movement; its sign comes from ``kind``.
        """
        signed = -amount if kind in (
            TransactionKind.WITHDRAW, TransactionKind.TRANSFER_OUT
        ) else amount

        if account.balance + signed > MAX_AMOUNT:
            raise BalanceLimitExceeded(
                f"Balance of {account.account_no} would exceed {MAX_AMOUNT}",
                limit=MAX_AMOUNT,
                balance=account.balance,
                requested=amount,
            )

        account.balance += signed
        txn = Transaction(
            account=account,
            kind=kind,
            amount=signed,
            balance_after=account.balance,
            memo=memo,
            counter_account_no=counter_account_no,
        )
        self.db.add(txn)
        self.db.flush()
        return txn

    # --- Checks ---

    def require_normal(self, *accounts: Account) -> None:
        for account in accounts:
            if account.status != AccountStatus.NORMAL:
                raise AccountBlocked(
                    f"Account {account.account_no} is {account.status.value}"
                )

    def _require_funds(self, account: Account, amount: int) -> None:
        if account.payment_stop:
            raise PaymentStopped(
                f"Payments from {account.account_no} are stopped"
            )
        if account.balance < amount:
            raise InsufficientFunds(
                f"Insufficient balance: available={account.balance}, "
                f"requested={amount}",
                balance=account.balance,
                requested=amount,
            )

    def _require_within_limits(self, account: Account, amount: int) -> None:
        """Per-transaction and daily ceilings for limit accounts."""
        if not account.limit_account:
            return

        if amount > self.per_txn_limit:
            raise LimitAccountTxnLimit(
                f"Limit accounts may transfer at most {self.per_txn_limit} at once",
                limit=self.per_txn_limit,
                requested=amount,
            )

        accumulated = self.daily_outflow(account.id)
        if accumulated + amount > self.daily_limit:
            raise LimitAccountDailyLimit(
                f"Daily transfer limit {self.daily_limit} exceeded "
                f"(already sent today: {accumulated})",
                limit=self.daily_limit,
                accumulated=accumulated,
                requested=amount,
            )

    # --- Operations ---

    def cash_in_out(self, request: CashPayload) -> Transaction:
        """
        Teller cash deposit or withdrawal.

        Order of checks: account exists, status normal, then for
        withdrawals payment stop and sufficient balance.
        """
        account = self.get_account(request.account_no)
        self.require_normal(account)

        if request.kind == CashKind.WITHDRAW:
            self._require_funds(account, request.amount)
            kind = TransactionKind.WITHDRAW
        else:
            kind = TransactionKind.DEPOSIT

        txn = self.record_transaction(account, kind, request.amount, request.memo)
        logger.info(
            "cash %s %s", kind.value, request.amount,
            extra={"account_no": account.account_no},
        )
        return txn

    def transfer(
        self,
        request: TransferPayload,
        acting_customer: Customer | None = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Move money between two accounts.

        Order of checks:
            both exist -> same account -> owner (customer only) ->
            both normal -> payment stop -> balance ->
            limit-account per-transaction cap -> daily cap

        Writes exactly two transactions: transfer-out on the source
        and transfer-in on the destination, each naming the other
        account. Returns (out, in).
        """
        source = self.get_account(request.from_account, side="from")
        destination = self.get_account(request.to_account, side="to")
        if source.id == destination.id:
            raise SameAccount("Cannot transfer to the same account")

        if acting_customer is not None and source.customer_id != acting_customer.id:
            raise NotOwner(
                f"Account {source.account_no} does not belong to "
                f"{acting_customer.customer_no}"
            )

        self.require_normal(source, destination)
        self._require_funds(source, request.amount)
        self._require_within_limits(source, request.amount)

        memo_suffix = f" · {request.memo}" if request.memo else ""
        txn_out = self.record_transaction(
            source,
            TransactionKind.TRANSFER_OUT,
            request.amount,
            memo=f"To {destination.account_no}{memo_suffix}",
            counter_account_no=destination.account_no,
        )
        txn_in = self.record_transaction(
            destination,
            TransactionKind.TRANSFER_IN,
            request.amount,
            memo=f"From {source.account_no}{memo_suffix}",
            counter_account_no=source.account_no,
        )
        logger.info(
            "transfer %s -> %s %s",
            source.account_no, destination.account_no, request.amount,
            extra={"account_no": source.account_no},
        )
        return txn_out, txn_in

    # --- Queries ---

    def daily_outflow(self, account_id: int, as_of: datetime | None = None) -> int:
        """
        Total sent from the account since local midnight.

        The day boundary follows the server's local clock at
        evaluation time and is not adjusted for DST transitions.
        """
        since = local_midnight_utc(as_of)
        total = self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.account_id == account_id,
                Transaction.kind.in_(OUTFLOW_KINDS),
                Transaction.created_at >= since,
            )
        ).scalar()
        # Outflows are stored negative
        return -int(total)

    def get_transactions(self, account_id: int) -> list[Transaction]:
        """Return all transactions for an account, oldest first."""
        return list(self.db.execute(
            select(Transaction)
            .where(Transaction.account_id == account_id)
            .order_by(Transaction.id)
        ).scalars().all())

    def recent_transactions(self, limit: int) -> list[Transaction]:
        """Most recent transactions across all accounts, newest first."""
        return list(self.db.execute(
            select(Transaction)
            .order_by(Transaction.id.desc())
            .limit(limit)
        ).scalars().all())
