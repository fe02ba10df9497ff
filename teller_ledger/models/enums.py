"""
Shared enumerations for database models and request schemas.

The enum values are the wire strings clients send and receive.
"""

import enum


class AccountStatus(str, enum.Enum):
    """Lifecycle status of an account. Independent of restriction flags."""
    NORMAL = "normal"
    BLOCKED = "blocked"
    CLOSED = "closed"


class TransactionKind(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_OUT = "transfer-out"
    TRANSFER_IN = "transfer-in"


class CashKind(str, enum.Enum):
    """Teller counter operations."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class RestrictionKind(str, enum.Enum):
    """The four independent restriction flags on an account."""
    PAYMENT_STOP = "paymentStop"
    SEIZURE = "seizure"
    PROVISIONAL_SEIZURE = "provisionalSeizure"
    LIMIT_ACCOUNT = "limitAccount"


class HoldKind(str, enum.Enum):
    """Legal encumbrances recorded against an account."""
    SEIZURE = "seizure"
    PROVISIONAL_SEIZURE = "provisionalSeizure"


class ChangeRequestKind(str, enum.Enum):
    """JeSingo: customer change and incident reports."""
    ADDRESS = "address"
    LOSS = "loss"
    RESTRICTION = "restriction"
    OTHER = "other"


class ChangeRequestStatus(str, enum.Enum):
    OPEN = "open"
    DONE = "done"
