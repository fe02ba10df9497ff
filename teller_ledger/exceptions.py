"""
Typed exception hierarchy.

Services raise these; the API layer turns them into the JSON
error envelope. Every exception carries:

- code:        short machine-readable name, returned as "error"
- status_code: HTTP status for the response
- detail:      optional human-readable message
- extra:       optional structured data (limits, totals, field errors)

Callers catch by type, never by message text.

    LedgerError
    +-- InputValidationError (400)   InvalidJson, UnknownAction, InvalidPin,
    |                                SameAccount
    +-- AuthenticationError (401)    Unauthenticated
    +-- ForbiddenError (403)         BadTellerCode, NotOwner,
    |                                CustomerNotEnrolled, PinMismatch
    +-- NotFoundError (404)          CustomerNotFound, AccountNotFound
    +-- ConflictError (409)          AccountBlocked, PaymentStopped,
    |                                InsufficientFunds, LimitAccountTxnLimit,
    |                                LimitAccountDailyLimit,
    |                                InvalidStatusTransition, PinNotSet
    +-- InternalError (500)          IdentityNotConfigured,
                                     IdentityProvisioningFailed
"""


class LedgerError(Exception):
    """Base class for every error the service reports to a caller."""

    code: str = "InternalError"
    status_code: int = 500

    def __init__(self, detail: str | None = None, **extra):
        self.detail = detail
        self.extra = extra
        super().__init__(detail or self.code)

    def to_dict(self) -> dict:
        body = {"ok": False, "error": self.code}
        if self.detail:
            body["detail"] = self.detail
        if self.extra:
            body["extra"] = self.extra
        return body


# --- Kinds ---

class InputValidationError(LedgerError):
    code = "ValidationError"
    status_code = 400


class AuthenticationError(LedgerError):
    code = "Unauthenticated"
    status_code = 401


class ForbiddenError(LedgerError):
    code = "Forbidden"
    status_code = 403


class NotFoundError(LedgerError):
    code = "NotFound"
    status_code = 404


class ConflictError(LedgerError):
    code = "Conflict"
    status_code = 409


class InternalError(LedgerError):
    code = "InternalError"
    status_code = 500


# --- Validation ---

class InvalidJson(InputValidationError):
    code = "InvalidJson"


class UnknownAction(InputValidationError):
    code = "UnknownAction"


class InvalidPin(InputValidationError):
    code = "InvalidPin"


class SameAccount(InputValidationError):
    code = "SameAccount"


# --- Access ---

class BadTellerCode(ForbiddenError):
    code = "BadTellerCode"


class NotOwner(ForbiddenError):
    code = "NotOwner"


class CustomerNotEnrolled(ForbiddenError):
    code = "CustomerNotEnrolled"


class PinMismatch(ForbiddenError):
    code = "PinMismatch"


# --- Lookups ---

class CustomerNotFound(NotFoundError):
    code = "CustomerNotFound"


class AccountNotFound(NotFoundError):
    code = "AccountNotFound"


# --- Business rules ---

class AccountBlocked(ConflictError):
    code = "AccountBlocked"


class PaymentStopped(ConflictError):
    code = "PaymentStopped"


class InsufficientFunds(ConflictError):
    code = "InsufficientFunds"


class LimitAccountTxnLimit(ConflictError):
    code = "LimitAccountTxnLimit"


class LimitAccountDailyLimit(ConflictError):
    code = "LimitAccountDailyLimit"


class BalanceLimitExceeded(ConflictError):
    code = "BalanceLimitExceeded"


class InvalidStatusTransition(ConflictError):
    code = "InvalidStatusTransition"


class PinNotSet(ConflictError):
    code = "PinNotSet"


# --- Collaborators ---

class IdentityNotConfigured(InternalError):
    code = "IdentityNotConfigured"


class IdentityProvisioningFailed(InternalError):
    code = "IdentityProvisioningFailed"
