"""
Request envelope: one typed variant per action.

Every request body is ``{"action": "<name>", "payload": {...}}``.
The ``action`` string is the discriminator, so Pydantic picks the
variant and validates its payload in one step, and an unknown
action never reaches business logic.

Each variant also declares:
- role:       "teller" (shared-code gate) or "customer" (bearer token)
- lock_keys:  the account numbers or identities it mutates, used to
              serialize concurrent requests touching the same account
- sequences:  the counters it draws numbers from (customer, account,
              ...), locked the same way so two requests never read
              the same counter value
"""

from typing import Annotated, ClassVar, Literal, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter

from teller_ledger.schemas.account import (
    OpenAccountPayload,
    SetStatusPayload,
    GetAccountPayload,
)
from teller_ledger.schemas.common import CamelModel
from teller_ledger.schemas.customer import (
    CreateCustomerPayload,
    IdentityUserPayload,
    EnrollPayload,
)
from teller_ledger.schemas.restriction import RestrictPayload, ReleasePayload
from teller_ledger.schemas.servicing import (
    ProductPayload,
    TellerReportPayload,
    CustomerReportPayload,
    ResolveReportPayload,
    IssueCardPayload,
    FormPayload,
)
from teller_ledger.schemas.transaction import CashPayload, TransferPayload

TELLER = "teller"
CUSTOMER = "customer"


class EmptyPayload(CamelModel):
    pass


class ActionRequest(BaseModel):
    role: ClassVar[str]
    # Named counters the action draws new numbers from
    sequences: ClassVar[tuple[str, ...]] = ()

    def lock_keys(self) -> list[str]:
        return []

    def sequence_keys(self) -> list[str]:
        return [f"seq:{name}" for name in self.sequences]


# --- Teller actions ---

class TellerAuth(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerAuth"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class TellerGetAll(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerGetAll"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class TellerCreateCustomer(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("customer", "account")
    action: Literal["tellerCreateCustomer"]
    payload: CreateCustomerPayload

    def lock_keys(self) -> list[str]:
        if self.payload.email:
            return [f"email:{self.payload.email}"]
        return []


class TellerCreateIdentityUser(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("customer", "account")
    action: Literal["tellerCreateIdentityUser"]
    payload: IdentityUserPayload

    def lock_keys(self) -> list[str]:
        return [f"email:{self.payload.email}"]


class TellerOpenAccount(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("account",)
    action: Literal["tellerOpenAccount"]
    payload: OpenAccountPayload


class TellerGetAccount(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerGetAccount"]
    payload: GetAccountPayload


class TellerSetStatus(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerSetStatus"]
    payload: SetStatusPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.account_no]


class TellerCash(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerCash"]
    payload: CashPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.account_no]


class TellerTransfer(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerTransfer"]
    payload: TransferPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.from_account, self.payload.to_account]


class TellerRestrict(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerRestrict"]
    payload: RestrictPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.account_no]


class TellerReleaseRestriction(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerReleaseRestriction"]
    payload: ReleasePayload

    def lock_keys(self) -> list[str]:
        return [self.payload.account_no]


class TellerEnrollProduct(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("product",)
    action: Literal["tellerEnrollProduct"]
    payload: ProductPayload


class TellerReport(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("request",)
    action: Literal["tellerReport"]
    payload: TellerReportPayload


class TellerResolveReport(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerResolveReport"]
    payload: ResolveReportPayload


class TellerIssueCard(ActionRequest):
    role: ClassVar[str] = TELLER
    action: Literal["tellerIssueCard"]
    payload: IssueCardPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.account_no]


class TellerSubmitForm(ActionRequest):
    role: ClassVar[str] = TELLER
    sequences: ClassVar[tuple[str, ...]] = ("form",)
    action: Literal["tellerSubmitForm"]
    payload: FormPayload


# --- Customer actions ---

class CustomerEnroll(ActionRequest):
    role: ClassVar[str] = CUSTOMER
    sequences: ClassVar[tuple[str, ...]] = ("customer", "account")
    action: Literal["customerEnroll"]
    payload: EnrollPayload


class CustomerGetMy(ActionRequest):
    role: ClassVar[str] = CUSTOMER
    action: Literal["customerGetMy"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


class CustomerTransfer(ActionRequest):
    role: ClassVar[str] = CUSTOMER
    action: Literal["customerTransfer"]
    payload: TransferPayload

    def lock_keys(self) -> list[str]:
        return [self.payload.from_account, self.payload.to_account]


class CustomerReport(ActionRequest):
    role: ClassVar[str] = CUSTOMER
    sequences: ClassVar[tuple[str, ...]] = ("request",)
    action: Literal["customerReport"]
    payload: CustomerReportPayload


AnyAction = Annotated[
    Union[
        TellerAuth,
        TellerGetAll,
        TellerCreateCustomer,
        TellerCreateIdentityUser,
        TellerOpenAccount,
        TellerGetAccount,
        TellerSetStatus,
        TellerCash,
        TellerTransfer,
        TellerRestrict,
        TellerReleaseRestriction,
        TellerEnrollProduct,
        TellerReport,
        TellerResolveReport,
        TellerIssueCard,
        TellerSubmitForm,
        CustomerEnroll,
        CustomerGetMy,
        CustomerTransfer,
        CustomerReport,
    ],
    Field(discriminator="action"),
]

ACTION_VARIANTS: tuple[type[ActionRequest], ...] = get_args(get_args(AnyAction)[0])

# action name -> variant class
ACTIONS: dict[str, type[ActionRequest]] = {
    get_args(variant.model_fields["action"].annotation)[0]: variant
    for variant in ACTION_VARIANTS
}

action_adapter = TypeAdapter(AnyAction)


def parse_action(body: dict) -> ActionRequest:
    """Validate a raw request body into its action variant."""
    return action_adapter.validate_python(body)
