"""
Conversation Session Models

A session is a tagged union: one model per conversation state, each
carrying exactly the fields that are valid in that state. Building a
SELECT_CATEGORY session without an amount is a validation error, so
handlers can never read a field that has not been collected yet.

DESIGN DECISION: Sessions are frozen. The session store produces a new
instance on every change, which keeps "who mutates what" obvious: the
conversation engine asks the store, the store replaces.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.models.finance import Account, Category, TransactionNature


class ConversationState(str, Enum):
    """States of the transaction-entry flow."""
    IDLE = "IDLE"
    SELECT_TYPE = "SELECT_TYPE"
    SELECT_ACCOUNT = "SELECT_ACCOUNT"
    ENTER_DETAILS = "ENTER_DETAILS"
    SELECT_CATEGORY = "SELECT_CATEGORY"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _SessionBase(BaseModel):
    # extra="ignore" lets a merged update drop fields that are not
    # valid in the target state
    model_config = ConfigDict(frozen=True, extra="ignore")

    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)


class IdleSession(_SessionBase):
    """Resting state: no flow in progress."""
    state: Literal[ConversationState.IDLE] = ConversationState.IDLE


class SelectTypeSession(_SessionBase):
    """Waiting for expense/income. Accounts were snapshotted on 'new'."""
    state: Literal[ConversationState.SELECT_TYPE] = ConversationState.SELECT_TYPE
    accounts_snapshot: tuple[Account, ...]


class SelectAccountSession(_SessionBase):
    state: Literal[ConversationState.SELECT_ACCOUNT] = ConversationState.SELECT_ACCOUNT
    accounts_snapshot: tuple[Account, ...]
    transaction_type: TransactionNature


class EnterDetailsSession(_SessionBase):
    state: Literal[ConversationState.ENTER_DETAILS] = ConversationState.ENTER_DETAILS
    accounts_snapshot: tuple[Account, ...]
    transaction_type: TransactionNature
    account_id: str


class SelectCategorySession(_SessionBase):
    """Everything but the category is known; the next valid pick submits."""
    state: Literal[ConversationState.SELECT_CATEGORY] = ConversationState.SELECT_CATEGORY
    accounts_snapshot: tuple[Account, ...]
    transaction_type: TransactionNature
    account_id: str
    amount: Decimal = Field(..., ge=0)
    name: str = Field(..., min_length=1, max_length=255)
    categories_snapshot: tuple[Category, ...]

    @property
    def account_name(self) -> str:
        for account in self.accounts_snapshot:
            if account.id == self.account_id:
                return account.name
        return "Unknown"


Session = Annotated[
    Union[
        IdleSession,
        SelectTypeSession,
        SelectAccountSession,
        EnterDetailsSession,
        SelectCategorySession,
    ],
    Field(discriminator="state"),
]

SESSION_ADAPTER: TypeAdapter[Session] = TypeAdapter(Session)


def build_session(data: dict) -> Session:
    """
    Build the session model matching data["state"].

    Raises pydantic.ValidationError if a field required by that state
    is missing or invalid.
    """
    return SESSION_ADAPTER.validate_python(data)
