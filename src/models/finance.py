"""
Finance Reference Models

Mirrors of the records the Sure finance service returns: accounts,
categories, transactions and tags, plus the payload we submit when
creating a transaction.

DESIGN DECISION: These are frozen Pydantic models. The conversation
engine caches accounts/categories at startup and copies them into
session snapshots, so nothing may mutate them in place.
Unknown remote fields are ignored rather than rejected.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionNature(str, Enum):
    """
    Nature of a transaction entered through the chat.

    Determines the sign of the submitted amount:
    expenses are negative, income is positive.
    """
    EXPENSE = "expense"
    INCOME = "income"


class CategoryClassification(str, Enum):
    """Classification tag of a category, used to group category lists."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# REFERENCE DATA
# =============================================================================

class _RemoteRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)


class Account(_RemoteRecord):
    """An account (checking, credit card, ...) in the finance service."""

    id: str = Field(..., min_length=1)
    name: str
    account_type: str = Field(default="")
    balance: Optional[str] = Field(
        default=None,
        description="Display balance as returned by the service (already formatted)"
    )
    currency: Optional[str] = None


class Category(_RemoteRecord):
    """A transaction category."""

    id: str = Field(..., min_length=1)
    name: str
    classification: str = Field(
        default="",
        description="'expense' or 'income'; anything else is not offered for selection"
    )
    color: Optional[str] = None
    icon: Optional[str] = None


class Tag(_RemoteRecord):
    id: str
    name: str
    color: Optional[str] = None


class Transaction(_RemoteRecord):
    """A transaction as stored by the finance service."""

    id: str
    date: date
    amount: Decimal
    currency: str = "USD"
    name: str
    notes: Optional[str] = None
    classification: Optional[str] = None
    account: Optional[Account] = None
    category: Optional[Category] = None
    tags: list[Tag] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# SUBMISSION PAYLOAD
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Payload for creating a transaction.

    Validated before any network call is made: the account must be set,
    the date must be a real calendar date and the name must fit the
    service's 255 character limit.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account_id: str = Field(..., min_length=1)
    date: date
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        max_digits=14,
        decimal_places=2,
        description="Signed amount: negative for expenses, positive for income"
    )
    name: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[str] = None
    notes: Optional[str] = None
    nature: Optional[str] = None

    @field_validator("nature")
    @classmethod
    def validate_nature(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ("income", "expense", "inflow", "outflow"):
            raise ValueError("nature must be one of: income, expense, inflow, outflow")
        return v

    def to_request_body(self) -> dict:
        """Body for POST /api/v1/transactions."""
        body = self.model_dump(mode="json", exclude_none=True)
        # The service expects a JSON number, not the string Decimal dumps to
        body["amount"] = float(self.amount)
        return {"transaction": body}
