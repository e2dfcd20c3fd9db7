"""
Abstract Finance Service Interface

DESIGN DECISION: The conversation engine only knows this interface.
This allows us to:
1. Use an in-memory fake in tests (no network)
2. Point the bot at another backend later
3. Keep HTTP details (URLs, headers, retries) out of the state machine

Reads (accounts, categories, recent transactions) are idempotent and
may be retried by implementations. Writes are sent exactly once.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from src.models.finance import Account, Category, Transaction, TransactionDraft


MIN_TRANSACTION_LIMIT = 1
MAX_TRANSACTION_LIMIT = 100


class FinanceServiceError(Exception):
    """
    Base exception for finance service failures.

    `remote_message` is the human-readable reason (from the service if
    it sent one) and is safe to show to the user verbatim.
    """

    def __init__(
        self,
        message: str,
        remote_message: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.remote_message = remote_message or message
        self.status_code = status_code
        self.retryable = retryable


class FinanceTimeoutError(FinanceServiceError):
    """The service did not answer within the request timeout."""

    def __init__(self, message: str, remote_message: Optional[str] = None):
        super().__init__(message, remote_message=remote_message, retryable=True)


class InvalidRequestError(FinanceServiceError):
    """A request was rejected locally before any network call."""
    pass


class FinanceServiceInterface(ABC):
    """
    Abstract interface for the remote finance service.

    All methods raise FinanceServiceError (or a subclass) on failure.
    """

    @abstractmethod
    async def fetch_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    async def fetch_categories(self) -> list[Category]:
        pass

    @abstractmethod
    async def fetch_recent_transactions(self, limit: int = 5) -> list[Transaction]:
        """
        Most recent transactions, newest first.

        Raises:
            InvalidRequestError: If limit is not an integer in 1..100
        """
        pass

    @abstractmethod
    async def submit_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Create a transaction.

        Returns:
            The transaction as stored by the service
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        pass


def validate_limit(limit: object) -> int:
    """Check a transaction-list limit before it reaches the network."""
    if (
        isinstance(limit, bool)
        or not isinstance(limit, int)
        or not MIN_TRANSACTION_LIMIT <= limit <= MAX_TRANSACTION_LIMIT
    ):
        raise InvalidRequestError(
            f"Limit must be an integer between {MIN_TRANSACTION_LIMIT} and {MAX_TRANSACTION_LIMIT}"
        )
    return limit


def build_draft(**fields) -> TransactionDraft:
    """
    Build a TransactionDraft, turning schema failures into InvalidRequestError.

    Raises:
        InvalidRequestError: If a required field is missing or invalid
    """
    try:
        return TransactionDraft(**fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequestError(f"Invalid transaction: {problems}") from e
