"""Shared fixtures: reference data and an in-memory finance service."""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from src.models.finance import Account, Category, Transaction, TransactionDraft
from src.services.finance import (
    FinanceServiceError,
    FinanceServiceInterface,
    validate_limit,
)


class FakeFinanceService(FinanceServiceInterface):
    """
    In-memory finance backend.

    Set `fail_reads` / `fail_submit` to an exception to make the next
    calls raise it.
    """

    def __init__(
        self,
        accounts: Optional[list[Account]] = None,
        categories: Optional[list[Category]] = None,
        transactions: Optional[list[Transaction]] = None,
    ):
        self.accounts = list(accounts or [])
        self.categories = list(categories or [])
        self.transactions = list(transactions or [])
        self.submitted: list[TransactionDraft] = []
        self.fail_reads: Optional[FinanceServiceError] = None
        self.fail_submit: Optional[FinanceServiceError] = None
        self.read_calls = 0

    async def fetch_accounts(self) -> list[Account]:
        self.read_calls += 1
        if self.fail_reads:
            raise self.fail_reads
        return list(self.accounts)

    async def fetch_categories(self) -> list[Category]:
        self.read_calls += 1
        if self.fail_reads:
            raise self.fail_reads
        return list(self.categories)

    async def fetch_recent_transactions(self, limit: int = 5) -> list[Transaction]:
        limit = validate_limit(limit)
        if self.fail_reads:
            raise self.fail_reads
        return self.transactions[:limit]

    async def submit_transaction(self, draft: TransactionDraft) -> Transaction:
        if self.fail_submit:
            raise self.fail_submit
        self.submitted.append(draft)
        return Transaction(
            id=f"txn-{len(self.submitted)}",
            date=draft.date,
            amount=draft.amount,
            name=draft.name,
        )

    async def delete_transaction(self, transaction_id: str) -> None:
        self.transactions = [t for t in self.transactions if t.id != transaction_id]


@pytest.fixture
def accounts():
    return [
        Account(id="acc-1", name="Checking", balance="$1,200.00", currency="USD"),
        Account(id="acc-2", name="Credit Card", balance="-$300.00", currency="USD"),
    ]


@pytest.fixture
def categories():
    # Interleaved; display order puts expenses first
    return [
        Category(id="cat-salary", name="Salary", classification="income"),
        Category(id="cat-food", name="Food & Drink", classification="expense"),
        Category(id="cat-rent", name="Rent", classification="expense"),
        Category(id="cat-transfer", name="Transfer", classification="transfer"),
    ]


@pytest.fixture
def transactions(categories):
    return [
        Transaction(
            id="t1",
            date=date(2025, 3, 7),
            amount=Decimal("-25.50"),
            name="Coffee",
            category=categories[1],
        ),
        Transaction(
            id="t2",
            date=date(2025, 3, 1),
            amount=Decimal("1500"),
            name="Paycheck",
        ),
    ]


@pytest.fixture
def finance(accounts, categories, transactions):
    return FakeFinanceService(accounts, categories, transactions)
