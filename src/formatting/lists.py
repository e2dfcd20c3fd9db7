"""
Chat List Rendering

Pure functions that turn reference data into WhatsApp-flavoured text
(*bold*, _italic_). No side effects, no I/O.
"""

from collections.abc import Sequence

from src.models.finance import Account, Category, CategoryClassification, Transaction
from src.parsing import format_currency


BACK_HINT = '_Type "/back" to return to main menu._'
NO_ACCOUNTS_MESSAGE = "❌ No accounts found. Please create an account in Sure.am first."
NO_TRANSACTIONS_MESSAGE = "No transactions found."


def order_categories_for_display(categories: Sequence[Category]) -> tuple[Category, ...]:
    """
    Expense categories first, then income categories.

    This is the order the list is numbered in, so it is also the order
    a number typed by the user is resolved against. Categories with any
    other classification are not offered.
    """
    expense = [c for c in categories if c.classification == CategoryClassification.EXPENSE.value]
    income = [c for c in categories if c.classification == CategoryClassification.INCOME.value]
    return tuple(expense + income)


def format_categories_list(categories: Sequence[Category]) -> str:
    expense = [c for c in categories if c.classification == CategoryClassification.EXPENSE.value]
    income = [c for c in categories if c.classification == CategoryClassification.INCOME.value]

    message = "📁 *Select a category:*\n\n"

    if expense:
        message += "*Expenses:*\n"
        for i, category in enumerate(expense, start=1):
            message += f"{i}. {category.name}\n"

    if income:
        message += "\n*Income:*\n"
        for i, category in enumerate(income, start=len(expense) + 1):
            message += f"{i}. {category.name}\n"

    message += f"\nReply with the number or type the category name.\n\n{BACK_HINT}"
    return message


def format_accounts_list(accounts: Sequence[Account]) -> str:
    """Account picker shown while entering a transaction."""
    if not accounts:
        return NO_ACCOUNTS_MESSAGE

    message = "🏦 *Select an account:*\n\n"
    for i, account in enumerate(accounts, start=1):
        balance = f" ({account.balance})" if account.balance else ""
        message += f"{i}. {account.name}{balance}\n"
    message += f"\nReply with the number.\n\n{BACK_HINT}"
    return message


def format_accounts_overview(accounts: Sequence[Account]) -> str:
    """Plain account listing for the /accounts command."""
    if not accounts:
        return "❌ No accounts found."

    message = "🏦 *Your Accounts:*\n\n"
    for i, account in enumerate(accounts, start=1):
        balance = f" - {account.balance}" if account.balance else ""
        message += f"{i}. {account.name}{balance}\n"
    return message


def format_date(value) -> str:
    """en-US short date without zero padding: 3/7/2025."""
    return f"{value.month}/{value.day}/{value.year}"


def format_transaction_list(transactions: Sequence[Transaction]) -> str:
    if not transactions:
        return NO_TRANSACTIONS_MESSAGE

    lines = []
    for i, transaction in enumerate(transactions, start=1):
        # Negative amounts already carry their "-"
        sign = "+" if transaction.amount >= 0 else ""
        category = transaction.category.name if transaction.category else "Uncategorized"
        lines.append(
            f"{i}. {sign}{format_currency(transaction.amount, transaction.currency)}"
            f" - {transaction.name}\n"
            f"   {format_date(transaction.date)} | {category}"
        )

    return "📋 *Recent Transactions*\n\n" + "\n\n".join(lines)
