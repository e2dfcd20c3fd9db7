"""Chat message formatting package."""

from src.formatting.lists import (
    BACK_HINT,
    NO_ACCOUNTS_MESSAGE,
    NO_TRANSACTIONS_MESSAGE,
    format_accounts_list,
    format_accounts_overview,
    format_categories_list,
    format_date,
    format_transaction_list,
    order_categories_for_display,
)

__all__ = [
    "BACK_HINT",
    "NO_ACCOUNTS_MESSAGE",
    "NO_TRANSACTIONS_MESSAGE",
    "format_accounts_list",
    "format_accounts_overview",
    "format_categories_list",
    "format_date",
    "format_transaction_list",
    "order_categories_for_display",
]
