"""Reply texts sent by the conversation engine."""

from decimal import Decimal

from src.formatting import BACK_HINT
from src.models.finance import TransactionNature
from src.parsing import format_currency


CANCELLED = '❌ Cancelled. Type "new" to add a transaction.'
NOT_CONFIGURED = "⚠️ Sure.am not configured. Please check .env file."
NO_ACCOUNTS = "❌ No accounts found. Please create an account in Sure.am first."
SELECT_TYPE_REPROMPT = "Please reply with *1* (Expense) or *2* (Income)."
INVALID_SELECTION = "❌ Invalid selection. Please reply with a number from the list."
PARSE_FAILURE = "❌ Couldn't parse that. Please use format:\n`25.50 Store Name`"

NEW_TRANSACTION_PROMPT = (
    "💰 *New Transaction*\n\n"
    "1. Expense\n"
    "2. Income\n\n"
    "Reply with 1 or 2.\n\n"
    f"{BACK_HINT}"
)

MAIN_MENU = (
    "🏠 *Main Menu*\n\n"
    "Commands:\n"
    "• *new* - Add transaction\n"
    "• */recent* - View recent transactions\n"
    "• */accounts* - List accounts\n"
    "• */help* - Show this message"
)

HELP = (
    "📚 *Sure.am WhatsApp Bot Help*\n\n"
    "*Commands:*\n"
    "• *new* or */add* - Add a new transaction\n"
    "• */recent* - View recent transactions\n"
    "• */accounts* - List your accounts\n"
    "• */back* - Go back to main menu\n"
    "• */cancel* - Cancel current operation\n"
    "• */help* - Show this message\n\n"
    "*How to add a transaction:*\n"
    '1. Type "new"\n'
    "2. Select Expense or Income\n"
    "3. Select an account\n"
    '4. Enter amount and name (e.g., "25.50 Store")\n'
    "5. Select a category\n\n"
    "*Tips:*\n"
    '• Amounts can be formatted as "25.50" or "$25.50"\n'
    "• You can put the name before or after the amount\n"
    '• Type "/back" at any time to return to main menu'
)

_DETAILS_EXAMPLES = {
    TransactionNature.EXPENSE: "25.50 Trader Joe's",
    TransactionNature.INCOME: "1500 Salary",
}


def details_prompt(nature: TransactionNature, account_name: str) -> str:
    return (
        f"📝 Enter amount and name.\n\nExample: `{_DETAILS_EXAMPLES[nature]}`"
        f"\n\nAccount: *{account_name}*\n\n{BACK_HINT}"
    )


def confirmation(
    signed_amount: Decimal,
    name: str,
    category_name: str,
    account_name: str,
    currency: str = "USD",
) -> str:
    if signed_amount < 0:
        sign = "-"
    elif signed_amount > 0:
        sign = "+"
    else:
        sign = ""
    return (
        "✅ *Transaction added!*\n\n"
        f"{sign}{format_currency(abs(signed_amount), currency)} - {name}\n"
        f"Category: {category_name}\n"
        f"Account: {account_name}\n\n"
        'Type "new" to add another.'
    )


def submit_failure(reason: str) -> str:
    return f"❌ Failed to create transaction. Please try again.\n\nError: {reason}"


def recent_failure(reason: str) -> str:
    return f"❌ Failed to fetch transactions: {reason}"
