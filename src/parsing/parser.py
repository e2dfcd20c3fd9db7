"""
Transaction Text Parser

Turns a chat line like "25.50 Trader Joes" or "Gas $75.25" into an
amount and a description.

The amount may come first or last. A single numeric token grammar is
tried at the front of the line, then at the back; the front wins when
both would match ("100 200" is 100 for "200").

Numeric token:
    optional "$", optional "-", up to 12 integer digits (plain or with
    thousands commas), optional 1-2 decimal digits

The returned amount is always the absolute value. Whether a
transaction is an expense or income is decided by the conversation,
not by a minus sign the user typed.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, ConfigDict


MAX_INPUT_LENGTH = 500
MAX_NAME_LENGTH = 255
MAX_AMOUNT = Decimal("999999999999.99")

# Characters that could break out of markup or quoting downstream
_UNSAFE_CHARS = re.compile(r"[<>\"'`]")

_NUMBER = r"\$?-?(?:\d{1,3}(?:,\d{3}){1,3}|\d{1,12})(?:\.\d{1,2})?"
_AMOUNT_FIRST = re.compile(rf"({_NUMBER})\s+(.+)")
_AMOUNT_LAST = re.compile(rf"(.+?)\s+({_NUMBER})")


class ParsedTransaction(BaseModel):
    """Amount and description extracted from a chat line."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    name: str


def sanitize_input(raw: object) -> Optional[str]:
    """
    Trim and strip unsafe characters.

    Returns None for non-strings, blank input, input longer than
    MAX_INPUT_LENGTH after trimming, or input that is empty once the
    unsafe characters are gone.
    """
    if not isinstance(raw, str):
        return None

    trimmed = raw.strip()
    if not trimmed or len(trimmed) > MAX_INPUT_LENGTH:
        return None

    sanitized = _UNSAFE_CHARS.sub("", trimmed).strip()
    return sanitized or None


def parse_amount(token: str) -> Optional[Decimal]:
    """Parse a numeric token ("$1,250.50", "-20") to its absolute value."""
    cleaned = token.replace("$", "").replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return abs(amount)


def _build(amount_token: str, name: str) -> Optional[ParsedTransaction]:
    amount = parse_amount(amount_token)
    name = name.strip()
    if amount is None or amount > MAX_AMOUNT:
        return None
    if not name or len(name) > MAX_NAME_LENGTH:
        return None
    return ParsedTransaction(amount=amount, name=name)


def parse_transaction_details(raw: object) -> Optional[ParsedTransaction]:
    """
    Parse "<amount> <name>" or "<name> <amount>".

    Returns None when the line cannot be understood; callers should ask
    the user to reformat rather than treat it as an error.
    """
    text = sanitize_input(raw)
    if text is None:
        return None

    match = _AMOUNT_FIRST.fullmatch(text)
    if match:
        parsed = _build(match.group(1), match.group(2))
        if parsed:
            return parsed

    match = _AMOUNT_LAST.fullmatch(text)
    if match:
        return _build(match.group(2), match.group(1))

    return None


# =============================================================================
# CURRENCY
# =============================================================================

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}


def format_currency(amount, currency: str = "USD") -> str:
    """
    Format an amount en-US style: "$1,234.50", "-$25.50".

    Accepts Decimal, int, float or numeric strings. Unknown currencies
    are prefixed with their code ("CHF 10.00").
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        value = Decimal("0")
    if not value.is_finite():
        value = Decimal("0")

    code = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if value < 0 else ""
    body = f"{value.copy_abs():,.2f}"
    return f"{sign}{symbol}{body}"
