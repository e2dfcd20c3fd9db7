"""Free-text parsing package."""

from src.parsing.parser import (
    MAX_AMOUNT,
    MAX_INPUT_LENGTH,
    MAX_NAME_LENGTH,
    ParsedTransaction,
    format_currency,
    parse_amount,
    parse_transaction_details,
    sanitize_input,
)

__all__ = [
    "MAX_AMOUNT",
    "MAX_INPUT_LENGTH",
    "MAX_NAME_LENGTH",
    "ParsedTransaction",
    "format_currency",
    "parse_amount",
    "parse_transaction_details",
    "sanitize_input",
]
