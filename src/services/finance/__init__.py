"""
Finance Service Package

Provides the abstract finance service interface and the Sure REST
client that implements it.
"""

from src.services.finance.interface import (
    MAX_TRANSACTION_LIMIT,
    MIN_TRANSACTION_LIMIT,
    FinanceServiceError,
    FinanceServiceInterface,
    FinanceTimeoutError,
    InvalidRequestError,
    build_draft,
    validate_limit,
)
from src.services.finance.sure_client import SureFinanceClient

__all__ = [
    # Interface
    "FinanceServiceInterface",
    "MAX_TRANSACTION_LIMIT",
    "MIN_TRANSACTION_LIMIT",
    "build_draft",
    "validate_limit",
    # Exceptions
    "FinanceServiceError",
    "FinanceTimeoutError",
    "InvalidRequestError",
    # Sure implementation
    "SureFinanceClient",
]
