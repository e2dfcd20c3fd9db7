"""Services package."""

from src.services.finance import (
    FinanceServiceError,
    FinanceServiceInterface,
    FinanceTimeoutError,
    InvalidRequestError,
    SureFinanceClient,
)

__all__ = [
    "FinanceServiceError",
    "FinanceServiceInterface",
    "FinanceTimeoutError",
    "InvalidRequestError",
    "SureFinanceClient",
]
