"""
Sure Finance Service Client

HTTP client for the Sure (sure.am) REST API:
- GET    /api/v1/accounts
- GET    /api/v1/categories
- GET    /api/v1/transactions?limit=N
- POST   /api/v1/transactions        {"transaction": {...}}
- DELETE /api/v1/transactions/{id}

Authentication is a static key in the X-Api-Key header.

Every request carries the configured timeout (30s by default). The
blocking urllib call runs in a worker thread so the event loop keeps
serving other users while one request is in flight.
"""

import asyncio
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from src.audit import ActivityLogger
from src.config import SureApiSettings, get_settings
from src.models.finance import Account, Category, Transaction, TransactionDraft
from src.services.finance.interface import (
    FinanceServiceError,
    FinanceServiceInterface,
    FinanceTimeoutError,
    InvalidRequestError,
    validate_limit,
)


API_PREFIX = "/api/v1"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, FinanceServiceError) and error.retryable


def _http_error_message(error: urllib.error.HTTPError) -> str:
    """Service-supplied message if the body has one, else the HTTP reason."""
    try:
        body = json.loads(error.read().decode("utf-8"))
    except (ValueError, OSError):
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    if error.reason:
        return str(error.reason)
    return str(error)


def _unwrap(payload: Any, key: str) -> list:
    """The API answers either {"<key>": [...]} or a bare list."""
    if isinstance(payload, dict) and key in payload:
        payload = payload[key]
    if not isinstance(payload, list):
        raise FinanceServiceError(
            f"Unexpected response shape for {key}",
            remote_message="Unexpected response from Sure",
        )
    return payload


class SureFinanceClient(FinanceServiceInterface):
    """
    Finance service backed by the Sure REST API.

    Reads are retried on timeouts, connection failures, 429 and 5xx
    responses. Transaction creation and deletion are sent once.
    """

    def __init__(
        self,
        settings: Optional[SureApiSettings] = None,
        activity_logger: Optional[ActivityLogger] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        self._settings = settings or get_settings().sure
        self._activity_logger = activity_logger or ActivityLogger()
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _build_request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> urllib.request.Request:
        url = f"{self._settings.base_url}{API_PREFIX}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        return urllib.request.Request(
            url=url,
            data=data,
            headers={
                "X-Api-Key": self._settings.api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method=method,
        )

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> Any:
        """Blocking request. Returns decoded JSON, or None for an empty body."""
        request = self._build_request(method, path, params, body)
        started = time.perf_counter()

        try:
            with urllib.request.urlopen(request, timeout=self._settings.request_timeout_seconds) as resp:
                status = resp.status
                raw = resp.read()
        except urllib.error.HTTPError as e:
            message = _http_error_message(e)
            self._activity_logger.api_error(method, path, message, status=e.code)
            raise FinanceServiceError(
                f"HTTP {e.code}: {message}",
                remote_message=message,
                status_code=e.code,
                retryable=e.code == 429 or e.code >= 500,
            ) from e
        except TimeoutError as e:
            self._activity_logger.api_error(method, path, "timeout")
            raise FinanceTimeoutError(
                f"Request timed out after {self._settings.request_timeout_seconds:g}s",
            ) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, TimeoutError):
                self._activity_logger.api_error(method, path, "timeout")
                raise FinanceTimeoutError(
                    f"Request timed out after {self._settings.request_timeout_seconds:g}s",
                ) from e
            message = str(e.reason)
            self._activity_logger.api_error(method, path, message)
            raise FinanceServiceError(message, retryable=True) from e

        self._activity_logger.api_call(method, path, time.perf_counter() - started, status)

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise FinanceServiceError(
                "Invalid JSON in response",
                remote_message="Unexpected response from Sure",
            ) from e

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        return await asyncio.to_thread(self._send, method, path, **kwargs)

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_read_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                return await self._call("GET", path, params=params)

    @staticmethod
    def _parse_list(model: type[BaseModel], items: list, what: str) -> list:
        try:
            return [model.model_validate(item) for item in items]
        except ValidationError as e:
            raise FinanceServiceError(
                f"Malformed {what} in response: {e.error_count()} errors",
                remote_message="Unexpected response from Sure",
            ) from e

    # -------------------------------------------------------------------------
    # FinanceServiceInterface
    # -------------------------------------------------------------------------

    async def fetch_accounts(self) -> list[Account]:
        payload = await self._get("/accounts")
        return self._parse_list(Account, _unwrap(payload, "accounts"), "accounts")

    async def fetch_categories(self) -> list[Category]:
        payload = await self._get("/categories")
        return self._parse_list(Category, _unwrap(payload, "categories"), "categories")

    async def fetch_recent_transactions(self, limit: int = 5) -> list[Transaction]:
        limit = validate_limit(limit)
        payload = await self._get("/transactions", params={"limit": limit})
        return self._parse_list(Transaction, _unwrap(payload, "transactions"), "transactions")

    async def submit_transaction(self, draft: TransactionDraft) -> Transaction:
        payload = await self._call("POST", "/transactions", body=draft.to_request_body())
        if isinstance(payload, dict) and isinstance(payload.get("transaction"), dict):
            payload = payload["transaction"]
        try:
            return Transaction.model_validate(payload)
        except ValidationError as e:
            raise FinanceServiceError(
                "Transaction created but response could not be read",
                remote_message="Unexpected response from Sure",
            ) from e

    async def delete_transaction(self, transaction_id: str) -> None:
        if not transaction_id or not transaction_id.strip():
            raise InvalidRequestError("Transaction ID is required")
        quoted = urllib.parse.quote(transaction_id.strip(), safe="")
        await self._call("DELETE", f"/transactions/{quoted}")
