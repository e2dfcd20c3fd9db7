"""
Activity Models for the Sure chat bot

Every significant action in the system is logged as an activity event.
This provides:
1. Traceability of each conversation step
2. Debugging information when the finance service misbehaves
3. Visibility into abuse (rate limiting, unknown senders)

DESIGN DECISION: We never log message text, only its length.
Users type amounts and payees; those stay out of the logs.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Chat traffic
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_SENT = "message_sent"
    MESSAGE_IGNORED = "message_ignored"
    RATE_LIMITED = "rate_limited"

    # Transactions
    TRANSACTION_PROCESSING = "transaction_processing"
    TRANSACTION_SUBMITTED = "transaction_submitted"
    TRANSACTION_FAILED = "transaction_failed"

    # Finance service
    API_CALL = "api_call"
    API_ERROR = "api_error"
    REFERENCE_DATA_LOADED = "reference_data_loaded"
    REFERENCE_DATA_FAILED = "reference_data_failed"

    # Housekeeping
    CONFIGURATION_LOADED = "configuration_loaded"
    NO_ALLOWED_NUMBERS = "no_allowed_numbers"
    SESSIONS_EXPIRED = "sessions_expired"
    SYSTEM_ERROR = "system_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO

    identity: Optional[str] = Field(
        default=None,
        description="Chat identity the event relates to, if any"
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "identity": self.identity,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.message_received(identity, 12)
        event = ActivityEventBuilder.transaction_failed(identity, "timeout")
    """

    @staticmethod
    def message_received(identity: str, length: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.MESSAGE_RECEIVED,
            identity=identity,
            description="Message received",
            details={"msg_length": length},
        )

    @staticmethod
    def message_sent(identity: str, length: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.MESSAGE_SENT,
            identity=identity,
            description="Message sent",
            details={"msg_length": length},
        )

    @staticmethod
    def message_ignored(sender: str, reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.MESSAGE_IGNORED,
            severity=ActivitySeverity.DEBUG,
            identity=sender,
            description=f"Message ignored: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def rate_limited(identity: str, remaining: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.RATE_LIMITED,
            severity=ActivitySeverity.WARNING,
            identity=identity,
            description="Rate limit exceeded",
            details={"remaining": remaining},
        )

    @staticmethod
    def transaction_processing(identity: str, amount: str, nature: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_PROCESSING,
            identity=identity,
            description="Processing transaction",
            details={"amount": amount, "nature": nature},
        )

    @staticmethod
    def transaction_submitted(identity: str, transaction_id: str, amount: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_SUBMITTED,
            identity=identity,
            description=f"Transaction created: {transaction_id}",
            details={"transaction_id": transaction_id, "amount": amount},
        )

    @staticmethod
    def transaction_failed(identity: str, error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_FAILED,
            severity=ActivitySeverity.ERROR,
            identity=identity,
            description="Transaction error",
            error_message=error_message,
        )

    @staticmethod
    def api_call(
        method: str,
        endpoint: str,
        duration_seconds: float,
        status: Optional[int] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.API_CALL,
            severity=ActivitySeverity.DEBUG,
            description=f"API call completed: {method} {endpoint}",
            details={
                "method": method,
                "endpoint": endpoint,
                "duration_ms": round(duration_seconds * 1000, 1),
                "status": status,
            },
        )

    @staticmethod
    def api_error(
        method: str,
        endpoint: str,
        error_message: str,
        status: Optional[int] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.API_ERROR,
            severity=ActivitySeverity.ERROR,
            description=f"API error: {method} {endpoint}",
            details={"method": method, "endpoint": endpoint, "status": status},
            error_message=error_message,
        )

    @staticmethod
    def reference_data_loaded(accounts: int, categories: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REFERENCE_DATA_LOADED,
            description=f"Loaded {accounts} accounts and {categories} categories",
            details={"accounts": accounts, "categories": categories},
        )

    @staticmethod
    def reference_data_failed(error_message: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.REFERENCE_DATA_FAILED,
            severity=ActivitySeverity.WARNING,
            description="Failed to load accounts/categories; transaction entry disabled",
            error_message=error_message,
        )

    @staticmethod
    def configuration_loaded(details: dict) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.CONFIGURATION_LOADED,
            description="Configuration loaded",
            details=details,
        )

    @staticmethod
    def no_allowed_numbers() -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.NO_ALLOWED_NUMBERS,
            severity=ActivitySeverity.WARNING,
            description="No ALLOWED_PHONE_NUMBERS configured - bot will ignore all messages",
        )

    @staticmethod
    def sessions_expired(count: int) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SESSIONS_EXPIRED,
            description=f"Cleaned up {count} expired sessions",
            details={"count": count},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        identity: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.SYSTEM_ERROR,
            severity=ActivitySeverity.ERROR,
            identity=identity,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
