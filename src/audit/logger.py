"""
Activity Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of each conversation
2. Debugging capability when the finance service fails
3. Visibility into abuse and misconfiguration

The activity logger:
- Logs locally as structured JSON through structlog
- Gracefully handles failures (logging never breaks message handling)
- Never logs message text, only lengths
"""

import logging
from typing import Optional

import structlog

from src.models.audit import ActivityEvent, ActivityEventBuilder, ActivitySeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "info") -> None:
    """
    Route structlog output to stderr at the given level.

    Call once at startup; structlog itself is configured on import.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )


class ActivityLogger:
    """
    Central activity logging service.

    One instance is shared by the gateway, the conversation engine
    and the finance client so events land in one stream.
    """

    def __init__(self, logger_name: str = "sure_bot"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        log_dict = event.to_log_dict()
        event_name = log_dict.pop("event_type")

        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error(event_name, **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning(event_name, **log_dict)
            elif event.severity == ActivitySeverity.DEBUG:
                self._logger.debug(event_name, **log_dict)
            else:
                self._logger.info(event_name, **log_dict)
        except Exception as e:
            # A broken handler must not take message processing down with it
            logging.getLogger(__name__).warning("activity logging failed: %s", e)

    def message_received(self, identity: str, text: str) -> None:
        self.log(ActivityEventBuilder.message_received(identity, len(text)))

    def message_sent(self, identity: str, text: str) -> None:
        self.log(ActivityEventBuilder.message_sent(identity, len(text)))

    def message_ignored(self, sender: str, reason: str) -> None:
        self.log(ActivityEventBuilder.message_ignored(sender, reason))

    def rate_limited(self, identity: str, remaining: int) -> None:
        self.log(ActivityEventBuilder.rate_limited(identity, remaining))

    def transaction_processing(self, identity: str, amount: str, nature: str) -> None:
        self.log(ActivityEventBuilder.transaction_processing(identity, amount, nature))

    def transaction_submitted(self, identity: str, transaction_id: str, amount: str) -> None:
        self.log(ActivityEventBuilder.transaction_submitted(identity, transaction_id, amount))

    def transaction_failed(self, identity: str, error_message: str) -> None:
        self.log(ActivityEventBuilder.transaction_failed(identity, error_message))

    def api_call(
        self,
        method: str,
        endpoint: str,
        duration_seconds: float,
        status: Optional[int] = None,
    ) -> None:
        self.log(ActivityEventBuilder.api_call(method, endpoint, duration_seconds, status))

    def api_error(
        self,
        method: str,
        endpoint: str,
        error_message: str,
        status: Optional[int] = None,
    ) -> None:
        self.log(ActivityEventBuilder.api_error(method, endpoint, error_message, status))

    def reference_data_loaded(self, accounts: int, categories: int) -> None:
        self.log(ActivityEventBuilder.reference_data_loaded(accounts, categories))

    def reference_data_failed(self, error_message: str) -> None:
        self.log(ActivityEventBuilder.reference_data_failed(error_message))

    def configuration_loaded(self, details: dict) -> None:
        self.log(ActivityEventBuilder.configuration_loaded(details))

    def no_allowed_numbers(self) -> None:
        self.log(ActivityEventBuilder.no_allowed_numbers())

    def sessions_expired(self, count: int) -> None:
        self.log(ActivityEventBuilder.sessions_expired(count))

    def system_error(
        self,
        error_type: str,
        error_message: str,
        identity: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.log(
            ActivityEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                identity=identity,
                details=details,
            )
        )
