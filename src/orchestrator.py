"""
Main Orchestrator for the Sure chat bot

This module ties together all the components and defines what happens
to an inbound chat message before and after the conversation engine:

    sender -> identity -> allow-list -> rate limit -> engine -> reply

DESIGN DECISION: The orchestrator enforces the boundaries:
- Unknown senders are ignored silently (no reply at all)
- Floods are answered with a rate-limit notice, not processed
- An unexpected failure in the engine becomes a generic reply,
  never a crashed process
- Every step is logged

It also owns the lifecycle of the background sweeps (session expiry,
rate-limit cleanup).
"""

import math
import re
import time
from datetime import timedelta
from typing import Optional

from src.audit import ActivityLogger, configure_logging
from src.config import BotSettings, SureApiSettings, describe_settings, get_settings
from src.conversation import ConversationEngine
from src.ratelimit import RateLimiter
from src.services.finance import FinanceServiceInterface, SureFinanceClient
from src.sessions import InMemorySessionStore


GENERIC_ERROR_REPLY = "❌ An error occurred. Please try again."


def normalize_identity(sender: str) -> str:
    """
    Reduce a chat address to the digits of its phone number.

    "15551234567@s.whatsapp.net" -> "15551234567"
    """
    local_part = (sender or "").split("@")[0]
    return re.sub(r"[^0-9]", "", local_part)


def describe_window(seconds: float) -> str:
    """60 -> "minute", 120 -> "2 minutes", 30 -> "30 seconds"."""
    if seconds == 60:
        return "minute"
    if seconds % 60 == 0:
        return f"{seconds / 60:g} minutes"
    return f"{seconds:g} seconds"


def rate_limited_reply(max_attempts: int, window_seconds: float, retry_after: float) -> str:
    wait = max(1, math.ceil(retry_after))
    return (
        "⚠️ Too many requests. Please wait a moment. "
        f"(Limit: {max_attempts} messages per {describe_window(window_seconds)}; "
        f"try again in {wait}s)"
    )


class ChatOrchestrator:
    """
    Gateway between the chat transport and the conversation engine.

    The transport calls handle_incoming() for every text message and
    sends back whatever string it returns (None means: send nothing).
    """

    def __init__(
        self,
        engine: ConversationEngine,
        rate_limiter: RateLimiter,
        session_store: InMemorySessionStore,
        allowed_numbers: Optional[list[str]] = None,
        activity_logger: Optional[ActivityLogger] = None,
        reference_data_retry_seconds: float = 60.0,
        clock=time.monotonic,
    ):
        self._engine = engine
        self._rate_limiter = rate_limiter
        self._session_store = session_store
        self._allowed_numbers = set(allowed_numbers or [])
        self._activity_logger = activity_logger or ActivityLogger()
        self._retry_seconds = reference_data_retry_seconds
        self._clock = clock
        self._last_initialize_attempt: Optional[float] = None

    @property
    def engine(self) -> ConversationEngine:
        return self._engine

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Start background sweeps and load reference data.

        Returns whether the engine is ready. A failed load is not fatal:
        the bot keeps answering and retries the load later.
        """
        self._session_store.start()
        self._rate_limiter.start()
        return await self._initialize_engine()

    async def shutdown(self) -> None:
        """Stop sweeps and drop in-memory state. Safe to call twice."""
        await self._session_store.close()
        await self._rate_limiter.close()

    async def _initialize_engine(self) -> bool:
        self._last_initialize_attempt = self._clock()
        return await self._engine.initialize()

    async def _retry_initialize_if_due(self) -> None:
        if self._engine.is_ready:
            return
        last = self._last_initialize_attempt
        if last is None or self._clock() - last >= self._retry_seconds:
            await self._initialize_engine()

    # -------------------------------------------------------------------------
    # Message handling
    # -------------------------------------------------------------------------

    def is_allowed_sender(self, identity: str) -> bool:
        """
        Whether `identity` is on the allow-list.

        Deny by default: with ALLOWED_PHONE_NUMBERS empty nobody is
        admitted, not everybody. create_app_components logs a warning
        at startup in that case.
        """
        return identity in self._allowed_numbers

    async def handle_incoming(self, sender: str, text: Optional[str]) -> Optional[str]:
        """
        Handle one inbound text message.

        Returns:
            The reply to send, or None if the message is ignored
        """
        identity = normalize_identity(sender)
        if not identity:
            self._activity_logger.message_ignored(sender or "", "invalid sender")
            return None

        if not self.is_allowed_sender(identity):
            self._activity_logger.message_ignored(identity, "sender not allowed")
            return None

        if not self._rate_limiter.is_allowed(identity):
            self._activity_logger.rate_limited(identity, self._rate_limiter.get_remaining(identity))
            return rate_limited_reply(
                self._rate_limiter.max_attempts,
                self._rate_limiter.window_seconds,
                self._rate_limiter.retry_after(identity),
            )

        if not text:
            return None

        self._activity_logger.message_received(identity, text)

        try:
            await self._retry_initialize_if_due()
            reply = await self._engine.handle_message(identity, text)
        except Exception as e:
            self._activity_logger.system_error(
                error_type=type(e).__name__,
                error_message=str(e),
                identity=identity,
            )
            return GENERIC_ERROR_REPLY

        self._activity_logger.message_sent(identity, reply)
        return reply


def create_app_components(
    sure_settings: Optional[SureApiSettings] = None,
    bot_settings: Optional[BotSettings] = None,
    finance_service: Optional[FinanceServiceInterface] = None,
) -> ChatOrchestrator:
    """
    Factory function to create all application components.

    Args:
        sure_settings: Sure API settings (loaded from env if None)
        bot_settings: Bot settings (loaded from env if None)
        finance_service: Finance backend. Defaults to the Sure client;
                         pass a fake for testing without network.

    Returns:
        A ChatOrchestrator; call `await orchestrator.start()` inside
        the event loop before handling messages.
    """
    bot_settings = bot_settings or get_settings().bot
    configure_logging(bot_settings.log_level)
    activity_logger = ActivityLogger()

    if finance_service is None:
        sure_settings = sure_settings or get_settings().sure
        activity_logger.configuration_loaded(describe_settings(sure_settings, bot_settings))
        finance_service = SureFinanceClient(sure_settings, activity_logger=activity_logger)

    if not bot_settings.allowed_numbers_list:
        activity_logger.no_allowed_numbers()

    session_store = InMemorySessionStore(
        timeout=timedelta(seconds=bot_settings.session_timeout_seconds),
        activity_logger=activity_logger,
    )
    rate_limiter = RateLimiter(
        max_attempts=bot_settings.rate_limit_max_attempts,
        window_seconds=bot_settings.rate_limit_window_seconds,
    )
    engine = ConversationEngine(
        finance_service=finance_service,
        session_store=session_store,
        activity_logger=activity_logger,
        recent_limit=bot_settings.recent_transactions_limit,
    )

    return ChatOrchestrator(
        engine=engine,
        rate_limiter=rate_limiter,
        session_store=session_store,
        allowed_numbers=bot_settings.allowed_numbers_list,
        activity_logger=activity_logger,
        reference_data_retry_seconds=bot_settings.reference_data_retry_seconds,
    )
