"""
Conversation Engine

The state machine behind the chat. One message in, one reply out.

Flow:
    IDLE --new--> SELECT_TYPE --1/2--> SELECT_ACCOUNT --pick-->
    ENTER_DETAILS --"25.50 Coffee"--> SELECT_CATEGORY --pick--> submit --> IDLE

Global commands are checked before the per-state handler runs:
- cancel, /cancel      -> reset, cancellation notice
- back, /back, menu    -> reset, main menu
- help, /help          -> help text, session untouched

CRITICAL BOUNDARIES:
1. The engine is the only writer of sessions (through the store).
2. Lists are resolved against the snapshot stored in the session,
   never against the live reference-data cache.
3. A failed submission leaves the session exactly as it was, so the
   user can retry without re-entering earlier answers.
4. Messages from one identity are processed one at a time.
"""

from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime, timezone
from typing import Optional

from src.audit import ActivityLogger
from src.conversation import messages
from src.conversation.locks import IdentityLocks
from src.conversation.selection import SelectionError, resolve_selection
from src.formatting import (
    format_accounts_list,
    format_accounts_overview,
    format_categories_list,
    format_transaction_list,
    order_categories_for_display,
)
from src.models.conversation import (
    ConversationState,
    EnterDetailsSession,
    IdleSession,
    SelectAccountSession,
    SelectCategorySession,
    SelectTypeSession,
    Session,
)
from src.models.finance import Account, Category, TransactionNature
from src.parsing import parse_transaction_details
from src.services.finance import (
    FinanceServiceError,
    FinanceServiceInterface,
    build_draft,
)
from src.sessions import InMemorySessionStore, SessionStoreInterface


CANCEL_COMMANDS = frozenset({"cancel", "/cancel"})
BACK_COMMANDS = frozenset({"back", "/back", "menu"})
HELP_COMMANDS = frozenset({"help", "/help"})
NEW_COMMANDS = frozenset({"new", "add", "/add"})
RECENT_COMMANDS = frozenset({"recent", "/recent"})
ACCOUNTS_COMMANDS = frozenset({"accounts", "/accounts"})

TYPE_CHOICES = {
    "1": TransactionNature.EXPENSE,
    "expense": TransactionNature.EXPENSE,
    "expenses": TransactionNature.EXPENSE,
    "2": TransactionNature.INCOME,
    "income": TransactionNature.INCOME,
}


class ConfigurationError(Exception):
    """Accounts/categories could not be loaded; transaction entry is disabled."""
    pass


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


Handler = Callable[[str, Session, str], Awaitable[str]]


class ConversationEngine:
    """
    Drives the transaction-entry conversation for every identity.

    Reference data (accounts, categories) is loaded by initialize().
    Until that succeeds the engine is "not ready": global commands
    still work, everything else gets a configuration-error reply.
    """

    def __init__(
        self,
        finance_service: FinanceServiceInterface,
        session_store: Optional[SessionStoreInterface] = None,
        activity_logger: Optional[ActivityLogger] = None,
        recent_limit: int = 5,
        today: Callable[[], date] = _utc_today,
    ):
        self._finance = finance_service
        self._sessions = session_store or InMemorySessionStore()
        self._activity_logger = activity_logger or ActivityLogger()
        self._recent_limit = recent_limit
        self._today = today
        self._locks = IdentityLocks()

        self._accounts: tuple[Account, ...] = ()
        self._categories: tuple[Category, ...] = ()
        self._ready = False
        self._configuration_error: Optional[ConfigurationError] = ConfigurationError(
            "Reference data not loaded yet"
        )

        # State transition table
        self._handlers: dict[ConversationState, Handler] = {
            ConversationState.IDLE: self._handle_idle,
            ConversationState.SELECT_TYPE: self._handle_select_type,
            ConversationState.SELECT_ACCOUNT: self._handle_select_account,
            ConversationState.ENTER_DETAILS: self._handle_enter_details,
            ConversationState.SELECT_CATEGORY: self._handle_select_category,
        }

    # -------------------------------------------------------------------------
    # Reference data
    # -------------------------------------------------------------------------

    async def initialize(self) -> bool:
        """
        Load categories and accounts from the finance service.

        Returns True on success. On failure the previous cache (if any)
        is kept; an engine that never loaded stays not-ready.
        """
        try:
            categories = await self._finance.fetch_categories()
            accounts = await self._finance.fetch_accounts()
        except FinanceServiceError as e:
            if not self._ready:
                self._configuration_error = ConfigurationError(
                    f"Failed to load reference data: {e.remote_message}"
                )
            self._activity_logger.reference_data_failed(e.remote_message)
            return False

        self._categories = tuple(categories)
        self._accounts = tuple(accounts)
        self._ready = True
        self._configuration_error = None
        self._activity_logger.reference_data_loaded(len(self._accounts), len(self._categories))
        return True

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def configuration_error(self) -> Optional[ConfigurationError]:
        return self._configuration_error

    @property
    def accounts(self) -> tuple[Account, ...]:
        return self._accounts

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def sessions(self) -> SessionStoreInterface:
        return self._sessions

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    async def handle_message(self, identity: str, raw_text: str) -> str:
        """Process one inbound message and return the reply text."""
        async with self._locks.hold(identity):
            return await self._process(identity, raw_text)

    async def _process(self, identity: str, raw_text: str) -> str:
        command = raw_text.strip().lower()

        if command in CANCEL_COMMANDS:
            self._sessions.reset(identity)
            return messages.CANCELLED

        if command in BACK_COMMANDS:
            self._sessions.reset(identity)
            return messages.MAIN_MENU

        if command in HELP_COMMANDS:
            return messages.HELP

        if not self._ready:
            return messages.NOT_CONFIGURED

        session = self._sessions.get(identity)
        handler = self._handlers[session.state]
        return await handler(identity, session, raw_text)

    # -------------------------------------------------------------------------
    # State handlers
    # -------------------------------------------------------------------------

    async def _handle_idle(self, identity: str, session: IdleSession, raw_text: str) -> str:
        command = raw_text.strip().lower()

        if command in NEW_COMMANDS:
            if not self._accounts:
                return messages.NO_ACCOUNTS
            self._sessions.update(
                identity,
                state=ConversationState.SELECT_TYPE,
                accounts_snapshot=self._accounts,
            )
            return messages.NEW_TRANSACTION_PROMPT

        if command in RECENT_COMMANDS:
            return await self._recent_transactions()

        if command in ACCOUNTS_COMMANDS:
            return format_accounts_overview(self._accounts)

        return messages.MAIN_MENU

    async def _handle_select_type(
        self, identity: str, session: SelectTypeSession, raw_text: str
    ) -> str:
        nature = TYPE_CHOICES.get(raw_text.strip().lower())
        if nature is None:
            return messages.SELECT_TYPE_REPROMPT

        self._sessions.update(
            identity,
            state=ConversationState.SELECT_ACCOUNT,
            transaction_type=nature,
        )
        return format_accounts_list(session.accounts_snapshot)

    async def _handle_select_account(
        self, identity: str, session: SelectAccountSession, raw_text: str
    ) -> str:
        try:
            account = resolve_selection(raw_text, session.accounts_snapshot, lambda a: a.name)
        except SelectionError:
            return messages.INVALID_SELECTION

        self._sessions.update(
            identity,
            state=ConversationState.ENTER_DETAILS,
            account_id=account.id,
        )
        return messages.details_prompt(session.transaction_type, account.name)

    async def _handle_enter_details(
        self, identity: str, session: EnterDetailsSession, raw_text: str
    ) -> str:
        parsed = parse_transaction_details(raw_text)
        if parsed is None:
            return messages.PARSE_FAILURE

        snapshot = order_categories_for_display(self._categories)
        self._sessions.update(
            identity,
            state=ConversationState.SELECT_CATEGORY,
            amount=parsed.amount,
            name=parsed.name,
            categories_snapshot=snapshot,
        )
        return format_categories_list(snapshot)

    async def _handle_select_category(
        self, identity: str, session: SelectCategorySession, raw_text: str
    ) -> str:
        try:
            category = resolve_selection(raw_text, session.categories_snapshot, lambda c: c.name)
        except SelectionError:
            return messages.INVALID_SELECTION

        magnitude = abs(session.amount)
        if session.transaction_type == TransactionNature.EXPENSE and magnitude:
            signed_amount = -magnitude
        else:
            # Zero carries no sign
            signed_amount = magnitude

        self._activity_logger.transaction_processing(
            identity, str(signed_amount), session.transaction_type.value
        )

        try:
            draft = build_draft(
                account_id=session.account_id,
                date=self._today(),
                amount=signed_amount,
                name=session.name,
                category_id=category.id,
                nature=session.transaction_type.value,
            )
            created = await self._finance.submit_transaction(draft)
        except FinanceServiceError as e:
            # Session stays in SELECT_CATEGORY; picking a category again re-submits
            self._activity_logger.transaction_failed(identity, str(e))
            return messages.submit_failure(e.remote_message)

        self._sessions.reset(identity)
        self._activity_logger.transaction_submitted(identity, created.id, str(signed_amount))

        return messages.confirmation(
            signed_amount=signed_amount,
            name=session.name,
            category_name=category.name,
            account_name=session.account_name,
            currency=self._account_currency(session.accounts_snapshot, session.account_id),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _recent_transactions(self) -> str:
        try:
            transactions = await self._finance.fetch_recent_transactions(self._recent_limit)
        except FinanceServiceError as e:
            return messages.recent_failure(e.remote_message)
        return format_transaction_list(transactions)

    @staticmethod
    def _account_currency(accounts: Sequence[Account], account_id: str) -> str:
        for account in accounts:
            if account.id == account_id and account.currency:
                return account.currency
        return "USD"
