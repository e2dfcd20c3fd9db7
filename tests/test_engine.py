"""
Tests for the conversation engine.

The finance service is the in-memory fake from conftest; no network.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from src.conversation import ConversationEngine, IdentityLocks
from src.conversation import messages
from src.models.conversation import ConversationState
from src.models.finance import Transaction
from src.services.finance import FinanceServiceError, FinanceTimeoutError


TODAY = date(2025, 3, 7)


@pytest.fixture
def engine(finance):
    return ConversationEngine(finance, today=lambda: TODAY)


async def converse(engine, *lines, identity="u"):
    reply = None
    for line in lines:
        reply = await engine.handle_message(identity, line)
    return reply


def state_of(engine, identity="u"):
    return engine.sessions.get(identity).state


class TestInitialize:

    @pytest.mark.asyncio
    async def test_loads_reference_data(self, engine):
        assert await engine.initialize() is True
        assert engine.is_ready
        assert engine.configuration_error is None
        assert len(engine.accounts) == 2
        assert len(engine.categories) == 4

    @pytest.mark.asyncio
    async def test_failure_leaves_engine_not_ready(self, engine, finance):
        finance.fail_reads = FinanceServiceError("boom", remote_message="Unauthorized")
        assert await engine.initialize() is False
        assert not engine.is_ready
        assert "Unauthorized" in str(engine.configuration_error)

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_cache(self, engine, finance):
        await engine.initialize()
        finance.fail_reads = FinanceServiceError("boom")
        assert await engine.initialize() is False
        assert engine.is_ready
        assert len(engine.accounts) == 2

    @pytest.mark.asyncio
    async def test_not_ready_refuses_transaction_entry(self, engine, finance):
        finance.fail_reads = FinanceServiceError("boom")
        await engine.initialize()
        assert await converse(engine, "new") == messages.NOT_CONFIGURED
        assert await converse(engine, "/recent") == messages.NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_not_ready_still_answers_global_commands(self, engine):
        assert await converse(engine, "help") == messages.HELP
        assert await converse(engine, "cancel") == messages.CANCELLED
        assert await converse(engine, "menu") == messages.MAIN_MENU


class TestIdle:

    @pytest.mark.asyncio
    async def test_new_starts_flow(self, engine):
        await engine.initialize()
        reply = await converse(engine, "  NEW ")
        assert reply == messages.NEW_TRANSACTION_PROMPT
        assert "1. Expense" in reply and "2. Income" in reply
        assert state_of(engine) == ConversationState.SELECT_TYPE

    @pytest.mark.parametrize("command", ["add", "/add"])
    @pytest.mark.asyncio
    async def test_new_aliases(self, engine, command):
        await engine.initialize()
        await converse(engine, command)
        assert state_of(engine) == ConversationState.SELECT_TYPE

    @pytest.mark.asyncio
    async def test_new_without_accounts_stays_idle(self, engine, finance):
        finance.accounts = []
        await engine.initialize()
        assert await converse(engine, "new") == messages.NO_ACCOUNTS
        assert state_of(engine) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_unknown_text_shows_menu(self, engine):
        await engine.initialize()
        assert await converse(engine, "hello") == messages.MAIN_MENU

    @pytest.mark.asyncio
    async def test_recent(self, engine):
        await engine.initialize()
        reply = await converse(engine, "/recent")
        assert "📋 *Recent Transactions*" in reply
        assert "-$25.50 - Coffee" in reply

    @pytest.mark.asyncio
    async def test_recent_with_huge_amount(self, engine, finance):
        finance.transactions = [
            Transaction(id="t9", date=date(2025, 3, 7), amount=Decimal("1" + "0" * 27), name="Windfall"),
        ]
        await engine.initialize()
        reply = await converse(engine, "recent")
        assert "+$1" + ",000" * 9 + ".00 - Windfall" in reply

    @pytest.mark.asyncio
    async def test_recent_failure_is_reported(self, engine, finance):
        await engine.initialize()
        finance.fail_reads = FinanceTimeoutError("timed out", remote_message="Request timed out")
        assert await converse(engine, "recent") == messages.recent_failure("Request timed out")

    @pytest.mark.asyncio
    async def test_accounts(self, engine):
        await engine.initialize()
        reply = await converse(engine, "/accounts")
        assert "1. Checking - $1,200.00" in reply


class TestSelectType:

    @pytest.mark.asyncio
    async def test_number_and_word_are_equivalent(self, engine):
        await engine.initialize()
        by_number = await converse(engine, "new", "1", identity="a")
        by_word = await converse(engine, "new", "Expense", identity="b")
        assert by_number == by_word
        assert engine.sessions.get("a").transaction_type == engine.sessions.get("b").transaction_type

    @pytest.mark.asyncio
    async def test_income(self, engine):
        await engine.initialize()
        await converse(engine, "new", "income")
        assert engine.sessions.get("u").transaction_type.value == "income"

    @pytest.mark.asyncio
    async def test_other_input_reprompts(self, engine):
        await engine.initialize()
        assert await converse(engine, "new", "3") == messages.SELECT_TYPE_REPROMPT
        assert state_of(engine) == ConversationState.SELECT_TYPE


class TestSelectAccount:

    @pytest.mark.asyncio
    async def test_by_number(self, engine):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "2")
        assert "Account: *Credit Card*" in reply
        assert engine.sessions.get("u").account_id == "acc-2"

    @pytest.mark.asyncio
    async def test_by_name(self, engine):
        await engine.initialize()
        await converse(engine, "new", "2", "checking")
        session = engine.sessions.get("u")
        assert session.state == ConversationState.ENTER_DETAILS
        assert session.account_id == "acc-1"

    @pytest.mark.parametrize("choice", ["0", "3", "Savings"])
    @pytest.mark.asyncio
    async def test_invalid_choice_stays(self, engine, choice):
        await engine.initialize()
        assert await converse(engine, "new", "1", choice) == messages.INVALID_SELECTION
        assert state_of(engine) == ConversationState.SELECT_ACCOUNT

    @pytest.mark.asyncio
    async def test_resolves_against_snapshot(self, engine, finance):
        """A refresh after 'new' does not change what the numbers mean."""
        await engine.initialize()
        await converse(engine, "new", "1")
        finance.accounts = list(reversed(finance.accounts))
        await engine.initialize()
        await converse(engine, "1")
        assert engine.sessions.get("u").account_id == "acc-1"


class TestEnterDetails:

    @pytest.mark.asyncio
    async def test_parsed_details_move_to_category(self, engine):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "1", "Coffee $4.75")
        assert reply.startswith("📁 *Select a category:*")
        session = engine.sessions.get("u")
        assert session.amount == Decimal("4.75")
        assert session.name == "Coffee"
        assert [c.id for c in session.categories_snapshot] == ["cat-food", "cat-rent", "cat-salary"]

    @pytest.mark.asyncio
    async def test_unparseable_details_stay(self, engine):
        await engine.initialize()
        assert await converse(engine, "new", "1", "1", "just words") == messages.PARSE_FAILURE
        assert state_of(engine) == ConversationState.ENTER_DETAILS


    @pytest.mark.asyncio
    async def test_oversized_amount_gets_format_hint(self, engine, finance):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "1", "1" + "0" * 27 + " Coffee")
        assert reply == messages.PARSE_FAILURE
        assert state_of(engine) == ConversationState.ENTER_DETAILS
        assert finance.submitted == []


class TestSelectCategory:

    @pytest.mark.asyncio
    async def test_end_to_end_expense(self, engine, finance):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "1", "25.50 Coffee", "1")

        assert "✅ *Transaction added!*" in reply
        assert "-$25.50 - Coffee" in reply
        assert "Category: Food & Drink" in reply
        assert "Account: Checking" in reply
        assert state_of(engine) == ConversationState.IDLE

        draft = finance.submitted[0]
        assert draft.amount == Decimal("-25.50")
        assert draft.account_id == "acc-1"
        assert draft.category_id == "cat-food"
        assert draft.date == TODAY
        assert draft.nature == "expense"

    @pytest.mark.asyncio
    async def test_income_is_positive(self, engine, finance):
        await engine.initialize()
        reply = await converse(engine, "new", "2", "1", "-1500 Salary", "Salary")
        assert "+$1,500.00 - Salary" in reply
        assert finance.submitted[0].amount == Decimal("1500")
        assert finance.submitted[0].category_id == "cat-salary"

    @pytest.mark.asyncio
    async def test_largest_amount_confirms(self, engine, finance):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "1", "999,999,999,999.99 Yacht", "1")
        assert "-$999,999,999,999.99 - Yacht" in reply
        assert finance.submitted[0].amount == Decimal("-999999999999.99")

    @pytest.mark.asyncio
    async def test_zero_expense_has_no_sign(self, engine, finance):
        await engine.initialize()
        reply = await converse(engine, "new", "1", "1", "0 Coffee", "1")
        assert "\n$0.00 - Coffee" in reply
        assert not finance.submitted[0].amount.is_signed()
        assert finance.submitted[0].to_request_body()["transaction"]["amount"] == 0.0

    @pytest.mark.asyncio
    async def test_number_and_name_submit_same_category(self, engine, finance):
        await engine.initialize()
        await converse(engine, "new", "1", "1", "10 Lunch", "2", identity="a")
        await converse(engine, "new", "1", "1", "10 Lunch", "rENT", identity="b")
        assert finance.submitted[0].category_id == finance.submitted[1].category_id == "cat-rent"

    @pytest.mark.asyncio
    async def test_invalid_category_stays(self, engine, finance):
        await engine.initialize()
        assert await converse(engine, "new", "1", "1", "10 Lunch", "9") == messages.INVALID_SELECTION
        assert state_of(engine) == ConversationState.SELECT_CATEGORY
        assert finance.submitted == []

    @pytest.mark.asyncio
    async def test_failed_submission_preserves_session(self, engine, finance):
        await engine.initialize()
        await converse(engine, "new", "1", "1", "10 Lunch")
        before = engine.sessions.get("u")

        finance.fail_submit = FinanceServiceError("HTTP 422", remote_message="Name is invalid")
        reply = await converse(engine, "1")
        assert reply == messages.submit_failure("Name is invalid")

        after = engine.sessions.get("u")
        assert after.state == ConversationState.SELECT_CATEGORY
        assert (after.amount, after.name, after.account_id) == (before.amount, before.name, before.account_id)

        # Picking a category again re-submits
        finance.fail_submit = None
        reply = await converse(engine, "1")
        assert "✅ *Transaction added!*" in reply
        assert len(finance.submitted) == 1


class TestGlobalCommands:

    @pytest.mark.parametrize("command", ["cancel", "/cancel", " CANCEL "])
    @pytest.mark.asyncio
    async def test_cancel_from_any_state_resets(self, engine, command):
        await engine.initialize()
        await converse(engine, "new", "1", "1", "10 Lunch")
        assert await converse(engine, command) == messages.CANCELLED

        session = engine.sessions.get("u")
        assert session.state == ConversationState.IDLE
        for field in ("amount", "name", "account_id", "transaction_type"):
            assert not hasattr(session, field)

    @pytest.mark.parametrize("command", ["back", "/back", "menu"])
    @pytest.mark.asyncio
    async def test_back_returns_to_menu(self, engine, command):
        await engine.initialize()
        await converse(engine, "new", "1")
        assert await converse(engine, command) == messages.MAIN_MENU
        assert state_of(engine) == ConversationState.IDLE

    @pytest.mark.asyncio
    async def test_help_keeps_session(self, engine):
        await engine.initialize()
        await converse(engine, "new", "1")
        assert await converse(engine, "/help") == messages.HELP
        assert state_of(engine) == ConversationState.SELECT_ACCOUNT


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_same_identity_is_serialised(self, engine, finance):
        await engine.initialize()
        await converse(engine, "new", "1", "1", "10 Lunch")

        original_submit = finance.submit_transaction

        async def slow_submit(draft):
            await asyncio.sleep(0.01)
            return await original_submit(draft)

        finance.submit_transaction = slow_submit
        first, second = await asyncio.gather(
            engine.handle_message("u", "1"),
            engine.handle_message("u", "1"),
        )
        # The second message sees the reset session, not a second submit
        assert "✅" in first
        assert second == messages.MAIN_MENU
        assert len(finance.submitted) == 1

    @pytest.mark.asyncio
    async def test_locks_are_released(self):
        locks = IdentityLocks()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0
