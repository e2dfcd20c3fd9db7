"""
Tests for the Sure chat bot models

Test strategy:
1. Unit tests for individual components (models, parser, stores)
2. Flow tests for the conversation engine (with a fake finance service)
3. No real API calls in tests (urlopen is replaced)
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.models.audit import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from src.models.conversation import (
    ConversationState,
    IdleSession,
    SelectCategorySession,
    build_session,
)
from src.models.finance import Account, Category, Transaction, TransactionDraft


class TestFinanceModels:
    """Tests for the records exchanged with the finance service."""

    def test_numeric_ids_become_strings(self):
        account = Account(id=42, name="Checking")
        assert account.id == "42"

    def test_unknown_fields_are_ignored(self):
        category = Category(id="c1", name="Rent", classification="expense", parent_id="p")
        assert not hasattr(category, "parent_id")

    def test_records_are_frozen(self):
        account = Account(id="a", name="Checking")
        with pytest.raises(ValidationError):
            account.name = "Savings"

    def test_transaction_parses_nested_records(self):
        transaction = Transaction.model_validate({
            "id": "t1",
            "date": "2025-03-07",
            "amount": "-25.50",
            "name": "Coffee",
            "category": {"id": "c1", "name": "Food"},
            "tags": [{"id": "g1", "name": "work"}],
        })
        assert transaction.amount == Decimal("-25.50")
        assert transaction.currency == "USD"
        assert transaction.tags[0].name == "work"


class TestTransactionDraft:
    """Validation that runs before any submission."""

    def _draft(self, **overrides):
        fields = {
            "account_id": "acc-1",
            "date": date(2025, 3, 7),
            "amount": Decimal("-10"),
            "name": "Lunch",
        }
        fields.update(overrides)
        return TransactionDraft(**fields)

    def test_name_is_stripped(self):
        assert self._draft(name="  Lunch  ").name == "Lunch"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"account_id": ""},
            {"name": ""},
            {"name": "x" * 256},
            {"date": "2025-02-30"},
            {"amount": "NaN"},
            {"amount": "1" + "0" * 13},
            {"amount": "1.234"},
            {"nature": "transfer"},
        ],
    )
    def test_invalid_drafts(self, overrides):
        with pytest.raises(ValidationError):
            self._draft(**overrides)

    def test_request_body(self):
        body = self._draft(category_id="c1", nature="expense").to_request_body()
        assert body == {
            "transaction": {
                "account_id": "acc-1",
                "date": "2025-03-07",
                "amount": -10.0,
                "name": "Lunch",
                "category_id": "c1",
                "nature": "expense",
            }
        }


class TestSessionModels:
    """The session union only admits fields valid for its state."""

    def test_build_idle(self):
        session = build_session({"state": ConversationState.IDLE})
        assert isinstance(session, IdleSession)

    def test_select_category_requires_amount_and_name(self):
        with pytest.raises(ValidationError):
            build_session({
                "state": ConversationState.SELECT_CATEGORY,
                "accounts_snapshot": [],
                "transaction_type": "expense",
                "account_id": "acc-1",
                "categories_snapshot": [],
            })

    def test_fields_of_other_states_are_dropped(self):
        session = build_session({"state": ConversationState.IDLE, "amount": "5", "name": "x"})
        assert not hasattr(session, "amount")

    def test_account_name_falls_back_to_unknown(self):
        session = SelectCategorySession(
            accounts_snapshot=(Account(id="a", name="Checking"),),
            transaction_type="expense",
            account_id="missing",
            amount=Decimal("1"),
            name="x",
            categories_snapshot=(),
        )
        assert session.account_name == "Unknown"


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_to_log_dict(self):
        event = ActivityEvent(
            event_type=ActivityEventType.MESSAGE_RECEIVED,
            identity="15551234567",
            description="Message received",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "message_received"
        assert log_dict["severity"] == "info"
        assert log_dict["identity"] == "15551234567"

    def test_message_events_carry_length_only(self):
        event = ActivityEventBuilder.message_received("15551234567", 12)
        assert event.details == {"msg_length": 12}

    def test_failure_severity(self):
        event = ActivityEventBuilder.transaction_failed("1555", "HTTP 500")
        assert event.severity == ActivitySeverity.ERROR
        assert event.error_message == "HTTP 500"

    def test_no_allowed_numbers_is_a_warning(self):
        event = ActivityEventBuilder.no_allowed_numbers()
        assert event.severity == ActivitySeverity.WARNING
