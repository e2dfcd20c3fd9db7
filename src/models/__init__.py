"""
Data Models Package

This package contains all Pydantic models used by the chat bot.
All data flowing through the system must conform to these schemas.
"""

from src.models.finance import (
    Account,
    Category,
    CategoryClassification,
    Tag,
    Transaction,
    TransactionDraft,
    TransactionNature,
)
from src.models.conversation import (
    ConversationState,
    EnterDetailsSession,
    IdleSession,
    SelectAccountSession,
    SelectCategorySession,
    SelectTypeSession,
    Session,
    build_session,
)
from src.models.audit import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Finance models
    "Account",
    "Category",
    "CategoryClassification",
    "Tag",
    "Transaction",
    "TransactionDraft",
    "TransactionNature",
    # Conversation models
    "ConversationState",
    "EnterDetailsSession",
    "IdleSession",
    "SelectAccountSession",
    "SelectCategorySession",
    "SelectTypeSession",
    "Session",
    "build_session",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
