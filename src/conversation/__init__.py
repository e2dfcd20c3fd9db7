"""Conversation state machine package."""

from src.conversation.engine import (
    ConfigurationError,
    ConversationEngine,
)
from src.conversation.locks import IdentityLocks
from src.conversation.selection import SelectionError, resolve_selection

__all__ = [
    "ConfigurationError",
    "ConversationEngine",
    "IdentityLocks",
    "SelectionError",
    "resolve_selection",
]
