"""
Session Store Package

Provides the abstract session store interface and the in-memory
implementation used by the bot.
"""

from src.sessions.interface import SessionStoreInterface
from src.sessions.memory import (
    DEFAULT_SESSION_TIMEOUT,
    InMemorySessionStore,
    find_expired_sessions,
)

__all__ = [
    "DEFAULT_SESSION_TIMEOUT",
    "InMemorySessionStore",
    "SessionStoreInterface",
    "find_expired_sessions",
]
