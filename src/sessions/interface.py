"""
Abstract Session Store Interface

DESIGN DECISION: The conversation engine talks to an abstract store
rather than a module-level dict. This allows us to:
1. Give every test its own isolated store
2. Swap in a shared store (e.g. Redis) later without touching the engine
3. Reason about per-identity isolation in one place

Sessions are not persisted across restarts; the in-memory store is
the only implementation.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from src.models.conversation import Session


class SessionStoreInterface(ABC):
    """
    Abstract interface for per-identity conversation state.

    Exactly one session exists per identity; it is created lazily in
    the IDLE state. The store never changes session fields on its own
    except stamping last_activity_at.
    """

    @abstractmethod
    def get(self, identity: str) -> Session:
        """
        Get the identity's session, creating an IDLE one on first access.

        Stamps last_activity_at.
        """
        pass

    @abstractmethod
    def update(self, identity: str, **fields: Any) -> Session:
        """
        Merge fields into the identity's session and stamp last_activity_at.

        Passing `state` moves the session to another state; the merged
        result must satisfy that state's model.

        Raises:
            pydantic.ValidationError: If the merged fields are not valid
                                      for the target state
        """
        pass

    @abstractmethod
    def reset(self, identity: str) -> Session:
        """Replace the identity's session with a fresh IDLE one."""
        pass

    @abstractmethod
    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove sessions idle for longer than the timeout.

        Returns:
            Number of sessions removed
        """
        pass

    @abstractmethod
    def active_count(self) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every session."""
        pass
