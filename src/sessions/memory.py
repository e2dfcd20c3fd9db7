"""
In-Memory Session Store

Keeps one frozen session model per identity in a dict and expires
abandoned conversations with a periodic sweep.

TRADEOFFS:
- Sessions are lost on restart (acceptable: a flow takes a minute)
- One process only (the bot runs as a single process)
"""

import asyncio
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from src.audit import ActivityLogger
from src.models.conversation import IdleSession, Session, build_session, utc_now
from src.sessions.interface import SessionStoreInterface


DEFAULT_SESSION_TIMEOUT = timedelta(minutes=30)


def find_expired_sessions(
    sessions: Mapping[str, Session],
    now: datetime,
    timeout: timedelta,
) -> list[str]:
    """Identities whose last activity is older than `timeout`."""
    return [
        identity
        for identity, session in sessions.items()
        if now - session.last_activity_at > timeout
    ]


class InMemorySessionStore(SessionStoreInterface):
    """
    Dict-backed session store with an expiry sweep.

    The sweep runs every `timeout` once start() has been called from
    inside an event loop; close() stops it and drops all sessions.
    """

    def __init__(
        self,
        timeout: timedelta = DEFAULT_SESSION_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        if timeout <= timedelta(0):
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._clock = clock
        self._activity_logger = activity_logger
        self._sessions: dict[str, Session] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    def _fresh(self) -> IdleSession:
        now = self._clock()
        return IdleSession(created_at=now, last_activity_at=now)

    def get(self, identity: str) -> Session:
        session = self._sessions.get(identity)
        if session is None:
            session = self._fresh()
        else:
            session = session.model_copy(update={"last_activity_at": self._clock()})
        self._sessions[identity] = session
        return session

    def peek(self, identity: str) -> Optional[Session]:
        """Current session without creating or touching it."""
        return self._sessions.get(identity)

    def update(self, identity: str, **fields: Any) -> Session:
        current = self._sessions.get(identity) or self._fresh()
        # dict(model) keeps nested models as instances; only the
        # merged result is re-validated
        merged = {**dict(current), **fields, "last_activity_at": self._clock()}
        session = build_session(merged)
        self._sessions[identity] = session
        return session

    def reset(self, identity: str) -> Session:
        session = self._fresh()
        self._sessions[identity] = session
        return session

    def active_count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        removed = 0
        for identity in find_expired_sessions(self._sessions, now, self.timeout):
            session = self._sessions.get(identity)
            # Re-check: the entry may have been replaced since it was selected
            if session is not None and now - session.last_activity_at > self.timeout:
                del self._sessions[identity]
                removed += 1

        if removed and self._activity_logger:
            self._activity_logger.sessions_expired(removed)
        return removed

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic expiry sweep on the running event loop. Idempotent."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def _sweep_loop(self) -> None:
        interval = self.timeout.total_seconds()
        while True:
            await asyncio.sleep(interval)
            self.sweep_expired()

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def close(self) -> None:
        """Stop the sweep and clear all sessions. Safe to call twice."""
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.clear()
